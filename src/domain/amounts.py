"""Exact conversions between human decimal amounts and ledger integers.

This module is the only place where a human `Decimal` becomes a ledger integer
(or the other way round). Everything upstream of it works on integers, everything
downstream on `Decimal`; binary floats are rejected outright.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_DOWN, Context, Decimal, InvalidOperation
from string import hexdigits
from typing import Annotated, Union

from pydantic import BaseModel, ConfigDict, PlainSerializer, model_validator

from .errors import DataIntegrityViolation, InvalidAmount


def to_plain_text(value: Decimal) -> str:
    """Render a decimal as plain digits: no exponent, no trailing zeros."""
    # format "f" neither rounds nor switches to E notation the way str() does.
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("", "-0"):
        return "0"
    return text


# Serialised to JSON as plain digits; consumers compare the rendered text.
PlainDecimal = Annotated[Decimal, PlainSerializer(to_plain_text, return_type=str, when_used="json")]
HumanAmount = PlainDecimal
HumanInput = Union[Decimal, int, str]

DEFAULT_TRADING_DECIMALS = 18


def _exact_context(value: Decimal) -> Context:
    # Wide enough that no operation in this module ever rounds.
    digits = len(value.as_tuple().digits)
    return Context(prec=max(digits, 28))


def _coerce_human(human: HumanInput) -> Decimal:
    if isinstance(human, bool) or isinstance(human, float):
        raise InvalidAmount(f"Amount must be Decimal, int or str, got {type(human).__name__}")
    if isinstance(human, Decimal):
        value = human
    elif isinstance(human, (int, str)):
        try:
            value = Decimal(human.strip() if isinstance(human, str) else human)
        except InvalidOperation as exc:
            raise InvalidAmount(f"Amount is not numeric: {human!r}") from exc
    else:
        raise InvalidAmount(f"Amount must be Decimal, int or str, got {type(human).__name__}")

    if not value.is_finite():
        raise InvalidAmount(f"Amount must be finite, got {value}")
    if value < 0:
        raise InvalidAmount(f"Amount cannot be negative: {value}")
    return value


def to_scaled(human: HumanInput, scale: int) -> int:
    """Return `human * 10**scale` truncated toward zero."""
    if scale < 0:
        raise ValueError(f"scale must be >= 0, got {scale}")
    value = _coerce_human(human)
    shifted = value.scaleb(scale, context=_exact_context(value))
    return int(shifted.to_integral_value(rounding=ROUND_DOWN))


def from_scaled(raw: int, scale: int) -> HumanAmount:
    """Return `raw / 10**scale` exactly, without trailing zeros or a positive exponent."""
    if scale < 0:
        raise ValueError(f"scale must be >= 0, got {scale}")
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise InvalidAmount(f"Raw amount must be an integer, got {type(raw).__name__}")
    if raw < 0:
        raise InvalidAmount(f"Raw amount cannot be negative: {raw}")

    value = Decimal(raw)
    ctx = _exact_context(value)
    normalized = value.scaleb(-scale, context=ctx).normalize(context=ctx)
    if normalized.as_tuple().exponent > 0:
        normalized = normalized.quantize(Decimal(1), context=ctx)
    return normalized


def from_scaled_text(raw: int, scale: int) -> str:
    return to_plain_text(from_scaled(raw, scale))


def resolve_trading_decimals(decimals: int) -> int:
    """Trading currency decimals; 0 means the sale trades the native coin."""
    if decimals < 0:
        raise ValueError(f"decimals must be >= 0, got {decimals}")
    return decimals or DEFAULT_TRADING_DECIMALS


def to_ledger_time(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp())


def ledger_time_to_minutes(value: int) -> datetime:
    moment = datetime.fromtimestamp(int(value), tz=timezone.utc)
    return moment.replace(second=0, microsecond=0)


def hex_to_int(value: str) -> int:
    # Ledger ids are unsigned: no sign, no digit separators.
    text = value.strip()
    if text[:2].lower() == "0x":
        text = text[2:]
    if not text or any(char not in hexdigits for char in text):
        raise ValueError(f"Not a hex value: {value!r}")
    return int(text, 16)


class ScaledAmount(BaseModel):
    """Ledger integer magnitude together with its decimal-places scale."""

    model_config = ConfigDict(frozen=True, strict=True)

    magnitude: int
    scale: int

    @model_validator(mode="after")
    def _validate(self) -> ScaledAmount:
        if self.magnitude < 0:
            raise ValueError("magnitude must be >= 0")
        if self.scale < 0:
            raise ValueError("scale must be >= 0")
        return self

    @classmethod
    def from_human(cls, human: HumanInput, scale: int) -> ScaledAmount:
        return cls(magnitude=to_scaled(human, scale), scale=scale)

    @classmethod
    def zero(cls, scale: int) -> ScaledAmount:
        return cls(magnitude=0, scale=scale)

    def to_human(self) -> HumanAmount:
        return from_scaled(self.magnitude, self.scale)

    def to_text(self) -> str:
        return from_scaled_text(self.magnitude, self.scale)

    def _check_scale(self, other: ScaledAmount) -> None:
        if self.scale != other.scale:
            raise ValueError(f"Cannot combine amounts with scales {self.scale} and {other.scale}")

    def __add__(self, other: ScaledAmount) -> ScaledAmount:
        self._check_scale(other)
        return ScaledAmount(magnitude=self.magnitude + other.magnitude, scale=self.scale)

    def __sub__(self, other: ScaledAmount) -> ScaledAmount:
        self._check_scale(other)
        difference = self.magnitude - other.magnitude
        if difference < 0:
            raise DataIntegrityViolation(f"Negative amount: {self.magnitude} - {other.magnitude} at scale {self.scale}")
        return ScaledAmount(magnitude=difference, scale=self.scale)


__all__ = [
    "DEFAULT_TRADING_DECIMALS",
    "HumanAmount",
    "HumanInput",
    "PlainDecimal",
    "ScaledAmount",
    "from_scaled",
    "from_scaled_text",
    "hex_to_int",
    "ledger_time_to_minutes",
    "resolve_trading_decimals",
    "to_ledger_time",
    "to_plain_text",
    "to_scaled",
]
