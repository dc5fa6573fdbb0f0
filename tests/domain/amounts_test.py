from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from domain.amounts import (
    ScaledAmount,
    from_scaled,
    from_scaled_text,
    hex_to_int,
    ledger_time_to_minutes,
    resolve_trading_decimals,
    to_ledger_time,
    to_plain_text,
    to_scaled,
)
from domain.errors import DataIntegrityViolation, InvalidAmount
from utils.formatting import format_decimal


def test_to_scaled_matches_ledger_fixed_values() -> None:
    assert to_scaled(Decimal("0.087") + Decimal("0.01"), 18) == 97_000_000_000_000_000
    assert to_scaled(Decimal("0.087234523452345") + Decimal("0.01"), 18) == 97_234_523_452_345_000
    assert to_scaled(Decimal("0.007234523453345333") + Decimal("0.01"), 18) == 17_234_523_453_345_333


def test_from_scaled_renders_plain_decimal() -> None:
    value = from_scaled(97_000_000_000_000_000, 18)

    assert value == Decimal("0.097")
    assert format_decimal(value) == "0.097"
    assert str(value) == "0.097"


@pytest.mark.parametrize(
    ("human", "scale"),
    [
        (Decimal("0.097"), 18),
        (Decimal("1234567890123456789.123456789012345678"), 18),
        (Decimal("0.000001"), 6),
        (Decimal("42"), 0),
        (Decimal("0"), 18),
    ],
)
def test_round_trip_is_exact(human: Decimal, scale: int) -> None:
    assert from_scaled(to_scaled(human, scale), scale) == human


def test_to_scaled_truncates_extra_digits() -> None:
    assert to_scaled(Decimal("1.999999"), 2) == 199
    assert to_scaled("0.0000009", 6) == 0


def test_to_scaled_does_not_lose_precision_on_large_amounts() -> None:
    # 40 significant digits, well beyond the default decimal context.
    human = Decimal("9999999999999999999999.999999999999999999")
    assert to_scaled(human, 18) == 9_999_999_999_999_999_999_999_999_999_999_999_999_999


@pytest.mark.parametrize("bad", [Decimal("-1"), "-0.5", "abc", "NaN", "Infinity", 0.1, True])
def test_to_scaled_rejects_invalid_amounts(bad: object) -> None:
    with pytest.raises(InvalidAmount):
        to_scaled(bad, 18)  # type: ignore[arg-type]


def test_from_scaled_never_uses_scientific_notation() -> None:
    assert from_scaled_text(1, 18) == "0.000000000000000001"
    assert from_scaled_text(5, 18) == "0.000000000000000005"
    assert to_plain_text(from_scaled(1, 18)) == "0.000000000000000001"
    assert ScaledAmount(magnitude=5, scale=18).to_text() == "0.000000000000000005"
    assert from_scaled_text(100 * 10**18, 18) == "100"
    assert format_decimal(from_scaled(1, 18)) == "0.000000000000000001"
    assert from_scaled(100 * 10**18, 18) == Decimal("100")
    assert str(from_scaled(100 * 10**18, 18)) == "100"
    assert str(from_scaled(0, 18)) == "0"


def test_from_scaled_rejects_negative_raw() -> None:
    with pytest.raises(InvalidAmount):
        from_scaled(-1, 18)


def test_scaled_amount_arithmetic_requires_matching_scale() -> None:
    a = ScaledAmount.from_human("1.5", 18)
    b = ScaledAmount.from_human("0.5", 18)

    assert (a + b).to_human() == Decimal("2")
    assert (a - b).to_human() == Decimal("1")

    with pytest.raises(ValueError):
        a + ScaledAmount.from_human("1", 6)
    with pytest.raises(DataIntegrityViolation):
        b - a


def test_scaled_amount_rejects_negative_magnitude() -> None:
    with pytest.raises(ValueError):
        ScaledAmount(magnitude=-1, scale=18)


def test_ledger_time_round_trip_truncates_to_minute() -> None:
    moment = datetime(2024, 3, 1, 12, 34, 56, tzinfo=timezone.utc)
    ledger_time = to_ledger_time(moment)

    assert ledger_time == 1_709_296_496
    assert ledger_time_to_minutes(ledger_time) == datetime(2024, 3, 1, 12, 34, tzinfo=timezone.utc)


def test_to_ledger_time_treats_naive_as_utc() -> None:
    naive = datetime(2024, 3, 1, 12, 0)
    aware = datetime(2024, 3, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))

    assert to_ledger_time(naive) == to_ledger_time(aware)


def test_hex_to_int() -> None:
    assert hex_to_int("0x1f") == 31
    assert hex_to_int("0X0") == 0
    assert hex_to_int("ff") == 255
    with pytest.raises(ValueError):
        hex_to_int("0x")
    with pytest.raises(ValueError):
        hex_to_int("0xzz")
    for signed in ("-0x1", "+0x1", "-1", "0x_1"):
        with pytest.raises(ValueError):
            hex_to_int(signed)


def test_trading_decimals_default_to_native_coin() -> None:
    assert resolve_trading_decimals(0) == 18
    assert resolve_trading_decimals(6) == 6
