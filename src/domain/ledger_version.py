"""Ledger generations and how to read each of them.

Two generations of the sale contract are deployed and can never be migrated:

- CURRENT exposes an API version, returns purchases as named records, stores
  tranche percentages multiplied by 10**12 and indexes the schedule from 0.
- LEGACY has no API version, returns purchases as positional tuples, stores
  tranche percentages in basis points and indexes the schedule from 1.

The version is resolved once per ledger with an explicit query; afterwards the
matching layout normalises every record into the same 0-based domain models.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Mapping, Protocol, Sequence

from .amounts import ScaledAmount, hex_to_int, ledger_time_to_minutes
from .errors import UnsupportedLedgerVersion
from .sale import (
    CURRENT_PERCENT_FULL_SCALE,
    LEGACY_PERCENT_FULL_SCALE,
    Address,
    Purchase,
    PurchaseId,
    VestingSchedule,
)


class LedgerVersion(StrEnum):
    CURRENT = "CURRENT"
    LEGACY = "LEGACY"


class SaleLedger(Protocol):
    """Read-only view of one sale contract, returning raw ledger values.

    `api_version` returns None when the ledger has no version method at all;
    any other failure must be raised as-is.
    """

    def api_version(self) -> str | None: ...

    def token_decimals(self) -> int: ...

    def trading_decimals(self) -> int: ...

    def has_started(self) -> bool: ...

    def has_finalized(self) -> bool: ...

    def current_schedule(self) -> int: ...

    def vesting_time(self) -> int: ...

    def vesting_schedule(self, position: int) -> int: ...

    def vesting_start(self) -> int: ...

    def end_date(self) -> int: ...

    def purchase(self, purchase_id: int) -> Mapping[str, Any]: ...

    def legacy_purchase(self, purchase_id: int) -> Sequence[Any]: ...

    def purchases_count(self) -> int: ...

    def legacy_purchase_ids(self) -> list[str]: ...

    def tokens_for_sale(self) -> int: ...

    def tokens_allocated(self) -> int: ...

    def minimum_raise(self) -> int: ...

    def has_minimum_raise(self) -> bool: ...

    def unsold_tokens_redeemed(self, *, legacy_spelling: bool = False) -> bool: ...

    def balance(self) -> int: ...


def detect_ledger_version(ledger: SaleLedger) -> LedgerVersion:
    version = ledger.api_version()
    if version is None:
        return LedgerVersion.LEGACY
    if not str(version).strip():
        raise UnsupportedLedgerVersion("Ledger reported an empty API version")
    return LedgerVersion.CURRENT


def _as_int(value: Any, *, field: str) -> int:
    if isinstance(value, bool):
        raise UnsupportedLedgerVersion(f"Field {field} is not an integer: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if text[:2].lower() == "0x":
                return hex_to_int(text)
            return int(text)
        except ValueError as exc:
            raise UnsupportedLedgerVersion(f"Field {field} is not an integer: {value!r}") from exc
    raise UnsupportedLedgerVersion(f"Field {field} is not an integer: {value!r}")


def _as_bool(value: Any, *, field: str) -> bool:
    if isinstance(value, bool):
        return value
    raise UnsupportedLedgerVersion(f"Field {field} is not a boolean: {value!r}")


class PurchaseLayout(Protocol):
    version: LedgerVersion
    percent_full_scale: int

    def current_index(self, ledger: SaleLedger) -> int: ...

    def schedule_positions(self, vesting_time: int) -> range: ...

    def read_purchase(
        self,
        ledger: SaleLedger,
        purchase_id: PurchaseId,
        *,
        token_decimals: int,
        trading_decimals: int,
    ) -> Purchase: ...

    def purchase_ids(self, ledger: SaleLedger) -> list[PurchaseId]: ...

    def unsold_tokens_redeemed(self, ledger: SaleLedger) -> bool: ...

    def vesting_start(self, ledger: SaleLedger) -> int: ...


def read_schedule(layout: PurchaseLayout, ledger: SaleLedger) -> VestingSchedule:
    vesting_time = ledger.vesting_time()
    tranches = tuple(
        _as_int(ledger.vesting_schedule(position), field=f"vestingSchedule[{position}]")
        for position in layout.schedule_positions(vesting_time)
    )
    return VestingSchedule(tranches=tranches, full_scale=layout.percent_full_scale)


class CurrentLayout:
    version = LedgerVersion.CURRENT
    percent_full_scale = CURRENT_PERCENT_FULL_SCALE

    _FIELDS = ("amount", "purchaser", "costAmount", "timestamp", "amountRedeemed", "wasFinalized", "reverted")

    def current_index(self, ledger: SaleLedger) -> int:
        return ledger.current_schedule()

    def schedule_positions(self, vesting_time: int) -> range:
        return range(0, vesting_time)

    def read_purchase(
        self,
        ledger: SaleLedger,
        purchase_id: PurchaseId,
        *,
        token_decimals: int,
        trading_decimals: int,
    ) -> Purchase:
        record = ledger.purchase(purchase_id)
        missing = [name for name in self._FIELDS if name not in record]
        if missing:
            raise UnsupportedLedgerVersion(f"Purchase {purchase_id} record is missing fields {missing}")

        return Purchase(
            purchase_id=purchase_id,
            amount=ScaledAmount(magnitude=_as_int(record["amount"], field="amount"), scale=token_decimals),
            purchaser=Address(str(record["purchaser"])),
            cost_amount=ScaledAmount(
                magnitude=_as_int(record["costAmount"], field="costAmount"), scale=trading_decimals
            ),
            timestamp=ledger_time_to_minutes(_as_int(record["timestamp"], field="timestamp")),
            amount_redeemed=ScaledAmount(
                magnitude=_as_int(record["amountRedeemed"], field="amountRedeemed"), scale=token_decimals
            ),
            last_tranche_sent=None,
            was_finalized=_as_bool(record["wasFinalized"], field="wasFinalized"),
            reverted=_as_bool(record["reverted"], field="reverted"),
        )

    def purchase_ids(self, ledger: SaleLedger) -> list[PurchaseId]:
        return [PurchaseId(i) for i in range(ledger.purchases_count())]

    def unsold_tokens_redeemed(self, ledger: SaleLedger) -> bool:
        return ledger.unsold_tokens_redeemed()

    def vesting_start(self, ledger: SaleLedger) -> int:
        return ledger.vesting_start()


class LegacyLayout:
    version = LedgerVersion.LEGACY
    percent_full_scale = LEGACY_PERCENT_FULL_SCALE

    _RECORD_SIZE = 8

    def current_index(self, ledger: SaleLedger) -> int:
        # Tranche 1 is the first one; 0 means nothing is unlocked yet.
        return ledger.current_schedule() - 1

    def schedule_positions(self, vesting_time: int) -> range:
        return range(1, vesting_time + 1)

    def read_purchase(
        self,
        ledger: SaleLedger,
        purchase_id: PurchaseId,
        *,
        token_decimals: int,
        trading_decimals: int,
    ) -> Purchase:
        record = ledger.legacy_purchase(purchase_id)
        if len(record) != self._RECORD_SIZE:
            raise UnsupportedLedgerVersion(
                f"Purchase {purchase_id} record has {len(record)} fields, expected {self._RECORD_SIZE}"
            )
        amount, purchaser, cost_amount, timestamp, amount_redeemed, last_tranche_sent, was_finalized, reverted = record

        return Purchase(
            purchase_id=purchase_id,
            amount=ScaledAmount(magnitude=_as_int(amount, field="amount"), scale=token_decimals),
            purchaser=Address(str(purchaser)),
            cost_amount=ScaledAmount(magnitude=_as_int(cost_amount, field="costAmount"), scale=trading_decimals),
            timestamp=ledger_time_to_minutes(_as_int(timestamp, field="timestamp")),
            amount_redeemed=ScaledAmount(
                magnitude=_as_int(amount_redeemed, field="amountRedeemed"), scale=token_decimals
            ),
            last_tranche_sent=_as_int(last_tranche_sent, field="lastTrancheSent") - 1,
            was_finalized=_as_bool(was_finalized, field="wasFinalized"),
            reverted=_as_bool(reverted, field="reverted"),
        )

    def purchase_ids(self, ledger: SaleLedger) -> list[PurchaseId]:
        return [PurchaseId(hex_to_int(raw)) for raw in ledger.legacy_purchase_ids()]

    def unsold_tokens_redeemed(self, ledger: SaleLedger) -> bool:
        return ledger.unsold_tokens_redeemed(legacy_spelling=True)

    def vesting_start(self, ledger: SaleLedger) -> int:
        # Legacy sales start vesting when the sale ends.
        return ledger.end_date()


_LAYOUTS: dict[LedgerVersion, PurchaseLayout] = {
    LedgerVersion.CURRENT: CurrentLayout(),
    LedgerVersion.LEGACY: LegacyLayout(),
}


def layout_for(version: LedgerVersion) -> PurchaseLayout:
    try:
        return _LAYOUTS[version]
    except KeyError as exc:
        raise UnsupportedLedgerVersion(f"No purchase layout for ledger version {version}") from exc


__all__ = [
    "CurrentLayout",
    "LedgerVersion",
    "LegacyLayout",
    "PurchaseLayout",
    "SaleLedger",
    "detect_ledger_version",
    "layout_for",
    "read_schedule",
]
