"""Vesting and redemption accounting.

All arithmetic happens on ledger integer magnitudes; results are converted to
`Decimal` only on the way out. Every function is a pure function of the raw
values passed in, so callers must fetch fresh ledger state before each call.
"""

from __future__ import annotations

from decimal import Decimal
from enum import StrEnum
from typing import Iterable

from .amounts import HumanAmount, HumanInput, ScaledAmount, from_scaled, to_scaled
from .errors import DataIntegrityViolation, ScheduleMismatch
from .sale import CURRENT_PERCENT_FULL_SCALE, Purchase, SaleAccountingSnapshot, VestingSchedule


class RedemptionState(StrEnum):
    UNFINALIZED = "UNFINALIZED"
    FINALIZED_PENDING = "FINALIZED_PENDING"
    PARTIALLY_REDEEMED = "PARTIALLY_REDEEMED"
    FULLY_REDEEMED = "FULLY_REDEEMED"
    REVERTED = "REVERTED"


def vesting_schedule_sum(schedule: VestingSchedule) -> Decimal:
    """Sum of the tranche percentages, in percent."""
    return Decimal(schedule.raw_total()) * 100 / Decimal(schedule.full_scale)


def validate_vesting_schedule(schedule: VestingSchedule) -> None:
    # An empty schedule means no vesting. Compared on raw integers so the check is exact.
    if not schedule.tranches:
        return
    if schedule.raw_total() != schedule.full_scale:
        raise ScheduleMismatch(f"Vesting schedule sums to {vesting_schedule_sum(schedule)}%, expected exactly 100%")


def encode_vesting_schedule(
    percentages: Iterable[HumanInput],
    *,
    full_scale: int = CURRENT_PERCENT_FULL_SCALE,
) -> list[int]:
    """Turn human percentages into the raw integers the ledger expects.

    An empty schedule is accepted and means the sale has no vesting.
    """
    values = list(percentages)
    if not values:
        return []

    # full_scale / 100 must be a power of ten for the percent scale to be exact.
    per_percent, remainder = divmod(full_scale, 100)
    percent_decimals = len(str(per_percent)) - 1
    if remainder or per_percent != 10**percent_decimals:
        raise ValueError(f"Unsupported percent full scale: {full_scale}")

    raw: list[int] = []
    for value in values:
        encoded = to_scaled(value, percent_decimals)
        if from_scaled(encoded, percent_decimals) != Decimal(str(value)):
            raise ScheduleMismatch(f"Tranche {value}% has more than {percent_decimals} decimal places")
        raw.append(encoded)

    validate_vesting_schedule(VestingSchedule(tranches=tuple(raw), full_scale=full_scale))
    return raw


def amount_left_to_redeem(purchase: Purchase) -> HumanAmount:
    left = purchase.amount.magnitude - purchase.amount_redeemed.magnitude
    if left < 0:
        raise DataIntegrityViolation(
            f"Purchase {purchase.purchase_id} redeemed {purchase.amount_redeemed.magnitude} "
            f"of {purchase.amount.magnitude}"
        )
    return from_scaled(left, purchase.amount.scale)


def currently_claimable(
    purchase: Purchase,
    schedule: VestingSchedule,
    current_index: int,
    *,
    sale_finalized: bool,
) -> HumanAmount:
    """Amount of the purchase that can be redeemed right now.

    Tranche percentages always apply to the original purchased amount. The
    unlocked window is `(last_tranche_sent, current_index]`, 0-based. A sale
    without a vesting schedule unlocks everything once finalized.
    """
    if not sale_finalized or purchase.reverted:
        return Decimal(0)

    validate_vesting_schedule(schedule)
    if not schedule.tranches:
        return amount_left_to_redeem(purchase)
    if current_index < -1:
        raise DataIntegrityViolation(f"Invalid current schedule index {current_index}")

    upper = min(current_index, len(schedule) - 1)
    total = purchase.amount.magnitude

    if purchase.last_tranche_sent is None:
        unlocked = total * sum(schedule.tranches[: upper + 1]) // schedule.full_scale
        claimable = unlocked - purchase.amount_redeemed.magnitude
        if claimable < 0:
            raise DataIntegrityViolation(
                f"Purchase {purchase.purchase_id} redeemed {purchase.amount_redeemed.magnitude} "
                f"but only {unlocked} is unlocked"
            )
    else:
        if purchase.last_tranche_sent > current_index:
            raise DataIntegrityViolation(
                f"Purchase {purchase.purchase_id} last tranche sent {purchase.last_tranche_sent} "
                f"is beyond current schedule {current_index}"
            )
        # Floor the cumulative shares so the tranches add up to the whole amount.
        unlocked = total * sum(schedule.tranches[: upper + 1]) // schedule.full_scale
        sent = total * sum(schedule.tranches[: purchase.last_tranche_sent + 1]) // schedule.full_scale
        claimable = unlocked - sent

    return from_scaled(claimable, purchase.amount.scale)


def minimum_raise_reached(sale: SaleAccountingSnapshot) -> bool:
    if not sale.has_minimum_raise:
        return True
    return sale.tokens_allocated.magnitude > sale.minimum_raise.magnitude


def withdrawable_unsold_tokens(sale: SaleAccountingSnapshot) -> HumanAmount:
    if not sale.has_finalized or sale.unsold_tokens_redeemed:
        return Decimal(0)
    if not minimum_raise_reached(sale):
        # Sale is void: every token goes back to the issuer.
        return sale.tokens_for_sale.to_human()
    unsold: ScaledAmount = sale.tokens_for_sale - sale.tokens_allocated
    return unsold.to_human()


def withdrawable_funds(sale: SaleAccountingSnapshot) -> HumanAmount:
    if sale.has_finalized and minimum_raise_reached(sale):
        return sale.balance.to_human()
    return Decimal(0)


def redemption_state(purchase: Purchase, *, sale_finalized: bool) -> RedemptionState:
    if purchase.reverted:
        return RedemptionState.REVERTED
    if not sale_finalized:
        return RedemptionState.UNFINALIZED
    redeemed = purchase.amount_redeemed.magnitude
    if redeemed == 0:
        return RedemptionState.FINALIZED_PENDING
    if redeemed < purchase.amount.magnitude:
        return RedemptionState.PARTIALLY_REDEEMED
    if redeemed == purchase.amount.magnitude:
        return RedemptionState.FULLY_REDEEMED
    raise DataIntegrityViolation(
        f"Purchase {purchase.purchase_id} redeemed {redeemed} of {purchase.amount.magnitude}"
    )


__all__ = [
    "RedemptionState",
    "amount_left_to_redeem",
    "currently_claimable",
    "encode_vesting_schedule",
    "minimum_raise_reached",
    "redemption_state",
    "validate_vesting_schedule",
    "vesting_schedule_sum",
    "withdrawable_funds",
    "withdrawable_unsold_tokens",
]
