from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import NewType

from pydantic import BaseModel, ConfigDict, model_validator

from .amounts import HumanAmount, PlainDecimal, ScaledAmount

PurchaseId = NewType("PurchaseId", int)
Address = NewType("Address", str)

PERCENT_DECIMALS = 12
CURRENT_PERCENT_FULL_SCALE = 100 * 10**PERCENT_DECIMALS
LEGACY_PERCENT_FULL_SCALE = 10**4


class VestingSchedule(BaseModel):
    """Tranche percentages exactly as the ledger stores them.

    `full_scale` is the raw value that stands for 100%; it differs between
    ledger generations, so it travels with the tranches instead of being a
    global constant.
    """

    model_config = ConfigDict(frozen=True)

    tranches: tuple[int, ...]
    full_scale: int = CURRENT_PERCENT_FULL_SCALE

    @model_validator(mode="after")
    def _validate(self) -> VestingSchedule:
        if self.full_scale <= 0:
            raise ValueError("full_scale must be > 0")
        if any(tranche < 0 for tranche in self.tranches):
            raise ValueError("tranche percentages must be >= 0")
        return self

    def __len__(self) -> int:
        return len(self.tranches)

    def percentages(self) -> list[Decimal]:
        return [Decimal(tranche) * 100 / Decimal(self.full_scale) for tranche in self.tranches]

    def raw_total(self) -> int:
        return sum(self.tranches)


class Purchase(BaseModel):
    """Purchase record normalised across ledger generations.

    `last_tranche_sent` is 0-based; `-1` means no tranche has been sent yet and
    `None` means the ledger tracks redemption by amount only.
    """

    model_config = ConfigDict(frozen=True)

    purchase_id: PurchaseId
    amount: ScaledAmount
    purchaser: Address
    cost_amount: ScaledAmount
    timestamp: datetime
    amount_redeemed: ScaledAmount
    last_tranche_sent: int | None = None
    was_finalized: bool = False
    reverted: bool = False

    @model_validator(mode="after")
    def _validate(self) -> Purchase:
        if self.amount.scale != self.amount_redeemed.scale:
            raise ValueError("amount and amount_redeemed must share the token scale")
        if self.last_tranche_sent is not None and self.last_tranche_sent < -1:
            raise ValueError("last_tranche_sent must be >= -1")
        return self


class SaleAccountingSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    tokens_for_sale: ScaledAmount
    tokens_allocated: ScaledAmount
    minimum_raise: ScaledAmount
    has_minimum_raise: bool
    has_finalized: bool
    unsold_tokens_redeemed: bool
    balance: ScaledAmount

    @model_validator(mode="after")
    def _validate(self) -> SaleAccountingSnapshot:
        scales = {self.tokens_for_sale.scale, self.tokens_allocated.scale, self.minimum_raise.scale}
        if len(scales) != 1:
            raise ValueError("token amounts must share the token scale")
        return self


class PurchaseDetail(BaseModel):
    purchase_id: PurchaseId
    purchaser: Address
    amount: HumanAmount
    cost_amount: HumanAmount
    timestamp: datetime
    amount_redeemed: HumanAmount
    amount_left_to_redeem: HumanAmount
    amount_to_redeem_now: HumanAmount
    last_tranche_sent: int | None
    was_finalized: bool
    reverted: bool


class DistributionInfo(BaseModel):
    current_schedule: int
    vesting_time: int
    vesting_schedule: list[PlainDecimal]
    vesting_start: datetime
