from __future__ import annotations

import logging
from decimal import Decimal

from domain.amounts import HumanAmount, ScaledAmount, ledger_time_to_minutes, resolve_trading_decimals
from domain.ledger_version import LedgerVersion, SaleLedger, detect_ledger_version, layout_for, read_schedule
from domain.sale import DistributionInfo, Purchase, PurchaseDetail, PurchaseId, SaleAccountingSnapshot, VestingSchedule
from domain.vesting import (
    amount_left_to_redeem,
    currently_claimable,
    minimum_raise_reached,
    validate_vesting_schedule,
    vesting_schedule_sum,
    withdrawable_funds,
    withdrawable_unsold_tokens,
)

logger = logging.getLogger(__name__)


class SaleQueryService:
    """Query surface for one sale.

    The ledger version is resolved once, at construction. Every query fetches
    fresh raw values; nothing else is kept between calls.
    """

    def __init__(self, ledger: SaleLedger, *, version: LedgerVersion | None = None) -> None:
        self.ledger = ledger
        self.version = version or detect_ledger_version(ledger)
        self._layout = layout_for(self.version)
        logger.info("Sale ledger resolved as %s", self.version)

    def _decimals(self) -> tuple[int, int]:
        return self.ledger.token_decimals(), resolve_trading_decimals(self.ledger.trading_decimals())

    def read_purchase(self, purchase_id: PurchaseId) -> Purchase:
        token_decimals, trading_decimals = self._decimals()
        return self._layout.read_purchase(
            self.ledger,
            purchase_id,
            token_decimals=token_decimals,
            trading_decimals=trading_decimals,
        )

    def schedule(self) -> VestingSchedule:
        return read_schedule(self._layout, self.ledger)

    def current_index(self) -> int:
        return self._layout.current_index(self.ledger)

    def purchase_detail(self, purchase_id: PurchaseId) -> PurchaseDetail:
        purchase = self.read_purchase(purchase_id)

        amount_to_redeem_now = currently_claimable(
            purchase,
            self.schedule(),
            self.current_index(),
            sale_finalized=self.ledger.has_finalized(),
        )

        return PurchaseDetail(
            purchase_id=purchase.purchase_id,
            purchaser=purchase.purchaser,
            amount=purchase.amount.to_human(),
            cost_amount=purchase.cost_amount.to_human(),
            timestamp=purchase.timestamp,
            amount_redeemed=purchase.amount_redeemed.to_human(),
            amount_left_to_redeem=amount_left_to_redeem(purchase),
            amount_to_redeem_now=amount_to_redeem_now,
            last_tranche_sent=purchase.last_tranche_sent,
            was_finalized=purchase.was_finalized,
            reverted=purchase.reverted,
        )

    def purchase_ids(self) -> list[PurchaseId]:
        return self._layout.purchase_ids(self.ledger)

    def sale_snapshot(self) -> SaleAccountingSnapshot:
        token_decimals, trading_decimals = self._decimals()
        return SaleAccountingSnapshot(
            tokens_for_sale=ScaledAmount(magnitude=self.ledger.tokens_for_sale(), scale=token_decimals),
            tokens_allocated=ScaledAmount(magnitude=self.ledger.tokens_allocated(), scale=token_decimals),
            minimum_raise=ScaledAmount(magnitude=self.ledger.minimum_raise(), scale=token_decimals),
            has_minimum_raise=self.ledger.has_minimum_raise(),
            has_finalized=self.ledger.has_finalized(),
            unsold_tokens_redeemed=self._layout.unsold_tokens_redeemed(self.ledger),
            balance=ScaledAmount(magnitude=self.ledger.balance(), scale=trading_decimals),
        )

    def minimum_raise_reached(self) -> bool:
        return minimum_raise_reached(self.sale_snapshot())

    def withdrawable_unsold_tokens(self) -> HumanAmount:
        return withdrawable_unsold_tokens(self.sale_snapshot())

    def withdrawable_funds(self) -> HumanAmount:
        return withdrawable_funds(self.sale_snapshot())

    def distribution_info(self) -> DistributionInfo:
        current_schedule = self.current_index() if self.ledger.has_started() else -1
        schedule = self.schedule()
        return DistributionInfo(
            current_schedule=current_schedule,
            vesting_time=len(schedule),
            vesting_schedule=schedule.percentages(),
            vesting_start=ledger_time_to_minutes(self._layout.vesting_start(self.ledger)),
        )

    def validate_schedule(self) -> Decimal:
        """Check the stored schedule sums to 100% and return the sum (0 when the sale has no vesting)."""
        schedule = self.schedule()
        validate_vesting_schedule(schedule)
        return vesting_schedule_sum(schedule)


__all__ = ["SaleQueryService"]
