from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from domain.ledger_version import LedgerVersion
from domain.sale import DistributionInfo, PurchaseDetail
from domain.vesting import minimum_raise_reached, withdrawable_funds, withdrawable_unsold_tokens
from services.sale_service import SaleQueryService

from .formatting import format_decimal, format_minutes, format_percentage


@dataclass
class SaleSummary:
    version: LedgerVersion
    tokens_for_sale: Decimal
    tokens_allocated: Decimal
    minimum_raise: Decimal | None
    minimum_raise_reached: bool
    has_finalized: bool
    withdrawable_unsold_tokens: Decimal
    withdrawable_funds: Decimal


def compute_sale_summary(service: SaleQueryService) -> SaleSummary:
    # One snapshot so every figure comes from the same ledger reads.
    snapshot = service.sale_snapshot()
    return SaleSummary(
        version=service.version,
        tokens_for_sale=snapshot.tokens_for_sale.to_human(),
        tokens_allocated=snapshot.tokens_allocated.to_human(),
        minimum_raise=snapshot.minimum_raise.to_human() if snapshot.has_minimum_raise else None,
        minimum_raise_reached=minimum_raise_reached(snapshot),
        has_finalized=snapshot.has_finalized,
        withdrawable_unsold_tokens=withdrawable_unsold_tokens(snapshot),
        withdrawable_funds=withdrawable_funds(snapshot),
    )


def _render_rows(title: str, rows: list[tuple[str, str]]) -> None:
    print(title)
    label_width = max((len(label) for label, _ in rows), default=0)
    for label, value in rows:
        print(f"  {label:<{label_width}} {value}")


def render_sale_summary(summary: SaleSummary) -> None:
    _render_rows(
        "Sale summary:",
        [
            ("Ledger version:", summary.version.value),
            ("Tokens for sale:", format_decimal(summary.tokens_for_sale)),
            ("Tokens allocated:", format_decimal(summary.tokens_allocated)),
            ("Minimum raise:", format_decimal(summary.minimum_raise) if summary.minimum_raise is not None else "-"),
            ("Minimum reached:", "yes" if summary.minimum_raise_reached else "no"),
            ("Finalized:", "yes" if summary.has_finalized else "no"),
            ("Withdrawable unsold:", format_decimal(summary.withdrawable_unsold_tokens)),
            ("Withdrawable funds:", format_decimal(summary.withdrawable_funds)),
        ],
    )


def render_purchase_detail(detail: PurchaseDetail) -> None:
    last_tranche = "-" if detail.last_tranche_sent is None else str(detail.last_tranche_sent)
    _render_rows(
        f"Purchase {detail.purchase_id}:",
        [
            ("Purchaser:", detail.purchaser),
            ("Time:", format_minutes(detail.timestamp)),
            ("Amount:", format_decimal(detail.amount)),
            ("Cost:", format_decimal(detail.cost_amount)),
            ("Redeemed:", format_decimal(detail.amount_redeemed)),
            ("Left to redeem:", format_decimal(detail.amount_left_to_redeem)),
            ("Redeemable now:", format_decimal(detail.amount_to_redeem_now)),
            ("Last tranche sent:", last_tranche),
            ("Reverted:", "yes" if detail.reverted else "no"),
        ],
    )


def render_distribution(info: DistributionInfo) -> None:
    rows = [
        ("Vesting start:", format_minutes(info.vesting_start)),
        ("Current tranche:", "-" if info.current_schedule < 0 else str(info.current_schedule)),
        ("Tranches:", str(info.vesting_time)),
    ]
    rows.extend((f"  #{index}", format_percentage(percentage)) for index, percentage in enumerate(info.vesting_schedule))
    _render_rows("Distribution:", rows)
