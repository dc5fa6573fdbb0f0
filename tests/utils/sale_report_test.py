from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from domain.ledger_version import LedgerVersion
from main import run
from services.sale_service import SaleQueryService
from tests.helpers.fake_ledger import FakeSaleLedger, current_purchase_record, tokens
from utils.formatting import format_decimal, format_minutes, format_percentage
from utils.sale_report import compute_sale_summary, render_sale_summary


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (Decimal("0.097"), "0.097"),
        (Decimal("1E+2"), "100"),
        (Decimal("1E-18"), "0.000000000000000001"),
        (Decimal("12.3400"), "12.34"),
        (Decimal("0E-18"), "0"),
        (Decimal("123456789012345678901234567890.000000000000000001"), "123456789012345678901234567890.000000000000000001"),
    ],
)
def test_format_decimal_renders_plain_digits(value: Decimal, expected: str) -> None:
    assert format_decimal(value) == expected


def test_format_helpers() -> None:
    assert format_percentage(Decimal("33.50")) == "33.5%"
    assert format_minutes(datetime(2024, 1, 2, 3, 4, tzinfo=timezone.utc)) == "2024-01-02 03:04 UTC"


def test_compute_sale_summary(current_ledger: FakeSaleLedger) -> None:
    current_ledger.tokens_for_sale_value = tokens(100)
    current_ledger.tokens_allocated_value = tokens(60)
    current_ledger.minimum_raise_value = tokens(50)
    current_ledger.has_minimum_raise_value = True
    current_ledger.balance_value = tokens("3.5")

    summary = compute_sale_summary(SaleQueryService(current_ledger))

    assert summary.version == LedgerVersion.CURRENT
    assert summary.minimum_raise == Decimal("50")
    assert summary.minimum_raise_reached
    assert summary.withdrawable_unsold_tokens == Decimal("40")
    assert summary.withdrawable_funds == Decimal("3.5")
    # One ledger snapshot per summary.
    assert current_ledger.calls["tokens_for_sale"] == 1


def test_render_sale_summary(current_ledger: FakeSaleLedger, capsys: pytest.CaptureFixture[str]) -> None:
    current_ledger.tokens_for_sale_value = tokens(100)
    current_ledger.tokens_allocated_value = tokens(40)

    render_sale_summary(compute_sale_summary(SaleQueryService(current_ledger)))

    out = capsys.readouterr().out
    assert "Sale summary:" in out
    assert "Withdrawable unsold: 60" in out
    assert "Minimum raise:       -" in out


def test_run_purchase_command(current_ledger: FakeSaleLedger, capsys: pytest.CaptureFixture[str]) -> None:
    current_ledger.purchases[0] = current_purchase_record(amount=tokens("0.097"))

    run(SaleQueryService(current_ledger), "purchase", 0)

    out = capsys.readouterr().out
    assert "Purchase 0:" in out
    assert "0.097" in out
    assert "Redeemable now:    0.0291" in out


def test_run_distribution_command(legacy_ledger: FakeSaleLedger, capsys: pytest.CaptureFixture[str]) -> None:
    run(SaleQueryService(legacy_ledger), "distribution")

    out = capsys.readouterr().out
    assert "40%" in out
    assert "Schedule total: 100%" in out


def test_run_rejects_unknown_command(current_ledger: FakeSaleLedger) -> None:
    with pytest.raises(ValueError):
        run(SaleQueryService(current_ledger), "fund")
