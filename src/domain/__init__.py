"""Accounting core for fixed-price token sales.

This package converts raw ledger integers into exact decimal amounts and
derives vesting and withdrawal figures from them. It performs no I/O and keeps
no state, so it can be exercised without a live ledger.
"""

__all__ = [
    "amounts",
    "errors",
    "ledger_version",
    "sale",
    "vesting",
]
