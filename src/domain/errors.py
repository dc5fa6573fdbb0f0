from __future__ import annotations

from typing import Any


class SaleAccountingError(Exception):
    """Base class for every failure surfaced by the accounting core."""


class InvalidAmount(SaleAccountingError, ValueError):
    pass


class ScheduleMismatch(SaleAccountingError):
    pass


class DataIntegrityViolation(SaleAccountingError):
    pass


class UnsupportedLedgerVersion(SaleAccountingError):
    pass


class UpstreamUnavailable(SaleAccountingError):
    def __init__(self, message: str, *, status_code: int | None = None, payload: Any | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


__all__ = [
    "DataIntegrityViolation",
    "InvalidAmount",
    "SaleAccountingError",
    "ScheduleMismatch",
    "UnsupportedLedgerVersion",
    "UpstreamUnavailable",
]
