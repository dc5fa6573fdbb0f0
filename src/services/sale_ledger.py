from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from domain.errors import UnsupportedLedgerVersion, UpstreamUnavailable

from .ledger_client import LedgerRpcClient, MethodNotFound

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        raise UpstreamUnavailable(f"Ledger returned a boolean where an integer was expected: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise UpstreamUnavailable(f"Ledger returned a non-integer value: {value!r}", payload=value) from exc


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    raise UpstreamUnavailable(f"Ledger returned a non-boolean value: {value!r}", payload=value)


class RpcSaleLedger:
    """`SaleLedger` backed by the JSON-RPC gateway for a single sale contract."""

    def __init__(self, client: LedgerRpcClient, contract_address: str) -> None:
        if not contract_address:
            msg = "contract_address must be provided"
            raise ValueError(msg)
        self.client = client
        self.contract_address = contract_address

    def _call(self, method: str, *args: Any) -> Any:
        return self.client.call(self.contract_address, method, *args)

    def api_version(self) -> str | None:
        try:
            return str(self._call("getAPIVersion"))
        except MethodNotFound:
            logger.info("Contract %s has no getAPIVersion method", self.contract_address)
            return None

    def token_address(self) -> str:
        return str(self._call("erc20"))

    def trading_token_address(self) -> str:
        try:
            return str(self._call("erc20TradeIn"))
        except MethodNotFound:
            # Older sales only trade the native coin.
            return ZERO_ADDRESS

    def token_decimals(self) -> int:
        return _to_int(self.client.call(self.token_address(), "decimals"))

    def trading_decimals(self) -> int:
        trading_address = self.trading_token_address()
        if trading_address.lower() == ZERO_ADDRESS:
            return 0
        return _to_int(self.client.call(trading_address, "decimals"))

    def has_started(self) -> bool:
        return _to_bool(self._call("hasStarted"))

    def has_finalized(self) -> bool:
        return _to_bool(self._call("hasFinalized"))

    def current_schedule(self) -> int:
        return _to_int(self._call("getCurrentSchedule"))

    def vesting_time(self) -> int:
        return _to_int(self._call("vestingTime"))

    def vesting_schedule(self, position: int) -> int:
        return _to_int(self._call("vestingSchedule", position))

    def vesting_start(self) -> int:
        return _to_int(self._call("vestingStart"))

    def end_date(self) -> int:
        return _to_int(self._call("endDate"))

    def purchase(self, purchase_id: int) -> Mapping[str, Any]:
        record = self._call("getPurchase", purchase_id)
        if not isinstance(record, Mapping):
            raise UpstreamUnavailable("Ledger returned an unexpected purchase record", payload=record)
        return record

    def legacy_purchase(self, purchase_id: int) -> Sequence[Any]:
        record = self._call("getPurchase", purchase_id)
        if isinstance(record, Mapping):
            # Positional outputs come back keyed by index.
            if not all(str(key).isdigit() for key in record):
                raise UnsupportedLedgerVersion(f"Purchase {purchase_id} record is not positional")
            record = [record[key] for key in sorted(record, key=int)]
        if not isinstance(record, list):
            raise UpstreamUnavailable("Ledger returned an unexpected purchase record", payload=record)
        return record

    def purchases_count(self) -> int:
        return _to_int(self._call("getPurchasesCount"))

    def legacy_purchase_ids(self) -> list[str]:
        ids = self._call("getPurchaseIds")
        if not isinstance(ids, list):
            raise UpstreamUnavailable("Ledger returned unexpected purchase ids", payload=ids)
        return [str(raw) for raw in ids]

    def tokens_for_sale(self) -> int:
        return _to_int(self._call("tokensForSale"))

    def tokens_allocated(self) -> int:
        return _to_int(self._call("tokensAllocated"))

    def minimum_raise(self) -> int:
        return _to_int(self._call("minimumRaise"))

    def has_minimum_raise(self) -> bool:
        return _to_bool(self._call("hasMinimumRaise"))

    def unsold_tokens_redeemed(self, *, legacy_spelling: bool = False) -> bool:
        method = "unsoldTokensReedemed" if legacy_spelling else "unsoldTokensRedeemed"
        return _to_bool(self._call(method))

    def balance(self) -> int:
        trading_address = self.trading_token_address()
        if trading_address.lower() == ZERO_ADDRESS:
            return _to_int(self.client.native_balance(self.contract_address))
        return _to_int(self.client.call(trading_address, "balanceOf", self.contract_address))


__all__ = ["RpcSaleLedger", "ZERO_ADDRESS"]
