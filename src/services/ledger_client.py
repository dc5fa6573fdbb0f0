from __future__ import annotations

import itertools
import logging
from typing import Any

import requests

from domain.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)

JSONRPC_METHOD_NOT_FOUND = -32601


class MethodNotFound(Exception):
    """The ledger does not expose the requested method.

    This is a capability answer, not a failure: callers use it to tell ledger
    generations apart. It is never raised for transport or authorization errors.
    """

    def __init__(self, method: str, *, payload: Any | None = None) -> None:
        super().__init__(f"Ledger method not found: {method}")
        self.method = method
        self.payload = payload


class LedgerRpcClient:
    """JSON-RPC 2.0 client for a read-only contract gateway.

    Every request is a `ledger_call` carrying the contract address, the view
    method name and its arguments; the gateway answers with the raw values
    returned by the contract (integers as decimal strings).
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        if not base_url:
            msg = "base_url must be provided"
            raise ValueError(msg)

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._ids = itertools.count(1)

    def call(self, contract: str, method: str, *args: Any) -> Any:
        if not contract:
            msg = "contract must be provided"
            raise ValueError(msg)
        params = {"contract": contract, "method": method, "args": list(args)}
        return self._request("ledger_call", params)

    def native_balance(self, address: str) -> Any:
        return self._request("ledger_getBalance", {"address": address})

    def _request(self, rpc_method: str, params: dict[str, Any]) -> Any:
        request_id = next(self._ids)
        body = {"jsonrpc": "2.0", "id": request_id, "method": rpc_method, "params": params}
        logger.debug("Ledger request id=%d method=%s params=%s", request_id, rpc_method, params)
        try:
            response = self._session.post(self.base_url, json=body, timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as exc:
            resp = exc.response
            status_code = getattr(resp, "status_code", None)
            error_payload: Any | None = None
            if resp is not None:
                try:
                    error_payload = resp.json()
                except ValueError:
                    error_payload = resp.text
            logger.info("Ledger request failed status=%s method=%s", status_code, params.get("method"))
            raise UpstreamUnavailable("Ledger request failed", status_code=status_code, payload=error_payload) from exc
        except requests.RequestException as exc:
            status_code = getattr(getattr(exc, "response", None), "status_code", None)
            logger.info("Ledger request failed method=%s error=%s", params.get("method"), exc)
            raise UpstreamUnavailable("Ledger request failed", status_code=status_code) from exc

        try:
            payload_raw = response.json()
        except ValueError as exc:
            raise UpstreamUnavailable("Ledger returned invalid JSON", payload=response.text) from exc

        if not isinstance(payload_raw, dict):
            raise UpstreamUnavailable("Ledger returned unexpected payload type", payload=payload_raw)

        payload: dict[str, Any] = payload_raw
        error = payload.get("error")
        if isinstance(error, dict):
            if error.get("code") == JSONRPC_METHOD_NOT_FOUND:
                raise MethodNotFound(str(params.get("method", rpc_method)), payload=payload)
            message = error.get("message") or "Ledger returned an error"
            raise UpstreamUnavailable(str(message), status_code=response.status_code, payload=payload)

        if "result" not in payload:
            raise UpstreamUnavailable("Ledger response missing result", payload=payload)
        return payload["result"]


__all__ = ["JSONRPC_METHOD_NOT_FOUND", "LedgerRpcClient", "MethodNotFound"]
