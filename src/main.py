from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from config import config
from domain.errors import SaleAccountingError
from domain.sale import PurchaseId
from services.ledger_client import LedgerRpcClient
from services.sale_ledger import RpcSaleLedger
from services.sale_service import SaleQueryService
from utils.formatting import format_percentage
from utils.sale_report import compute_sale_summary, render_distribution, render_purchase_detail, render_sale_summary


def build_service(contract_address: str | None = None) -> SaleQueryService:
    settings = config()
    address = contract_address or settings.sale_contract_address
    if not address:
        msg = "Sale contract address not provided (use --contract or SALE_CONTRACT_ADDRESS)"
        raise ValueError(msg)
    client = LedgerRpcClient(base_url=settings.ledger_rpc_url, timeout=settings.ledger_rpc_timeout)
    return SaleQueryService(RpcSaleLedger(client, address))


def run(service: SaleQueryService, command: str, purchase_id: int | None = None) -> None:
    if command == "purchase":
        if purchase_id is None:
            msg = "purchase_id is required"
            raise ValueError(msg)
        render_purchase_detail(service.purchase_detail(PurchaseId(purchase_id)))
    elif command == "purchases":
        for pid in service.purchase_ids():
            render_purchase_detail(service.purchase_detail(pid))
    elif command == "sale":
        render_sale_summary(compute_sale_summary(service))
    elif command == "distribution":
        render_distribution(service.distribution_info())
        print(f"Schedule total: {format_percentage(service.validate_schedule())}")
    else:
        msg = f"Unknown command: {command}"
        raise ValueError(msg)


def main(argv: Sequence[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Inspect token sale purchases, vesting and withdrawable amounts.")
    parser.add_argument("--contract", help="Sale contract address (defaults to SALE_CONTRACT_ADDRESS)")
    parser.add_argument("--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", required=True)

    purchase_parser = subparsers.add_parser("purchase", help="Show one purchase")
    purchase_parser.add_argument("purchase_id", type=int)
    subparsers.add_parser("purchases", help="Show every purchase")
    subparsers.add_parser("sale", help="Show sale totals and withdrawable amounts")
    subparsers.add_parser("distribution", help="Show the vesting schedule")

    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    try:
        service = build_service(args.contract)
        run(service, args.command, getattr(args, "purchase_id", None))
    except SaleAccountingError as exc:
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
