"""``genlayer receipt``: wait for and show a transaction receipt."""

from __future__ import annotations

import argparse
from typing import Any, Callable

from ..helpers.tx_sender import DEFAULT_INTERVAL, DEFAULT_RETRIES, wait_for_receipt
from ..errors import RemoteOperationError, ValidationError
from .base import BaseAction


def receipt_summary(receipt) -> dict[str, Any]:
    return {
        "transactionHash": receipt["transactionHash"],
        "status": "success" if receipt.get("status") == 1 else "reverted",
        "blockNumber": str(receipt["blockNumber"]),
        "from": receipt.get("from"),
        "to": receipt.get("to"),
        "gasUsed": str(receipt["gasUsed"]),
        "contractAddress": receipt.get("contractAddress"),
    }


class ReceiptAction(BaseAction):
    failure_message = "Error retrieving transaction receipt"

    def __init__(self, *args, sleep: Callable[[float], None] | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.sleep = sleep

    def receipt(
        self,
        tx_hash: str,
        retries: int = DEFAULT_RETRIES,
        interval: float = DEFAULT_INTERVAL,
        rpc: str | None = None,
        network: str | None = None,
    ) -> None:
        if retries < 1:
            raise ValidationError("Retries must be at least 1")
        if interval < 0:
            raise ValidationError("Interval must not be negative")
        self.reporter.start(f"Waiting for receipt of transaction {tx_hash}...")
        w3 = self.web3(self.network(network), rpc)
        kwargs = {"sleep": self.sleep} if self.sleep is not None else {}
        try:
            receipt = wait_for_receipt(w3, tx_hash, retries=retries, interval=interval, **kwargs)
        except Exception as err:
            raise RemoteOperationError(f"Failed to fetch receipt: {err}") from err
        if receipt is None:
            self.reporter.succeed(
                "Transaction not yet confirmed",
                {"transactionHash": tx_hash, "status": "pending", "attempts": retries},
            )
            return
        self.reporter.succeed("Transaction receipt retrieved successfully", receipt_summary(receipt))


def cmd_receipt(args: argparse.Namespace) -> int:
    action = ReceiptAction()
    return action.run(
        action.receipt,
        args.tx_hash,
        retries=args.retries,
        interval=args.interval,
        rpc=args.rpc,
        network=args.network,
    )


def register(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser("receipt", help="Wait for a transaction receipt")
    p.add_argument("tx_hash", help="Transaction hash")
    p.add_argument("--retries", type=int, default=DEFAULT_RETRIES, help="Number of polls before giving up")
    p.add_argument("--interval", type=float, default=DEFAULT_INTERVAL, help="Seconds between polls")
    p.add_argument("--rpc", help="RPC URL for the network")
    p.add_argument("--network", help="Network to use")
    p.set_defaults(func=cmd_receipt)
