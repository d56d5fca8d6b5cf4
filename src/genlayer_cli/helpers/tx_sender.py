"""Sign, broadcast and confirm transactions.

Submission and confirmation are separate outcomes: a transaction whose
receipt does not show up within the polling window is reported as
submitted-but-pending, not as a failure.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.exceptions import TransactionNotFound

from ..errors import RemoteOperationError

logger = logging.getLogger(__name__)

__all__ = ["TxOutcome", "wait_for_receipt", "send_transaction", "tx_summary", "DEFAULT_RETRIES", "DEFAULT_INTERVAL"]

DEFAULT_RETRIES = 60
DEFAULT_INTERVAL = 2.0
FALLBACK_GAS = 1_500_000


@dataclass
class TxOutcome:
    hash: str
    receipt: Any = None

    @property
    def confirmed(self) -> bool:
        return self.receipt is not None

    @property
    def block_number(self) -> int | None:
        return self.receipt["blockNumber"] if self.receipt is not None else None


def wait_for_receipt(
    w3: Web3,
    tx_hash: str,
    retries: int = DEFAULT_RETRIES,
    interval: float = DEFAULT_INTERVAL,
    sleep: Callable[[float], None] = time.sleep,
):
    """Poll for a receipt; return it, or None once ``retries`` polls came back empty."""
    for attempt in range(1, retries + 1):
        try:
            receipt = w3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            receipt = None
        if receipt is not None:
            return receipt
        logger.debug("Receipt for %s not available yet (%d/%d)", tx_hash, attempt, retries)
        if attempt < retries:
            sleep(interval)
    return None


def _fill_fees(w3: Web3, tx: dict[str, Any]) -> None:
    latest_block = w3.eth.get_block("latest")
    base_fee = latest_block.get("baseFeePerGas")
    if base_fee is None:
        tx["gasPrice"] = w3.eth.gas_price
        return
    priority_fee = Web3.to_wei(2, "gwei")
    tx["maxPriorityFeePerGas"] = priority_fee
    tx["maxFeePerGas"] = base_fee + priority_fee * 2


def send_transaction(
    w3: Web3,
    account: LocalAccount,
    tx: dict[str, Any],
    retries: int = DEFAULT_RETRIES,
    interval: float = DEFAULT_INTERVAL,
    sleep: Callable[[float], None] = time.sleep,
) -> TxOutcome:
    """Sign and broadcast ``tx`` (``to``/``data``/``value``) from ``account``.

    Raises RemoteOperationError when the node rejects the transaction or the
    receipt shows a revert.
    """
    tx = dict(tx)
    tx.setdefault("value", 0)
    tx.setdefault("data", b"")
    try:
        tx.setdefault("nonce", w3.eth.get_transaction_count(account.address))
        tx.setdefault("chainId", w3.eth.chain_id)
        _fill_fees(w3, tx)
    except Exception as err:
        raise RemoteOperationError(f"Failed to prepare transaction: {err}") from err

    if "gas" not in tx:
        try:
            tx["gas"] = w3.eth.estimate_gas(
                {"to": tx["to"], "from": account.address, "data": tx["data"], "value": tx["value"]}
            )
        except Exception as err:
            logger.warning("estimate_gas failed, using %d fallback: %s", FALLBACK_GAS, err)
            tx["gas"] = FALLBACK_GAS

    signed_tx = account.sign_transaction(tx)
    try:
        raw_hash = w3.eth.send_raw_transaction(signed_tx.raw_transaction)
    except Exception as err:
        raise RemoteOperationError(f"Transaction rejected: {err}") from err
    tx_hash = Web3.to_hex(raw_hash)
    logger.info("Submitted transaction %s", tx_hash)

    receipt = wait_for_receipt(w3, tx_hash, retries=retries, interval=interval, sleep=sleep)
    if receipt is not None and receipt.get("status") == 0:
        raise RemoteOperationError(f"Transaction {tx_hash} reverted in block {receipt.get('blockNumber')}")
    return TxOutcome(hash=tx_hash, receipt=receipt)


def tx_summary(outcome: TxOutcome) -> dict[str, Any]:
    receipt = outcome.receipt
    return {
        "transactionHash": outcome.hash,
        "blockNumber": str(receipt["blockNumber"]) if receipt is not None else "pending",
        "gasUsed": str(receipt["gasUsed"]) if receipt is not None else "pending",
    }
