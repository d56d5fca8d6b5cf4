"""
Staking contract client.

Thin web3 wrapper over the GenLayer staking contract and the per-validator
wallet contracts it deploys. Write methods sign with the configured account
and wait for a receipt through ``tx_sender``; read methods only need an RPC
endpoint.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from eth_account.signers.local import LocalAccount
from eth_utils import is_address, to_checksum_address
from web3 import Web3
from web3.logs import DISCARD

from ..config.abis import STAKING_ABI, VALIDATOR_WALLET_ABI
from ..errors import RemoteOperationError, ValidationError
from .tx_sender import DEFAULT_INTERVAL, DEFAULT_RETRIES, TxOutcome, send_transaction, tx_summary

logger = logging.getLogger(__name__)

def checksum(address: str, label: str = "address") -> str:
    if not isinstance(address, str) or not is_address(address):
        raise ValidationError(f"Invalid {label}: {address}")
    return to_checksum_address(address)


IDENTITY_FIELDS = ("moniker", "logoUri", "website", "description", "email", "twitter", "telegram", "github")


def _deposits(rows) -> list[dict[str, int]]:
    return [{"epoch": epoch, "stake": stake, "shares": shares} for epoch, stake, shares in rows]


def _withdrawals(rows) -> list[dict[str, int]]:
    return [{"epoch": epoch, "shares": shares, "stake": stake} for epoch, shares, stake in rows]


def _ban_entries(rows) -> list[dict[str, Any]]:
    return [
        {"validator": validator, "untilEpoch": until, "permanentlyBanned": bool(permanent)}
        for validator, until, permanent in rows
    ]


class StakingClient:
    def __init__(
        self,
        w3: Web3,
        staking_address: str,
        account: LocalAccount | None = None,
        retries: int = DEFAULT_RETRIES,
        interval: float = DEFAULT_INTERVAL,
        sleep: Callable[[float], None] | None = None,
    ):
        self.w3 = w3
        self.account = account
        self.staking = w3.eth.contract(address=checksum(staking_address, "staking contract address"), abi=STAKING_ABI)
        self._retries = retries
        self._interval = interval
        self._sleep = sleep

    @property
    def address(self) -> str:
        if self.account is None:
            raise ValidationError("A signing account is required for this operation")
        return self.account.address

    def _wallet(self, validator: str):
        return self.w3.eth.contract(address=checksum(validator, "validator address"), abi=VALIDATOR_WALLET_ABI)

    def _send(self, contract, fn_name: str, args: list[Any], value: int = 0) -> TxOutcome:
        if self.account is None:
            raise ValidationError("A signing account is required for this operation")
        data = contract.encode_abi(fn_name, args=args)
        tx = {"to": contract.address, "data": data, "value": value}
        kwargs: dict[str, Any] = {"retries": self._retries, "interval": self._interval}
        if self._sleep is not None:
            kwargs["sleep"] = self._sleep
        logger.info("Calling %s on %s", fn_name, contract.address)
        return send_transaction(self.w3, self.account, tx, **kwargs)

    def _call(self, contract, fn_name: str, *args: Any) -> Any:
        try:
            return getattr(contract.functions, fn_name)(*args).call()
        except Exception as err:
            raise RemoteOperationError(f"{fn_name} call failed: {err}") from err

    # ------------------------------------------------------------------ #
    # Validator lifecycle                                                  #
    # ------------------------------------------------------------------ #

    def validator_join(self, amount: int, operator: str | None = None) -> dict[str, Any]:
        operator = checksum(operator, "operator address") if operator else self.address
        outcome = self._send(self.staking, "validatorJoin", [operator], value=amount)
        validator_wallet = None
        if outcome.receipt is not None:
            events = self.staking.events.ValidatorJoin().process_receipt(outcome.receipt, errors=DISCARD)
            if events:
                validator_wallet = events[0]["args"]["validator"]
        return {
            **tx_summary(outcome),
            "validatorWallet": validator_wallet,
            "amount": str(amount),
            "operator": operator,
        }

    def validator_deposit(self, amount: int) -> dict[str, Any]:
        return {**tx_summary(self._send(self.staking, "validatorDeposit", [], value=amount)), "amount": str(amount)}

    def validator_exit(self, shares: int) -> dict[str, Any]:
        return tx_summary(self._send(self.staking, "validatorExit", [shares]))

    def validator_claim(self, validator: str | None = None) -> dict[str, Any]:
        validator = checksum(validator, "validator address") if validator else self.address
        return {**tx_summary(self._send(self.staking, "validatorClaim", [validator])), "validator": validator}

    def validator_prime(self, validator: str) -> dict[str, Any]:
        validator = checksum(validator, "validator address")
        return {**tx_summary(self._send(self.staking, "validatorPrime", [validator])), "validator": validator}

    def set_operator(self, validator: str, operator: str) -> dict[str, Any]:
        operator = checksum(operator, "operator address")
        outcome = self._send(self._wallet(validator), "setOperator", [operator])
        return {**tx_summary(outcome), "validator": checksum(validator), "operator": operator}

    def set_identity(self, validator: str, identity: dict[str, Any]) -> dict[str, Any]:
        extra_cid = identity.get("extra_cid") or ""
        if extra_cid.startswith("0x"):
            extra_bytes = bytes.fromhex(extra_cid[2:])
        else:
            extra_bytes = extra_cid.encode()
        args = [
            identity["moniker"],
            identity.get("logo_uri") or "",
            identity.get("website") or "",
            identity.get("description") or "",
            identity.get("email") or "",
            identity.get("twitter") or "",
            identity.get("telegram") or "",
            identity.get("github") or "",
            extra_bytes,
        ]
        outcome = self._send(self._wallet(validator), "setIdentity", args)
        return {**tx_summary(outcome), "validator": checksum(validator), "moniker": identity["moniker"]}

    # ------------------------------------------------------------------ #
    # Delegator lifecycle                                                  #
    # ------------------------------------------------------------------ #

    def delegator_join(self, validator: str, amount: int) -> dict[str, Any]:
        validator = checksum(validator, "validator address")
        outcome = self._send(self.staking, "delegatorJoin", [validator], value=amount)
        return {**tx_summary(outcome), "validator": validator, "amount": str(amount)}

    def delegator_exit(self, validator: str, shares: int) -> dict[str, Any]:
        validator = checksum(validator, "validator address")
        return {**tx_summary(self._send(self.staking, "delegatorExit", [validator, shares])), "validator": validator}

    def delegator_claim(self, validator: str, delegator: str | None = None) -> dict[str, Any]:
        validator = checksum(validator, "validator address")
        delegator = checksum(delegator, "delegator address") if delegator else self.address
        outcome = self._send(self.staking, "delegatorClaim", [delegator, validator])
        return {**tx_summary(outcome), "validator": validator, "delegator": delegator}

    # ------------------------------------------------------------------ #
    # Views                                                                #
    # ------------------------------------------------------------------ #

    def is_validator(self, validator: str) -> bool:
        return bool(self._call(self.staking, "isValidator", checksum(validator, "validator address")))

    def get_validator_info(self, validator: str) -> dict[str, Any]:
        validator = checksum(validator, "validator address")
        view = self._call(self.staking, "validatorView", validator)
        (owner, operator, v_stake, v_shares, d_stake, d_shares,
         v_deposit, v_withdrawal, e_primed, e_banned, live) = view
        return {
            "address": validator,
            "owner": owner,
            "operator": operator,
            "vStake": v_stake,
            "vShares": v_shares,
            "dStake": d_stake,
            "dShares": d_shares,
            "vDeposit": v_deposit,
            "vWithdrawal": v_withdrawal,
            "ePrimed": e_primed,
            "eBanned": e_banned,
            "banned": e_banned > 0,
            "live": bool(live),
            "pendingDeposits": _deposits(self._call(self.staking, "validatorPendingDeposits", validator)),
            "pendingWithdrawals": _withdrawals(self._call(self.staking, "validatorPendingWithdrawals", validator)),
            "identity": self.get_identity(validator),
        }

    def get_identity(self, validator: str) -> dict[str, str] | None:
        """Identity metadata of a validator wallet, or None when none is set."""
        try:
            row = self._call(self._wallet(validator), "getIdentity")
        except RemoteOperationError as err:
            logger.debug("No identity for %s: %s", validator, err)
            return None
        identity = dict(zip(IDENTITY_FIELDS, row))
        return identity if identity.get("moniker") else None

    def get_stake_info(self, delegator: str, validator: str) -> dict[str, Any]:
        delegator = checksum(delegator, "delegator address")
        validator = checksum(validator, "validator address")
        shares, stake = self._call(self.staking, "delegatorView", delegator, validator)
        return {
            "delegator": delegator,
            "validator": validator,
            "shares": shares,
            "stake": stake,
            "pendingDeposits": _deposits(self._call(self.staking, "delegatorPendingDeposits", delegator, validator)),
            "pendingWithdrawals": _withdrawals(
                self._call(self.staking, "delegatorPendingWithdrawals", delegator, validator)
            ),
        }

    def get_epoch_info(self) -> dict[str, Any]:
        return {
            "currentEpoch": self._call(self.staking, "epoch"),
            "validatorMinStake": self._call(self.staking, "validatorMinStake"),
            "delegatorMinStake": self._call(self.staking, "delegatorMinStake"),
            "epochMinDuration": self._call(self.staking, "epochMinDuration"),
        }

    def get_active_validators(self) -> list[str]:
        return list(self._call(self.staking, "activeValidators"))

    def get_quarantined_validators(self) -> list[dict[str, Any]]:
        return _ban_entries(self._call(self.staking, "quarantinedValidators"))

    def get_banned_validators(self) -> list[dict[str, Any]]:
        return _ban_entries(self._call(self.staking, "bannedValidators"))

    def get_balance(self, address: str) -> int:
        try:
            return self.w3.eth.get_balance(checksum(address))
        except Exception as err:
            raise RemoteOperationError(f"Failed to fetch balance: {err}") from err
