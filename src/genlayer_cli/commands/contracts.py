"""``genlayer call|write|code``: interact with deployed contracts."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

from eth_utils import is_address, to_checksum_address

from ..errors import FormatError, RemoteOperationError, ValidationError
from ..helpers.amounts import parse_amount
from ..helpers.tx_sender import send_transaction, tx_summary
from ..helpers.tmp_cache import TempFileCache
from ..helpers.web3_setup import get_web3_instance
from ..config.network import get_rpc_url
from .base import BaseAction


def load_abi(path: str) -> list[dict[str, Any]]:
    """Read an ABI from a JSON file holding either the list or ``{"abi": [...]}``."""
    abi_path = Path(path)
    if not abi_path.exists():
        raise ValidationError(f"ABI file not found: {abi_path}")
    try:
        data = json.loads(abi_path.read_text())
    except json.JSONDecodeError as e:
        raise FormatError(f"Invalid ABI file {abi_path}: {e.msg}")
    if isinstance(data, dict):
        data = data.get("abi")
    if not isinstance(data, list):
        raise FormatError(f"Invalid ABI file {abi_path}: expected a JSON list or an object with an 'abi' list")
    return data


def parse_args_values(values: list[str] | None) -> list[Any]:
    """Each argument is parsed as JSON when possible (numbers, bools, lists), else kept as a string."""
    parsed: list[Any] = []
    for value in values or []:
        try:
            parsed.append(json.loads(value))
        except json.JSONDecodeError:
            parsed.append(value)
    return parsed


def require_address(address: str) -> str:
    if not is_address(address):
        raise ValidationError(f"Invalid contract address: {address}")
    return to_checksum_address(address)


class ContractActions(BaseAction):
    failure_message = "Contract operation failed"

    def __init__(self, *args, cache: TempFileCache | None = None, poll_options: dict[str, Any] | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.cache = cache or TempFileCache()
        self.poll_options = poll_options or {}

    def _endpoint(self, rpc: str | None, network: str | None) -> str:
        return get_rpc_url(self.network(network), rpc)

    def call(
        self,
        address: str,
        method: str,
        abi: str,
        args: list[str] | None = None,
        rpc: str | None = None,
        network: str | None = None,
    ) -> None:
        self.failure_message = "Error calling contract"
        self.reporter.start(f"Calling {method} on contract at {address}...")
        w3 = get_web3_instance(self._endpoint(rpc, network))
        contract = w3.eth.contract(address=require_address(address), abi=load_abi(abi))
        try:
            result = contract.get_function_by_name(method)(*parse_args_values(args)).call()
        except ValueError as err:
            raise ValidationError(str(err)) from err
        except Exception as err:
            raise RemoteOperationError(f"Call to {method} failed: {err}") from err
        self.reporter.succeed("Call executed successfully", {"result": result})

    def write(
        self,
        address: str,
        method: str,
        abi: str,
        args: list[str] | None = None,
        value: str | None = None,
        account: str | None = None,
        rpc: str | None = None,
        network: str | None = None,
    ) -> None:
        self.failure_message = "Error writing to contract"
        self.reporter.start(f"Writing to {method} on contract at {address}...")
        contract_address = require_address(address)
        amount = parse_amount(value) if value else 0
        signer = self.resolver.get_account(account)
        w3 = get_web3_instance(self._endpoint(rpc, network))
        contract = w3.eth.contract(address=contract_address, abi=load_abi(abi))
        data = contract.encode_abi(method, args=parse_args_values(args))
        outcome = send_transaction(
            w3, signer, {"to": contract_address, "data": data, "value": amount}, **self.poll_options
        )
        if not outcome.confirmed:
            self.reporter.succeed("Transaction submitted (pending confirmation)", tx_summary(outcome))
            return
        self.reporter.succeed("Write operation successfully executed", tx_summary(outcome))

    def code(self, address: str, rpc: str | None = None, network: str | None = None) -> None:
        self.failure_message = "Error retrieving contract code"
        self.reporter.start(f"Getting code for contract at {address}...")
        contract_address = require_address(address)
        endpoint = self._endpoint(rpc, network)
        key = f"code:{endpoint}:{contract_address}"
        code = self.cache.get(key)
        if code is None:
            try:
                code = "0x" + bytes(get_web3_instance(endpoint).eth.get_code(contract_address)).hex()
            except Exception as err:
                raise RemoteOperationError(f"Failed to fetch code: {err}") from err
            self.cache.set(key, code)
        if code == "0x":
            raise ValidationError(f"No contract code found at {contract_address}")
        self.reporter.succeed("Contract code retrieved successfully", code)


def cmd_call(args: argparse.Namespace) -> int:
    action = ContractActions()
    return action.run(
        action.call, args.address, args.method, abi=args.abi, args=args.args, rpc=args.rpc, network=args.network
    )


def cmd_write(args: argparse.Namespace) -> int:
    action = ContractActions()
    return action.run(
        action.write,
        args.address,
        args.method,
        abi=args.abi,
        args=args.args,
        value=args.value,
        account=args.account,
        rpc=args.rpc,
        network=args.network,
    )


def cmd_code(args: argparse.Namespace) -> int:
    action = ContractActions()
    return action.run(action.code, args.address, rpc=args.rpc, network=args.network)


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--rpc", help="RPC URL for the network")
    p.add_argument("--network", help="Network to use")


def register(sub: argparse._SubParsersAction) -> None:
    p_call = sub.add_parser("call", help="Call a read-only contract method")
    p_call.add_argument("address", help="Contract address")
    p_call.add_argument("method", help="Method name")
    p_call.add_argument("--abi", required=True, help="Path to the contract ABI JSON")
    p_call.add_argument("--args", nargs="*", default=[], help="Positional method arguments")
    _add_common(p_call)
    p_call.set_defaults(func=cmd_call)

    p_write = sub.add_parser("write", help="Send a transaction to a contract method")
    p_write.add_argument("address", help="Contract address")
    p_write.add_argument("method", help="Method name")
    p_write.add_argument("--abi", required=True, help="Path to the contract ABI JSON")
    p_write.add_argument("--args", nargs="*", default=[], help="Positional method arguments")
    p_write.add_argument("--value", help="Value to send, e.g. '1gen' or a wei value")
    p_write.add_argument("--account", help="Account to sign with")
    _add_common(p_write)
    p_write.set_defaults(func=cmd_write)

    p_code = sub.add_parser("code", help="Show the deployed bytecode of a contract")
    p_code.add_argument("address", help="Contract address")
    _add_common(p_code)
    p_code.set_defaults(func=cmd_code)
