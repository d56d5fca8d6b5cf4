"""``genlayer staking``: validator and delegator operations."""

from __future__ import annotations

import argparse
from typing import Any, Callable

from eth_account import Account

from ..errors import AccountNotFoundError, ValidationError
from ..helpers.amounts import format_amount, parse_shares, parse_staking_amount
from ..helpers.staking_client import StakingClient, checksum
from ..helpers.web3_setup import web3_for_network
from .base import BaseAction

UNBONDING_NOTE = "Withdrawal will be claimable after the unbonding period"
EPOCH_ZERO_NOTE = "Epoch 0: Withdrawal claimable immediately"
# Epochs between a deposit and its activation
ACTIVATION_DELAY_EPOCHS = 2
# Epochs between an exit and the moment its withdrawal is claimable
UNBONDING_PERIOD_EPOCHS = 7
IDENTITY_ORDER = ("moniker", "website", "description", "twitter", "telegram", "github", "email", "logoUri")


def default_client_factory(network: dict[str, Any], rpc: str | None, staking_address: str, account) -> StakingClient:
    return StakingClient(web3_for_network(network, rpc), staking_address, account=account)


def format_duration(seconds: int) -> str:
    hours, rem = divmod(int(seconds), 3600)
    minutes = rem // 60
    if hours > 24:
        days, hours = divmod(hours, 24)
        return f"{days}d {hours}h {minutes}m"
    return f"{hours}h {minutes}m"


def pending_deposits(deposits: list[dict[str, int]], current_epoch: int, debug: bool = False) -> Any:
    """Deposits not yet active; with ``debug`` every deposit and its status."""
    shown = deposits if debug else [
        d for d in deposits if d["epoch"] + ACTIVATION_DELAY_EPOCHS > current_epoch
    ]
    if not shown:
        return f"None (raw count: {len(deposits)})" if debug else "None"
    rows = []
    for d in shown:
        activation_epoch = d["epoch"] + ACTIVATION_DELAY_EPOCHS
        remaining = activation_epoch - current_epoch
        row = {
            "epoch": str(d["epoch"]),
            "stake": format_amount(d["stake"]),
            "shares": str(d["shares"]),
            "activatesAtEpoch": str(activation_epoch),
        }
        if debug:
            row["status"] = "ACTIVATED" if remaining <= 0 else f"pending ({remaining} epochs)"
        else:
            row["epochsRemaining"] = str(remaining)
        rows.append(row)
    return rows


def pending_withdrawals(withdrawals: list[dict[str, int]], current_epoch: int) -> Any:
    if not withdrawals:
        return "None"
    rows = []
    for w in withdrawals:
        claimable_epoch = w["epoch"] + UNBONDING_PERIOD_EPOCHS
        remaining = claimable_epoch - current_epoch
        if remaining <= 0:
            status = "Claimable now"
        else:
            status = f"Unbonding ({remaining} epoch{'s' if remaining > 1 else ''} remaining)"
        rows.append({
            "epoch": str(w["epoch"]),
            "shares": str(w["shares"]),
            "stake": format_amount(w["stake"]),
            "claimableAtEpoch": str(claimable_epoch),
            "status": status,
        })
    return rows


def ban_list(entries: list[dict[str, Any]], permanent_label: bool = False) -> dict[str, Any]:
    validators = []
    for entry in entries:
        until = entry["untilEpoch"]
        validators.append({
            "validator": entry["validator"],
            "untilEpoch": "permanent" if permanent_label and entry["permanentlyBanned"] else str(until),
            "permanentlyBanned": entry["permanentlyBanned"],
        })
    return {"count": len(validators), "validators": validators}


class StakingAction(BaseAction):
    """Base for staking commands; builds a StakingClient for the selected network.

    ``client_factory(network, rpc, staking_address, account)`` is injectable so
    the commands can run against a fake contract client.
    """

    def __init__(self, *args, client_factory: Callable[..., Any] | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.client_factory = client_factory or default_client_factory

    def require_account(self, account: str | None) -> str:
        name = self.config.resolve_account_name(account)
        if not self.config.account_exists(name):
            raise AccountNotFoundError(
                f"Account '{name}' not found. Run 'genlayer account create --name {name}' first."
            )
        return name

    def signer_address(self, account: str | None = None) -> str:
        return checksum(self.resolver.get_address(self.require_account(account)))

    def get_client(
        self,
        network: str | None = None,
        rpc: str | None = None,
        staking_address: str | None = None,
        account: str | None = None,
        signing: bool = True,
    ):
        net = self.network(network)
        address = self.staking_address(net, staking_address)
        signer = None
        if signing:
            name = self.require_account(account)
            signer = Account.from_key(self.resolver.get_private_key(name))
            self.reporter.start("Preparing transaction...")
        return self.client_factory(network=net, rpc=rpc, staking_address=address, account=signer)

    # ------------------------------------------------------------------ #
    # Validator                                                            #
    # ------------------------------------------------------------------ #

    def validator_join(self, amount: str, operator: str | None = None, **conn: Any) -> None:
        self.failure_message = "Failed to create validator"
        self.reporter.start("Creating a new validator...")
        value = parse_staking_amount(amount)
        client = self.get_client(**conn)
        self.reporter.update(f"Creating validator with {format_amount(value)} stake...")
        self.reporter.log(f"  From: {client.address}")
        if operator:
            self.reporter.log(f"  Operator: {operator}")
        result = client.validator_join(value, operator=operator)
        result["amount"] = format_amount(value)
        self.reporter.succeed("Validator created successfully!", result)

    def validator_deposit(self, amount: str, **conn: Any) -> None:
        self.failure_message = "Failed to deposit"
        self.reporter.start("Making validator deposit...")
        value = parse_staking_amount(amount)
        client = self.get_client(**conn)
        self.reporter.update(f"Depositing {format_amount(value)}...")
        result = client.validator_deposit(value)
        result["amount"] = format_amount(value)
        self.reporter.succeed("Deposit successful!", result)

    def validator_exit(self, shares: str, **conn: Any) -> None:
        self.failure_message = "Failed to exit"
        self.reporter.start("Initiating validator exit...")
        count = parse_shares(shares)
        client = self.get_client(**conn)
        self.reporter.update(f"Exiting with {count} shares...")
        result = client.validator_exit(count)
        result["sharesWithdrawn"] = str(count)
        result["note"] = UNBONDING_NOTE
        self.reporter.succeed("Exit initiated successfully!", result)

    def validator_claim(self, validator: str | None = None, **conn: Any) -> None:
        self.failure_message = "Failed to claim"
        self.reporter.start("Claiming validator withdrawals...")
        client = self.get_client(**conn)
        self.reporter.succeed("Claim successful!", client.validator_claim(validator))

    def validator_prime(self, validator: str, **conn: Any) -> None:
        self.failure_message = "Failed to prime validator"
        self.reporter.start(f"Priming validator {validator}...")
        client = self.get_client(**conn)
        self.reporter.succeed("Validator primed successfully!", client.validator_prime(validator))

    def set_operator(self, validator: str, operator: str, **conn: Any) -> None:
        self.failure_message = "Failed to set operator"
        self.reporter.start("Setting validator operator...")
        client = self.get_client(**conn)
        self.reporter.succeed("Operator updated successfully!", client.set_operator(validator, operator))

    def set_identity(self, validator: str, moniker: str, **fields: Any) -> None:
        self.failure_message = "Failed to set identity"
        conn = {k: fields.pop(k) for k in ("network", "rpc", "staking_address", "account") if k in fields}
        if not moniker:
            raise ValidationError("Moniker is required")
        self.reporter.start("Setting validator identity...")
        client = self.get_client(**conn)
        identity = {"moniker": moniker, **{k: v for k, v in fields.items() if v}}
        self.reporter.succeed("Identity set successfully!", client.set_identity(validator, identity))

    # ------------------------------------------------------------------ #
    # Delegator                                                            #
    # ------------------------------------------------------------------ #

    def delegator_join(self, validator: str, amount: str, **conn: Any) -> None:
        self.failure_message = "Failed to join as delegator"
        self.reporter.start("Joining as delegator...")
        value = parse_staking_amount(amount)
        client = self.get_client(**conn)
        self.reporter.update(f"Delegating {format_amount(value)} to {validator}...")
        result = client.delegator_join(validator, value)
        result["amount"] = format_amount(value)
        self.reporter.succeed("Successfully joined as delegator!", result)

    def delegator_exit(self, validator: str, shares: str, **conn: Any) -> None:
        self.failure_message = "Failed to exit"
        self.reporter.start("Initiating delegator exit...")
        count = parse_shares(shares)
        client = self.get_client(**conn)
        self.reporter.update(f"Exiting {count} shares from validator {validator}...")
        result = client.delegator_exit(validator, count)
        epoch = client.get_epoch_info()["currentEpoch"]
        result["sharesWithdrawn"] = str(count)
        result["note"] = EPOCH_ZERO_NOTE if epoch == 0 else UNBONDING_NOTE
        self.reporter.succeed("Exit initiated successfully!", result)

    def delegator_claim(self, validator: str, delegator: str | None = None, **conn: Any) -> None:
        self.failure_message = "Failed to claim"
        self.reporter.start("Claiming delegator withdrawals...")
        client = self.get_client(**conn)
        self.reporter.succeed("Claim successful!", client.delegator_claim(validator, delegator))

    # ------------------------------------------------------------------ #
    # Views                                                                #
    # ------------------------------------------------------------------ #

    def validator_info(self, validator: str | None = None, debug: bool = False, **conn: Any) -> None:
        self.failure_message = "Failed to get validator info"
        self.reporter.start("Fetching validator info...")
        client = self.get_client(signing=False, **conn)
        address = validator or self.signer_address(conn.get("account"))
        if not client.is_validator(address):
            raise ValidationError(f"Address {address} is not a validator")
        info = client.get_validator_info(address)
        current_epoch = client.get_epoch_info()["currentEpoch"]
        result: dict[str, Any] = {"currentEpoch": str(current_epoch)} if debug else {}
        result.update({
            "validator": info["address"],
            "owner": info["owner"],
            "operator": info["operator"],
            "vStake": format_amount(info["vStake"]),
            "vShares": str(info["vShares"]),
            "dStake": format_amount(info["dStake"]),
            "dShares": str(info["dShares"]),
            "vDeposit": format_amount(info["vDeposit"]),
            "vWithdrawal": format_amount(info["vWithdrawal"]),
            "ePrimed": str(info["ePrimed"]),
            "needsPriming": info["ePrimed"] < current_epoch,
            "live": info["live"],
            "banned": str(info["eBanned"]) if info["banned"] else "Not banned",
            "selfStakePendingDeposits": pending_deposits(info["pendingDeposits"], current_epoch, debug=debug),
            "selfStakePendingWithdrawals": pending_withdrawals(info["pendingWithdrawals"], current_epoch),
        })
        identity = info.get("identity")
        if identity and identity.get("moniker"):
            result["identity"] = {key: identity[key] for key in IDENTITY_ORDER if identity.get(key)}
        self.reporter.succeed("Validator info retrieved", result)

    def stake_info(self, validator: str, delegator: str | None = None, **conn: Any) -> None:
        self.failure_message = "Failed to get stake info"
        self.reporter.start("Fetching stake info...")
        client = self.get_client(signing=False, **conn)
        delegator_address = delegator or self.signer_address(conn.get("account"))
        self.reporter.update(f"Fetching delegation info for {delegator_address}...")
        info = client.get_stake_info(delegator_address, validator)
        current_epoch = client.get_epoch_info()["currentEpoch"]
        result = {
            "delegator": info["delegator"],
            "validator": info["validator"],
            "shares": str(info["shares"]),
            "stake": format_amount(info["stake"]),
            "pendingDeposits": pending_deposits(info["pendingDeposits"], current_epoch),
            "pendingWithdrawals": pending_withdrawals(info["pendingWithdrawals"], current_epoch),
        }
        message = "Your delegation info" if not delegator else f"Delegation info for {delegator_address}"
        self.reporter.succeed(message, result)

    def epoch_info(self, **conn: Any) -> None:
        self.failure_message = "Failed to get epoch info"
        self.reporter.start("Fetching epoch info...")
        client = self.get_client(signing=False, **conn)
        info = client.get_epoch_info()
        result = {
            "currentEpoch": str(info["currentEpoch"]),
            "validatorMinStake": format_amount(info["validatorMinStake"]),
            "delegatorMinStake": format_amount(info["delegatorMinStake"]),
            "epochMinDuration": format_duration(info["epochMinDuration"]),
            "activeValidators": len(client.get_active_validators()),
        }
        self.reporter.succeed("Epoch info", result)

    def active_validators(self, **conn: Any) -> None:
        self.failure_message = "Failed to get active validators"
        self.reporter.start("Fetching active validators...")
        client = self.get_client(signing=False, **conn)
        validators = client.get_active_validators()
        self.reporter.succeed(f"Found {len(validators)} active validators")
        if validators:
            self.reporter.table(["#", "Validator"], [(i, v) for i, v in enumerate(validators, start=1)])

    def quarantined_validators(self, **conn: Any) -> None:
        self.failure_message = "Failed to get quarantined validators"
        self.reporter.start("Fetching quarantined validators...")
        client = self.get_client(signing=False, **conn)
        result = ban_list(client.get_quarantined_validators())
        self.reporter.succeed("Quarantined validators retrieved", result)

    def banned_validators(self, **conn: Any) -> None:
        self.failure_message = "Failed to get banned validators"
        self.reporter.start("Fetching banned validators...")
        client = self.get_client(signing=False, **conn)
        result = ban_list(client.get_banned_validators(), permanent_label=True)
        self.reporter.succeed("Banned validators retrieved", result)


# --------------------------------------------------------------------------- #
# CLI                                                                          #
# --------------------------------------------------------------------------- #

def _conn(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "network": args.network,
        "rpc": args.rpc,
        "staking_address": args.staking_address,
        "account": args.account,
    }


def cmd_validator_join(args: argparse.Namespace) -> int:
    action = StakingAction()
    return action.run(action.validator_join, args.amount, operator=args.operator, **_conn(args))


def cmd_validator_deposit(args: argparse.Namespace) -> int:
    action = StakingAction()
    return action.run(action.validator_deposit, args.amount, **_conn(args))


def cmd_validator_exit(args: argparse.Namespace) -> int:
    action = StakingAction()
    return action.run(action.validator_exit, args.shares, **_conn(args))


def cmd_validator_claim(args: argparse.Namespace) -> int:
    action = StakingAction()
    return action.run(action.validator_claim, args.validator, **_conn(args))


def cmd_validator_prime(args: argparse.Namespace) -> int:
    action = StakingAction()
    return action.run(action.validator_prime, args.validator, **_conn(args))


def cmd_set_operator(args: argparse.Namespace) -> int:
    action = StakingAction()
    return action.run(action.set_operator, args.validator, args.operator, **_conn(args))


def cmd_set_identity(args: argparse.Namespace) -> int:
    action = StakingAction()
    return action.run(
        action.set_identity,
        args.validator,
        args.moniker,
        logo_uri=args.logo_uri,
        website=args.website,
        description=args.description,
        email=args.email,
        twitter=args.twitter,
        telegram=args.telegram,
        github=args.github,
        extra_cid=args.extra_cid,
        **_conn(args),
    )


def cmd_delegator_join(args: argparse.Namespace) -> int:
    action = StakingAction()
    return action.run(action.delegator_join, args.validator, args.amount, **_conn(args))


def cmd_delegator_exit(args: argparse.Namespace) -> int:
    action = StakingAction()
    return action.run(action.delegator_exit, args.validator, args.shares, **_conn(args))


def cmd_delegator_claim(args: argparse.Namespace) -> int:
    action = StakingAction()
    return action.run(action.delegator_claim, args.validator, delegator=args.delegator, **_conn(args))


def cmd_validator_info(args: argparse.Namespace) -> int:
    action = StakingAction()
    return action.run(action.validator_info, args.validator, debug=args.debug, **_conn(args))


def cmd_stake_info(args: argparse.Namespace) -> int:
    action = StakingAction()
    return action.run(action.stake_info, args.validator, delegator=args.delegator, **_conn(args))


def cmd_epoch_info(args: argparse.Namespace) -> int:
    action = StakingAction()
    return action.run(action.epoch_info, **_conn(args))


def cmd_active_validators(args: argparse.Namespace) -> int:
    action = StakingAction()
    return action.run(action.active_validators, **_conn(args))


def cmd_quarantined_validators(args: argparse.Namespace) -> int:
    action = StakingAction()
    return action.run(action.quarantined_validators, **_conn(args))


def cmd_banned_validators(args: argparse.Namespace) -> int:
    action = StakingAction()
    return action.run(action.banned_validators, **_conn(args))


def cmd_wizard(args: argparse.Namespace) -> int:
    from .wizard import ValidatorWizard

    action = ValidatorWizard()
    return action.run(
        action.execute,
        skip_identity=args.skip_identity,
        account=args.account,
        network=args.network,
        rpc=args.rpc,
        staking_address=args.staking_address,
    )


def _add_conn(p: argparse.ArgumentParser) -> None:
    p.add_argument("--network", help="Network to use (localnet, testnet-asimov)")
    p.add_argument("--rpc", help="RPC URL for the network")
    p.add_argument("--staking-address", help="Staking contract address (overrides network config)")
    p.add_argument("--account", help="Account to use (defaults to the active account)")


def register(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser("staking", help="Staking operations for validators and delegators")
    st = p.add_subparsers(dest="staking_cmd", required=True)

    p_vj = st.add_parser("validator-join", help="Join as a validator by staking tokens")
    p_vj.add_argument("--amount", required=True, help="Amount to stake (wei, or with 'eth'/'gen' suffix, e.g. '42000gen')")
    p_vj.add_argument("--operator", help="Operator address (defaults to signer)")
    _add_conn(p_vj)
    p_vj.set_defaults(func=cmd_validator_join)

    p_vd = st.add_parser("validator-deposit", help="Make an additional deposit as a validator")
    p_vd.add_argument("--amount", required=True, help="Amount to deposit (wei, or with 'eth'/'gen' suffix)")
    _add_conn(p_vd)
    p_vd.set_defaults(func=cmd_validator_deposit)

    p_ve = st.add_parser("validator-exit", help="Exit as a validator by withdrawing shares")
    p_ve.add_argument("--shares", required=True, help="Number of shares to withdraw")
    _add_conn(p_ve)
    p_ve.set_defaults(func=cmd_validator_exit)

    p_vc = st.add_parser("validator-claim", help="Claim validator withdrawals after the unbonding period")
    p_vc.add_argument("--validator", help="Validator address (defaults to signer)")
    _add_conn(p_vc)
    p_vc.set_defaults(func=cmd_validator_claim)

    p_vp = st.add_parser("validator-prime", help="Prime a validator for the next epoch")
    p_vp.add_argument("--validator", required=True, help="Validator address to prime")
    _add_conn(p_vp)
    p_vp.set_defaults(func=cmd_validator_prime)

    p_so = st.add_parser("set-operator", help="Change the operator of a validator wallet")
    p_so.add_argument("--validator", required=True, help="Validator wallet address")
    p_so.add_argument("--operator", required=True, help="New operator address")
    _add_conn(p_so)
    p_so.set_defaults(func=cmd_set_operator)

    p_si = st.add_parser("set-identity", help="Set validator identity metadata")
    p_si.add_argument("--validator", required=True, help="Validator wallet address")
    p_si.add_argument("--moniker", required=True, help="Validator display name")
    p_si.add_argument("--logo-uri", help="Logo URI")
    p_si.add_argument("--website", help="Website URL")
    p_si.add_argument("--description", help="Description")
    p_si.add_argument("--email", help="Contact email")
    p_si.add_argument("--twitter", help="Twitter handle")
    p_si.add_argument("--telegram", help="Telegram handle")
    p_si.add_argument("--github", help="GitHub handle")
    p_si.add_argument("--extra-cid", help="Extra data as IPFS CID or hex bytes (0x...)")
    _add_conn(p_si)
    p_si.set_defaults(func=cmd_set_identity)

    p_dj = st.add_parser("delegator-join", help="Join as a delegator by staking with a validator")
    p_dj.add_argument("--validator", required=True, help="Validator address to delegate to")
    p_dj.add_argument("--amount", required=True, help="Amount to stake (wei, or with 'eth'/'gen' suffix)")
    _add_conn(p_dj)
    p_dj.set_defaults(func=cmd_delegator_join)

    p_de = st.add_parser("delegator-exit", help="Exit as a delegator by withdrawing shares")
    p_de.add_argument("--validator", required=True, help="Validator address to exit from")
    p_de.add_argument("--shares", required=True, help="Number of shares to withdraw")
    _add_conn(p_de)
    p_de.set_defaults(func=cmd_delegator_exit)

    p_dc = st.add_parser("delegator-claim", help="Claim delegator withdrawals after the unbonding period")
    p_dc.add_argument("--validator", required=True, help="Validator address")
    p_dc.add_argument("--delegator", help="Delegator address (defaults to signer)")
    _add_conn(p_dc)
    p_dc.set_defaults(func=cmd_delegator_claim)

    p_vi = st.add_parser("validator-info", help="Get information about a validator")
    p_vi.add_argument("--validator", help="Validator address (defaults to signer)")
    p_vi.add_argument("--debug", action="store_true", help="Show the current epoch and every pending deposit")
    _add_conn(p_vi)
    p_vi.set_defaults(func=cmd_validator_info)

    p_sk = st.add_parser("stake-info", help="Get stake info for a delegator with a validator")
    p_sk.add_argument("--validator", required=True, help="Validator address")
    p_sk.add_argument("--delegator", help="Delegator address (defaults to signer)")
    _add_conn(p_sk)
    p_sk.set_defaults(func=cmd_stake_info)

    p_ei = st.add_parser("epoch-info", help="Get current epoch and staking parameters")
    _add_conn(p_ei)
    p_ei.set_defaults(func=cmd_epoch_info)

    p_av = st.add_parser("active-validators", help="List active validators")
    _add_conn(p_av)
    p_av.set_defaults(func=cmd_active_validators)

    p_qv = st.add_parser("quarantined-validators", help="List quarantined validators")
    _add_conn(p_qv)
    p_qv.set_defaults(func=cmd_quarantined_validators)

    p_bv = st.add_parser("banned-validators", help="List banned validators")
    _add_conn(p_bv)
    p_bv.set_defaults(func=cmd_banned_validators)

    p_wz = st.add_parser("wizard", help="Interactive wizard to become a validator")
    p_wz.add_argument("--skip-identity", action="store_true", help="Skip the identity setup step")
    _add_conn(p_wz)
    p_wz.set_defaults(func=cmd_wizard)
