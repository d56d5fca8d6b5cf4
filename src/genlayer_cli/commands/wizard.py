"""``genlayer staking wizard``: guided validator setup.

Steps: owner account, network, balance check, operator, stake amount,
validator join, optional identity, summary. Declining the stake confirmation
aborts the wizard without sending anything.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any

from web3 import Web3

from ..config.network import BUILT_IN_NETWORKS, STAKING_EXCLUDED_NETWORKS, get_network_config
from ..errors import OperationAbortedError, ValidationError
from ..helpers.amounts import format_ether, parse_staking_amount
from ..wallet.keystore import collect_new_password
from .account import CreateAccountAction, ExportAccountAction
from .staking import StakingAction

logger = logging.getLogger(__name__)

MIN_GAS_BUFFER = Web3.to_wei(Decimal("0.01"), "ether")
ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
IDENTITY_FIELDS = (
    ("logo_uri", "Enter logo URL (optional):", "Logo"),
    ("website", "Enter website URL (optional):", "Website"),
    ("description", "Enter description (optional):", "Description"),
    ("email", "Enter contact email (optional):", "Email"),
    ("twitter", "Enter Twitter handle (optional):", "Twitter"),
    ("telegram", "Enter Telegram handle (optional):", "Telegram"),
    ("github", "Enter GitHub handle (optional):", "GitHub"),
)
BANNER = "=" * 40


def ensure_hex_prefix(address: str) -> str:
    if not address:
        return address
    return address if address.startswith("0x") else f"0x{address}"


def stake_input(answer: str) -> str:
    """Wizard answers are GEN: ``42000`` becomes ``42000gen``."""
    return answer if answer.lower().endswith("gen") else f"{answer}gen"


@dataclass
class WizardState:
    account_name: str = ""
    account_address: str = ""
    network_alias: str = ""
    balance: int = 0
    min_stake: int = 0
    operator_address: str = ""
    operator_account_name: str | None = None
    operator_keystore_path: Path | None = None
    stake_amount: str = ""
    validator_wallet: str | None = None
    identity: dict[str, Any] = field(default_factory=dict)


class ValidatorWizard(StakingAction):
    failure_message = "Wizard failed"

    def _sub_action(self, cls):
        return cls(
            config=self.config,
            keychain=self.keychain,
            prompter=self.prompter,
            reporter=self.reporter,
            store=self.store,
        )

    def _heading(self, title: str) -> None:
        self.reporter.log(title)
        self.reporter.log("-" * len(title))
        self.reporter.log()

    def execute(
        self,
        skip_identity: bool = False,
        account: str | None = None,
        network: str | None = None,
        rpc: str | None = None,
        staking_address: str | None = None,
    ) -> WizardState:
        self.reporter.log(f"\n{BANNER}\n   GenLayer Validator Setup Wizard\n{BANNER}\n")
        conn = {"rpc": rpc, "staking_address": staking_address}
        state = WizardState()
        try:
            self.step_account(state, account)
            self.step_network(state, network)
            self.step_balance(state, conn)
            self.step_operator(state)
            self.step_stake_amount(state)
        except OperationAbortedError:
            raise OperationAbortedError("Wizard aborted.")
        client = self.step_join(state, conn)
        if not skip_identity:
            self.step_identity(state, client)
        self.show_summary(state)
        return state

    # ------------------------------------------------------------------ #
    # Steps                                                                #
    # ------------------------------------------------------------------ #

    def _ask_new_account_name(self, default: str, existing: set[str]) -> str:
        while True:
            name = self.prompter.text(f"Enter a name for the {default} account:", default=default).strip()
            if not name:
                self.reporter.warning("Name cannot be empty")
            elif name in existing:
                self.reporter.warning("Account with this name already exists")
            else:
                return name

    def _create_account(self, name: str, set_active: bool) -> str:
        self._sub_action(CreateAccountAction).execute(name=name, overwrite=False, set_active=set_active)
        return ensure_hex_prefix(self.resolver.get_address(name))

    def step_account(self, state: WizardState, account: str | None = None) -> None:
        self._heading("Step 1: Account Setup")
        if account:
            state.account_name = self.require_account(account)
            state.account_address = ensure_hex_prefix(self.resolver.get_address(account))
            self.reporter.log(f"Using account: {account} ({state.account_address})\n")
            return

        accounts = self.config.list_accounts()
        existing = {a.name for a in accounts}
        if not accounts:
            self.reporter.log("No accounts found. Let's create one.\n")
            selected = None
        else:
            choices = [(f"{a.name} ({a.address})", a.name) for a in accounts]
            choices.append(("Create new account", None))
            selected = self.prompter.select("Select an account that will be the owner of the validator:", choices)

        if selected is None:
            name = self._ask_new_account_name("validator", existing)
            state.account_name = name
            state.account_address = self._create_account(name, set_active=True)
        else:
            state.account_name = selected
            self.config.set_active_account(selected)
            state.account_address = ensure_hex_prefix(self.resolver.get_address(selected))
            self.reporter.log(f"\nUsing account: {selected} ({state.account_address})")
        self.reporter.log()

    def step_network(self, state: WizardState, network: str | None = None) -> None:
        self._heading("Step 2: Network Selection")
        if network:
            config = get_network_config(network)
            if network in STAKING_EXCLUDED_NETWORKS:
                raise ValidationError(f"Network {network} does not support staking")
            state.network_alias = network
            self.config.write("network", network)
            self.reporter.log(f"Using network: {config['name']}\n")
            return
        choices = [
            (n["name"], alias) for alias, n in BUILT_IN_NETWORKS.items() if alias not in STAKING_EXCLUDED_NETWORKS
        ]
        selected = self.prompter.select("Select network:", choices)
        state.network_alias = selected
        self.config.write("network", selected)
        self.reporter.log(f"\nNetwork set to: {BUILT_IN_NETWORKS[selected]['name']}\n")

    def step_balance(self, state: WizardState, conn: dict[str, Any]) -> None:
        self._heading("Step 3: Balance Check")
        self.reporter.start("Checking balance and staking requirements...")
        client = self.get_client(network=state.network_alias, signing=False, **conn)
        balance = client.get_balance(state.account_address)
        epoch_info = client.get_epoch_info()
        self.reporter.stop()

        min_stake = epoch_info["validatorMinStake"]
        min_stake_formatted = f"{format_ether(min_stake)} GEN"
        epoch_zero = epoch_info["currentEpoch"] == 0
        self.reporter.log(f"Balance: {format_ether(balance)} GEN")
        self.reporter.log(f"Minimum stake required: {min_stake_formatted}")
        if epoch_zero:
            self.reporter.log("(Epoch 0: minimum stake not enforced, but gas fees still required)")
            self.reporter.log(f"Note: Validator won't become active until self-stake reaches {min_stake_formatted}")

        min_required = MIN_GAS_BUFFER if epoch_zero else min_stake + MIN_GAS_BUFFER
        if balance < min_required:
            needed = "0.01 GEN (for gas)" if epoch_zero else f"{min_stake_formatted} + gas"
            raise ValidationError(
                f"Insufficient balance. You need at least {needed} to become a validator.\n"
                f"Fund your account ({state.account_address}) and run the wizard again."
            )
        state.balance = balance
        state.min_stake = 0 if epoch_zero else min_stake
        self.reporter.log("Balance sufficient!\n")

    def step_operator(self, state: WizardState) -> None:
        self._heading("Step 4: Operator Setup")
        self.reporter.log("Using a separate operator address is recommended for security:")
        self.reporter.log("- Owner account: holds staked funds (keep secure)")
        self.reporter.log("- Operator account: signs blocks (hot wallet on validator server)\n")

        if not self.prompter.confirm("Do you want to use a separate operator address?", default=True):
            state.operator_address = state.account_address
            state.operator_account_name = state.account_name
            self.reporter.log("\nOperator will be the same as owner address.\n")
            return

        accounts = self.config.list_accounts()
        others = [a for a in accounts if a.name != state.account_name]
        choices = [("Create new operator account", "create")]
        if others:
            choices.append(("Select from my accounts", "select"))
        choices.append(("Enter existing operator address", "existing"))
        choice = self.prompter.select("How would you like to set up the operator?", choices)

        if choice == "existing":
            while True:
                address = self.prompter.text("Enter operator address (0x...):").strip()
                if ADDRESS_RE.match(address):
                    break
                self.reporter.warning("Invalid address format. Expected 0x followed by 40 hex characters.")
            state.operator_address = address
            self.reporter.log()
            return

        if choice == "select":
            name = self.prompter.select(
                "Select an account to use as operator:", [(f"{a.name} ({a.address})", a.name) for a in others]
            )
            state.operator_address = ensure_hex_prefix(self.resolver.get_address(name))
        else:
            name = self._ask_new_account_name("operator", {a.name for a in accounts})
            self.reporter.log()
            state.operator_address = self._create_account(name, set_active=False)
        state.operator_account_name = name
        state.operator_keystore_path = self._export_operator(name)

    def _export_operator(self, name: str) -> Path:
        filename = self.prompter.text("Export keystore filename:", default=f"{name}-keystore.json")
        output_path = Path(filename).resolve()
        if output_path.exists():
            if self.prompter.confirm(f"File {filename} already exists. Overwrite?", default=False):
                output_path.unlink()
            else:
                output_path = Path(self.prompter.text("Enter new filename:")).resolve()

        password = collect_new_password(
            self.prompter, "Enter password for exported keystore (needed to import in node):"
        )

        self._sub_action(ExportAccountAction).execute(output=str(output_path), account=name, password=password)
        self.reporter.log(f"\n{BANNER}\n  IMPORTANT: Transfer operator keystore\n{BANNER}")
        self.reporter.log(f"File: {output_path}")
        self.reporter.log("Transfer this file to your validator server and import it")
        self.reporter.log("into your validator node software.")
        self.reporter.log(f"{BANNER}\n")
        return output_path

    def _validate_stake(self, amount: str, state: WizardState) -> str | None:
        try:
            amount_wei = parse_staking_amount(amount)
        except ValidationError:
            return "Please enter a valid positive number"
        if amount_wei <= 0:
            return "Please enter a valid positive number"
        if state.min_stake > 0 and amount_wei < state.min_stake:
            return f"Amount must be at least {format_ether(state.min_stake)} GEN"
        if amount_wei > state.balance:
            return f"Amount exceeds balance ({format_ether(state.balance)} GEN)"
        return None

    def step_stake_amount(self, state: WizardState) -> None:
        self._heading("Step 5: Stake Amount")
        balance_gen = format_ether(state.balance)
        has_min = state.min_stake > 0
        message = (
            f"Enter stake amount (min: {format_ether(state.min_stake)}, max: {balance_gen} GEN):"
            if has_min
            else f"Enter stake amount (max: {balance_gen} GEN):"
        )
        default = format_ether(state.min_stake) if has_min else "1"
        while True:
            answer = self.prompter.text(message, default=default).strip()
            amount = stake_input(answer)
            problem = self._validate_stake(amount, state)
            if problem is None:
                break
            self.reporter.warning(problem)

        state.stake_amount = amount
        if not self.prompter.confirm(f"You will stake {answer}. Continue?", default=True):
            raise OperationAbortedError("Wizard aborted.")
        self.reporter.log()

    def step_join(self, state: WizardState, conn: dict[str, Any]):
        self._heading("Step 6: Join as Validator")
        self.reporter.start("Creating validator...")
        client = self.get_client(network=state.network_alias, account=state.account_name, **conn)
        amount = parse_staking_amount(state.stake_amount)
        self.reporter.update(f"Creating validator with {format_ether(amount)} GEN stake...")
        result = client.validator_join(amount, operator=state.operator_address)
        if result.get("validatorWallet"):
            state.validator_wallet = ensure_hex_prefix(result["validatorWallet"])
        self.reporter.succeed(
            "Validator created successfully!",
            {
                "transactionHash": result["transactionHash"],
                "validatorWallet": state.validator_wallet,
                "amount": f"{format_ether(amount)} GEN",
                "operator": result["operator"],
                "blockNumber": result["blockNumber"],
            },
        )
        self.reporter.log()
        return client

    def step_identity(self, state: WizardState, client) -> None:
        self._heading("Step 7: Identity Setup")
        if not self.prompter.confirm("Would you like to set up your validator identity now?", default=True):
            self.reporter.log("\nYou can set up identity later with: genlayer staking set-identity\n")
            return

        while True:
            moniker = self.prompter.text("Enter validator display name (moniker):").strip()
            if moniker:
                break
            self.reporter.warning("Moniker is required")
        identity: dict[str, Any] = {"moniker": moniker}
        for key, question, _ in IDENTITY_FIELDS:
            value = self.prompter.text(question, default="").strip()
            if value:
                identity[key] = value
        state.identity = identity

        self.reporter.start("Setting validator identity...")
        try:
            validator = state.validator_wallet or state.account_address
            client.set_identity(validator, identity)
        except Exception as err:
            logger.debug("Identity setup failed", exc_info=True)
            self.reporter.stop()
            self.reporter.warning(f"Failed to set identity: {err}")
            self.reporter.log("You can try again later with: genlayer staking set-identity\n")
            return
        self.reporter.succeed("Validator identity set!")
        self.reporter.log()

    def show_summary(self, state: WizardState) -> None:
        validator_wallet = ensure_hex_prefix(state.validator_wallet or state.account_address)
        self.reporter.log(f"\n{BANNER}\n   Validator Setup Complete!\n{BANNER}\n")
        self.reporter.log("Summary:")
        self.reporter.log(f"  Validator Wallet:  {validator_wallet}")
        self.reporter.log(f"  Owner:             {state.account_address} ({state.account_name})")
        if state.operator_account_name:
            self.reporter.log(f"  Operator:          {state.operator_address} ({state.operator_account_name})")
        else:
            self.reporter.log(f"  Operator:          {state.operator_address}")
        self.reporter.log(f"  Staked Amount:     {state.stake_amount}")
        self.reporter.log(f"  Network:           {BUILT_IN_NETWORKS[state.network_alias]['name']}")
        if state.identity:
            self.reporter.log("  Identity:")
            self.reporter.log(f"    Moniker: {state.identity['moniker']}")
            for key, _, label in IDENTITY_FIELDS:
                if state.identity.get(key):
                    self.reporter.log(f"    {label}: {state.identity[key]}")

        self.reporter.log("\nNext Steps:")
        step = 1
        if state.operator_keystore_path:
            self.reporter.log(f"  {step}. Transfer operator keystore to your validator server:")
            self.reporter.log(f"     {state.operator_keystore_path}")
            self.reporter.log(f"  {step + 1}. Import it into your validator node software")
            step += 2
        self.reporter.log(f"  {step}. Monitor your validator:")
        self.reporter.log(f"     genlayer staking validator-info --validator {validator_wallet}")
        self.reporter.log(f"  {step + 1}. Lock your account when done: genlayer account lock")
        self.reporter.log(f"\n{BANNER}\n")
