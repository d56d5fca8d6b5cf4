"""``genlayer account``: named accounts, balances, transfers and the key cache."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from eth_account import Account
from eth_utils import is_address, to_checksum_address

from ..errors import (
    AccountNotFoundError,
    AlreadyExistsError,
    KeychainUnavailableError,
    OperationAbortedError,
    RemoteOperationError,
    ValidationError,
)
from ..helpers.amounts import format_amount, parse_amount
from ..helpers.tx_sender import send_transaction
from ..wallet.keystore import (
    MIN_PASSWORD_LENGTH,
    KeystoreRecord,
    address_of,
    collect_new_password,
    decrypt_keystore,
    decrypt_record,
    load_foreign_keystore,
    normalize_privkey_hex,
    read_keystore,
)
from .base import BaseAction

logger = logging.getLogger(__name__)


def normalize_address(address: str) -> str:
    return address if address.startswith("0x") else f"0x{address}"


class AccountAction(BaseAction):
    def require_record(self, name: str) -> KeystoreRecord:
        path = self.config.keystore_path(name)
        if not path.exists():
            raise AccountNotFoundError(
                f"Account '{name}' not found. Run 'genlayer account create --name {name}' first."
            )
        return read_keystore(path)

    def source_key(self, name: str, record: KeystoreRecord, source_password: str | None = None) -> str:
        """Private key for ``name`` from the keychain, ``source_password`` or a prompt."""
        cached = self.resolver.cached_key(name, record)
        if cached is not None:
            return cached
        if source_password:
            try:
                return decrypt_record(record, source_password)
            except ValueError:
                raise ValidationError("Failed to decrypt keystore. Wrong password?")
        return self.resolver.decrypt_interactively(name, record)


class ListAccountsAction(AccountAction):
    failure_message = "Failed to list accounts"

    def execute(self) -> None:
        accounts = self.config.list_accounts()
        if not accounts:
            self.reporter.info("No accounts found. Run 'genlayer account create --name <name>' to create one.")
            return
        active = self.config.get_active_account()
        unlocked = set(self.keychain.list_unlocked())
        self.reporter.log()
        for account in accounts:
            is_active = account.name == active
            marker = "*" if is_active else " "
            active_label = "(active)" if is_active else ""
            status = "(unlocked)" if account.name in unlocked else ""
            self.reporter.log(f"{marker} {account.name:<16} {account.address} {active_label} {status}".rstrip())
        self.reporter.log()


class ShowAccountAction(AccountAction):
    failure_message = "Failed to get account info"

    def execute(self, account: str | None = None, rpc: str | None = None, network: str | None = None) -> None:
        self.reporter.start("Fetching account info...")
        name = self.config.resolve_account_name(account)
        record = self.require_record(name)
        address = to_checksum_address(normalize_address(record.address))
        net = self.network(network)
        try:
            balance = self.web3(net, rpc).eth.get_balance(address)
        except Exception as err:
            raise RemoteOperationError(f"Failed to fetch balance: {err}") from err
        result = {
            "name": name,
            "address": address,
            "balance": format_amount(balance),
            "network": net.get("name") or "localnet",
            "status": "unlocked" if self.keychain.is_unlocked(name) else "locked",
            "active": self.config.get_active_account() == name,
        }
        self.reporter.succeed("Account info", result)


class CreateAccountAction(AccountAction):
    failure_message = "Failed to create account"

    def execute(self, name: str, overwrite: bool = False, set_active: bool = True) -> None:
        path = self.config.keystore_path(name)
        self.store.ensure_writable(path, overwrite)
        password = collect_new_password(self.prompter)
        self.reporter.start(f"Creating account '{name}'...")
        private_key = self.store.create(path, password, overwrite=overwrite, account_name=name)
        if set_active:
            self.config.set_active_account(name)
        self.reporter.succeed(f"Account '{name}' created at: {path}")
        self.reporter.info(f"Address: {address_of(private_key)}")


class ImportAccountAction(AccountAction):
    failure_message = "Failed to import account"

    def execute(
        self,
        name: str,
        private_key: str | None = None,
        keystore: str | None = None,
        password: str | None = None,
        source_password: str | None = None,
        overwrite: bool = False,
        set_active: bool = True,
    ) -> None:
        path = self.config.keystore_path(name)
        if path.exists() and not overwrite:
            raise AlreadyExistsError(f"Account '{name}' already exists. Use '--overwrite' to replace.")

        if keystore:
            key = self._from_keystore(Path(keystore), source_password)
        elif private_key:
            key = normalize_privkey_hex(private_key)
        else:
            key = normalize_privkey_hex(self.prompter.password("Enter private key to import:"))

        if password:
            if len(password) < MIN_PASSWORD_LENGTH:
                raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
        else:
            password = collect_new_password(
                self.prompter,
                f"Enter a password to encrypt your keystore (minimum {MIN_PASSWORD_LENGTH} characters):",
            )

        self.reporter.start(f"Importing account '{name}'...")
        self.store.save(path, key, password, overwrite=True, account_name=name)
        if set_active:
            self.config.set_active_account(name)
        self.reporter.succeed(f"Account '{name}' imported to: {path}")
        self.reporter.info(f"Address: {address_of(key)}")

    def _from_keystore(self, path: Path, source_password: str | None) -> str:
        encrypted = load_foreign_keystore(path)
        password = source_password or self.prompter.password("Enter password to decrypt keystore:")
        self.reporter.start("Decrypting keystore...")
        try:
            key = decrypt_keystore(encrypted, password)
        except ValueError:
            raise ValidationError("Failed to decrypt keystore. Wrong password?")
        self.reporter.stop()
        return key


class ExportAccountAction(AccountAction):
    failure_message = "Failed to export account"

    def execute(
        self,
        output: str,
        account: str | None = None,
        password: str | None = None,
        source_password: str | None = None,
    ) -> None:
        name = self.config.resolve_account_name(account)
        record = self.require_record(name)
        output_path = Path(output).expanduser().resolve()
        if output_path.exists():
            raise AlreadyExistsError(f"Output file already exists: {output_path}")

        key = self.source_key(name, record, source_password)

        if password:
            if len(password) < MIN_PASSWORD_LENGTH:
                raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
        else:
            password = collect_new_password(
                self.prompter,
                f"Enter password for exported keystore (minimum {MIN_PASSWORD_LENGTH} characters):",
            )

        self.reporter.start(f"Exporting account '{name}'...")
        _, address = self.store.export(key, password, output_path)
        self.reporter.succeed(f"Account '{name}' exported to: {output_path}")
        self.reporter.info(f"Address: {address}")


class UseAccountAction(AccountAction):
    failure_message = "Failed to set active account"

    def execute(self, name: str) -> None:
        self.config.set_active_account(name)
        self.reporter.success(f"Active account set to '{name}'")


class RemoveAccountAction(AccountAction):
    failure_message = "Failed to remove account"

    def execute(self, name: str, force: bool = False) -> None:
        if not self.config.account_exists(name):
            raise AccountNotFoundError(f"Account '{name}' does not exist")
        if not force:
            confirmed = self.prompter.confirm(
                f"Are you sure you want to remove account '{name}'? This cannot be undone.",
                default=False,
            )
            if not confirmed:
                raise OperationAbortedError("Operation aborted!")
        self.keychain.remove(name)
        self.config.remove_account(name)
        self.reporter.success(f"Account '{name}' removed")


class UnlockAccountAction(AccountAction):
    failure_message = "Failed to unlock account"

    def execute(self, account: str | None = None) -> None:
        self.reporter.start("Checking keychain availability...")
        if not self.keychain.is_available():
            raise KeychainUnavailableError(
                "OS keychain is not available. This command requires a supported keychain "
                "(e.g. macOS Keychain, Windows Credential Manager, or GNOME Keyring)."
            )
        name = self.config.resolve_account_name(account)
        record = self.require_record(name)
        key = self.resolver.decrypt_interactively(name, record)
        self.keychain.store(name, key)
        self.reporter.succeed(f"Account '{name}' unlocked! Private key cached in OS keychain.")


class LockAccountAction(AccountAction):
    failure_message = "Failed to lock account"

    def execute(self, account: str | None = None) -> None:
        name = self.config.resolve_account_name(account)
        if not self.keychain.is_unlocked(name):
            self.reporter.info(f"Account '{name}' is already locked.")
            return
        self.keychain.remove(name)
        self.reporter.success(f"Account '{name}' locked! Private key removed from OS keychain.")


class SendAction(AccountAction):
    failure_message = "Transfer failed"

    def __init__(self, *args, retries: int | None = None, interval: float | None = None, sleep=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.poll_options = {
            k: v for k, v in (("retries", retries), ("interval", interval), ("sleep", sleep)) if v is not None
        }

    def execute(
        self,
        to: str,
        amount: str,
        account: str | None = None,
        rpc: str | None = None,
        network: str | None = None,
    ) -> None:
        self.reporter.start("Preparing transfer...")
        if not is_address(to):
            raise ValidationError(f"Invalid recipient address: {to}")
        recipient = to_checksum_address(to)
        value = parse_amount(amount)

        name = self.config.resolve_account_name(account)
        self.require_record(name)
        signer = Account.from_key(self.resolver.get_private_key(name))

        net = self.network(network)
        w3 = self.web3(net, rpc)
        self.reporter.update(f"Sending {format_amount(value)} to {recipient}...")
        outcome = send_transaction(w3, signer, {"to": recipient, "value": value}, **self.poll_options)

        result = {
            "transactionHash": outcome.hash,
            "from": signer.address,
            "to": recipient,
            "amount": format_amount(value),
        }
        if not outcome.confirmed:
            self.reporter.succeed("Transfer submitted (pending confirmation)", result)
            return
        result["blockNumber"] = str(outcome.receipt["blockNumber"])
        result["gasUsed"] = str(outcome.receipt["gasUsed"])
        self.reporter.succeed("Transfer successful!", result)


# --------------------------------------------------------------------------- #
# CLI                                                                          #
# --------------------------------------------------------------------------- #

def cmd_account_list(args: argparse.Namespace) -> int:
    action = ListAccountsAction()
    return action.run(action.execute)


def cmd_account_show(args: argparse.Namespace) -> int:
    action = ShowAccountAction()
    return action.run(action.execute, account=args.account, rpc=args.rpc, network=args.network)


def cmd_account_create(args: argparse.Namespace) -> int:
    action = CreateAccountAction()
    return action.run(action.execute, name=args.name, overwrite=args.overwrite, set_active=args.set_active)


def cmd_account_import(args: argparse.Namespace) -> int:
    action = ImportAccountAction()
    return action.run(
        action.execute,
        name=args.name,
        private_key=args.private_key,
        keystore=args.keystore,
        password=args.password,
        source_password=args.source_password,
        overwrite=args.overwrite,
        set_active=args.set_active,
    )


def cmd_account_export(args: argparse.Namespace) -> int:
    action = ExportAccountAction()
    return action.run(
        action.execute,
        output=args.output,
        account=args.account,
        password=args.password,
        source_password=args.source_password,
    )


def cmd_account_use(args: argparse.Namespace) -> int:
    action = UseAccountAction()
    return action.run(action.execute, name=args.name)


def cmd_account_remove(args: argparse.Namespace) -> int:
    action = RemoveAccountAction()
    return action.run(action.execute, name=args.name, force=args.force)


def cmd_account_unlock(args: argparse.Namespace) -> int:
    action = UnlockAccountAction()
    return action.run(action.execute, account=args.account)


def cmd_account_lock(args: argparse.Namespace) -> int:
    action = LockAccountAction()
    return action.run(action.execute, account=args.account)


def cmd_account_send(args: argparse.Namespace) -> int:
    action = SendAction()
    return action.run(
        action.execute, to=args.to, amount=args.amount, account=args.account, rpc=args.rpc, network=args.network
    )


def register(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser("account", help="Manage named accounts")
    acc_sub = p.add_subparsers(dest="account_cmd", required=True)

    p_list = acc_sub.add_parser("list", help="List accounts")
    p_list.set_defaults(func=cmd_account_list)

    p_show = acc_sub.add_parser("show", help="Show address, balance and lock status")
    p_show.add_argument("--account", help="Account to show (defaults to the active account)")
    p_show.add_argument("--rpc", help="RPC URL for the network")
    p_show.add_argument("--network", help="Network to use")
    p_show.set_defaults(func=cmd_account_show)

    p_create = acc_sub.add_parser("create", help="Create a new account")
    p_create.add_argument("--name", required=True, help="Account name")
    p_create.add_argument("--overwrite", action="store_true", help="Overwrite an existing account")
    p_create.add_argument("--no-set-active", dest="set_active", action="store_false",
                          help="Do not make the new account active")
    p_create.set_defaults(func=cmd_account_create)

    p_import = acc_sub.add_parser("import", help="Import a private key or keystore file")
    p_import.add_argument("--name", required=True, help="Account name")
    src = p_import.add_mutually_exclusive_group()
    src.add_argument("--private-key", help="Private key to import (prompted when omitted)")
    src.add_argument("--keystore", help="Keystore file to import (geth, foundry or genlayer format)")
    p_import.add_argument("--password", help="Password for the new keystore (skips confirmation)")
    p_import.add_argument("--source-password", help="Password of the keystore being imported")
    p_import.add_argument("--overwrite", action="store_true", help="Overwrite an existing account")
    p_import.add_argument("--no-set-active", dest="set_active", action="store_false",
                          help="Do not make the imported account active")
    p_import.set_defaults(func=cmd_account_import)

    p_export = acc_sub.add_parser("export", help="Export an account to a web3 keystore file")
    p_export.add_argument("--output", required=True, help="Output file path")
    p_export.add_argument("--account", help="Account to export (defaults to the active account)")
    p_export.add_argument("--password", help="Password for the exported keystore")
    p_export.add_argument("--source-password", help="Password of the account keystore")
    p_export.set_defaults(func=cmd_account_export)

    p_use = acc_sub.add_parser("use", help="Set the active account")
    p_use.add_argument("name", help="Account name")
    p_use.set_defaults(func=cmd_account_use)

    p_remove = acc_sub.add_parser("remove", help="Remove an account")
    p_remove.add_argument("name", help="Account name")
    p_remove.add_argument("--force", action="store_true", help="Skip confirmation")
    p_remove.set_defaults(func=cmd_account_remove)

    p_send = acc_sub.add_parser("send", help="Send GEN to an address")
    p_send.add_argument("to", help="Recipient address")
    p_send.add_argument("amount", help="Amount, e.g. '10gen', '10' (GEN) or a wei value")
    p_send.add_argument("--account", help="Account to send from")
    p_send.add_argument("--rpc", help="RPC URL for the network")
    p_send.add_argument("--network", help="Network to use")
    p_send.set_defaults(func=cmd_account_send)

    p_unlock = acc_sub.add_parser("unlock", help="Cache the private key in the OS keychain")
    p_unlock.add_argument("--account", help="Account to unlock (defaults to the active account)")
    p_unlock.set_defaults(func=cmd_account_unlock)

    p_lock = acc_sub.add_parser("lock", help="Remove the private key from the OS keychain")
    p_lock.add_argument("--account", help="Account to lock (defaults to the active account)")
    p_lock.set_defaults(func=cmd_account_lock)
