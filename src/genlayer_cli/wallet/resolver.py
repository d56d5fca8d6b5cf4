"""Credential resolution for named accounts.

Resolution order for one call:

1. locate ``keystores/<name>.json``; offer to create it when missing
2. validate the record shape; offer to recreate it when invalid
3. read-only callers get ``record.address`` without any secret
4. a key cached in the OS keychain is returned without prompting
5. otherwise the password is prompted for, at most MAX_PASSWORD_ATTEMPTS times

Decrypted keys are never written to the keychain here; ``account unlock`` is
the only cache writer.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from eth_account import Account
from eth_account.signers.local import LocalAccount

from ..errors import (
    FormatError,
    InvalidFormatError,
    MaxAttemptsExceededError,
    OperationAbortedError,
)
from .keystore import KeystoreRecord, address_of, collect_new_password, decrypt_record, read_keystore

if TYPE_CHECKING:
    from ..config.config_store import ConfigStore
    from .keystore import KeystoreStore

logger = logging.getLogger(__name__)

MAX_PASSWORD_ATTEMPTS = 3
DECRYPT_PROMPT = "Enter password to decrypt keystore:"


def password_prompt(attempt: int) -> str:
    if attempt == 1:
        return DECRYPT_PROMPT
    return f"Invalid password. Attempt {attempt}/{MAX_PASSWORD_ATTEMPTS} - {DECRYPT_PROMPT}"


def same_address(a: str, b: str) -> bool:
    return a.lower().removeprefix("0x") == b.lower().removeprefix("0x")


class CredentialResolver:
    def __init__(self, config: ConfigStore, keychain, prompter, store: KeystoreStore):
        self.config = config
        self.keychain = keychain
        self.prompter = prompter
        self.store = store

    def keystore_path(self, account_name: str) -> Path:
        return self.config.keystore_path(account_name)

    def resolve(self, account_name: str | None = None, signing: bool = True) -> str:
        """Return the private key (``signing``) or the address of ``account_name``."""
        name = self.config.resolve_account_name(account_name)
        path = self.keystore_path(name)

        if not path.exists():
            key = self._offer_create(
                name,
                path,
                f"Keystore file not found for account '{name}'. Would you like to create a new keypair?",
                overwrite=False,
            )
            return key if signing else address_of(key)

        try:
            record = read_keystore(path)
        except FormatError:
            logger.warning("Keystore %s has an invalid format", path)
            try:
                key = self._offer_create(
                    name,
                    path,
                    "Invalid keystore format. Would you like to create a new keypair?",
                    overwrite=True,
                )
            except OperationAbortedError:
                raise InvalidFormatError(f"Invalid keystore format for account '{name}'.")
            return key if signing else address_of(key)

        if not signing:
            return record.address

        cached = self.cached_key(name, record)
        if cached is not None:
            logger.debug("Using cached key for account %s", name)
            return cached

        return self.decrypt_interactively(name, record)

    def cached_key(self, name: str, record: KeystoreRecord) -> str | None:
        """Keychain entry for ``name`` if it still matches the keystore address."""
        cached = self.keychain.get(name)
        if not cached:
            return None
        try:
            cached_address = address_of(cached)
        except Exception:
            cached_address = None
        if cached_address is None or not same_address(cached_address, record.address):
            logger.warning("Cached key for account %s does not match its keystore; discarding it", name)
            self.keychain.remove(name)
            return None
        return cached

    def decrypt_interactively(self, name: str, record: KeystoreRecord) -> str:
        for attempt in range(1, MAX_PASSWORD_ATTEMPTS + 1):
            password = self.prompter.password(password_prompt(attempt))
            try:
                key = decrypt_record(record, password)
            except ValueError:
                logger.debug("Password attempt %d/%d failed for account %s", attempt, MAX_PASSWORD_ATTEMPTS, name)
                continue
            if not same_address(address_of(key), record.address):
                raise InvalidFormatError(
                    f"Keystore for account '{name}' records address {record.address} "
                    f"but decrypts to {address_of(key)}."
                )
            return key
        raise MaxAttemptsExceededError(
            f"Maximum password attempts exceeded ({MAX_PASSWORD_ATTEMPTS}/{MAX_PASSWORD_ATTEMPTS})."
        )

    def _offer_create(self, name: str, path: Path, question: str, overwrite: bool) -> str:
        if not self.prompter.confirm(question):
            raise OperationAbortedError("Operation aborted!")
        password = collect_new_password(self.prompter)
        key = self.store.create(path, password, overwrite=overwrite, account_name=name)
        self.config.write("keyPairPath", str(path))
        return key

    # ------------------------------------------------------------------ #
    # Convenience                                                          #
    # ------------------------------------------------------------------ #

    def get_private_key(self, account_name: str | None = None) -> str:
        return self.resolve(account_name, signing=True)

    def get_address(self, account_name: str | None = None) -> str:
        return self.resolve(account_name, signing=False)

    def get_account(self, account_name: str | None = None) -> LocalAccount:
        return Account.from_key(self.get_private_key(account_name))
