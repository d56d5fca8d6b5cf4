"""OS credential cache.

Unlocked accounts keep their plaintext private key in the host secret store
(macOS Keychain, Windows Credential Locker, Secret Service / KWallet on Linux)
via ``keyring``. The cache is an optimization only: every read degrades to a
miss, only an explicit ``store`` reports failure.
"""

from __future__ import annotations

import json
import logging
import os

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from ..errors import KeychainUnavailableError

logger = logging.getLogger(__name__)

SERVICE_NAME = "genlayer-cli"
ACCOUNT_PREFIX = "account:"
INDEX_ENTRY = "__unlocked_accounts__"
AVAILABILITY_ENTRY = "__availability_check__"


def _entry(account_name: str) -> str:
    return f"{ACCOUNT_PREFIX}{account_name}"


class OSKeychain:
    """Keychain backed by the ``keyring`` package."""

    def __init__(self, service: str = SERVICE_NAME, backend=None):
        self.service = service
        self._backend = backend or keyring

    def is_available(self) -> bool:
        try:
            # A missing entry returns None; a missing backend raises
            self._backend.get_password(self.service, AVAILABILITY_ENTRY)
            return True
        except Exception as e:
            logger.debug("OS keychain unavailable: %s", e)
            return False

    def get(self, account_name: str) -> str | None:
        try:
            return self._backend.get_password(self.service, _entry(account_name))
        except Exception as e:
            logger.debug("Keychain read for %s failed: %s", account_name, e)
            return None

    def store(self, account_name: str, private_key: str) -> None:
        if not self.is_available():
            raise KeychainUnavailableError()
        try:
            self._backend.set_password(self.service, _entry(account_name), private_key)
        except KeyringError as e:
            raise KeychainUnavailableError(f"Failed to store key in OS keychain: {e}")
        names = self.list_unlocked()
        if account_name not in names:
            self._write_index(names + [account_name])
        logger.info("Cached key for account %s in OS keychain", account_name)

    def remove(self, account_name: str) -> bool:
        try:
            self._backend.delete_password(self.service, _entry(account_name))
            removed = True
        except PasswordDeleteError:
            removed = False
        except Exception as e:
            logger.debug("Keychain delete for %s failed: %s", account_name, e)
            return False
        names = self.list_unlocked()
        if account_name in names:
            self._write_index([n for n in names if n != account_name])
        return removed

    def list_unlocked(self) -> list[str]:
        try:
            raw = self._backend.get_password(self.service, INDEX_ENTRY)
        except Exception as e:
            logger.debug("Keychain index read failed: %s", e)
            return []
        if not raw:
            return []
        try:
            names = json.loads(raw)
        except json.JSONDecodeError:
            return []
        return [n for n in names if isinstance(n, str)] if isinstance(names, list) else []

    def is_unlocked(self, account_name: str) -> bool:
        return self.get(account_name) is not None

    def _write_index(self, names: list[str]) -> None:
        try:
            self._backend.set_password(self.service, INDEX_ENTRY, json.dumps(sorted(set(names))))
        except Exception as e:
            logger.debug("Keychain index write failed: %s", e)


class MemoryKeychain:
    """In-process keychain; nothing survives the process."""

    def __init__(self, entries: dict[str, str] | None = None):
        self._entries: dict[str, str] = dict(entries or {})

    def is_available(self) -> bool:
        return True

    def get(self, account_name: str) -> str | None:
        return self._entries.get(account_name)

    def store(self, account_name: str, private_key: str) -> None:
        self._entries[account_name] = private_key

    def remove(self, account_name: str) -> bool:
        return self._entries.pop(account_name, None) is not None

    def list_unlocked(self) -> list[str]:
        return sorted(self._entries)

    def is_unlocked(self, account_name: str) -> bool:
        return account_name in self._entries


class NullKeychain:
    """Keychain for hosts without a secret store: every read misses."""

    def is_available(self) -> bool:
        return False

    def get(self, account_name: str) -> str | None:
        return None

    def store(self, account_name: str, private_key: str) -> None:
        raise KeychainUnavailableError()

    def remove(self, account_name: str) -> bool:
        return False

    def list_unlocked(self) -> list[str]:
        return []

    def is_unlocked(self, account_name: str) -> bool:
        return False


def get_keychain():
    if os.getenv("GENLAYER_NO_KEYCHAIN"):
        return NullKeychain()
    return OSKeychain()
