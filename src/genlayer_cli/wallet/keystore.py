#!/usr/bin/env python3
"""Encrypted keystore records.

A keystore record is the JSON file ``{"version": 1, "encrypted": <web3
secret-storage JSON string>, "address": <0x address>}``; the encrypted blob is
produced and consumed by eth-account.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address

from ..errors import AlreadyExistsError, FormatError, ValidationError

logger = logging.getLogger(__name__)

KEYSTORE_VERSION = 1
MIN_PASSWORD_LENGTH = 8
PRIVATE_KEY_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


@dataclass
class KeystoreRecord:
    version: int
    encrypted: str
    address: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def is_valid_keystore(data: Any) -> bool:
    """Structural check usable both for validation and before decryption."""
    return bool(
        isinstance(data, dict)
        and data.get("version") == KEYSTORE_VERSION
        and isinstance(data.get("encrypted"), str)
        and isinstance(data.get("address"), str)
    )


def normalize_privkey_hex(pk: str) -> str:
    if not isinstance(pk, str):
        raise ValidationError("private key must be a hex string")
    pk = pk.strip()
    if not pk.startswith("0x"):
        pk = "0x" + pk
    if not PRIVATE_KEY_RE.match(pk):
        raise ValidationError("Invalid private key format. Expected 64 hex characters (with or without 0x prefix).")
    return pk.lower()


def key_to_hex(key_bytes: bytes) -> str:
    # Plain bytes before hex() to avoid the leading '0x' from HexBytes.hex()
    return "0x" + bytes(key_bytes).hex()


def address_of(private_key: str) -> str:
    return to_checksum_address(Account.from_key(private_key).address)


def encrypt_private_key(
    private_key_hex: str,
    password: str,
    kdf: str | None = None,
    iterations: int | None = None,
) -> tuple[dict[str, Any], str]:
    """Encrypt a private key into a web3 keystore JSON and return (keystore, checksum address)."""
    priv = normalize_privkey_hex(private_key_hex)
    acct: LocalAccount = Account.from_key(priv)
    keystore: dict[str, Any] = Account.encrypt(priv, password, kdf=kdf, iterations=iterations)
    return keystore, to_checksum_address(acct.address)


def decrypt_keystore(keystore_json: dict[str, Any] | str, password: str) -> str:
    """Decrypt a web3 keystore JSON and return the 0x-prefixed private key.

    Raises ValueError when the password is wrong.
    """
    return key_to_hex(Account.decrypt(keystore_json, password))


def decrypt_record(record: KeystoreRecord, password: str) -> str:
    return decrypt_keystore(record.encrypted, password)


# --------------------------------------------------------------------------- #
# File helpers                                                                 #
# --------------------------------------------------------------------------- #

def write_json_atomic(path: Path, data: Any, mode: int | None = None) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_fd, tmp_path = tempfile.mkstemp(prefix=".genlayer_", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(tmp_fd, "w") as f:
            json.dump(data, f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        if mode is not None:
            os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)


def read_json(path: Path) -> Any:
    with open(path) as f:
        return json.load(f)


def read_keystore(path: Path) -> KeystoreRecord:
    """Parse a keystore file; FormatError if it is not valid JSON of the right shape."""
    try:
        data = read_json(Path(path))
    except json.JSONDecodeError as e:
        raise FormatError(f"Invalid keystore file {path}: could not parse JSON ({e.msg})")
    if not is_valid_keystore(data):
        raise FormatError("Invalid keystore format. Expected encrypted keystore file.")
    return KeystoreRecord(version=data["version"], encrypted=data["encrypted"], address=data["address"])


def write_keystore(path: Path, record: KeystoreRecord, overwrite: bool = False) -> Path:
    path = Path(path)
    if path.exists() and not overwrite:
        raise AlreadyExistsError(
            f"The file at {path} already exists. Use the '--overwrite' option to replace it."
        )
    write_json_atomic(path, record.to_dict(), mode=0o600)
    return path


def load_foreign_keystore(path: Path) -> str:
    """Return the web3 keystore JSON string from our wrapper or a geth/foundry file."""
    path = Path(path)
    if not path.exists():
        raise FormatError(f"Keystore file not found: {path}")
    content = path.read_text()
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError:
        raise FormatError("Invalid keystore file. Could not parse JSON.")
    if isinstance(parsed, dict) and isinstance(parsed.get("encrypted"), str):
        return parsed["encrypted"]
    if isinstance(parsed, dict) and ("crypto" in parsed or "Crypto" in parsed):
        return content
    raise FormatError("Invalid keystore format. Expected encrypted keystore file.")


# --------------------------------------------------------------------------- #
# Password policy                                                              #
# --------------------------------------------------------------------------- #

def validate_new_password(password: str, confirm_password: str) -> str:
    if password != confirm_password:
        raise ValidationError("Passwords do not match")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    return password


def collect_new_password(prompter, message: str = "Enter password to encrypt your keystore:") -> str:
    """Prompt for a new password plus confirmation and apply the password policy."""
    password = prompter.password(message)
    confirm_password = prompter.password("Confirm password:")
    return validate_new_password(password, confirm_password)


# --------------------------------------------------------------------------- #
# Store                                                                        #
# --------------------------------------------------------------------------- #

class KeystoreStore:
    """Creates, imports and exports keystore files.

    ``kdf``/``iterations`` are passed through to eth-account; the defaults
    (scrypt) are what users get, tests use a cheap pbkdf2 setting.
    """

    def __init__(self, keychain=None, kdf: str | None = None, iterations: int | None = None):
        self.keychain = keychain
        self.kdf = kdf
        self.iterations = iterations

    def encrypt(self, private_key: str, password: str) -> KeystoreRecord:
        keystore, address = encrypt_private_key(private_key, password, kdf=self.kdf, iterations=self.iterations)
        return KeystoreRecord(version=KEYSTORE_VERSION, encrypted=json.dumps(keystore), address=address)

    def ensure_writable(self, path: Path, overwrite: bool) -> None:
        if Path(path).exists() and not overwrite:
            raise AlreadyExistsError(
                f"The file at {path} already exists. Use the '--overwrite' option to replace it."
            )

    def create(self, path: Path, password: str, overwrite: bool = False, account_name: str = "default") -> str:
        """Generate a random key, write its keystore and return the plaintext key."""
        self.ensure_writable(path, overwrite)
        validate_new_password(password, password)
        acct = Account.create()
        private_key = key_to_hex(acct.key)
        return self.save(path, private_key, password, overwrite=overwrite, account_name=account_name)

    def save(self, path: Path, private_key: str, password: str, overwrite: bool = False, account_name: str = "default") -> str:
        """Encrypt an existing key under ``password`` and write it to ``path``."""
        private_key = normalize_privkey_hex(private_key)
        record = self.encrypt(private_key, password)
        write_keystore(path, record, overwrite=overwrite)
        logger.info("Keystore for %s written to %s", record.address, path)
        # New key material invalidates whatever was cached for this account
        if self.keychain is not None:
            self.keychain.remove(account_name)
        return private_key

    def export(self, private_key: str, password: str, output_path: Path) -> tuple[Path, str]:
        """Write a plain web3 keystore (geth/foundry compatible); never overwrites."""
        output_path = Path(output_path)
        if output_path.exists():
            raise AlreadyExistsError(f"Output file already exists: {output_path}")
        keystore, address = encrypt_private_key(private_key, password, kdf=self.kdf, iterations=self.iterations)
        write_json_atomic(output_path, keystore, mode=0o600)
        return output_path, address
