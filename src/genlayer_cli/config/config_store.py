"""Global config file and named-account keystore directory.

The store is an explicit handle: commands and the credential resolver receive
one instead of reaching for a module-level singleton, which keeps them
testable against a temporary folder.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..errors import AccountNotFoundError
from ..wallet.keystore import read_json, write_json_atomic

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "genlayer-config.json"
KEYSTORES_DIR_NAME = "keystores"
DEFAULT_ACCOUNT_NAME = "default"


@dataclass
class AccountInfo:
    name: str
    address: str
    path: str


def default_home() -> Path:
    return Path(os.getenv("GENLAYER_HOME") or (Path.home() / ".genlayer"))


class ConfigStore:
    """Flat JSON key/value config plus ``keystores/<name>.json`` files."""

    def __init__(self, base_folder: Path | str | None = None, config_file_name: str = CONFIG_FILE_NAME):
        self.folder_path = Path(base_folder) if base_folder else default_home()
        self.config_file_path = self.folder_path / config_file_name
        self.keystores_path = self.folder_path / KEYSTORES_DIR_NAME
        self.keystores_path.mkdir(parents=True, exist_ok=True)
        if not self.config_file_path.exists():
            write_json_atomic(self.config_file_path, {})

    # ------------------------------------------------------------------ #
    # Key/value config                                                     #
    # ------------------------------------------------------------------ #

    def get_config(self) -> dict[str, Any]:
        try:
            data = read_json(self.config_file_path)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError:
            logger.warning("Config file %s is not valid JSON; treating as empty", self.config_file_path)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Any:
        return self.get_config().get(key)

    def write(self, key: str, value: Any) -> None:
        config = self.get_config()
        config[key] = value
        write_json_atomic(self.config_file_path, config)
        logger.debug("Config key %s updated", key)

    def remove(self, key: str) -> None:
        config = self.get_config()
        if key in config:
            del config[key]
            write_json_atomic(self.config_file_path, config)

    def get_file_path(self, file_name: str) -> Path:
        """Resolve a path relative to the config folder (absolute paths pass through)."""
        return (self.folder_path / Path(file_name).expanduser()).resolve()

    # ------------------------------------------------------------------ #
    # Named accounts                                                       #
    # ------------------------------------------------------------------ #

    def keystore_path(self, name: str) -> Path:
        return self.keystores_path / f"{name}.json"

    def account_exists(self, name: str) -> bool:
        return self.keystore_path(name).exists()

    def get_active_account(self) -> str | None:
        return self.get("activeAccount")

    def set_active_account(self, name: str) -> None:
        if not self.account_exists(name):
            raise AccountNotFoundError(f"Account '{name}' does not exist")
        self.write("activeAccount", name)

    def resolve_account_name(self, override: str | None = None) -> str:
        return override or self.get_active_account() or DEFAULT_ACCOUNT_NAME

    def list_accounts(self) -> list[AccountInfo]:
        accounts: list[AccountInfo] = []
        if not self.keystores_path.exists():
            return accounts
        for path in sorted(self.keystores_path.glob("*.json")):
            try:
                content = read_json(path)
            except (OSError, json.JSONDecodeError):
                continue
            if not isinstance(content, dict):
                continue
            addr = str(content.get("address") or "unknown")
            if addr != "unknown" and not addr.startswith("0x"):
                addr = f"0x{addr}"
            accounts.append(AccountInfo(name=path.stem, address=addr, path=str(path)))
        return accounts

    def remove_account(self, name: str) -> None:
        path = self.keystore_path(name)
        if not path.exists():
            raise AccountNotFoundError(f"Account '{name}' does not exist")
        path.unlink()
        if self.get_active_account() == name:
            self.remove("activeAccount")
