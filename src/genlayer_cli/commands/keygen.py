"""``genlayer keygen``: standalone encrypted keystore files."""

from __future__ import annotations

import argparse

from ..wallet.keystore import address_of, collect_new_password
from .base import BaseAction

DEFAULT_KEYPAIR_PATH = "./keypair.json"


class KeypairCreator(BaseAction):
    failure_message = "Failed to generate keystore"

    def create_keypair(self, output: str = DEFAULT_KEYPAIR_PATH, overwrite: bool = False) -> None:
        path = self.config.get_file_path(output)
        self.store.ensure_writable(path, overwrite)
        password = collect_new_password(self.prompter)
        self.reporter.start("Creating encrypted keystore...")
        private_key = self.store.create(path, password, overwrite=overwrite)
        self.config.write("keyPairPath", str(path))
        self.reporter.succeed(f"Encrypted keystore successfully created and saved to: {path}")
        self.reporter.info(f"Address: {address_of(private_key)}")


def cmd_keygen_create(args: argparse.Namespace) -> int:
    action = KeypairCreator()
    return action.run(action.create_keypair, output=args.output, overwrite=args.overwrite)


def register(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser("keygen", help="Generate encrypted keystore files")
    keygen_sub = p.add_subparsers(dest="keygen_cmd", required=True)

    p_create = keygen_sub.add_parser("create", help="Generate a new keypair")
    p_create.add_argument("--output", default=DEFAULT_KEYPAIR_PATH, help="Path to save the keystore")
    p_create.add_argument("--overwrite", action="store_true", help="Overwrite an existing file")
    p_create.set_defaults(func=cmd_keygen_create)
