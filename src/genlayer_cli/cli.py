"""Command line entry point for ``genlayer``.

Each command module contributes its parsers through ``register(sub)``; the
selected handler returns the process exit code.
"""

import argparse
from typing import Optional, Sequence

from dotenv import load_dotenv

from . import __version__
from .commands import account, contracts, keygen, network, staking, transactions
from .config.logging_config import get_cli_logger

COMMAND_MODULES = (keygen, account, network, contracts, transactions, staking)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="genlayer",
        description="GenLayer CLI: manage accounts, keystores, networks and validator staking",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    subparsers = parser.add_subparsers(dest="command", help="Commands")
    for module in COMMAND_MODULES:
        module.register(subparsers)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    # Environment variables from .env (GENLAYER_HOME, GENLAYER_NO_KEYCHAIN, ...)
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    logger = get_cli_logger(args.verbose)
    # Only the command path: option values may carry keys and passwords
    logger.debug("Running command: %s", command_path(args))
    return args.func(args)


def command_path(args: argparse.Namespace) -> str:
    """``account import`` style name of the selected command."""
    parts = [args.command]
    sub = getattr(args, f"{args.command}_cmd", None)
    if sub:
        parts.append(sub)
    return " ".join(parts)


if __name__ == "__main__":
    raise SystemExit(main())
