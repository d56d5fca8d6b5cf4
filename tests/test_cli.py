"""Argument parsing and the ``genlayer`` entry point."""

import logging

import pytest

from genlayer_cli import __version__
from genlayer_cli.cli import build_parser, command_path, main
from genlayer_cli.commands import account, staking

from conftest import KEY_A


@pytest.fixture
def parser():
    return build_parser()


def test_account_create(parser):
    args = parser.parse_args(["account", "create", "--name", "validator", "--no-set-active"])
    assert args.func is account.cmd_account_create
    assert args.name == "validator"
    assert args.set_active is False


def test_import_sources_are_exclusive(parser):
    with pytest.raises(SystemExit):
        parser.parse_args(["account", "import", "--name", "x", "--private-key", "0x1", "--keystore", "k.json"])


def test_staking_options(parser):
    args = parser.parse_args(
        ["staking", "validator-join", "--amount", "42000gen", "--rpc", "http://n", "--staking-address", "0xs"]
    )
    assert args.func is staking.cmd_validator_join
    assert args.amount == "42000gen"
    assert args.rpc == "http://n"
    assert args.staking_address == "0xs"
    assert args.network is None


def test_wizard_options(parser):
    args = parser.parse_args(["staking", "wizard", "--skip-identity", "--account", "owner"])
    assert args.func is staking.cmd_wizard
    assert args.skip_identity is True
    assert args.account == "owner"


@pytest.mark.parametrize(
    "command, handler",
    [
        ("quarantined-validators", staking.cmd_quarantined_validators),
        ("banned-validators", staking.cmd_banned_validators),
    ],
)
def test_validator_lists(parser, command, handler):
    args = parser.parse_args(["staking", command, "--staking-address", "0xs"])
    assert args.func is handler


def test_validator_info_debug(parser):
    assert parser.parse_args(["staking", "validator-info", "--debug"]).debug is True
    assert parser.parse_args(["staking", "validator-info"]).debug is False


def test_keygen_default_output(parser):
    args = parser.parse_args(["keygen", "create"])
    assert args.output == "./keypair.json"
    assert args.overwrite is False


def test_top_level_receipt(parser):
    args = parser.parse_args(["receipt", "0xabc", "--retries", "5"])
    assert args.tx_hash == "0xabc"
    assert args.retries == 5


def test_no_command_prints_help(home, capsys):
    assert main([]) == 0
    assert "usage: genlayer" in capsys.readouterr().out


def test_version(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--version"])
    assert excinfo.value.code == 0
    assert __version__ in capsys.readouterr().out


def test_network_set_end_to_end(home, capsys):
    assert main(["network", "set", "testnet-asimov"]) == 0
    assert "Network successfully set to GenLayer Asimov Testnet" in capsys.readouterr().out
    assert main(["network", "info"]) == 0
    assert '"alias": "testnet-asimov"' in capsys.readouterr().out


def test_failure_exit_code(home, capsys):
    assert main(["account", "use", "ghost"]) == 1


def test_command_path(parser):
    assert command_path(parser.parse_args(["account", "import", "--name", "x", "--password", "p"])) == "account import"
    assert command_path(parser.parse_args(["receipt", "0xabc"])) == "receipt"


def test_verbose_log_leaves_out_secrets(home, monkeypatch, capsys):
    # Fresh handlers so the log file lands in this test's home
    monkeypatch.setattr(logging.getLogger("genlayer_cli"), "handlers", [])
    password = "hunter2222"

    code = main(["-v", "account", "import", "--name", "x", "--private-key", KEY_A, "--password", password])

    assert code == 0
    logs = "".join(p.read_text() for p in (home / "logs").glob("*.log"))
    assert "Running command: account import" in logs
    assert KEY_A[2:] not in logs
    assert password not in logs
    assert KEY_A[2:] not in capsys.readouterr().err
