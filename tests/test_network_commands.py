"""``genlayer network`` and network resolution."""

import json

import pytest

from genlayer_cli.commands.network import NetworkActions
from genlayer_cli.config.network import (
    find_network,
    get_rpc_url,
    get_staking_address,
    resolve_network,
    select_network,
)
from genlayer_cli.errors import ValidationError


class TestResolution:
    def test_default_is_localnet(self):
        assert resolve_network(None)["alias"] == "localnet"

    def test_alias(self):
        assert resolve_network("testnet-asimov")["chain_id"] == 4221

    def test_legacy_descriptor(self):
        stored = json.dumps(
            {"id": 1234, "name": "Custom", "rpcUrls": {"default": {"http": ["http://node:8545"]}}}
        )
        network = resolve_network(stored)
        assert network["chain_id"] == 1234
        assert get_rpc_url(network) == "http://node:8545"

    def test_unknown_alias(self):
        with pytest.raises(ValidationError, match="Unknown network"):
            resolve_network("mainnet")

    def test_option_beats_config(self):
        assert select_network("testnet-asimov", "localnet")["alias"] == "testnet-asimov"
        assert select_network(None, "testnet-asimov")["alias"] == "testnet-asimov"

    def test_find_by_display_name(self):
        assert find_network("GenLayer Asimov Testnet")["alias"] == "testnet-asimov"
        assert find_network("nope") is None

    def test_rpc_precedence(self, monkeypatch):
        network = resolve_network("localnet")
        monkeypatch.delenv("GENLAYER_RPC_URL", raising=False)
        assert get_rpc_url(network) == "http://127.0.0.1:4000/api"
        monkeypatch.setenv("GENLAYER_RPC_URL", "http://env:1")
        assert get_rpc_url(network) == "http://env:1"
        assert get_rpc_url(network, "http://flag:2") == "http://flag:2"

    def test_staking_address_precedence(self, monkeypatch):
        network = resolve_network("localnet")
        monkeypatch.delenv("GENLAYER_STAKING_ADDRESS", raising=False)
        with pytest.raises(ValidationError):
            get_staking_address(network)
        monkeypatch.setenv("GENLAYER_STAKING_ADDRESS", "0xenv")
        assert get_staking_address(network) == "0xenv"
        assert get_staking_address(network, "0xflag") == "0xflag"


class TestNetworkActions:
    def test_set_by_name(self, make_action, config, output):
        action = make_action(NetworkActions)
        assert action.run(action.set_network, "testnet-asimov") == 0
        assert config.get("network") == "testnet-asimov"
        assert "Network successfully set to GenLayer Asimov Testnet" in output()

    def test_set_unknown(self, make_action, config, output):
        action = make_action(NetworkActions)
        assert action.run(action.set_network, "mainnet") == 1
        assert "Network mainnet not found" in output()
        assert config.get("network") is None

    def test_set_interactively(self, make_action, prompter, config):
        prompter.selects.append("studionet")
        action = make_action(NetworkActions)
        assert action.run(action.set_network) == 0
        assert config.get("network") == "studionet"

    def test_info(self, make_action, config, output):
        config.write("network", "testnet-asimov")
        action = make_action(NetworkActions)
        assert action.run(action.show_info) == 0
        text = output()
        assert '"chainId": "4221"' in text
        assert "genlayer-testnet.explorer.caldera.xyz" in text

    def test_list_marks_current(self, make_action, config, output):
        config.write("network", "studionet")
        action = make_action(NetworkActions)
        assert action.run(action.list_networks) == 0
        lines = [line for line in output().splitlines() if line.strip()]
        assert lines[1].startswith("* studionet")
        assert lines[0].startswith("  localnet")
