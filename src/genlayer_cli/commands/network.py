"""``genlayer network``: choose the network commands talk to."""

from __future__ import annotations

import argparse

from ..config.network import BUILT_IN_NETWORKS, DEFAULT_NETWORK, find_network, resolve_network
from ..errors import ValidationError
from .base import BaseAction


class NetworkActions(BaseAction):
    failure_message = "Network command failed"

    def show_info(self) -> None:
        stored = self.config.get("network") or DEFAULT_NETWORK
        network = resolve_network(stored)
        info = {
            "alias": network.get("alias", stored),
            "name": network["name"],
            "chainId": str(network.get("chain_id") or "unknown"),
            "rpc": network["rpc_urls"][0] if network.get("rpc_urls") else "unknown",
            "stakingContract": network.get("staking_contract") or "not set",
        }
        explorer = network.get("explorer")
        if explorer and explorer.get("url"):
            info["explorer"] = explorer["url"]
        self.reporter.succeed("Current network", info)

    def list_networks(self) -> None:
        current = self.config.get("network") or DEFAULT_NETWORK
        self.reporter.log()
        for alias, network in BUILT_IN_NETWORKS.items():
            marker = "*" if alias == current else " "
            self.reporter.log(f"{marker} {alias:<16} {network['name']}")
        self.reporter.log()

    def set_network(self, name: str | None = None) -> None:
        if name is not None:
            network = find_network(name)
            if network is None:
                raise ValidationError(f"Network {name} not found")
        else:
            alias = self.prompter.select(
                "Select which network do you want to use:",
                [(n["name"], a) for a, n in BUILT_IN_NETWORKS.items()],
            )
            network = find_network(alias)
        self.config.write("network", network["alias"])
        self.reporter.succeed(f"Network successfully set to {network['name']}")


def cmd_network_info(args: argparse.Namespace) -> int:
    action = NetworkActions()
    return action.run(action.show_info)


def cmd_network_list(args: argparse.Namespace) -> int:
    action = NetworkActions()
    return action.run(action.list_networks)


def cmd_network_set(args: argparse.Namespace) -> int:
    action = NetworkActions()
    return action.run(action.set_network, args.network)


def register(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser("network", help="Network configuration")
    net_sub = p.add_subparsers(dest="network_cmd", required=True)

    p_set = net_sub.add_parser("set", help="Set the network to use")
    p_set.add_argument("network", nargs="?", help="Network alias or name")
    p_set.set_defaults(func=cmd_network_set)

    p_info = net_sub.add_parser("info", help="Show the current network configuration")
    p_info.set_defaults(func=cmd_network_info)

    p_list = net_sub.add_parser("list", help="List available networks")
    p_list.set_defaults(func=cmd_network_list)
