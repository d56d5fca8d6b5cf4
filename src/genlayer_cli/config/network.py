"""
Network configuration for the GenLayer CLI.

Contains the built-in networks (RPC URLs, chain ids, staking contracts) and
helpers to resolve the network stored in the config file.
"""

import json
import os
from typing import Any

from ..errors import ValidationError


# =============================================================================
# NETWORK CONFIGURATIONS
# =============================================================================

BUILT_IN_NETWORKS: dict[str, dict[str, Any]] = {
    "localnet": {
        "name": "GenLayer Localnet",
        "chain_id": 61999,
        "currency": "GEN",
        "rpc_urls": ["http://127.0.0.1:4000/api"],
        "explorer": None,
        "staking_contract": None,
    },
    "studionet": {
        "name": "GenLayer Studio Network",
        "chain_id": 61999,
        "currency": "GEN",
        "rpc_urls": ["https://studio.genlayer.com/api"],
        "explorer": None,
        "staking_contract": None,
    },
    "testnet-asimov": {
        "name": "GenLayer Asimov Testnet",
        "chain_id": 4221,
        "currency": "GEN",
        "rpc_urls": ["https://genlayer-testnet.rpc.caldera.xyz/http"],
        "explorer": {
            "name": "Asimov Explorer",
            "url": "https://genlayer-testnet.explorer.caldera.xyz",
        },
        "staking_contract": None,
    },
}

DEFAULT_NETWORK = "localnet"

# Networks that have no staking contract deployed
STAKING_EXCLUDED_NETWORKS = ("studionet",)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_network_config(alias: str) -> dict[str, Any]:
    """Get a copy of a built-in network configuration.

    Raises:
        ValidationError: If the alias is unknown.
    """
    if alias not in BUILT_IN_NETWORKS:
        raise ValidationError(
            f"Unknown network: {alias}. Available: {', '.join(BUILT_IN_NETWORKS)}"
        )
    config = dict(BUILT_IN_NETWORKS[alias])
    config["alias"] = alias
    return config


def find_network(name_or_alias: str) -> dict[str, Any] | None:
    """Look up a built-in network by alias or display name."""
    for alias, config in BUILT_IN_NETWORKS.items():
        if name_or_alias in (alias, config["name"]):
            return get_network_config(alias)
    return None


def resolve_network(stored: str | None) -> dict[str, Any]:
    """Resolve the value of the ``network`` config key.

    The stored value may be a built-in alias, a JSON-serialised network
    descriptor (legacy configs), or missing (falls back to localnet).
    """
    if not stored:
        return get_network_config(DEFAULT_NETWORK)
    if stored in BUILT_IN_NETWORKS:
        return get_network_config(stored)
    try:
        descriptor = json.loads(stored)
    except json.JSONDecodeError:
        raise ValidationError(
            f"Unknown network: {stored}. Available: {', '.join(BUILT_IN_NETWORKS)}"
        )
    if not isinstance(descriptor, dict):
        raise ValidationError(f"Invalid network descriptor in config: {stored}")
    return _from_descriptor(descriptor)


def _from_descriptor(descriptor: dict[str, Any]) -> dict[str, Any]:
    # Chain descriptors use {id, name, rpcUrls: {default: {http: [...]}}}
    rpc_urls = descriptor.get("rpc_urls")
    if rpc_urls is None:
        rpc_urls = descriptor.get("rpcUrls", {}).get("default", {}).get("http", [])
    staking = descriptor.get("staking_contract") or descriptor.get("stakingContract")
    if isinstance(staking, dict):
        staking = staking.get("address")
    return {
        "alias": descriptor.get("alias", "custom"),
        "name": descriptor.get("name", "Custom network"),
        "chain_id": descriptor.get("chain_id", descriptor.get("id")),
        "currency": "GEN",
        "rpc_urls": list(rpc_urls),
        "explorer": descriptor.get("explorer"),
        "staking_contract": staking,
    }


def select_network(option: str | None, stored: str | None) -> dict[str, Any]:
    """Priority: --network option > global config > localnet default."""
    if option:
        return get_network_config(option)
    return resolve_network(stored)


def get_rpc_url(network: dict[str, Any], override: str | None = None) -> str:
    """Get the RPC URL for a network.

    Uses the --rpc override, then GENLAYER_RPC_URL, then the network default.
    """
    if override:
        return override
    env_rpc = os.getenv("GENLAYER_RPC_URL")
    if env_rpc:
        return env_rpc
    if not network.get("rpc_urls"):
        raise ValidationError(f"No RPC URL configured for network {network.get('name')}")
    return network["rpc_urls"][0]


def get_staking_address(network: dict[str, Any], override: str | None = None) -> str:
    """Get the staking contract address (--staking-address > env > network)."""
    address = override or os.getenv("GENLAYER_STAKING_ADDRESS") or network.get("staking_contract")
    if not address:
        raise ValidationError(
            "Staking contract address not configured. "
            "Pass --staking-address or set GENLAYER_STAKING_ADDRESS."
        )
    return address
