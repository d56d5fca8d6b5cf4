"""
Configuration package for the GenLayer CLI.

Global config file, built-in networks, logging setup and contract ABIs.
"""

from .network import (
    BUILT_IN_NETWORKS,
    DEFAULT_NETWORK,
    find_network,
    get_network_config,
    get_rpc_url,
    get_staking_address,
    resolve_network,
    select_network,
)
from .config_store import AccountInfo, ConfigStore, DEFAULT_ACCOUNT_NAME
from .abis import STAKING_ABI, VALIDATOR_WALLET_ABI

__all__ = [
    # Network
    'BUILT_IN_NETWORKS',
    'DEFAULT_NETWORK',
    'find_network',
    'get_network_config',
    'get_rpc_url',
    'get_staking_address',
    'resolve_network',
    'select_network',

    # Config file
    'AccountInfo',
    'ConfigStore',
    'DEFAULT_ACCOUNT_NAME',

    # ABIs
    'STAKING_ABI',
    'VALIDATOR_WALLET_ABI',
]
