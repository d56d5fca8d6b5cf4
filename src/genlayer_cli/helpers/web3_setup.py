"""
Web3 setup helper - one Web3 instance per RPC endpoint.

Public API
----------
get_web3_instance(rpc_url)
    Return a Web3 instance connected to ``rpc_url``, reusing the previous one
    when the endpoint has not changed.
web3_for_network(network, rpc_override=None)
    Resolve the endpoint of a network descriptor and connect to it.
"""
from __future__ import annotations

from typing import Any, Optional

from web3 import Web3

from ..config.network import get_rpc_url

__all__ = ["get_web3_instance", "web3_for_network"]

_w3_instance: Optional[Web3] = None


def get_web3_instance(rpc_url: str) -> Web3:
    global _w3_instance

    if _w3_instance is not None and _w3_instance.provider.endpoint_uri == rpc_url:
        return _w3_instance

    _w3_instance = Web3(Web3.HTTPProvider(rpc_url))
    return _w3_instance


def web3_for_network(network: dict[str, Any], rpc_override: str | None = None) -> Web3:
    return get_web3_instance(get_rpc_url(network, rpc_override))
