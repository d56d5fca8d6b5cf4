"""
Contract ABI package for the GenLayer CLI.
"""

from .staking import STAKING_ABI, VALIDATOR_WALLET_ABI

__all__ = [
    'STAKING_ABI',
    'VALIDATOR_WALLET_ABI',
]
