"""
Wallet package: encrypted keystores, the OS keychain cache and credential resolution.
"""

from .keychain import MemoryKeychain, NullKeychain, OSKeychain, get_keychain
from .keystore import KeystoreRecord, KeystoreStore
from .resolver import CredentialResolver, MAX_PASSWORD_ATTEMPTS

__all__ = [
    'CredentialResolver',
    'KeystoreRecord',
    'KeystoreStore',
    'MAX_PASSWORD_ATTEMPTS',
    'MemoryKeychain',
    'NullKeychain',
    'OSKeychain',
    'get_keychain',
]
