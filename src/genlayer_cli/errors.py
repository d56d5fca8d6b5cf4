"""
Error taxonomy for the GenLayer CLI.

Every error an action can surface to the user derives from GenLayerCLIError,
so the command boundary can render it through the uniform failure path and
pick the process exit code from the error itself.
"""

from __future__ import annotations

import platform


class GenLayerCLIError(Exception):
    """Base class for user-facing CLI errors."""

    exit_code = 1


class ValidationError(GenLayerCLIError):
    """User input failed a local precondition (password, address, amount)."""


class AlreadyExistsError(GenLayerCLIError):
    """Operation would overwrite persisted state without explicit consent."""


class FormatError(GenLayerCLIError):
    """File content is not a recognised keystore record."""


class InvalidFormatError(FormatError):
    """Persisted keystore does not match the expected structure."""


class MaxAttemptsExceededError(GenLayerCLIError):
    """Password retry budget is exhausted."""


class AccountNotFoundError(GenLayerCLIError):
    """Named account has no keystore file."""


class OperationAbortedError(GenLayerCLIError):
    """User declined a confirmation prompt."""

    exit_code = 0


class RemoteOperationError(GenLayerCLIError):
    """The chain RPC call failed (network, revert, timeout)."""


class KeychainUnavailableError(GenLayerCLIError):
    """OS secret store is missing or unreachable."""

    def __init__(self, message: str | None = None, guidance: str | None = None):
        self.guidance = guidance or keychain_install_guidance()
        super().__init__(message or "OS keychain is not available.")

    def __str__(self) -> str:
        return f"{self.args[0]} {self.guidance}"


def keychain_install_guidance(system: str | None = None) -> str:
    system = system or platform.system()
    if system == "Darwin":
        return "macOS Keychain should be available by default; make sure the login keychain is unlocked."
    if system == "Windows":
        return "Windows Credential Manager is required; make sure the Credential Manager service is running."
    return (
        "A Secret Service provider is required on Linux: install and start gnome-keyring "
        "or KWallet (e.g. 'sudo apt install gnome-keyring'), and make sure a D-Bus session is running."
    )
