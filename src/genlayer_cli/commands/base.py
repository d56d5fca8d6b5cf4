"""Shared plumbing for every command action.

An action owns the collaborators it needs (config store, keychain, prompter,
reporter, keystore store, credential resolver); all of them can be injected.
``run`` is the command boundary: it turns any exception into a failure
report and an exit code.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from ..config.config_store import ConfigStore
from ..config.network import get_staking_address, select_network
from ..errors import GenLayerCLIError, OperationAbortedError
from ..helpers.output import Reporter
from ..helpers.prompts import Prompter
from ..helpers.web3_setup import web3_for_network
from ..wallet.keychain import get_keychain
from ..wallet.keystore import KeystoreStore
from ..wallet.resolver import CredentialResolver

logger = logging.getLogger(__name__)


class _SpinnerAwarePrompter:
    """Stops the running spinner before any prompt is shown."""

    def __init__(self, prompter, reporter: Reporter):
        self._prompter = prompter
        self._reporter = reporter

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._prompter, name)
        if not callable(attr):
            return attr

        def wrapper(*args, **kwargs):
            self._reporter.stop()
            return attr(*args, **kwargs)

        return wrapper


class BaseAction:
    failure_message = "Operation failed"

    def __init__(
        self,
        config: ConfigStore | None = None,
        keychain=None,
        prompter=None,
        reporter: Reporter | None = None,
        store: KeystoreStore | None = None,
    ):
        self.config = config or ConfigStore()
        self.keychain = keychain if keychain is not None else get_keychain()
        self.reporter = reporter or Reporter()
        self.prompter = _SpinnerAwarePrompter(prompter or Prompter(), self.reporter)
        self.store = store or KeystoreStore(self.keychain)
        self.resolver = CredentialResolver(self.config, self.keychain, self.prompter, self.store)

    def run(self, operation: Callable[..., Any], *args: Any, **kwargs: Any) -> int:
        """Execute ``operation`` and map its outcome to a process exit code."""
        try:
            operation(*args, **kwargs)
            return 0
        except OperationAbortedError as e:
            self.reporter.stop()
            self.reporter.error(str(e) or "Operation aborted!")
            return e.exit_code
        except GenLayerCLIError as e:
            logger.debug("%s failed", type(self).__name__, exc_info=True)
            self.reporter.fail(self.failure_message, e)
            return e.exit_code
        except KeyboardInterrupt:
            self.reporter.stop()
            self.reporter.error("Interrupted")
            return 130
        except Exception as e:
            logger.debug("%s failed with an unexpected error", type(self).__name__, exc_info=True)
            self.reporter.fail(self.failure_message, e)
            return 1

    # ------------------------------------------------------------------ #
    # Network helpers                                                      #
    # ------------------------------------------------------------------ #

    def network(self, option: str | None = None) -> dict[str, Any]:
        return select_network(option, self.config.get("network"))

    def web3(self, network: dict[str, Any], rpc: str | None = None):
        return web3_for_network(network, rpc)

    def staking_address(self, network: dict[str, Any], override: str | None = None) -> str:
        return get_staking_address(network, override)
