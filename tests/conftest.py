"""
Shared fixtures: a throwaway GENLAYER_HOME, an in-memory keychain, a cheap
pbkdf2 keystore store, a scripted prompter and a reporter writing to a buffer.
"""

import io
from collections import deque

import pytest
from rich.console import Console

from genlayer_cli.config.config_store import ConfigStore
from genlayer_cli.helpers.output import Reporter
from genlayer_cli.wallet.keychain import MemoryKeychain
from genlayer_cli.wallet.keystore import KeystoreStore

KEY_A = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
KEY_B = "0x" + "22" * 32
PASSWORD = "correcthorse1"


class ScriptedPrompter:
    """Answers prompts from queues and records every message it was shown."""

    def __init__(self, passwords=(), confirms=(), texts=(), selects=()):
        self.passwords = deque(passwords)
        self.confirms = deque(confirms)
        self.texts = deque(texts)
        self.selects = deque(selects)
        self.messages = []

    def _next(self, queue, kind, message):
        self.messages.append(message)
        if not queue:
            raise AssertionError(f"Unexpected {kind} prompt: {message}")
        return queue.popleft()

    def password(self, message):
        return self._next(self.passwords, "password", message)

    def confirm(self, message, default=True):
        return self._next(self.confirms, "confirm", message)

    def text(self, message, default=None):
        answer = self._next(self.texts, "text", message)
        return default if answer is None else answer

    def select(self, message, choices):
        answer = self._next(self.selects, "select", message)
        values = [value for _, value in choices]
        assert answer in values, f"{answer!r} is not one of {values!r}"
        return answer

    @property
    def password_messages(self):
        return [m for m in self.messages if "password" in m.lower()]


@pytest.fixture
def home(tmp_path, monkeypatch):
    path = tmp_path / "genlayer-home"
    monkeypatch.setenv("GENLAYER_HOME", str(path))
    monkeypatch.setenv("GENLAYER_NO_KEYCHAIN", "1")
    return path


@pytest.fixture
def config(home):
    return ConfigStore(home)


@pytest.fixture
def keychain():
    return MemoryKeychain()


@pytest.fixture
def store(keychain):
    return KeystoreStore(keychain, kdf="pbkdf2", iterations=2)


@pytest.fixture
def prompter():
    return ScriptedPrompter()


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=1000, color_system=None)


@pytest.fixture
def reporter(console):
    return Reporter(console=console)


@pytest.fixture
def output(console):
    return lambda: console.file.getvalue()


@pytest.fixture
def make_action(config, keychain, prompter, reporter, store):
    def factory(cls, **kwargs):
        return cls(config=config, keychain=keychain, prompter=prompter, reporter=reporter, store=store, **kwargs)

    return factory


@pytest.fixture
def add_account(config, store):
    """Write ``keystores/<name>.json`` for a known key without prompting."""

    def factory(name, key=KEY_A, password=PASSWORD, active=False):
        store.save(config.keystore_path(name), key, password, account_name=name)
        if active:
            config.set_active_account(name)
        return config.keystore_path(name)

    return factory
