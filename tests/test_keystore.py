"""Keystore records, password policy and the keystore store."""

import json
import os
import re
import stat

import pytest
from eth_account import Account

from conftest import KEY_A, KEY_B, PASSWORD, ScriptedPrompter
from genlayer_cli.errors import AlreadyExistsError, FormatError, ValidationError
from genlayer_cli.wallet.keychain import MemoryKeychain
from genlayer_cli.wallet.keystore import (
    KeystoreRecord,
    address_of,
    collect_new_password,
    decrypt_record,
    is_valid_keystore,
    load_foreign_keystore,
    normalize_privkey_hex,
    read_keystore,
    validate_new_password,
    KeystoreStore,
    write_keystore,
)

ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


class TestNormalizePrivateKey:
    def test_adds_prefix_and_lowercases(self):
        assert normalize_privkey_hex(KEY_A[2:].upper()) == KEY_A

    def test_strips_whitespace(self):
        assert normalize_privkey_hex(f"  {KEY_A}\n") == KEY_A

    @pytest.mark.parametrize("value", ["", "0x1234", "0x" + "zz" * 32, KEY_A + "00"])
    def test_rejects_malformed_keys(self, value):
        with pytest.raises(ValidationError, match="Invalid private key format"):
            normalize_privkey_hex(value)


class TestRecordShape:
    def test_valid_record(self):
        assert is_valid_keystore({"version": 1, "encrypted": "{}", "address": "0xabc"})

    @pytest.mark.parametrize(
        "data",
        [
            None,
            [],
            {"version": 2, "encrypted": "{}", "address": "0xabc"},
            {"version": 1, "encrypted": {}, "address": "0xabc"},
            {"version": 1, "encrypted": "{}"},
            {"encrypted": "{}", "address": "0xabc"},
        ],
    )
    def test_invalid_records(self, data):
        assert not is_valid_keystore(data)

    def test_read_rejects_broken_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(FormatError):
            read_keystore(path)

    def test_read_rejects_wrong_shape(self, tmp_path):
        path = tmp_path / "shape.json"
        path.write_text(json.dumps({"version": 1, "address": "0xabc"}))
        with pytest.raises(FormatError, match="Invalid keystore format"):
            read_keystore(path)

    def test_write_refuses_existing_file(self, tmp_path):
        path = tmp_path / "k.json"
        path.write_text("{}")
        record = KeystoreRecord(version=1, encrypted="{}", address="0xabc")
        with pytest.raises(AlreadyExistsError, match="--overwrite"):
            write_keystore(path, record)
        write_keystore(path, record, overwrite=True)
        assert json.loads(path.read_text()) == record.to_dict()

    def test_write_creates_parent_dirs_with_owner_only_mode(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "k.json"
        write_keystore(path, KeystoreRecord(version=1, encrypted="{}", address="0xabc"))
        assert path.exists()
        if os.name == "posix":
            assert stat.S_IMODE(path.stat().st_mode) == 0o600


class TestPasswordPolicy:
    @pytest.mark.parametrize("password", ["", "a", "1234567"])
    def test_short_passwords_rejected(self, password):
        with pytest.raises(ValidationError, match="at least 8 characters"):
            validate_new_password(password, password)

    def test_mismatch_rejected(self):
        with pytest.raises(ValidationError, match="Passwords do not match"):
            validate_new_password("correcthorse1", "correcthorse2")

    def test_collect_prompts_twice(self):
        prompter = ScriptedPrompter(passwords=[PASSWORD, PASSWORD])
        assert collect_new_password(prompter) == PASSWORD
        assert prompter.messages == ["Enter password to encrypt your keystore:", "Confirm password:"]


class TestKeystoreStore:
    def test_short_password_writes_no_file(self, tmp_path, store):
        path = tmp_path / "keypair.json"
        with pytest.raises(ValidationError):
            store.create(path, "short")
        assert not path.exists()

    def test_collected_mismatch_writes_no_file(self, tmp_path, store):
        path = tmp_path / "keypair.json"
        prompter = ScriptedPrompter(passwords=["correcthorse1", "correcthorse2"])
        with pytest.raises(ValidationError):
            store.create(path, collect_new_password(prompter))
        assert not path.exists()

    def test_round_trip_address(self, tmp_path, store):
        path = tmp_path / "keypair.json"
        key = store.create(path, PASSWORD)
        record = read_keystore(path)
        decrypted = decrypt_record(record, PASSWORD)
        assert decrypted == key
        assert address_of(decrypted) == record.address

    def test_correcthorse_scenario(self, tmp_path, store):
        path = tmp_path / "keypair.json"
        store.create(path, PASSWORD)
        data = json.loads(path.read_text())
        assert data["version"] == 1
        assert ADDRESS_RE.match(data["address"])
        assert isinstance(data["encrypted"], str) and data["encrypted"]
        record = read_keystore(path)
        assert normalize_privkey_hex(decrypt_record(record, PASSWORD))
        with pytest.raises(ValueError):
            decrypt_record(record, "wrong")

    def test_existing_path_requires_overwrite(self, tmp_path, store):
        path = tmp_path / "keypair.json"
        first = store.create(path, PASSWORD)
        with pytest.raises(AlreadyExistsError):
            store.create(path, PASSWORD)
        second = store.create(path, PASSWORD, overwrite=True)
        assert second != first
        assert read_keystore(path).address == address_of(second)

    def test_create_clears_cached_key(self, tmp_path):
        keychain = MemoryKeychain({"default": KEY_B})
        store = KeystoreStore(keychain, kdf="pbkdf2", iterations=2)
        store.create(tmp_path / "keypair.json", PASSWORD)
        assert keychain.get("default") is None

    def test_export_writes_plain_web3_keystore(self, tmp_path, store):
        output = tmp_path / "exported.json"
        path, address = store.export(KEY_A, PASSWORD, output)
        assert path == output
        exported = json.loads(output.read_text())
        assert "crypto" in exported
        assert "0x" + bytes(Account.decrypt(exported, PASSWORD)).hex() == KEY_A
        assert address == address_of(KEY_A)

    def test_export_never_overwrites(self, tmp_path, store):
        output = tmp_path / "exported.json"
        output.write_text("{}")
        with pytest.raises(AlreadyExistsError, match="Output file already exists"):
            store.export(KEY_A, PASSWORD, output)
        assert output.read_text() == "{}"


class TestForeignKeystore:
    def test_accepts_wrapper_format(self, tmp_path, store):
        path = tmp_path / "wrapped.json"
        store.save(path, KEY_A, PASSWORD)
        encrypted = load_foreign_keystore(path)
        assert "0x" + bytes(Account.decrypt(encrypted, PASSWORD)).hex() == KEY_A

    def test_accepts_geth_format(self, tmp_path, store):
        path, _ = store.export(KEY_A, PASSWORD, tmp_path / "geth.json")
        assert json.loads(load_foreign_keystore(path))["crypto"]

    def test_rejects_unknown_shape(self, tmp_path):
        path = tmp_path / "other.json"
        path.write_text(json.dumps({"hello": "world"}))
        with pytest.raises(FormatError):
            load_foreign_keystore(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FormatError, match="not found"):
            load_foreign_keystore(tmp_path / "missing.json")
