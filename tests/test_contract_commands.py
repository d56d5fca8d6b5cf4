"""``genlayer call|write|code|receipt`` with the node stubbed out."""

import json

import pytest
from web3 import Web3

from conftest import KEY_A
from fakes import FakeWeb3, no_sleep
from genlayer_cli.commands import contracts
from genlayer_cli.commands.contracts import ContractActions, load_abi, parse_args_values
from genlayer_cli.commands.transactions import ReceiptAction
from genlayer_cli.errors import FormatError, ValidationError
from genlayer_cli.helpers.tmp_cache import TempFileCache
from genlayer_cli.helpers.tx_sender import TxOutcome

CONTRACT = "0x0000000000000000000000000000000000C0FFEE"
ABI = [
    {
        "type": "function",
        "name": "store",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "value", "type": "uint256"}],
        "outputs": [],
    }
]


@pytest.fixture
def abi_file(tmp_path):
    path = tmp_path / "abi.json"
    path.write_text(json.dumps({"abi": ABI}))
    return path


class TestAbiAndArgs:
    def test_load_wrapped_or_plain(self, abi_file, tmp_path):
        assert load_abi(str(abi_file)) == ABI
        plain = tmp_path / "plain.json"
        plain.write_text(json.dumps(ABI))
        assert load_abi(str(plain)) == ABI

    def test_load_errors(self, tmp_path):
        with pytest.raises(ValidationError, match="ABI file not found"):
            load_abi(str(tmp_path / "missing.json"))
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"nope": 1}))
        with pytest.raises(FormatError):
            load_abi(str(bad))

    def test_parse_args(self):
        assert parse_args_values(["1", "true", "[1,2]", "hello", "0xabc"]) == [1, True, [1, 2], "hello", "0xabc"]
        assert parse_args_values(None) == []


class TestCode:
    def test_uses_cache(self, make_action, tmp_path, output, monkeypatch):
        cache = TempFileCache(directory=tmp_path)
        w3 = FakeWeb3()
        fetched = []

        def get_code(address):
            fetched.append(address)
            return b"\x60\x80"

        w3.eth.get_code = get_code
        monkeypatch.setattr(contracts, "get_web3_instance", lambda url: w3)
        action = make_action(ContractActions, cache=cache)
        assert action.run(action.code, CONTRACT) == 0
        assert action.run(action.code, CONTRACT) == 0
        assert len(fetched) == 1
        assert "0x6080" in output()

    def test_empty_code(self, make_action, tmp_path, output, monkeypatch):
        w3 = FakeWeb3()
        w3.eth.get_code = lambda address: b""
        monkeypatch.setattr(contracts, "get_web3_instance", lambda url: w3)
        action = make_action(ContractActions, cache=TempFileCache(directory=tmp_path))
        assert action.run(action.code, CONTRACT) == 1
        assert "No contract code found" in output()

    def test_invalid_address(self, make_action, tmp_path, output):
        action = make_action(ContractActions, cache=TempFileCache(directory=tmp_path))
        assert action.run(action.code, "0x123") == 1
        assert "Invalid contract address" in output()


class TestWrite:
    def test_encodes_and_sends(self, make_action, add_account, keychain, abi_file, output, monkeypatch):
        add_account("default")
        keychain.store("default", KEY_A)
        sent = []

        def fake_send(w3, account, tx, **kwargs):
            sent.append(tx)
            return TxOutcome(hash="0x" + "cd" * 32, receipt={"blockNumber": 4, "gasUsed": 30000, "status": 1})

        monkeypatch.setattr(contracts, "get_web3_instance", lambda url: Web3())
        monkeypatch.setattr(contracts, "send_transaction", fake_send)
        action = make_action(ContractActions)
        assert action.run(action.write, CONTRACT, "store", abi=str(abi_file), args=["42"], value="1gen") == 0
        assert sent[0]["to"] == Web3.to_checksum_address(CONTRACT)
        assert sent[0]["value"] == 10**18
        assert sent[0]["data"].endswith(f"{42:064x}")
        assert "Write operation successfully executed" in output()


class TestReceipt:
    def test_found(self, make_action, output, monkeypatch):
        w3 = FakeWeb3(receipts=[None, {"transactionHash": "0xaa", "status": 1, "blockNumber": 8, "gasUsed": 21000}])
        action = make_action(ReceiptAction, sleep=no_sleep)
        monkeypatch.setattr(action, "web3", lambda network, rpc=None: w3)
        assert action.run(action.receipt, "0xaa", retries=3) == 0
        assert "Transaction receipt retrieved successfully" in output()
        assert '"status": "success"' in output()

    def test_not_yet_confirmed(self, make_action, output, monkeypatch):
        w3 = FakeWeb3()
        action = make_action(ReceiptAction, sleep=no_sleep)
        monkeypatch.setattr(action, "web3", lambda network, rpc=None: w3)
        assert action.run(action.receipt, "0xaa", retries=2) == 0
        assert "Transaction not yet confirmed" in output()
        assert w3.eth.receipt_calls == 2

    @pytest.mark.parametrize("retries, interval", [(0, 1.0), (-3, 1.0), (2, -0.5)])
    def test_rejects_bad_polling_options(self, make_action, output, monkeypatch, retries, interval):
        w3 = FakeWeb3()
        action = make_action(ReceiptAction, sleep=no_sleep)
        monkeypatch.setattr(action, "web3", lambda network, rpc=None: w3)
        assert action.run(action.receipt, "0xaa", retries=retries, interval=interval) == 1
        assert "Error retrieving transaction receipt" in output()
        assert w3.eth.receipt_calls == 0
