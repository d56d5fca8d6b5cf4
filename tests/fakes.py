"""Fake web3 node used by the transaction and command tests."""

from web3.exceptions import TransactionNotFound

RECIPIENT = "0x000000000000000000000000000000000000dEaD"
TX_HASH = b"\x12" * 32


class FakeEth:
    def __init__(self, receipts=(), base_fee=10**9, estimate_error=None, send_error=None):
        self.receipts = list(receipts)
        self.base_fee = base_fee
        self.estimate_error = estimate_error
        self.send_error = send_error
        self.sent = []
        self.estimates = []
        self.receipt_calls = 0
        self.chain_id = 4221
        self.gas_price = 5 * 10**9

    def get_transaction_count(self, address):
        return 7

    def get_block(self, tag):
        return {"baseFeePerGas": self.base_fee} if self.base_fee is not None else {}

    def estimate_gas(self, tx):
        self.estimates.append(tx)
        if self.estimate_error:
            raise self.estimate_error
        return 21000

    def send_raw_transaction(self, raw):
        if self.send_error:
            raise self.send_error
        self.sent.append(raw)
        return TX_HASH

    def get_transaction_receipt(self, tx_hash):
        self.receipt_calls += 1
        if not self.receipts:
            raise TransactionNotFound("not found")
        receipt = self.receipts.pop(0)
        if receipt is None:
            raise TransactionNotFound("not found")
        return receipt


class FakeWeb3:
    def __init__(self, **kwargs):
        self.eth = FakeEth(**kwargs)


def no_sleep(seconds):
    pass


STAKING = "0x0000000000000000000000000000000000001234"
VALIDATOR = "0x00000000000000000000000000000000000000A1"


class FakeStakingClient:
    """Records calls; canned answers for the staking views."""

    def __init__(self, account=None, epoch=3, balance=0, min_stake=42000 * 10**18, validators=(VALIDATOR,),
                 pending_deposits=(), pending_withdrawals=(), identity=None, quarantined=(), banned=()):
        self.account = account
        self.epoch = epoch
        self.balance = balance
        self.min_stake = min_stake
        self.validators = list(validators)
        self.pending_deposits = list(pending_deposits)
        self.pending_withdrawals = list(pending_withdrawals)
        self.identity = identity
        self.quarantined = list(quarantined)
        self.banned = list(banned)
        self.calls = []
        self.fail_identity = False

    @property
    def address(self):
        return self.account.address

    def _tx(self, name, *args, **extra):
        self.calls.append((name, args))
        return {"transactionHash": "0x" + "ab" * 32, "blockNumber": "10", "gasUsed": "50000", **extra}

    def validator_join(self, amount, operator=None):
        operator = operator or self.address
        return self._tx("validator_join", amount, operator, validatorWallet=VALIDATOR, amount=str(amount),
                        operator=operator)

    def validator_deposit(self, amount):
        return self._tx("validator_deposit", amount)

    def validator_exit(self, shares):
        return self._tx("validator_exit", shares)

    def validator_claim(self, validator=None):
        return self._tx("validator_claim", validator)

    def validator_prime(self, validator):
        return self._tx("validator_prime", validator)

    def set_operator(self, validator, operator):
        return self._tx("set_operator", validator, operator)

    def set_identity(self, validator, identity):
        if self.fail_identity:
            raise RuntimeError("identity reverted")
        return self._tx("set_identity", validator, identity)

    def delegator_join(self, validator, amount):
        return self._tx("delegator_join", validator, amount)

    def delegator_exit(self, validator, shares):
        return self._tx("delegator_exit", validator, shares)

    def delegator_claim(self, validator, delegator=None):
        return self._tx("delegator_claim", validator, delegator)

    def is_validator(self, validator):
        return validator in self.validators

    def get_validator_info(self, validator):
        return {
            "address": validator,
            "owner": "0x00000000000000000000000000000000000000B1",
            "operator": "0x00000000000000000000000000000000000000C1",
            "vStake": 42000 * 10**18,
            "vShares": 42000,
            "dStake": 0,
            "dShares": 0,
            "vDeposit": 0,
            "vWithdrawal": 0,
            "ePrimed": 1,
            "eBanned": 0,
            "banned": False,
            "live": True,
            "pendingDeposits": self.pending_deposits,
            "pendingWithdrawals": self.pending_withdrawals,
            "identity": self.identity,
        }

    def get_stake_info(self, delegator, validator):
        return {
            "delegator": delegator,
            "validator": validator,
            "shares": 5,
            "stake": 5 * 10**18,
            "pendingDeposits": self.pending_deposits,
            "pendingWithdrawals": self.pending_withdrawals,
        }

    def get_epoch_info(self):
        return {
            "currentEpoch": self.epoch,
            "validatorMinStake": self.min_stake,
            "delegatorMinStake": 42 * 10**18,
            "epochMinDuration": 90000,
        }

    def get_active_validators(self):
        return list(self.validators)

    def get_quarantined_validators(self):
        return list(self.quarantined)

    def get_banned_validators(self):
        return list(self.banned)

    def get_balance(self, address):
        return self.balance


class ClientFactory:
    """Stands in for ``default_client_factory`` and keeps every client it built."""

    def __init__(self, fail_identity=False, **client_kwargs):
        self.fail_identity = fail_identity
        self.client_kwargs = client_kwargs
        self.clients = []
        self.requests = []

    def __call__(self, network, rpc, staking_address, account):
        self.requests.append({"network": network["alias"], "rpc": rpc, "staking_address": staking_address,
                              "account": account})
        client = FakeStakingClient(account=account, **self.client_kwargs)
        client.fail_identity = self.fail_identity
        self.clients.append(client)
        return client

    @property
    def calls(self):
        return [call for client in self.clients for call in client.calls]
