"""
GenLayer staking contract and validator wallet ABIs.

Contains the subset of the staking interface used by the staking commands:
validator/delegator lifecycle calls, epoch parameters, validator views and
the quarantine and ban lists.
"""

def _fn(name, inputs=(), outputs=(), mutability="nonpayable"):
    return {
        "type": "function",
        "name": name,
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "outputs": [{"name": n, "type": t} for n, t in outputs],
        "stateMutability": mutability,
    }


def _view_structs(name, inputs, fields):
    """View returning an array of structs, e.g. pending deposits."""
    return {
        "type": "function",
        "name": name,
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "outputs": [
            {
                "name": "",
                "type": "tuple[]",
                "components": [{"name": n, "type": t} for n, t in fields],
            }
        ],
        "stateMutability": "view",
    }


DEPOSIT_FIELDS = [("epoch", "uint256"), ("stake", "uint256"), ("shares", "uint256")]
WITHDRAWAL_FIELDS = [("epoch", "uint256"), ("shares", "uint256"), ("stake", "uint256")]
QUARANTINE_FIELDS = [("validator", "address"), ("untilEpoch", "uint256"), ("permanentlyBanned", "bool")]


STAKING_ABI = [
    # Validator lifecycle
    _fn("validatorJoin", [("_operator", "address")], [("", "address")], "payable"),
    _fn("validatorDeposit", [], [], "payable"),
    _fn("validatorExit", [("_shares", "uint256")]),
    _fn("validatorClaim", [("_validator", "address")], [("", "uint256")]),
    _fn("validatorPrime", [("_validator", "address")]),
    # Delegator lifecycle
    _fn("delegatorJoin", [("_validator", "address")], [], "payable"),
    _fn("delegatorExit", [("_validator", "address"), ("_shares", "uint256")]),
    _fn("delegatorClaim", [("_delegator", "address"), ("_validator", "address")], [("", "uint256")]),
    # Views
    _fn("epoch", [], [("", "uint256")], "view"),
    _fn("validatorMinStake", [], [("", "uint256")], "view"),
    _fn("delegatorMinStake", [], [("", "uint256")], "view"),
    _fn("epochMinDuration", [], [("", "uint256")], "view"),
    _fn("activeValidators", [], [("", "address[]")], "view"),
    _fn("isValidator", [("_validator", "address")], [("", "bool")], "view"),
    {
        "type": "function",
        "name": "validatorView",
        "inputs": [{"name": "_validator", "type": "address"}],
        "outputs": [
            {
                "name": "",
                "type": "tuple",
                "components": [
                    {"name": "owner", "type": "address"},
                    {"name": "operator", "type": "address"},
                    {"name": "vStake", "type": "uint256"},
                    {"name": "vShares", "type": "uint256"},
                    {"name": "dStake", "type": "uint256"},
                    {"name": "dShares", "type": "uint256"},
                    {"name": "vDeposit", "type": "uint256"},
                    {"name": "vWithdrawal", "type": "uint256"},
                    {"name": "ePrimed", "type": "uint256"},
                    {"name": "eBanned", "type": "uint256"},
                    {"name": "live", "type": "bool"},
                ],
            }
        ],
        "stateMutability": "view",
    },
    _fn(
        "delegatorView",
        [("_delegator", "address"), ("_validator", "address")],
        [("shares", "uint256"), ("stake", "uint256")],
        "view",
    ),
    _view_structs("validatorPendingDeposits", [("_validator", "address")], DEPOSIT_FIELDS),
    _view_structs("validatorPendingWithdrawals", [("_validator", "address")], WITHDRAWAL_FIELDS),
    _view_structs(
        "delegatorPendingDeposits", [("_delegator", "address"), ("_validator", "address")], DEPOSIT_FIELDS
    ),
    _view_structs(
        "delegatorPendingWithdrawals", [("_delegator", "address"), ("_validator", "address")], WITHDRAWAL_FIELDS
    ),
    _view_structs("quarantinedValidators", [], QUARANTINE_FIELDS),
    _view_structs("bannedValidators", [], QUARANTINE_FIELDS),
    # Events
    {
        "type": "event",
        "name": "ValidatorJoin",
        "anonymous": False,
        "inputs": [
            {"name": "operator", "type": "address", "indexed": True},
            {"name": "validator", "type": "address", "indexed": True},
            {"name": "amount", "type": "uint256", "indexed": False},
        ],
    },
]

VALIDATOR_WALLET_ABI = [
    _fn("setOperator", [("_operator", "address")]),
    _fn(
        "setIdentity",
        [
            ("_moniker", "string"),
            ("_logoUri", "string"),
            ("_website", "string"),
            ("_description", "string"),
            ("_email", "string"),
            ("_twitter", "string"),
            ("_telegram", "string"),
            ("_github", "string"),
            ("_extraCid", "bytes"),
        ],
    ),
    {
        "type": "function",
        "name": "getIdentity",
        "inputs": [],
        "outputs": [
            {
                "name": "",
                "type": "tuple",
                "components": [
                    {"name": "moniker", "type": "string"},
                    {"name": "logoUri", "type": "string"},
                    {"name": "website", "type": "string"},
                    {"name": "description", "type": "string"},
                    {"name": "email", "type": "string"},
                    {"name": "twitter", "type": "string"},
                    {"name": "telegram", "type": "string"},
                    {"name": "github", "type": "string"},
                    {"name": "extraCid", "type": "bytes"},
                ],
            }
        ],
        "stateMutability": "view",
    },
    _fn("operator", [], [("", "address")], "view"),
    _fn("owner", [], [("", "address")], "view"),
]
