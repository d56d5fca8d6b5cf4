"""Amount parsing and formatting."""

import pytest

from genlayer_cli.errors import ValidationError
from genlayer_cli.helpers.amounts import format_amount, format_ether, parse_amount, parse_shares, parse_staking_amount

GEN = 10**18


class TestTransferAmounts:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("10gen", 10 * GEN),
            ("10GEN", 10 * GEN),
            ("0.5gen", GEN // 2),
            ("10", 10 * GEN),
            ("1.25", GEN + GEN // 4),
            ("5000000000000", 5_000_000_000_000),
        ],
    )
    def test_parse(self, value, expected):
        assert parse_amount(value) == expected

    @pytest.mark.parametrize("value", ["abc", "-1", "1.2.3gen", "nan"])
    def test_invalid(self, value):
        with pytest.raises(ValidationError, match="Invalid amount"):
            parse_amount(value)


class TestStakingAmounts:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("42000gen", 42000 * GEN),
            ("1.5eth", GEN + GEN // 2),
            ("1000", 1000),
            (" 7 ", 7),
        ],
    )
    def test_parse(self, value, expected):
        assert parse_staking_amount(value) == expected

    @pytest.mark.parametrize("value", ["1.5", "ten", "-5"])
    def test_invalid(self, value):
        with pytest.raises(ValidationError):
            parse_staking_amount(value)


@pytest.mark.parametrize(
    "wei,expected",
    [(0, "0"), (GEN, "1"), (GEN // 2, "0.5"), (42000 * GEN + 1, "42000.000000000000000001")],
)
def test_format_ether(wei, expected):
    assert format_ether(wei) == expected


def test_format_amount():
    assert format_amount(3 * GEN) == "3 GEN"


def test_parse_shares():
    assert parse_shares("12") == 12
    for bad in ("0", "-3", "1.5", "x"):
        with pytest.raises(ValidationError, match="Must be a positive whole number"):
            parse_shares(bad)
