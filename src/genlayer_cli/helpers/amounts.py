"""GEN amount parsing and formatting (18 decimals, like ether)."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from web3 import Web3

from ..errors import ValidationError

WEI_PER_GEN = 10**18
# Plain integers above this are taken as wei by ``account send``
WEI_THRESHOLD = 1_000_000_000_000


def _to_wei(value: str, original: str) -> int:
    try:
        parsed = Decimal(value.strip())
    except InvalidOperation:
        raise ValidationError(f"Invalid amount: {original}")
    if not parsed.is_finite() or parsed < 0:
        raise ValidationError(f"Invalid amount: {original}")
    try:
        return int(Web3.to_wei(parsed, "ether"))
    except ValueError as e:
        raise ValidationError(f"Invalid amount: {original} ({e})")


def parse_amount(amount: str) -> int:
    """Transfer amount: ``10gen`` and ``10`` are GEN, large integers are wei."""
    lower = amount.strip().lower()
    if lower.endswith("gen"):
        return _to_wei(lower[:-3], amount)
    try:
        as_int = int(lower)
    except ValueError:
        return _to_wei(lower, amount)
    if as_int > WEI_THRESHOLD:
        return as_int
    return _to_wei(lower, amount)


def parse_staking_amount(amount: str) -> int:
    """Staking amount: ``42000gen``/``42000eth`` are GEN, a plain number is wei."""
    lower = amount.strip().lower()
    if lower.endswith("gen") or lower.endswith("eth"):
        return _to_wei(lower[:-3], amount)
    try:
        value = int(lower)
    except ValueError:
        raise ValidationError(
            f"Invalid amount: {amount}. Use wei or a 'gen'/'eth' suffix (e.g. '42000gen')."
        )
    if value < 0:
        raise ValidationError(f"Invalid amount: {amount}")
    return value


def format_ether(wei: int) -> str:
    sign = "-" if wei < 0 else ""
    whole, frac = divmod(abs(int(wei)), WEI_PER_GEN)
    if not frac:
        return f"{sign}{whole}"
    return f"{sign}{whole}.{str(frac).rjust(18, '0').rstrip('0')}"


def format_amount(wei: int) -> str:
    return f"{format_ether(wei)} GEN"


def parse_shares(shares: str) -> int:
    try:
        value = int(str(shares).strip())
    except ValueError:
        value = 0
    if value <= 0:
        raise ValidationError(f'Invalid shares value: "{shares}". Must be a positive whole number.')
    return value
