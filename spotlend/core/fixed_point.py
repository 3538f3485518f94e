"""
Fixed-point amount arithmetic (18 decimals).

Amounts are plain Python ints scaled by ``SCALE``. Intermediate products are
computed with unbounded ints; only results are range-checked against
``MAX_AMOUNT`` (an unsigned 256-bit word). All division is
floor division, which for the non-negative operands used here truncates
toward zero.
"""

from __future__ import annotations

import re

from .errors import AmountOverflowError, DivisionByZeroError, ValidationError


SCALE = 10**18
DECIMALS = 18
BPS_DENOM = 10_000
MAX_AMOUNT = 2**256 - 1

_DECIMAL_RE = re.compile(r"^([0-9]+)(?:\.([0-9]*))?$")


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def check_amount(value: int, name: str = "amount") -> int:
    """Return ``value`` if it is a valid amount, else raise."""
    _require_int(name, value)
    if value < 0:
        raise AmountOverflowError(f"{name} underflows: {value} < 0")
    if value > MAX_AMOUNT:
        raise AmountOverflowError(f"{name} overflows: {value} > MAX_AMOUNT")
    return value


def require_amount(value: int, name: str = "amount", *, positive: bool = True) -> int:
    """
    Validate a caller-supplied amount.

    Unlike ``check_amount`` this treats a negative or (with ``positive``) zero
    input as a bad request and raises ``ValidationError``.
    """
    _require_int(name, value)
    if value < 0 or (positive and value == 0):
        raise ValidationError(f"{name} must be {'positive' if positive else 'non-negative'}: {value}")
    return check_amount(value, name)


def add(a: int, b: int) -> int:
    return check_amount(check_amount(a, "a") + check_amount(b, "b"), "a + b")


def sub(a: int, b: int) -> int:
    return check_amount(check_amount(a, "a") - check_amount(b, "b"), "a - b")


def mul(a: int, b: int) -> int:
    return check_amount(check_amount(a, "a") * check_amount(b, "b"), "a * b")


def div(a: int, b: int) -> int:
    """Floor division ``a // b``."""
    check_amount(a, "a")
    check_amount(b, "b")
    if b == 0:
        raise DivisionByZeroError("division by zero")
    return a // b


def mul_div(a: int, b: int, denominator: int) -> int:
    """
    Compute ``floor(a * b / denominator)``.

    The product is not range-checked, only the quotient. This is what lets
    ``reserve_in * reserve_out`` exceed 256 bits without failing a swap.
    """
    check_amount(a, "a")
    check_amount(b, "b")
    check_amount(denominator, "denominator")
    if denominator == 0:
        raise DivisionByZeroError("division by zero")
    return check_amount((a * b) // denominator, "a * b / denominator")


def apply_bps(amount: int, bps: int) -> int:
    """Compute ``floor(amount * bps / 10_000)``."""
    _require_int("bps", bps)
    if not (0 <= bps <= BPS_DENOM):
        raise ValidationError(f"bps must be in [0, {BPS_DENOM}]: {bps}")
    return mul_div(amount, bps, BPS_DENOM)


def to_units(text: str | int) -> int:
    """
    Parse a decimal string such as ``"0.01"`` into a scaled amount.

    Exact: no float is involved, and more than ``DECIMALS`` fractional digits
    is rejected instead of rounded.
    """
    if isinstance(text, bool):
        raise TypeError("amount text must be a str or int")
    if isinstance(text, int):
        return mul(text, SCALE)
    if not isinstance(text, str):
        raise TypeError("amount text must be a str or int")
    m = _DECIMAL_RE.fullmatch(text.strip())
    if m is None:
        raise ValidationError(f"amount must be a non-negative decimal: {text!r}")
    whole, frac = m.group(1), m.group(2) or ""
    if len(frac) > DECIMALS:
        raise ValidationError(f"amount has more than {DECIMALS} decimals: {text!r}")
    return check_amount(int(whole) * SCALE + int(frac.ljust(DECIMALS, "0")))


def format_units(amount: int) -> str:
    """Render a scaled amount as a decimal string, e.g. ``3 * SCALE -> "3.0"``."""
    check_amount(amount)
    whole, frac = divmod(amount, SCALE)
    frac_text = f"{frac:0{DECIMALS}d}".rstrip("0") or "0"
    return f"{whole}.{frac_text}"
