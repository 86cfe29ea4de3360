"""Checked integer helpers.

Python ints never wrap, so the machine-width limits are enforced explicitly:
values crossing u64 (or u128 for intermediate products) reject the operation.
"""

from src.curve.constants import U64_MAX, U128_MAX
from src.errors import EconomicError, ErrorKind, InputValidationError


def require_u64(value: int, name: str = "amount") -> int:
    if value < 0 or value > U64_MAX:
        raise InputValidationError(ErrorKind.INVALID_AMOUNT, f"{name}={value} outside u64 range")
    return value


def checked_add(a: int, b: int, *, limit: int = U64_MAX) -> int:
    result = a + b
    if result > limit:
        raise EconomicError(ErrorKind.MATH_OVERFLOW, f"{a} + {b} overflows")
    return result


def checked_sub(a: int, b: int) -> int:
    if b > a:
        raise EconomicError(ErrorKind.MATH_OVERFLOW, f"{a} - {b} underflows")
    return a - b


def checked_mul(a: int, b: int, *, limit: int = U128_MAX) -> int:
    result = a * b
    if result > limit:
        raise EconomicError(ErrorKind.MATH_OVERFLOW, f"{a} * {b} overflows")
    return result


def saturating_sub(a: int, b: int) -> int:
    return a - b if a > b else 0


def mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator) with a u128 intermediate and u64 result."""
    if denominator == 0:
        raise EconomicError(ErrorKind.MATH_OVERFLOW, "division by zero")
    result = checked_mul(a, b) // denominator
    if result > U64_MAX:
        raise EconomicError(ErrorKind.MATH_OVERFLOW, f"{a} * {b} / {denominator} exceeds u64")
    return result
