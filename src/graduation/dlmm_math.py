"""Q64.64 fixed-point price <-> bin math for the binned liquidity venue.

Integer-only so every implementation lands on bit-identical bin indices.

    bin_index = floor(ln(price) / ln(1 + step))
    price     = (1 + step) ^ bin_index

ln(1 + step) is taken as ``step`` (first-order). Downstream consumers depend on
that rounding, so it must not be replaced by an exact logarithm. ln(price) uses
the bit length for the integer part of log2 and 64 further fractional bits by
repeated squaring, then scales by ln(2).
"""

from src.curve.checked import require_u64
from src.curve.constants import BPS_DENOMINATOR, TOKEN_DECIMALS, U128_MAX
from src.errors import EconomicError, ErrorKind, InputValidationError

Q64 = 1 << 64
Q128 = 1 << 128

BIN_ARRAY_SIZE = 64

# ln(2) * 2^64
LN2_Q64 = 12786308645202655660

I32_MIN = -(1 << 31)
I32_MAX = (1 << 31) - 1

_FRACTION_BITS = 64


def price_to_fixed(price_scaled: int, decimals: int = TOKEN_DECIMALS) -> int:
    """PRICE_SCALE-scaled lamports-per-unit price -> Q64.64."""
    require_u64(price_scaled, "price")
    return price_scaled * Q64 // 10**decimals


def fixed_to_price(price_fixed: int, decimals: int = TOKEN_DECIMALS) -> int:
    """Q64.64 -> PRICE_SCALE-scaled price (floor)."""
    return price_fixed * 10**decimals // Q64


def _log2_q64(value: int) -> int:
    """log2 of a Q64.64 value >= 1.0, as Q64.64."""
    integer_part = value.bit_length() - 1 - 64
    y = value >> integer_part  # normalised into [1.0, 2.0)
    fraction = 0
    for i in range(_FRACTION_BITS):
        y = (y * y) >> 64
        if y >= 2 * Q64:
            y >>= 1
            fraction |= 1 << (_FRACTION_BITS - 1 - i)
    return (integer_part << 64) | fraction


def integer_ln(value: int) -> int:
    """Natural log of a Q64.64 value, as signed Q64.64. ln(x) = -ln(1/x) below 1.0."""
    if value <= 0:
        raise InputValidationError(ErrorKind.INVALID_AMOUNT, "ln of a non-positive price")
    if value < Q64:
        return -integer_ln(Q128 // value)
    return (_log2_q64(value) * LN2_Q64) >> 64


def ln_one_plus_step(bin_step_bps: int) -> int:
    """ln(1 + step) ≈ step, in Q64.64."""
    return Q64 * bin_step_bps // BPS_DENOMINATOR


def _require_bin_step(bin_step_bps: int) -> None:
    if bin_step_bps <= 0 or bin_step_bps >= BPS_DENOMINATOR:
        raise InputValidationError(ErrorKind.INVALID_AMOUNT, f"bin step {bin_step_bps} bps out of range")


def _require_i32(bin_index: int) -> int:
    if not I32_MIN <= bin_index <= I32_MAX:
        raise EconomicError(ErrorKind.MATH_OVERFLOW, f"bin index {bin_index} outside i32")
    return bin_index


def fixed_to_bin_index(price_fixed: int, bin_step_bps: int) -> int:
    _require_bin_step(bin_step_bps)
    return _require_i32(integer_ln(price_fixed) // ln_one_plus_step(bin_step_bps))


def pow_q64(base: int, exponent: int) -> int:
    """base^exponent for Q64.64 base and non-negative integer exponent, O(log n)."""
    result = Q64
    b = base
    e = exponent
    while e > 0:
        if e & 1:
            result = (result * b) >> 64
            if result > U128_MAX:
                raise EconomicError(ErrorKind.MATH_OVERFLOW, "bin price exceeds Q64.64 range")
        e >>= 1
        if e:
            b = (b * b) >> 64
            if b > U128_MAX:
                raise EconomicError(ErrorKind.MATH_OVERFLOW, "bin price exceeds Q64.64 range")
    return result


def bin_index_to_fixed(bin_index: int, bin_step_bps: int) -> int:
    _require_bin_step(bin_step_bps)
    _require_i32(bin_index)
    one_plus_step = Q64 + Q64 * bin_step_bps // BPS_DENOMINATOR
    if bin_index >= 0:
        return pow_q64(one_plus_step, bin_index)
    denominator = pow_q64(one_plus_step, -bin_index)
    if denominator == 0:
        return 0
    return Q128 // denominator


def align_to_array_lower(bin_index: int, array_size: int = BIN_ARRAY_SIZE) -> int:
    """Lower bound of the bin array holding ``bin_index`` (floors toward -inf: -1 -> -64)."""
    return (bin_index // array_size) * array_size


def bin_array_offset(bin_index: int, lower_bin_index: int) -> int:
    return bin_index - lower_bin_index
