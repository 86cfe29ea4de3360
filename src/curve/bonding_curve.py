"""Constant-product (x * y = k) bonding curve pricing.

Pure functions: no state, no logging on the hot path. Fees are floor-rounded
and the creator fee is always carved out of the total fee, never added on top.

Buy:  base_out = virtual_base - k / (virtual_quote + quote_in - total_fee)
Sell: quote_out = virtual_quote - k / (virtual_base + base_in), fees taken
      from quote_out.
"""

from src.curve.checked import checked_add, checked_mul, mul_div, require_u64
from src.curve.constants import BPS_DENOMINATOR, MIN_TRADE_AMOUNT, PRICE_SCALE
from src.curve.models import CurveReserves, SwapQuote
from src.errors import EconomicError, ErrorKind, InputValidationError


def spot_price(virtual_quote: int, virtual_base: int) -> int:
    """Lamports per base unit, scaled by PRICE_SCALE. Zero when base is empty."""
    if virtual_base == 0:
        return 0
    return mul_div(virtual_quote, PRICE_SCALE, virtual_base)


def market_cap(price: int, total_supply: int) -> int:
    """Market cap in lamports for a PRICE_SCALE-scaled price."""
    return mul_div(price, total_supply, PRICE_SCALE)


def split_fees(amount: int, total_fee_bps: int, creator_fee_bps: int) -> tuple[int, int, int]:
    """Return (total_fee, creator_fee, protocol_fee) for an amount."""
    if not 0 <= total_fee_bps <= BPS_DENOMINATOR or not 0 <= creator_fee_bps <= BPS_DENOMINATOR:
        raise InputValidationError(
            ErrorKind.INVALID_AMOUNT,
            f"fee bps out of range: total={total_fee_bps} creator={creator_fee_bps}",
        )
    total_fee = mul_div(amount, total_fee_bps, BPS_DENOMINATOR)
    creator_fee = min(mul_div(amount, creator_fee_bps, BPS_DENOMINATOR), total_fee)
    return total_fee, creator_fee, total_fee - creator_fee


def _price_impact_bps(price_before: int, price_after: int) -> int:
    if price_before == 0:
        return 0
    return abs(price_after - price_before) * BPS_DENOMINATOR // price_before


def _require_reserves(reserves: CurveReserves) -> None:
    if reserves.virtual_quote == 0 or reserves.virtual_base == 0:
        raise InputValidationError(ErrorKind.INVALID_RESERVES, "virtual reserves must be non-zero")


def quote_buy(
    quote_in: int,
    reserves: CurveReserves,
    total_fee_bps: int,
    creator_fee_bps: int,
) -> SwapQuote:
    """Price spending ``quote_in`` lamports on base tokens."""
    require_u64(quote_in, "quote_in")
    if quote_in < MIN_TRADE_AMOUNT:
        raise InputValidationError(
            ErrorKind.TRADE_TOO_SMALL, f"quote_in {quote_in} < minimum {MIN_TRADE_AMOUNT}"
        )
    _require_reserves(reserves)

    total_fee, creator_fee, protocol_fee = split_fees(quote_in, total_fee_bps, creator_fee_bps)
    quote_in_after_fee = quote_in - total_fee
    if quote_in_after_fee == 0:
        raise InputValidationError(ErrorKind.TRADE_TOO_SMALL, "nothing left after fees")

    k = checked_mul(reserves.virtual_quote, reserves.virtual_base)
    new_virtual_quote = checked_add(reserves.virtual_quote, quote_in_after_fee)
    new_virtual_base = k // new_virtual_quote

    base_out = reserves.virtual_base - new_virtual_base
    if base_out == 0:
        raise EconomicError(ErrorKind.INSUFFICIENT_OUTPUT, "trade yields zero tokens")
    if base_out > reserves.real_base:
        raise EconomicError(
            ErrorKind.INSUFFICIENT_LIQUIDITY,
            f"base_out {base_out} exceeds real base reserve {reserves.real_base}",
        )

    new_reserves = CurveReserves(
        virtual_base=new_virtual_base,
        virtual_quote=new_virtual_quote,
        real_base=reserves.real_base - base_out,
        real_quote=checked_add(reserves.real_quote, quote_in_after_fee),
    )
    price_before = spot_price(reserves.virtual_quote, reserves.virtual_base)
    price_after = spot_price(new_virtual_quote, new_virtual_base)

    return SwapQuote(
        amount_in=quote_in,
        amount_out=base_out,
        protocol_fee=protocol_fee,
        creator_fee=creator_fee,
        total_fee=total_fee,
        new_reserves=new_reserves,
        price_before=price_before,
        price_after=price_after,
        price_impact_bps=_price_impact_bps(price_before, price_after),
    )


def quote_sell(
    base_in: int,
    reserves: CurveReserves,
    total_fee_bps: int,
    creator_fee_bps: int,
) -> SwapQuote:
    """Price selling ``base_in`` tokens back to the curve for lamports."""
    require_u64(base_in, "base_in")
    if base_in == 0:
        raise InputValidationError(ErrorKind.TRADE_TOO_SMALL, "base_in must be positive")
    _require_reserves(reserves)

    k = checked_mul(reserves.virtual_quote, reserves.virtual_base)
    new_virtual_base = checked_add(reserves.virtual_base, base_in)
    new_virtual_quote = k // new_virtual_base

    quote_out_gross = reserves.virtual_quote - new_virtual_quote
    if quote_out_gross == 0:
        raise EconomicError(ErrorKind.INSUFFICIENT_OUTPUT, "trade yields zero lamports")
    if quote_out_gross > reserves.real_quote:
        raise EconomicError(
            ErrorKind.INSUFFICIENT_LIQUIDITY,
            f"quote_out {quote_out_gross} exceeds real quote reserve {reserves.real_quote}",
        )

    total_fee, creator_fee, protocol_fee = split_fees(
        quote_out_gross, total_fee_bps, creator_fee_bps
    )
    quote_out = quote_out_gross - total_fee
    if quote_out < MIN_TRADE_AMOUNT:
        raise InputValidationError(
            ErrorKind.TRADE_TOO_SMALL, f"payout {quote_out} < minimum {MIN_TRADE_AMOUNT}"
        )

    new_reserves = CurveReserves(
        virtual_base=new_virtual_base,
        virtual_quote=new_virtual_quote,
        real_base=checked_add(reserves.real_base, base_in),
        real_quote=reserves.real_quote - quote_out_gross,
    )
    price_before = spot_price(reserves.virtual_quote, reserves.virtual_base)
    price_after = spot_price(new_virtual_quote, new_virtual_base)

    return SwapQuote(
        amount_in=base_in,
        amount_out=quote_out,
        protocol_fee=protocol_fee,
        creator_fee=creator_fee,
        total_fee=total_fee,
        new_reserves=new_reserves,
        price_before=price_before,
        price_after=price_after,
        price_impact_bps=_price_impact_bps(price_before, price_after),
    )


def quote_for_exact_base(base_out: int, reserves: CurveReserves, total_fee_bps: int) -> int:
    """Lamports to spend (fees included) to receive exactly ``base_out`` tokens.

    Rounded up by one lamport so that quote_buy() of the result never falls short.
    """
    require_u64(base_out, "base_out")
    _require_reserves(reserves)
    if not 0 < base_out < reserves.virtual_base:
        raise InputValidationError(
            ErrorKind.INVALID_AMOUNT, f"base_out {base_out} outside (0, {reserves.virtual_base})"
        )
    if not 0 <= total_fee_bps < BPS_DENOMINATOR:
        raise InputValidationError(ErrorKind.INVALID_AMOUNT, f"fee bps {total_fee_bps} out of range")

    k = checked_mul(reserves.virtual_quote, reserves.virtual_base)
    new_virtual_base = reserves.virtual_base - base_out
    # ceil so the curve ends at or below new_virtual_base
    new_virtual_quote = -(-k // new_virtual_base)
    quote_in_after_fee = new_virtual_quote - reserves.virtual_quote

    quote_in = quote_in_after_fee * BPS_DENOMINATOR // (BPS_DENOMINATOR - total_fee_bps)
    return require_u64(quote_in + 1, "quote_in")
