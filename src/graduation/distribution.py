"""Seed liquidity layout around the active bin.

Bins below the active bin hold the token, bins above hold SOL,
and the active bin holds both.
"""

from dataclasses import dataclass
from enum import StrEnum

from src.errors import ErrorKind, InputValidationError

DEFAULT_BINS_PER_SIDE = 10
MAX_BINS_PER_SIDE = 32

BELOW_PCT = 40
ABOVE_PCT = 40
ACTIVE_PCT = 20


class DistributionStrategy(StrEnum):
    BALANCED = "balanced"
    TRIANGULAR = "triangular"


@dataclass(frozen=True)
class BinDeposit:
    bin_index: int
    base_amount: int
    quote_amount: int

    @property
    def allocation(self) -> int:
        return self.base_amount + self.quote_amount


def _require_bins(bins: int) -> None:
    if bins < 0 or bins > MAX_BINS_PER_SIDE:
        raise InputValidationError(
            ErrorKind.INVALID_AMOUNT, f"bins per side {bins} outside 0..{MAX_BINS_PER_SIDE}"
        )


def balanced_deposits(
    active_bin: int, bins_per_side: int, total_base: int, total_quote: int
) -> list[BinDeposit]:
    """40% of the base budget spread below, 40% of the quote budget above,
    and 10% of each (20% split evenly between the two) in the active bin.

    Always 2 * bins_per_side + 1 entries in ascending bin order.
    """
    _require_bins(bins_per_side)
    if total_base < 0 or total_quote < 0:
        raise InputValidationError(ErrorKind.INVALID_AMOUNT, "negative liquidity budget")

    if bins_per_side:
        base_per_bin = total_base * BELOW_PCT // 100 // bins_per_side
        quote_per_bin = total_quote * ABOVE_PCT // 100 // bins_per_side
    else:
        base_per_bin = quote_per_bin = 0

    deposits = [
        BinDeposit(active_bin - offset, base_per_bin, 0) for offset in range(bins_per_side, 0, -1)
    ]
    deposits.append(
        BinDeposit(
            active_bin,
            total_base * ACTIVE_PCT // 200,
            total_quote * ACTIVE_PCT // 200,
        )
    )
    deposits.extend(
        BinDeposit(active_bin + offset, 0, quote_per_bin) for offset in range(1, bins_per_side + 1)
    )
    return deposits


def balanced_distribution(
    active_bin: int, bins_per_side: int, total_base: int, total_quote: int
) -> tuple[list[int], list[int]]:
    """Parallel (bin_ids, allocations) for the balanced layout."""
    deposits = balanced_deposits(active_bin, bins_per_side, total_base, total_quote)
    return [d.bin_index for d in deposits], [d.allocation for d in deposits]


def triangular_deposits(
    active_bin: int, num_bins: int, total_base: int, total_quote: int
) -> list[BinDeposit]:
    """Weights peak at the active bin: w_i = n - |i - n/2| over n bins.

    The active bin takes half its weighted share of each budget. Empty bins
    are skipped.
    """
    if num_bins < 0 or num_bins > 2 * MAX_BINS_PER_SIDE + 1:
        raise InputValidationError(ErrorKind.INVALID_AMOUNT, f"num_bins {num_bins} out of range")
    if num_bins == 0:
        return []

    half = num_bins // 2
    start = active_bin - half
    weights = [num_bins - abs(i - half) for i in range(num_bins)]
    total_weight = sum(weights)

    deposits = []
    for i, weight in enumerate(weights):
        bin_index = start + i
        if bin_index < active_bin:
            base, quote = total_base * weight // total_weight, 0
        elif bin_index > active_bin:
            base, quote = 0, total_quote * weight // total_weight
        else:
            base = total_base * weight // total_weight // 2
            quote = total_quote * weight // total_weight // 2
        if base or quote:
            deposits.append(BinDeposit(bin_index, base, quote))
    return deposits


def triangular_distribution(
    active_bin: int, num_bins: int, total_base: int, total_quote: int
) -> tuple[list[int], list[int]]:
    deposits = triangular_deposits(active_bin, num_bins, total_base, total_quote)
    return [d.bin_index for d in deposits], [d.allocation for d in deposits]


def distribute(
    strategy: DistributionStrategy,
    active_bin: int,
    bins_per_side: int,
    total_base: int,
    total_quote: int,
) -> list[BinDeposit]:
    if strategy == DistributionStrategy.TRIANGULAR:
        return triangular_deposits(active_bin, 2 * bins_per_side + 1, total_base, total_quote)
    return balanced_deposits(active_bin, bins_per_side, total_base, total_quote)
