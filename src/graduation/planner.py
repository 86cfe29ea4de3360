"""Graduation planning: where the curve's liquidity lands on the binned venue.

A plan is pure arithmetic over the final curve price and the migrated
balances. It never moves value; the Launchpad hands it to the venue.
"""

from dataclasses import dataclass, field

from loguru import logger

from src.curve.constants import LAMPORTS_PER_SOL, TOKEN_DECIMALS
from src.errors import ConfigurationError, EconomicError, ErrorKind
from src.graduation.distribution import (
    DEFAULT_BINS_PER_SIDE,
    MAX_BINS_PER_SIDE,
    BinDeposit,
    DistributionStrategy,
    distribute,
)
from src.graduation.dlmm_math import (
    align_to_array_lower,
    fixed_to_bin_index,
    price_to_fixed,
)

MIN_BIN_STEP_BPS = 1
MAX_BIN_STEP_BPS = 500

# Fixed absolute split of the curve vault at graduation.
GRADUATION_FUNDS_REQUIRED = 85 * LAMPORTS_PER_SOL
CREATOR_REWARD = 2 * LAMPORTS_PER_SOL
TREASURY_FEE = 3 * LAMPORTS_PER_SOL

# Venue pool fee schedule (micro-bps splits are of the collected fee).
HOLDERS_SPLIT_MICROBPS = 300_000
NFT_SPLIT_MICROBPS = 200_000
VENUE_BASE_FEE_BPS = 30
MAX_DYNAMIC_FEE_BPS = 100


@dataclass(frozen=True)
class VenueFeeConfig:
    split_holders_microbps: int
    split_nft_microbps: int
    split_creator_extra_microbps: int
    base_fee_bps: int
    creator_cut_bps: int
    dynamic_fee_enabled: bool
    max_dynamic_fee_bps: int


def graduation_fee_config(creator_fee_bps: int) -> VenueFeeConfig:
    return VenueFeeConfig(
        split_holders_microbps=HOLDERS_SPLIT_MICROBPS,
        split_nft_microbps=NFT_SPLIT_MICROBPS,
        split_creator_extra_microbps=0,
        base_fee_bps=VENUE_BASE_FEE_BPS,
        creator_cut_bps=creator_fee_bps,
        dynamic_fee_enabled=True,
        max_dynamic_fee_bps=MAX_DYNAMIC_FEE_BPS,
    )


@dataclass(frozen=True)
class GraduationSplit:
    creator_reward: int
    treasury_fee: int
    lp_quote: int


def graduation_split(vault_balance: int) -> GraduationSplit:
    """Creator and treasury take fixed amounts; the venue gets the rest.

    The amounts are absolute and do not follow the configured threshold.
    """
    if vault_balance < GRADUATION_FUNDS_REQUIRED:
        raise EconomicError(
            ErrorKind.INSUFFICIENT_GRADUATION_FUNDS,
            f"vault holds {vault_balance}, graduation needs {GRADUATION_FUNDS_REQUIRED}",
        )
    return GraduationSplit(
        creator_reward=CREATOR_REWARD,
        treasury_fee=TREASURY_FEE,
        lp_quote=vault_balance - CREATOR_REWARD - TREASURY_FEE,
    )


@dataclass(frozen=True)
class GraduationPlan:
    price_scaled: int
    price_fixed: int
    bin_step_bps: int
    active_bin_index: int
    bin_array_lower_bound: int
    base_mint_is_primary: bool
    strategy: DistributionStrategy
    bin_ids: list[int] = field(default_factory=list)
    per_bin_allocation: list[int] = field(default_factory=list)
    deposits: list[BinDeposit] = field(default_factory=list)

    @property
    def bin_array_lower_bounds(self) -> list[int]:
        """Every bin array the deposits touch, ascending."""
        return sorted({align_to_array_lower(b) for b in self.bin_ids} | {self.bin_array_lower_bound})

    @property
    def total_allocation(self) -> int:
        return sum(self.per_bin_allocation)


def plan_graduation(
    price_scaled: int,
    total_base: int,
    total_quote: int,
    *,
    base_mint_is_primary: bool,
    bin_step_bps: int,
    bins_per_side: int = DEFAULT_BINS_PER_SIDE,
    strategy: DistributionStrategy = DistributionStrategy.BALANCED,
    decimals: int = TOKEN_DECIMALS,
) -> GraduationPlan:
    if not MIN_BIN_STEP_BPS <= bin_step_bps <= MAX_BIN_STEP_BPS:
        raise ConfigurationError(
            ErrorKind.INVALID_CONFIG,
            f"bin step {bin_step_bps} outside {MIN_BIN_STEP_BPS}..{MAX_BIN_STEP_BPS}",
        )
    if not 0 <= bins_per_side <= MAX_BINS_PER_SIDE:
        raise ConfigurationError(
            ErrorKind.INVALID_CONFIG, f"bins per side {bins_per_side} outside 0..{MAX_BINS_PER_SIDE}"
        )

    price_fixed = price_to_fixed(price_scaled, decimals)
    active_bin = fixed_to_bin_index(price_fixed, bin_step_bps)
    deposits = distribute(strategy, active_bin, bins_per_side, total_base, total_quote)

    plan = GraduationPlan(
        price_scaled=price_scaled,
        price_fixed=price_fixed,
        bin_step_bps=bin_step_bps,
        active_bin_index=active_bin,
        bin_array_lower_bound=align_to_array_lower(active_bin),
        base_mint_is_primary=base_mint_is_primary,
        strategy=strategy,
        bin_ids=[d.bin_index for d in deposits],
        per_bin_allocation=[d.allocation for d in deposits],
        deposits=deposits,
    )
    logger.debug(
        f"[GRAD] Plan: price={price_scaled} active_bin={active_bin} "
        f"step={bin_step_bps}bps bins={len(deposits)} primary={base_mint_is_primary}"
    )
    return plan
