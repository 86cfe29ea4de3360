import pytest

from src.curve.constants import LAMPORTS_PER_SOL
from src.errors import ConfigurationError, EconomicError, ErrorKind
from src.graduation.distribution import DistributionStrategy
from src.graduation.dlmm_math import Q64, align_to_array_lower, fixed_to_bin_index, price_to_fixed
from src.graduation.planner import (
    CREATOR_REWARD,
    GRADUATION_FUNDS_REQUIRED,
    TREASURY_FEE,
    graduation_fee_config,
    graduation_split,
    plan_graduation,
)

LP_BASE = 200_000_000 * 10**9
LP_QUOTE = 80 * LAMPORTS_PER_SOL


class TestGraduationSplit:
    def test_exact_threshold(self):
        split = graduation_split(85 * LAMPORTS_PER_SOL)
        assert split.creator_reward == 2 * LAMPORTS_PER_SOL
        assert split.treasury_fee == 3 * LAMPORTS_PER_SOL
        assert split.lp_quote == 80 * LAMPORTS_PER_SOL

    def test_surplus_goes_to_lp(self):
        split = graduation_split(100 * LAMPORTS_PER_SOL)
        assert split.creator_reward == CREATOR_REWARD
        assert split.treasury_fee == TREASURY_FEE
        assert split.lp_quote == 95 * LAMPORTS_PER_SOL

    def test_rejects_underfunded_vault(self):
        with pytest.raises(EconomicError) as exc:
            graduation_split(GRADUATION_FUNDS_REQUIRED - 1)
        assert exc.value.kind == ErrorKind.INSUFFICIENT_GRADUATION_FUNDS


def test_fee_config_carries_creator_cut():
    config = graduation_fee_config(20)
    assert config.creator_cut_bps == 20
    assert config.base_fee_bps == 30
    assert config.split_holders_microbps == 300_000
    assert config.split_nft_microbps == 200_000
    assert config.dynamic_fee_enabled is True
    assert config.max_dynamic_fee_bps == 100


class TestPlanGraduation:
    def test_unit_price_plan(self):
        plan = plan_graduation(
            10**9, LP_BASE, LP_QUOTE, base_mint_is_primary=True, bin_step_bps=25
        )
        assert plan.price_fixed == Q64
        assert plan.active_bin_index == 0
        assert plan.bin_array_lower_bound == 0
        assert plan.bin_ids == list(range(-10, 11))
        assert plan.bin_array_lower_bounds == [-64, 0]
        assert plan.base_mint_is_primary is True
        assert len(plan.per_bin_allocation) == 21

    def test_active_bin_from_price(self):
        price = 412  # x1e9 lamports per unit, late-curve order of magnitude
        plan = plan_graduation(price, LP_BASE, LP_QUOTE, base_mint_is_primary=False, bin_step_bps=25)
        assert plan.active_bin_index < 0
        assert plan.bin_array_lower_bound == align_to_array_lower(plan.active_bin_index)
        assert plan.active_bin_index == fixed_to_bin_index(price_to_fixed(price), 25)
        assert plan.base_mint_is_primary is False

    def test_bins_per_side_and_strategy(self):
        plan = plan_graduation(
            10**9,
            LP_BASE,
            LP_QUOTE,
            base_mint_is_primary=True,
            bin_step_bps=100,
            bins_per_side=3,
            strategy=DistributionStrategy.TRIANGULAR,
        )
        assert plan.bin_ids == [-3, -2, -1, 0, 1, 2, 3]
        assert plan.strategy == DistributionStrategy.TRIANGULAR
        assert plan.total_allocation == sum(d.allocation for d in plan.deposits)

    @pytest.mark.parametrize("bin_step", [0, 501])
    def test_rejects_bin_step_out_of_range(self, bin_step):
        with pytest.raises(ConfigurationError) as exc:
            plan_graduation(10**9, LP_BASE, LP_QUOTE, base_mint_is_primary=True, bin_step_bps=bin_step)
        assert exc.value.kind == ErrorKind.INVALID_CONFIG

    def test_rejects_too_many_bins(self):
        with pytest.raises(ConfigurationError):
            plan_graduation(
                10**9, LP_BASE, LP_QUOTE, base_mint_is_primary=True, bin_step_bps=25, bins_per_side=33
            )
