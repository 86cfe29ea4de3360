import pytest

from src.errors import InputValidationError
from src.graduation.distribution import (
    DistributionStrategy,
    balanced_deposits,
    balanced_distribution,
    distribute,
    triangular_deposits,
    triangular_distribution,
)

BUDGET = 1_000_000_000_000


class TestBalanced:
    def test_layout_length_and_order(self):
        bin_ids, allocations = balanced_distribution(100, 10, BUDGET, BUDGET)
        assert len(bin_ids) == len(allocations) == 21
        assert bin_ids == list(range(90, 111))

    def test_forty_forty_twenty(self):
        bin_ids, allocations = balanced_distribution(0, 10, BUDGET, BUDGET)
        below = sum(a for b, a in zip(bin_ids, allocations) if b < 0)
        active = sum(a for b, a in zip(bin_ids, allocations) if b == 0)
        above = sum(a for b, a in zip(bin_ids, allocations) if b > 0)
        assert below == BUDGET * 40 // 100
        assert above == BUDGET * 40 // 100
        assert active == BUDGET * 20 // 100

    def test_conserves_budget_within_rounding(self):
        budget = 999_999_999_997
        _, allocations = balanced_distribution(-7, 7, budget, budget)
        assert budget - len(allocations) - 1 <= sum(allocations) <= budget

    def test_below_holds_base_above_holds_quote(self):
        deposits = balanced_deposits(5, 3, BUDGET, 2 * BUDGET)
        for d in deposits:
            if d.bin_index < 5:
                assert d.quote_amount == 0 and d.base_amount > 0
            elif d.bin_index > 5:
                assert d.base_amount == 0 and d.quote_amount > 0
            else:
                assert d.base_amount == BUDGET // 10
                assert d.quote_amount == 2 * BUDGET // 10

    def test_even_split_per_side(self):
        deposits = balanced_deposits(0, 4, BUDGET, BUDGET)
        below = {d.base_amount for d in deposits if d.bin_index < 0}
        above = {d.quote_amount for d in deposits if d.bin_index > 0}
        assert below == {BUDGET * 40 // 100 // 4}
        assert above == {BUDGET * 40 // 100 // 4}

    def test_zero_bins_is_active_only(self):
        bin_ids, allocations = balanced_distribution(42, 0, BUDGET, BUDGET)
        assert bin_ids == [42]
        assert allocations == [BUDGET // 5]

    def test_rejects_negative_bins(self):
        with pytest.raises(InputValidationError):
            balanced_distribution(0, -1, BUDGET, BUDGET)


class TestTriangular:
    def test_weights_peak_at_active(self):
        deposits = triangular_deposits(10, 5, 19_000, 19_000)
        assert [d.bin_index for d in deposits] == [8, 9, 10, 11, 12]
        assert deposits[0].base_amount == 3_000
        assert deposits[1].base_amount == 4_000
        assert deposits[2].base_amount == 2_500
        assert deposits[2].quote_amount == 2_500
        assert deposits[3].quote_amount == 4_000
        assert deposits[4].quote_amount == 3_000

    def test_skips_empty_bins(self):
        bin_ids, _ = triangular_distribution(0, 5, 0, 19_000)
        assert bin_ids == [0, 1, 2]

    def test_no_bins(self):
        assert triangular_deposits(0, 0, BUDGET, BUDGET) == []


def test_distribute_selects_strategy():
    balanced = distribute(DistributionStrategy.BALANCED, 0, 3, BUDGET, BUDGET)
    triangular = distribute(DistributionStrategy.TRIANGULAR, 0, 3, BUDGET, BUDGET)
    assert len(balanced) == 7
    assert [d.bin_index for d in triangular] == list(range(-3, 4))
    assert balanced != triangular
