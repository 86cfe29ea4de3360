"""Tests for the launch lifecycle state machine.

Synchronous; the launch is driven directly without collaborators.
"""

import pytest

from src.curve.constants import (
    INITIAL_VIRTUAL_BASE,
    INITIAL_VIRTUAL_QUOTE,
    LAMPORTS_PER_SOL,
    MIN_TRADE_AMOUNT,
    MIN_VAULT_RESERVE,
)
from src.errors import AuthorizationError, EconomicError, ErrorKind, InputValidationError, StateError
from src.launch.metadata import LaunchMetadata
from src.launch.state import Launch, LaunchStatus

FEE_BPS = 100


def _launch(threshold: int = 85 * LAMPORTS_PER_SOL) -> Launch:
    return Launch.create(
        mint="mint_test_0001",
        creator="creator_0001",
        metadata=LaunchMetadata.create("Test Token", "TEST", "https://example.com/t.json"),
        graduation_threshold=threshold,
        timestamp=1_700_000_000,
    )


class TestCreate:
    def test_initial_reserves_and_supply(self):
        launch = _launch()
        assert launch.status == LaunchStatus.ACTIVE
        assert launch.reserves.virtual_quote == INITIAL_VIRTUAL_QUOTE
        assert launch.reserves.virtual_base == INITIAL_VIRTUAL_BASE
        assert launch.reserves.real_quote == 0
        assert launch.curve_tokens == 800_000_000 * 10**9
        assert launch.graduation_tokens == 200_000_000 * 10**9
        assert launch.reserves.real_base == launch.curve_tokens
        assert launch.creator_fee_bps == 20
        assert launch.holder_count == 1
        assert launch.created_at == 1_700_000_000

    def test_rejects_non_positive_threshold(self):
        with pytest.raises(InputValidationError):
            _launch(threshold=0)

    def test_progress_starts_at_zero(self):
        assert _launch().progress_pct == 0


class TestBuy:
    def test_buy_updates_counters(self):
        launch = _launch()
        outcome = launch.apply_buy(LAMPORTS_PER_SOL, 0, FEE_BPS)
        assert launch.tokens_sold == outcome.quote.amount_out
        assert launch.buy_volume == LAMPORTS_PER_SOL - outcome.quote.total_fee
        assert launch.trade_count == 1
        assert launch.reserves == outcome.quote.new_reserves
        assert outcome.threshold_crossed is False

    def test_slippage_failure_leaves_state_unchanged(self):
        launch = _launch()
        expected = launch.preview_buy(LAMPORTS_PER_SOL, 0, FEE_BPS).amount_out
        before = launch.reserves
        with pytest.raises(EconomicError) as exc:
            launch.apply_buy(LAMPORTS_PER_SOL, expected + 1, FEE_BPS)
        assert exc.value.kind == ErrorKind.SLIPPAGE_EXCEEDED
        assert launch.reserves == before
        assert launch.trade_count == 0
        assert launch.tokens_sold == 0

        outcome = launch.apply_buy(LAMPORTS_PER_SOL, expected, FEE_BPS)
        assert outcome.quote.amount_out == expected

    def test_threshold_crossing_halts_trading(self):
        # 1 SOL nets 990_000_000 after the 1% fee, one lamport short
        launch = _launch(threshold=990_000_001)
        first = launch.apply_buy(LAMPORTS_PER_SOL, 0, FEE_BPS)
        assert first.threshold_crossed is False
        assert launch.reserves.real_quote == launch.graduation_threshold - 1
        assert launch.status == LaunchStatus.ACTIVE

        second = launch.apply_buy(MIN_TRADE_AMOUNT, 0, FEE_BPS)
        assert second.threshold_crossed is True
        assert launch.status == LaunchStatus.PENDING_GRADUATION
        assert launch.progress_pct == 100

        with pytest.raises(StateError) as exc:
            launch.apply_buy(LAMPORTS_PER_SOL, 0, FEE_BPS)
        assert exc.value.kind == ErrorKind.LAUNCH_NOT_ACTIVE

    def test_price_and_market_cap_rise(self):
        launch = _launch()
        price, mcap = launch.current_price(), launch.market_cap()
        launch.apply_buy(5 * LAMPORTS_PER_SOL, 0, FEE_BPS)
        assert launch.current_price() > price
        assert launch.market_cap() > mcap


class TestSell:
    def _bought(self) -> tuple[Launch, int]:
        launch = _launch()
        outcome = launch.apply_buy(LAMPORTS_PER_SOL, 0, FEE_BPS)
        return launch, outcome.quote.amount_out

    def test_sell_updates_counters(self):
        launch, tokens = self._bought()
        outcome = launch.apply_sell(tokens // 2, 0, FEE_BPS)
        assert launch.tokens_sold == tokens - tokens // 2
        assert launch.sell_volume == outcome.quote.amount_out
        assert launch.trade_count == 2

    def test_vault_floor_rejects_and_leaves_state(self):
        launch, tokens = self._bought()
        before = launch.reserves
        with pytest.raises(EconomicError) as exc:
            launch.apply_sell(tokens // 2, 0, FEE_BPS, vault_balance=MIN_VAULT_RESERVE)
        assert exc.value.kind == ErrorKind.INSUFFICIENT_LIQUIDITY
        assert launch.reserves == before
        assert launch.trade_count == 1

    def test_slippage_on_sell(self):
        launch, tokens = self._bought()
        with pytest.raises(EconomicError) as exc:
            launch.apply_sell(tokens // 2, LAMPORTS_PER_SOL, FEE_BPS)
        assert exc.value.kind == ErrorKind.SLIPPAGE_EXCEEDED

    def test_cannot_sell_more_than_the_curve_holds(self):
        launch, tokens = self._bought()
        with pytest.raises(EconomicError) as exc:
            launch.apply_sell(tokens * 2, 0, FEE_BPS)
        assert exc.value.kind == ErrorKind.INSUFFICIENT_LIQUIDITY


class TestLifecycle:
    def test_graduate_requires_threshold(self):
        launch = _launch()
        with pytest.raises(StateError) as exc:
            launch.graduate("pool", 1)
        assert exc.value.kind == ErrorKind.THRESHOLD_NOT_REACHED

    def test_graduate_once(self):
        launch = _launch(threshold=LAMPORTS_PER_SOL)
        launch.apply_buy(2 * LAMPORTS_PER_SOL, 0, FEE_BPS)
        launch.graduate("pool_address", 1_700_000_100)
        assert launch.status == LaunchStatus.GRADUATED
        assert launch.pool == "pool_address"
        assert launch.graduated_at == 1_700_000_100

        with pytest.raises(StateError) as exc:
            launch.graduate("pool_address", 1_700_000_200)
        assert exc.value.kind == ErrorKind.ALREADY_GRADUATED

    def test_cancel_by_creator(self):
        launch = _launch()
        launch.cancel("creator_0001")
        assert launch.status == LaunchStatus.CANCELLED
        with pytest.raises(StateError) as exc:
            launch.apply_buy(LAMPORTS_PER_SOL, 0, FEE_BPS)
        assert exc.value.kind == ErrorKind.LAUNCH_NOT_ACTIVE

    def test_cancel_by_stranger(self):
        launch = _launch()
        with pytest.raises(AuthorizationError) as exc:
            launch.cancel("someone_else")
        assert exc.value.kind == ErrorKind.INVALID_CREATOR
        assert launch.status == LaunchStatus.ACTIVE

    def test_cancelled_launch_cannot_graduate(self):
        launch = _launch()
        launch.cancel("creator_0001")
        with pytest.raises(StateError) as exc:
            launch.graduate("pool", 1)
        assert exc.value.kind == ErrorKind.LAUNCH_NOT_ACTIVE
