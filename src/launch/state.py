"""Launch lifecycle and reserve bookkeeping.

    ACTIVE ──buy crosses threshold──▶ PENDING_GRADUATION ──graduate──▶ GRADUATED
      │  └──────────────graduate (threshold reached)──────────────────▲
      └──cancel (creator)──▶ CANCELLED

Trading is only allowed while ACTIVE; PENDING_GRADUATION halts trading until
the migration completes. Each operation validates completely before it
assigns anything, so a rejected call leaves the launch untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum

from loguru import logger

from src.curve.bonding_curve import market_cap, quote_buy, quote_sell, spot_price
from src.curve.constants import (
    BPS_DENOMINATOR,
    CREATOR_FEE_BPS,
    CURVE_ALLOCATION_BPS,
    INITIAL_VIRTUAL_BASE,
    INITIAL_VIRTUAL_QUOTE,
    MIGRATION_RESERVE_BPS,
    MIN_VAULT_RESERVE,
    TOTAL_SUPPLY,
)
from src.curve.models import CurveReserves, SwapQuote
from src.errors import (
    AuthorizationError,
    EconomicError,
    ErrorKind,
    InputValidationError,
    StateError,
)
from src.launch.metadata import LaunchMetadata


class LaunchStatus(StrEnum):
    ACTIVE = "active"
    PENDING_GRADUATION = "pending_graduation"
    GRADUATED = "graduated"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class TradeOutcome:
    quote: SwapQuote
    threshold_crossed: bool = False


def curve_allocation() -> int:
    return TOTAL_SUPPLY * CURVE_ALLOCATION_BPS // BPS_DENOMINATOR


def migration_allocation() -> int:
    return TOTAL_SUPPLY * MIGRATION_RESERVE_BPS // BPS_DENOMINATOR


@dataclass
class Launch:
    """One token on the bonding curve. Identity fields never change after create()."""

    mint: str
    creator: str
    metadata: LaunchMetadata
    graduation_threshold: int
    reserves: CurveReserves
    status: LaunchStatus = LaunchStatus.ACTIVE

    # Supply split
    total_supply: int = TOTAL_SUPPLY
    curve_tokens: int = field(default_factory=curve_allocation)
    graduation_tokens: int = field(default_factory=migration_allocation)
    creator_tokens: int = 0
    tokens_sold: int = 0

    creator_fee_bps: int = CREATOR_FEE_BPS

    # Statistics
    buy_volume: int = 0
    sell_volume: int = 0
    trade_count: int = 0
    holder_count: int = 1  # the creator

    created_at: int = 0
    graduated_at: int = 0
    pool: str | None = None

    @classmethod
    def create(
        cls,
        *,
        mint: str,
        creator: str,
        metadata: LaunchMetadata,
        graduation_threshold: int,
        timestamp: int,
    ) -> Launch:
        if graduation_threshold <= 0:
            raise InputValidationError(ErrorKind.INVALID_AMOUNT, "graduation threshold must be positive")
        curve_tokens = curve_allocation()
        return cls(
            mint=mint,
            creator=creator,
            metadata=metadata,
            graduation_threshold=graduation_threshold,
            reserves=CurveReserves(
                virtual_base=INITIAL_VIRTUAL_BASE,
                virtual_quote=INITIAL_VIRTUAL_QUOTE,
                real_base=curve_tokens,
                real_quote=0,
            ),
            curve_tokens=curve_tokens,
            created_at=timestamp,
        )

    # ── Derived views ──────────────────────────────────────────────────

    @property
    def is_tradeable(self) -> bool:
        return self.status == LaunchStatus.ACTIVE

    @property
    def can_graduate(self) -> bool:
        return self.status in (LaunchStatus.ACTIVE, LaunchStatus.PENDING_GRADUATION)

    @property
    def threshold_reached(self) -> bool:
        return self.reserves.real_quote >= self.graduation_threshold

    def current_price(self) -> int:
        return spot_price(self.reserves.virtual_quote, self.reserves.virtual_base)

    def market_cap(self) -> int:
        return market_cap(self.current_price(), self.total_supply)

    @property
    def progress_pct(self) -> Decimal:
        """Share of the graduation threshold raised so far, capped at 100."""
        raised = Decimal(self.reserves.real_quote * 100) / Decimal(self.graduation_threshold)
        return min(raised, Decimal(100))

    # ── Trading ────────────────────────────────────────────────────────

    def _require_tradeable(self) -> None:
        if not self.is_tradeable:
            raise StateError(
                ErrorKind.LAUNCH_NOT_ACTIVE, f"launch {self.mint[:12]} is {self.status.value}"
            )

    def preview_buy(self, quote_in: int, min_base_out: int, total_fee_bps: int) -> SwapQuote:
        """Price and validate a buy without touching state."""
        self._require_tradeable()
        quote = quote_buy(quote_in, self.reserves, total_fee_bps, self.creator_fee_bps)
        if quote.amount_out < min_base_out:
            raise EconomicError(
                ErrorKind.SLIPPAGE_EXCEEDED,
                f"base_out {quote.amount_out} < min {min_base_out}",
            )
        if quote.amount_out > self.reserves.real_base:
            raise EconomicError(ErrorKind.INSUFFICIENT_LIQUIDITY, "not enough tokens in curve vault")
        return quote

    def apply_buy(self, quote_in: int, min_base_out: int, total_fee_bps: int) -> TradeOutcome:
        quote = self.preview_buy(quote_in, min_base_out, total_fee_bps)

        self.reserves = quote.new_reserves
        self.tokens_sold += quote.amount_out
        self.buy_volume += quote_in - quote.total_fee
        self.trade_count += 1

        crossed = False
        if self.status == LaunchStatus.ACTIVE and self.threshold_reached:
            self.status = LaunchStatus.PENDING_GRADUATION
            crossed = True
            logger.info(
                f"[LAUNCH] {self.mint[:12]} reached graduation threshold "
                f"({self.reserves.real_quote / 1e9:.3f} SOL), trading halted"
            )
        return TradeOutcome(quote=quote, threshold_crossed=crossed)

    def preview_sell(
        self,
        base_in: int,
        min_quote_out: int,
        total_fee_bps: int,
        vault_balance: int | None = None,
    ) -> SwapQuote:
        """Price and validate a sell without touching state.

        ``vault_balance`` is the curve vault's actual lamport balance; it
        defaults to the tracked real quote reserve.
        """
        self._require_tradeable()
        quote = quote_sell(base_in, self.reserves, total_fee_bps, self.creator_fee_bps)
        if quote.amount_out < min_quote_out:
            raise EconomicError(
                ErrorKind.SLIPPAGE_EXCEEDED,
                f"quote_out {quote.amount_out} < min {min_quote_out}",
            )
        if quote.new_reserves.real_base > self.curve_tokens:
            raise InputValidationError(
                ErrorKind.INVALID_AMOUNT, f"base_in {base_in} exceeds tokens sold {self.tokens_sold}"
            )

        vault = self.reserves.real_quote if vault_balance is None else vault_balance
        leaving = quote.amount_out + quote.total_fee
        if vault < leaving + MIN_VAULT_RESERVE:
            raise EconomicError(
                ErrorKind.INSUFFICIENT_LIQUIDITY,
                f"vault {vault} cannot pay {leaving} and keep {MIN_VAULT_RESERVE}",
            )
        return quote

    def apply_sell(
        self,
        base_in: int,
        min_quote_out: int,
        total_fee_bps: int,
        vault_balance: int | None = None,
    ) -> TradeOutcome:
        quote = self.preview_sell(base_in, min_quote_out, total_fee_bps, vault_balance)

        self.reserves = quote.new_reserves
        self.tokens_sold -= base_in
        self.sell_volume += quote.amount_out
        self.trade_count += 1
        return TradeOutcome(quote=quote)

    # ── Lifecycle ──────────────────────────────────────────────────────

    def require_graduatable(self) -> None:
        if self.status == LaunchStatus.GRADUATED:
            raise StateError(ErrorKind.ALREADY_GRADUATED, f"launch {self.mint[:12]} already graduated")
        if not self.can_graduate:
            raise StateError(
                ErrorKind.LAUNCH_NOT_ACTIVE, f"launch {self.mint[:12]} is {self.status.value}"
            )
        if not self.threshold_reached:
            raise StateError(
                ErrorKind.THRESHOLD_NOT_REACHED,
                f"raised {self.reserves.real_quote} of {self.graduation_threshold}",
            )

    def graduate(self, pool: str, timestamp: int) -> None:
        self.require_graduatable()
        self.status = LaunchStatus.GRADUATED
        self.pool = pool
        self.graduated_at = timestamp

    def cancel(self, caller: str) -> None:
        if caller != self.creator:
            raise AuthorizationError(ErrorKind.INVALID_CREATOR, "only the creator can cancel")
        self._require_tradeable()
        self.status = LaunchStatus.CANCELLED
        logger.info(f"[LAUNCH] {self.mint[:12]} cancelled by creator")
