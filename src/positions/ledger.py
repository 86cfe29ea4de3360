"""Per-user, per-launch position accounting and P&L.

Cost basis on a sell is reduced by the share of *lifetime* tokens bought that
the sell represents (not the share of the current balance), computed at 1e9
precision. P&L values are signed ints in lamports.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from src.curve.checked import checked_add, saturating_sub
from src.curve.constants import BPS_DENOMINATOR, PRICE_SCALE
from src.errors import ErrorKind, InputValidationError


@dataclass
class UserPosition:
    launch_id: str
    user_id: str
    tokens_bought: int = 0
    tokens_sold: int = 0
    token_balance: int = 0
    quote_spent: int = 0
    quote_received: int = 0
    cost_basis: int = 0
    avg_buy_price: int = 0
    buy_count: int = 0
    sell_count: int = 0
    first_trade_at: int = 0
    last_trade_at: int = 0

    @property
    def is_new(self) -> bool:
        return self.buy_count == 0 and self.sell_count == 0

    @property
    def total_trades(self) -> int:
        return self.buy_count + self.sell_count

    def _touch(self, timestamp: int) -> None:
        if self.is_new:
            self.first_trade_at = timestamp
        self.last_trade_at = timestamp

    def record_buy(self, tokens: int, quote_spent: int, timestamp: int = 0) -> None:
        if tokens <= 0 or quote_spent < 0:
            raise InputValidationError(ErrorKind.INVALID_AMOUNT, "buy must receive tokens")
        tokens_bought = checked_add(self.tokens_bought, tokens)
        token_balance = checked_add(self.token_balance, tokens)
        spent = checked_add(self.quote_spent, quote_spent)
        cost_basis = checked_add(self.cost_basis, quote_spent)

        self._touch(timestamp)
        self.tokens_bought = tokens_bought
        self.token_balance = token_balance
        self.quote_spent = spent
        self.cost_basis = cost_basis
        if self.token_balance > 0:
            self.avg_buy_price = self.cost_basis * PRICE_SCALE // self.token_balance
        self.buy_count += 1

    def record_sell(self, tokens: int, quote_received: int, timestamp: int = 0) -> None:
        if tokens <= 0 or quote_received < 0:
            raise InputValidationError(ErrorKind.INVALID_AMOUNT, "sell must spend tokens")
        if tokens > self.token_balance:
            raise InputValidationError(
                ErrorKind.INVALID_AMOUNT,
                f"selling {tokens} with balance {self.token_balance}",
            )
        received = checked_add(self.quote_received, quote_received)

        self._touch(timestamp)
        self.tokens_sold += tokens
        self.token_balance -= tokens
        self.quote_received = received
        if self.tokens_bought > 0:
            sold_ratio = tokens * PRICE_SCALE // self.tokens_bought
            cost_reduction = self.cost_basis * sold_ratio // PRICE_SCALE
            self.cost_basis = saturating_sub(self.cost_basis, cost_reduction)
        if self.token_balance > 0:
            self.avg_buy_price = self.cost_basis * PRICE_SCALE // self.token_balance
        else:
            self.avg_buy_price = 0
        self.sell_count += 1

    # ── P&L ────────────────────────────────────────────────────────────

    def realized_pnl(self) -> int:
        if self.tokens_bought == 0:
            return 0
        cost_of_sold = self.quote_spent * self.tokens_sold // self.tokens_bought
        return self.quote_received - cost_of_sold

    def unrealized_pnl(self, current_price: int) -> int:
        if self.token_balance == 0:
            return 0
        current_value = self.token_balance * current_price // PRICE_SCALE
        return current_value - self.cost_basis

    def total_pnl(self, current_price: int) -> int:
        return self.realized_pnl() + self.unrealized_pnl(current_price)

    def roi_bps(self, current_price: int) -> int:
        """Total P&L over lifetime spend, in bps, truncated toward zero."""
        if self.quote_spent == 0:
            return 0
        total = self.total_pnl(current_price)
        magnitude = abs(total) * BPS_DENOMINATOR // self.quote_spent
        return magnitude if total >= 0 else -magnitude


class PositionLedger:
    """Positions keyed by (launch_id, user_id). Opened on first trade, never deleted."""

    def __init__(self) -> None:
        self._positions: dict[tuple[str, str], UserPosition] = {}

    def __len__(self) -> int:
        return len(self._positions)

    def __contains__(self, key: tuple[str, str]) -> bool:
        return key in self._positions

    def get(self, launch_id: str, user_id: str) -> UserPosition | None:
        return self._positions.get((launch_id, user_id))

    def get_or_open(self, launch_id: str, user_id: str) -> tuple[UserPosition, bool]:
        """Return the position and whether it was opened by this call."""
        key = (launch_id, user_id)
        position = self._positions.get(key)
        if position is not None:
            return position, False
        position = UserPosition(launch_id=launch_id, user_id=user_id)
        self._positions[key] = position
        logger.debug(f"[LEDGER] Opened position {user_id[:12]} on {launch_id[:12]}")
        return position, True

    def put(self, position: UserPosition) -> None:
        self._positions[(position.launch_id, position.user_id)] = position

    def discard(self, launch_id: str, user_id: str) -> None:
        """Drop a position opened by a trade that was then rolled back."""
        self._positions.pop((launch_id, user_id), None)

    def for_launch(self, launch_id: str) -> list[UserPosition]:
        return [p for (lid, _), p in self._positions.items() if lid == launch_id]

    def for_user(self, user_id: str) -> list[UserPosition]:
        return [p for (_, uid), p in self._positions.items() if uid == user_id]
