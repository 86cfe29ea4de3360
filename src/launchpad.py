"""Launchpad: the operation surface over launches, positions and graduation.

Flow per trade:
1. Pause flags and launch lookup
2. Price and validate on the launch
3. Balance pre-checks
4. Update the user's position and holder count
5. Move value through the ValueTransfer collaborator
6. Protocol statistics

The launch and position are snapshotted before step 2. Transfers go through a
journal. If anything after step 2 raises, including a collaborator's own
exception types, the journal is replayed in reverse and both records are
restored, so a failed call leaves records and balances as they were. Errors
are logged here and re-raised.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass

from loguru import logger

from src.addresses import (
    canonical_mint_order,
    config_address,
    curve_vault_address,
    fee_vault_address,
    graduation_vault_address,
    launch_address,
    launch_authority_address,
    token_vault_address,
)
from src.curve.constants import MIN_VAULT_RESERVE
from src.curve.models import SwapQuote
from src.errors import EconomicError, ErrorKind, LaunchpadError, StateError
from src.graduation.distribution import DEFAULT_BINS_PER_SIDE, DistributionStrategy
from src.graduation.planner import (
    GRADUATION_FUNDS_REQUIRED,
    GraduationPlan,
    GraduationSplit,
    graduation_fee_config,
    graduation_split,
    plan_graduation,
)
from src.launch.collaborators import Clock, LiquidityVenue, SystemClock, ValueTransfer
from src.launch.config import ProtocolConfig
from src.launch.metadata import LaunchMetadata
from src.launch.state import Launch
from src.positions.ledger import PositionLedger, UserPosition


@dataclass(frozen=True)
class LaunchAccounts:
    launch: str
    curve_vault: str
    token_vault: str
    graduation_vault: str
    authority: str


@dataclass(frozen=True)
class TradeReceipt:
    launch_id: str
    user: str
    side: str  # "buy" / "sell"
    quote: SwapQuote
    threshold_crossed: bool
    timestamp: int

    @property
    def amount_in(self) -> int:
        return self.quote.amount_in

    @property
    def amount_out(self) -> int:
        return self.quote.amount_out

    @property
    def price_after(self) -> int:
        return self.quote.price_after


@dataclass(frozen=True)
class GraduationResult:
    launch_id: str
    plan: GraduationPlan
    split: GraduationSplit
    pool: str
    position: str
    lp_base: int


class _TransferJournal:
    """Transfers made during one operation, reversed newest-first on failure."""

    def __init__(self, vaults: ValueTransfer) -> None:
        self._vaults = vaults
        self._done: list[tuple[str | None, str, str, int]] = []

    def quote(self, source: str, destination: str, amount: int) -> None:
        self._vaults.transfer_quote(source, destination, amount)
        self._done.append((None, source, destination, amount))

    def base(self, mint: str, source: str, destination: str, amount: int) -> None:
        self._vaults.transfer_base(mint, source, destination, amount)
        self._done.append((mint, source, destination, amount))

    def undo(self) -> None:
        while self._done:
            mint, source, destination, amount = self._done.pop()
            if mint is None:
                self._vaults.transfer_quote(destination, source, amount)
            else:
                self._vaults.transfer_base(mint, destination, source, amount)


class Launchpad:
    """Holds launches by id and routes operations to them."""

    def __init__(
        self,
        config: ProtocolConfig,
        *,
        program_id: str,
        vaults: ValueTransfer,
        venue: LiquidityVenue,
        clock: Clock | None = None,
        ledger: PositionLedger | None = None,
        default_bins_per_side: int = DEFAULT_BINS_PER_SIDE,
    ) -> None:
        self.config = config
        self.program_id = program_id
        self.ledger = ledger or PositionLedger()
        self._vaults = vaults
        self._venue = venue
        self._clock = clock or SystemClock()
        self._default_bins_per_side = default_bins_per_side
        self._launches: dict[str, Launch] = {}
        self._accounts: dict[str, LaunchAccounts] = {}

        config_key, _ = config_address(program_id)
        self.fee_vault, _ = fee_vault_address(config_key, program_id)

    # ── Lookups ────────────────────────────────────────────────────────

    def get_launch(self, launch_id: str) -> Launch:
        launch = self._launches.get(launch_id)
        if launch is None:
            raise StateError(ErrorKind.LAUNCH_NOT_ACTIVE, f"unknown launch {launch_id[:12]}")
        return launch

    def accounts(self, launch_id: str) -> LaunchAccounts:
        self.get_launch(launch_id)
        return self._accounts[launch_id]

    def position(self, launch_id: str, user: str) -> UserPosition | None:
        return self.ledger.get(launch_id, user)

    def _derive_accounts(self, mint: str) -> LaunchAccounts:
        launch_key, _ = launch_address(mint, self.program_id)
        return LaunchAccounts(
            launch=launch_key,
            curve_vault=curve_vault_address(launch_key, self.program_id)[0],
            token_vault=token_vault_address(launch_key, self.program_id)[0],
            graduation_vault=graduation_vault_address(launch_key, self.program_id)[0],
            authority=launch_authority_address(launch_key, self.program_id)[0],
        )

    # ── Create ─────────────────────────────────────────────────────────

    def create_launch(self, creator: str, mint: str, metadata: LaunchMetadata) -> str:
        """Register a launch and fund its vaults. Returns the launch id.

        The creator pays the curve vault's rent-exempt floor.
        """
        try:
            if self.config.launches_paused:
                raise StateError(ErrorKind.LAUNCHES_PAUSED, "new launches are paused")
            accounts = self._derive_accounts(mint)
            if accounts.launch in self._launches:
                raise StateError(ErrorKind.LAUNCH_NOT_ACTIVE, f"mint {mint[:12]} already launched")
            if self._vaults.quote_balance(creator) < MIN_VAULT_RESERVE:
                raise EconomicError(
                    ErrorKind.INSUFFICIENT_LIQUIDITY, "creator cannot fund curve vault rent"
                )

            launch = Launch.create(
                mint=mint,
                creator=creator,
                metadata=metadata,
                graduation_threshold=self.config.graduation_threshold,
                timestamp=self._clock.now(),
            )
        except LaunchpadError as e:
            logger.warning(f"[LAUNCH] Create rejected for {mint[:12]}: {e}")
            raise

        self._vaults.transfer_quote(creator, accounts.curve_vault, MIN_VAULT_RESERVE)
        self._vaults.mint_base(mint, accounts.token_vault, launch.curve_tokens)
        self._vaults.mint_base(mint, accounts.graduation_vault, launch.graduation_tokens)

        self._launches[accounts.launch] = launch
        self._accounts[accounts.launch] = accounts
        self.config.record_launch()
        logger.info(
            f"[LAUNCH] Created {metadata.symbol} mint={mint[:12]} creator={creator[:12]} "
            f"threshold={launch.graduation_threshold / 1e9:.2f} SOL"
        )
        return accounts.launch

    # ── Trading ────────────────────────────────────────────────────────

    def _require_trading(self) -> None:
        if self.config.trading_paused:
            raise StateError(ErrorKind.TRADING_PAUSED, "trading is paused")

    def preview_buy(self, launch_id: str, quote_in: int) -> SwapQuote:
        return self.get_launch(launch_id).preview_buy(quote_in, 0, self.config.protocol_fee_bps)

    def preview_sell(self, launch_id: str, base_in: int) -> SwapQuote:
        accounts = self.accounts(launch_id)
        return self.get_launch(launch_id).preview_sell(
            base_in,
            0,
            self.config.protocol_fee_bps,
            vault_balance=self._vaults.quote_balance(accounts.curve_vault),
        )

    def buy(self, launch_id: str, user: str, quote_in: int, min_base_out: int) -> TradeReceipt:
        try:
            self._require_trading()
            launch = self.get_launch(launch_id)
        except LaunchpadError as e:
            logger.warning(f"[LAUNCH] Buy rejected on {launch_id[:12]}: {e}")
            raise
        accounts = self._accounts[launch_id]
        launch_before = copy.copy(launch)
        position, opened = self.ledger.get_or_open(launch_id, user)
        position_before = copy.copy(position)
        journal = _TransferJournal(self._vaults)
        now = self._clock.now()

        try:
            outcome = launch.apply_buy(quote_in, min_base_out, self.config.protocol_fee_bps)
            quote = outcome.quote
            if self._vaults.quote_balance(user) < quote_in:
                raise EconomicError(
                    ErrorKind.INSUFFICIENT_LIQUIDITY, f"{user[:12]} cannot pay {quote_in}"
                )
            if position.is_new:
                launch.holder_count += 1
            position.record_buy(quote.amount_out, quote_in, now)

            journal.quote(user, accounts.curve_vault, quote_in - quote.total_fee)
            journal.quote(user, self.fee_vault, quote.protocol_fee)
            journal.quote(user, launch.creator, quote.creator_fee)
            journal.base(launch.mint, accounts.token_vault, user, quote.amount_out)
        except Exception as e:
            journal.undo()
            self._rollback(launch, launch_before, position, position_before, opened)
            logger.warning(f"[LAUNCH] Buy rejected on {launch_id[:12]} for {user[:12]}: {e}")
            raise

        self.config.record_trade(quote_in, quote.protocol_fee)
        logger.debug(
            f"[LAUNCH] BUY {launch.metadata.symbol} {user[:12]} "
            f"{quote_in / 1e9:.4f} SOL -> {quote.amount_out} tokens "
            f"impact={quote.price_impact_bps}bps"
        )
        return TradeReceipt(
            launch_id=launch_id,
            user=user,
            side="buy",
            quote=quote,
            threshold_crossed=outcome.threshold_crossed,
            timestamp=now,
        )

    def sell(self, launch_id: str, user: str, base_in: int, min_quote_out: int) -> TradeReceipt:
        try:
            self._require_trading()
            launch = self.get_launch(launch_id)
        except LaunchpadError as e:
            logger.warning(f"[LAUNCH] Sell rejected on {launch_id[:12]}: {e}")
            raise
        accounts = self._accounts[launch_id]
        launch_before = copy.copy(launch)
        position, opened = self.ledger.get_or_open(launch_id, user)
        position_before = copy.copy(position)
        journal = _TransferJournal(self._vaults)
        now = self._clock.now()

        try:
            if self._vaults.base_balance(launch.mint, user) < base_in:
                raise EconomicError(
                    ErrorKind.INSUFFICIENT_LIQUIDITY, f"{user[:12]} does not hold {base_in} tokens"
                )
            outcome = launch.apply_sell(
                base_in,
                min_quote_out,
                self.config.protocol_fee_bps,
                vault_balance=self._vaults.quote_balance(accounts.curve_vault),
            )
            quote = outcome.quote
            position.record_sell(base_in, quote.amount_out, now)

            journal.base(launch.mint, user, accounts.token_vault, base_in)
            journal.quote(accounts.curve_vault, user, quote.amount_out)
            journal.quote(accounts.curve_vault, self.fee_vault, quote.protocol_fee)
            journal.quote(accounts.curve_vault, launch.creator, quote.creator_fee)
        except Exception as e:
            journal.undo()
            self._rollback(launch, launch_before, position, position_before, opened)
            logger.warning(f"[LAUNCH] Sell rejected on {launch_id[:12]} for {user[:12]}: {e}")
            raise

        self.config.record_trade(quote.amount_out + quote.total_fee, quote.protocol_fee)
        logger.debug(
            f"[LAUNCH] SELL {launch.metadata.symbol} {user[:12]} "
            f"{base_in} tokens -> {quote.amount_out / 1e9:.4f} SOL"
        )
        return TradeReceipt(
            launch_id=launch_id,
            user=user,
            side="sell",
            quote=quote,
            threshold_crossed=False,
            timestamp=now,
        )

    def _rollback(
        self,
        launch: Launch,
        launch_before: Launch,
        position: UserPosition,
        position_before: UserPosition,
        opened: bool,
    ) -> None:
        launch.__dict__.update(launch_before.__dict__)
        if opened:
            self.ledger.discard(position.launch_id, position.user_id)
        else:
            position.__dict__.update(position_before.__dict__)

    # ── Lifecycle ──────────────────────────────────────────────────────

    def graduate(
        self,
        launch_id: str,
        bin_step_bps: int | None = None,
        bins_per_side: int | None = None,
        strategy: DistributionStrategy = DistributionStrategy.BALANCED,
    ) -> GraduationResult:
        """Migrate a launch that reached its threshold onto the liquidity venue.

        Everything that can reject (state, vault funds, plan parameters) is
        checked before the venue is touched. If the venue or a transfer fails
        afterwards, completed transfers are reversed and the new pool is
        closed, so the launch stays PENDING_GRADUATION and can be retried.
        """
        try:
            launch = self.get_launch(launch_id)
            accounts = self._accounts[launch_id]
            launch.require_graduatable()

            split = graduation_split(self._vaults.quote_balance(accounts.curve_vault))
            lp_base = launch.reserves.real_base + launch.graduation_tokens
            held = self._vaults.base_balance(
                launch.mint, accounts.token_vault
            ) + self._vaults.base_balance(launch.mint, accounts.graduation_vault)
            if held < lp_base:
                raise EconomicError(
                    ErrorKind.INSUFFICIENT_LIQUIDITY, f"vaults hold {held} tokens, LP needs {lp_base}"
                )

            base_mint, quote_mint, primary = canonical_mint_order(
                launch.mint, self.config.quote_mint
            )
            plan = plan_graduation(
                launch.current_price(),
                lp_base,
                split.lp_quote,
                base_mint_is_primary=primary,
                bin_step_bps=self.config.default_bin_step_bps if bin_step_bps is None else bin_step_bps,
                bins_per_side=self._default_bins_per_side if bins_per_side is None else bins_per_side,
                strategy=strategy,
            )
        except LaunchpadError as e:
            logger.warning(f"[GRAD] Graduation rejected for {launch_id[:12]}: {e}")
            raise

        if launch.graduation_threshold != GRADUATION_FUNDS_REQUIRED:
            logger.warning(
                f"[GRAD] Threshold {launch.graduation_threshold / 1e9:.2f} SOL differs from the "
                f"fixed split base {GRADUATION_FUNDS_REQUIRED / 1e9:.0f} SOL"
            )

        journal = _TransferJournal(self._vaults)
        pool = None
        try:
            pool = self._venue.init_pool(
                base_mint,
                quote_mint,
                plan.price_fixed,
                plan.bin_step_bps,
                graduation_fee_config(launch.creator_fee_bps),
            )
            venue_base_vault, venue_quote_vault = self._venue.init_vaults(pool)
            for lower in plan.bin_array_lower_bounds:
                self._venue.create_bin_array(pool, lower)

            token_side, sol_side = (
                (venue_base_vault, venue_quote_vault)
                if primary
                else (venue_quote_vault, venue_base_vault)
            )
            journal.quote(accounts.curve_vault, launch.creator, split.creator_reward)
            journal.quote(accounts.curve_vault, self.fee_vault, split.treasury_fee)
            journal.base(
                launch.mint, accounts.graduation_vault, accounts.token_vault, launch.graduation_tokens
            )
            journal.base(launch.mint, accounts.token_vault, token_side, lp_base)
            journal.quote(accounts.curve_vault, sol_side, split.lp_quote)
            position = self._venue.add_liquidity(pool, accounts.authority, plan.deposits)
        except Exception as e:
            journal.undo()
            if pool is not None:
                self._venue.close_pool(pool)
            logger.error(f"[GRAD] Migration of {launch_id[:12]} failed, value restored: {e}")
            raise

        launch.graduate(pool, self._clock.now())
        self.config.record_graduation()
        logger.info(
            f"[GRAD] {launch.metadata.symbol} graduated to {pool[:12]}: "
            f"{split.lp_quote / 1e9:.3f} SOL + {lp_base} tokens, active_bin={plan.active_bin_index}, "
            f"{len(plan.bin_ids)} bins"
        )
        return GraduationResult(
            launch_id=launch_id,
            plan=plan,
            split=split,
            pool=pool,
            position=position,
            lp_base=lp_base,
        )

    def cancel(self, launch_id: str, caller: str) -> None:
        try:
            self.get_launch(launch_id).cancel(caller)
        except LaunchpadError as e:
            logger.warning(f"[LAUNCH] Cancel rejected for {launch_id[:12]}: {e}")
            raise
