"""Capabilities the Launchpad consumes but does not own.

The core only needs these narrow interfaces. In-memory implementations back
the tests and the simulation script; a deployment plugs in chain-backed ones.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Protocol

from loguru import logger

from src.addresses import (
    VAULT_BASE,
    VAULT_CREATOR_FEE,
    VAULT_HOLDERS_FEE,
    VAULT_NFT_FEE,
    VAULT_PROTOCOL_FEE,
    VAULT_QUOTE,
    venue_bin_array_address,
    venue_pool_address,
    venue_position_address,
    venue_vault_address,
)
from src.errors import ConfigurationError, EconomicError, ErrorKind, StateError
from src.graduation.distribution import BinDeposit
from src.graduation.planner import VenueFeeConfig


class ValueTransfer(Protocol):
    def transfer_quote(self, source: str, destination: str, amount: int) -> None: ...

    def transfer_base(self, mint: str, source: str, destination: str, amount: int) -> None: ...

    def mint_base(self, mint: str, destination: str, amount: int) -> None: ...

    def quote_balance(self, account: str) -> int: ...

    def base_balance(self, mint: str, account: str) -> int: ...


class LiquidityVenue(Protocol):
    def init_pool(
        self,
        base_mint: str,
        quote_mint: str,
        price_fixed: int,
        bin_step_bps: int,
        fee_config: VenueFeeConfig,
    ) -> str: ...

    def init_vaults(self, pool: str) -> tuple[str, str]: ...

    def create_bin_array(self, pool: str, lower_bin_index: int) -> str: ...

    def add_liquidity(self, pool: str, owner: str, deposits: list[BinDeposit]) -> str: ...

    def close_pool(self, pool: str) -> None: ...


class Clock(Protocol):
    def now(self) -> int: ...


class SystemClock:
    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000) -> None:
        self._now = start

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> None:
        self._now += seconds


class InMemoryVaults:
    """Lamport and token balances held in dicts.

    Transfers are all-or-nothing: an overdraft raises before either side moves.
    """

    def __init__(self) -> None:
        self.lamports: dict[str, int] = {}
        self.tokens: dict[tuple[str, str], int] = {}

    def airdrop(self, account: str, amount: int) -> None:
        self.lamports[account] = self.lamports.get(account, 0) + amount

    def quote_balance(self, account: str) -> int:
        return self.lamports.get(account, 0)

    def base_balance(self, mint: str, account: str) -> int:
        return self.tokens.get((mint, account), 0)

    def transfer_quote(self, source: str, destination: str, amount: int) -> None:
        if amount == 0:
            return
        available = self.quote_balance(source)
        if amount < 0 or available < amount:
            raise EconomicError(
                ErrorKind.INSUFFICIENT_LIQUIDITY,
                f"{source[:12]} holds {available} lamports, needs {amount}",
            )
        self.lamports[source] = available - amount
        self.lamports[destination] = self.quote_balance(destination) + amount

    def transfer_base(self, mint: str, source: str, destination: str, amount: int) -> None:
        if amount == 0:
            return
        available = self.base_balance(mint, source)
        if amount < 0 or available < amount:
            raise EconomicError(
                ErrorKind.INSUFFICIENT_LIQUIDITY,
                f"{source[:12]} holds {available} tokens, needs {amount}",
            )
        self.tokens[(mint, source)] = available - amount
        self.tokens[(mint, destination)] = self.base_balance(mint, destination) + amount

    def mint_base(self, mint: str, destination: str, amount: int) -> None:
        self.tokens[(mint, destination)] = self.base_balance(mint, destination) + amount


@dataclass
class VenuePool:
    address: str
    base_mint: str
    quote_mint: str
    price_fixed: int
    bin_step_bps: int
    fee_config: VenueFeeConfig
    vaults: dict[bytes, str] = field(default_factory=dict)
    bin_arrays: dict[int, str] = field(default_factory=dict)
    positions: dict[str, list[BinDeposit]] = field(default_factory=dict)


class InMemoryVenue:
    """Binned liquidity venue that records pools, vaults, bin arrays and positions."""

    def __init__(self, venue_program_id: str) -> None:
        self.program_id = venue_program_id
        self.pools: dict[str, VenuePool] = {}

    def _pool(self, pool: str) -> VenuePool:
        try:
            return self.pools[pool]
        except KeyError:
            raise ConfigurationError(
                ErrorKind.INVALID_CONFIG, f"unknown venue pool {pool[:12]}"
            ) from None

    def init_pool(
        self,
        base_mint: str,
        quote_mint: str,
        price_fixed: int,
        bin_step_bps: int,
        fee_config: VenueFeeConfig,
    ) -> str:
        address, _ = venue_pool_address(base_mint, quote_mint, self.program_id)
        if address in self.pools:
            raise StateError(ErrorKind.ALREADY_GRADUATED, f"venue pool {address[:12]} exists")
        self.pools[address] = VenuePool(
            address=address,
            base_mint=base_mint,
            quote_mint=quote_mint,
            price_fixed=price_fixed,
            bin_step_bps=bin_step_bps,
            fee_config=fee_config,
        )
        logger.debug(f"[VENUE] Pool {address[:12]} step={bin_step_bps}bps")
        return address

    def init_vaults(self, pool: str) -> tuple[str, str]:
        state = self._pool(pool)
        for kind in (
            VAULT_BASE,
            VAULT_QUOTE,
            VAULT_CREATOR_FEE,
            VAULT_HOLDERS_FEE,
            VAULT_NFT_FEE,
            VAULT_PROTOCOL_FEE,
        ):
            state.vaults[kind], _ = venue_vault_address(pool, kind, self.program_id)
        return state.vaults[VAULT_BASE], state.vaults[VAULT_QUOTE]

    def create_bin_array(self, pool: str, lower_bin_index: int) -> str:
        state = self._pool(pool)
        if lower_bin_index not in state.bin_arrays:
            state.bin_arrays[lower_bin_index], _ = venue_bin_array_address(
                pool, lower_bin_index, self.program_id
            )
        return state.bin_arrays[lower_bin_index]

    def add_liquidity(self, pool: str, owner: str, deposits: list[BinDeposit]) -> str:
        state = self._pool(pool)
        position, _ = venue_position_address(pool, owner, len(state.positions), self.program_id)
        state.positions[position] = list(deposits)
        return position

    def close_pool(self, pool: str) -> None:
        """Drop a pool whose migration did not complete."""
        state = self.pools.pop(pool, None)
        if state is not None:
            logger.debug(f"[VENUE] Closed pool {pool[:12]}")
