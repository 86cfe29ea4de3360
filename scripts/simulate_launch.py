"""Drive one launch from creation to graduation against in-memory vaults.

Creates a launch, cycles buyers through it until the graduation threshold is
crossed (with an occasional sell), graduates it onto the in-memory venue and
prints the plan plus every buyer's P&L at the final price.

Usage:
    python scripts/simulate_launch.py
    python scripts/simulate_launch.py --buy-sol 2 --buyers 10 --bin-step 50 --strategy triangular
    python scripts/simulate_launch.py --persist   # also write rows to DATABASE_URL
"""

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from loguru import logger  # noqa: E402
from solders.keypair import Keypair  # type: ignore[import-untyped]  # noqa: E402

from config.settings import settings  # noqa: E402
from src.curve.constants import LAMPORTS_PER_SOL  # noqa: E402
from src.errors import LaunchpadError  # noqa: E402
from src.graduation.distribution import DistributionStrategy  # noqa: E402
from src.launch.collaborators import InMemoryVaults, InMemoryVenue, ManualClock  # noqa: E402
from src.launch.config import ProtocolConfig  # noqa: E402
from src.launch.metadata import LaunchMetadata  # noqa: E402
from src.launchpad import GraduationResult, Launchpad  # noqa: E402
from src.utils.logger import setup_logger  # noqa: E402


def _address() -> str:
    return str(Keypair().pubkey())


def run_simulation(
    *,
    buy_sol: float,
    buyers: int,
    sell_every: int,
    bin_step: int | None,
    bins_per_side: int | None,
    strategy: DistributionStrategy,
) -> tuple[Launchpad, str, list[str], GraduationResult]:
    admin = _address()
    creator = _address()
    mint = _address()
    users = [_address() for _ in range(buyers)]

    vaults = InMemoryVaults()
    vaults.airdrop(creator, LAMPORTS_PER_SOL)
    for user in users:
        vaults.airdrop(user, 1_000 * LAMPORTS_PER_SOL)

    clock = ManualClock()
    pad = Launchpad(
        ProtocolConfig.initialize(admin, settings),
        program_id=settings.launchpad_program_id,
        vaults=vaults,
        venue=InMemoryVenue(settings.venue_program_id),
        clock=clock,
        default_bins_per_side=settings.default_bins_per_side,
    )
    launch_id = pad.create_launch(
        creator,
        mint,
        LaunchMetadata.create("Simulated Token", "SIM", "https://example.com/sim.json"),
    )

    quote_in = int(buy_sol * LAMPORTS_PER_SOL)
    trade_no = 0
    while True:
        user = users[trade_no % len(users)]
        clock.advance(5)
        receipt = pad.buy(launch_id, user, quote_in, 0)
        trade_no += 1
        if receipt.threshold_crossed:
            break
        if sell_every and trade_no % sell_every == 0:
            position = pad.position(launch_id, user)
            if position is not None and position.token_balance > 0:
                clock.advance(5)
                pad.sell(launch_id, user, position.token_balance // 4, 0)

    result = pad.graduate(
        launch_id,
        bin_step_bps=bin_step,
        bins_per_side=bins_per_side,
        strategy=strategy,
    )
    return pad, launch_id, users, result


def print_report(pad: Launchpad, launch_id: str, users: list[str], result: GraduationResult) -> None:
    launch = pad.get_launch(launch_id)
    plan = result.plan
    price = launch.current_price()

    print(f"\n{'=' * 60}")
    print(f"  {launch.metadata.symbol}: {launch.status.value}")
    print(f"{'=' * 60}")
    print(f"  Trades:        {launch.trade_count} ({launch.holder_count} holders)")
    print(f"  Raised:        {launch.reserves.real_quote / 1e9:.3f} SOL")
    print(f"  Final price:   {price} (x1e9 lamports/unit)")
    print(f"  Market cap:    {launch.market_cap() / 1e9:.2f} SOL")
    print(f"  Pool:          {result.pool}")
    print()
    print(f"  Creator reward {result.split.creator_reward / 1e9:.2f} SOL")
    print(f"  Treasury fee   {result.split.treasury_fee / 1e9:.2f} SOL")
    print(f"  LP             {result.split.lp_quote / 1e9:.3f} SOL + {result.lp_base} tokens")
    print()
    print(f"  Active bin:    {plan.active_bin_index} (step {plan.bin_step_bps} bps)")
    print(f"  Bin arrays:    {plan.bin_array_lower_bounds}")
    print(f"  Primary base:  {plan.base_mint_is_primary}")
    print(f"  {'bin':>8} {'base':>22} {'quote':>16}")
    for deposit in plan.deposits:
        print(f"  {deposit.bin_index:>8} {deposit.base_amount:>22} {deposit.quote_amount:>16}")
    print()
    print(f"  {'user':<14} {'balance':>22} {'realized':>14} {'unrealized':>14} {'roi':>8}")
    for user in users:
        position = pad.position(launch_id, user)
        if position is None:
            continue
        print(
            f"  {user[:12]:<14} {position.token_balance:>22} "
            f"{position.realized_pnl() / 1e9:>14.4f} {position.unrealized_pnl(price) / 1e9:>14.4f} "
            f"{position.roi_bps(price) / 100:>7.2f}%"
        )
    print()


async def persist(pad: Launchpad, launch_id: str, users: list[str]) -> None:
    from src.db.database import async_session_factory, create_tables
    from src.launch.persistence import save_launch, save_position

    await create_tables()
    async with async_session_factory() as session:
        await save_launch(session, launch_id, pad.get_launch(launch_id))
        for user in users:
            position = pad.position(launch_id, user)
            if position is not None:
                await save_position(session, position)
        await session.commit()
    logger.info(f"[DB] Persisted launch {launch_id[:12]} and {len(users)} positions")


async def main() -> None:
    parser = argparse.ArgumentParser(description="Simulate a launch through graduation")
    parser.add_argument("--buy-sol", type=float, default=1.0, help="SOL per buy")
    parser.add_argument("--buyers", type=int, default=5)
    parser.add_argument("--sell-every", type=int, default=7, help="Sell a quarter every N buys (0=never)")
    parser.add_argument("--bin-step", type=int, default=None, help="Venue bin step in bps")
    parser.add_argument("--bins-per-side", type=int, default=None)
    parser.add_argument(
        "--strategy",
        choices=[s.value for s in DistributionStrategy],
        default=DistributionStrategy.BALANCED.value,
    )
    parser.add_argument("--persist", action="store_true", help="Write results to DATABASE_URL")
    args = parser.parse_args()

    setup_logger(level=settings.log_level, json_logs=settings.json_logs, log_dir=None)

    try:
        pad, launch_id, users, result = run_simulation(
            buy_sol=args.buy_sol,
            buyers=args.buyers,
            sell_every=args.sell_every,
            bin_step=args.bin_step,
            bins_per_side=args.bins_per_side,
            strategy=DistributionStrategy(args.strategy),
        )
    except LaunchpadError as e:
        logger.error(f"Simulation stopped: {e}")
        sys.exit(1)

    print_report(pad, launch_id, users, result)
    if args.persist:
        await persist(pad, launch_id, users)


if __name__ == "__main__":
    asyncio.run(main())
