"""Persistence round-trips against an in-memory SQLite session."""

from src.curve.constants import LAMPORTS_PER_SOL
from src.launch.persistence import (
    load_launch,
    load_position,
    record_trade,
    save_launch,
    save_position,
    trades_for_launch,
)
from src.launch.state import LaunchStatus
from src.models import LaunchRecord


async def test_launch_round_trip(db_session, launchpad, creator, make_address, metadata):
    launch_id = launchpad.create_launch(creator, make_address(), metadata)
    launch = launchpad.get_launch(launch_id)

    await save_launch(db_session, launch_id, launch)
    loaded = await load_launch(db_session, launch_id)

    assert loaded == launch
    assert loaded.metadata.symbol == "TEST"
    assert loaded.reserves.virtual_base == launch.reserves.virtual_base


async def test_launch_update_in_place(db_session, launchpad, vaults, creator, make_address, metadata):
    launch_id = launchpad.create_launch(creator, make_address(), metadata)
    await save_launch(db_session, launch_id, launchpad.get_launch(launch_id))

    trader = make_address()
    vaults.airdrop(trader, 2 * LAMPORTS_PER_SOL)
    launchpad.buy(launch_id, trader, LAMPORTS_PER_SOL, 0)
    record = await save_launch(db_session, launch_id, launchpad.get_launch(launch_id))

    assert record.trade_count == 1
    assert record.status == LaunchStatus.ACTIVE.value
    loaded = await load_launch(db_session, launch_id)
    assert loaded.reserves == launchpad.get_launch(launch_id).reserves
    rows = (await db_session.execute(LaunchRecord.__table__.select())).all()
    assert len(rows) == 1


async def test_load_missing(db_session, make_address):
    assert await load_launch(db_session, make_address()) is None
    assert await load_position(db_session, make_address(), make_address()) is None


async def test_position_and_trades(db_session, launchpad, vaults, creator, make_address, metadata):
    launch_id = launchpad.create_launch(creator, make_address(), metadata)
    trader = make_address()
    vaults.airdrop(trader, 2 * LAMPORTS_PER_SOL)

    buy = launchpad.buy(launch_id, trader, LAMPORTS_PER_SOL, 0)
    sell = launchpad.sell(launch_id, trader, buy.amount_out // 2, 0)
    for receipt in (buy, sell):
        await record_trade(db_session, receipt)

    position = launchpad.position(launch_id, trader)
    await save_position(db_session, position)
    await save_position(db_session, position)
    loaded = await load_position(db_session, launch_id, trader)
    assert loaded == position

    trades = await trades_for_launch(db_session, launch_id)
    assert [t.side for t in trades] == ["buy", "sell"]
    assert trades[0].amount_out == buy.amount_out
    assert trades[1].protocol_fee == sell.quote.protocol_fee
