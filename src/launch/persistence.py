"""Persistence layer: maps Launch / UserPosition / TradeReceipt to SQLAlchemy rows.

Select-then-update so the same code runs on PostgreSQL and SQLite. Functions
flush only; the caller owns the transaction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.curve.models import CurveReserves
from src.launch.metadata import LaunchMetadata
from src.launch.state import Launch, LaunchStatus
from src.models.launch import LaunchRecord, PositionRecord
from src.models.trade import TradeRecord
from src.positions.ledger import UserPosition

if TYPE_CHECKING:
    from src.launchpad import TradeReceipt

_POSITION_FIELDS = (
    "tokens_bought",
    "tokens_sold",
    "token_balance",
    "quote_spent",
    "quote_received",
    "cost_basis",
    "avg_buy_price",
    "buy_count",
    "sell_count",
    "first_trade_at",
    "last_trade_at",
)


def _launch_values(launch: Launch) -> dict:
    return {
        "mint": launch.mint,
        "creator": launch.creator,
        "status": launch.status.value,
        "name": launch.metadata.name,
        "symbol": launch.metadata.symbol,
        "uri": launch.metadata.uri,
        "twitter": launch.metadata.twitter,
        "telegram": launch.metadata.telegram,
        "website": launch.metadata.website,
        "graduation_threshold": launch.graduation_threshold,
        "virtual_base": launch.reserves.virtual_base,
        "virtual_quote": launch.reserves.virtual_quote,
        "real_base": launch.reserves.real_base,
        "real_quote": launch.reserves.real_quote,
        "total_supply": launch.total_supply,
        "curve_tokens": launch.curve_tokens,
        "graduation_tokens": launch.graduation_tokens,
        "creator_tokens": launch.creator_tokens,
        "tokens_sold": launch.tokens_sold,
        "creator_fee_bps": launch.creator_fee_bps,
        "buy_volume": launch.buy_volume,
        "sell_volume": launch.sell_volume,
        "trade_count": launch.trade_count,
        "holder_count": launch.holder_count,
        "created_at": launch.created_at,
        "graduated_at": launch.graduated_at,
        "pool": launch.pool,
    }


async def save_launch(session: AsyncSession, launch_id: str, launch: Launch) -> LaunchRecord:
    """Insert or update the launch row keyed by launch_id."""
    values = _launch_values(launch)
    result = await session.execute(
        select(LaunchRecord).where(LaunchRecord.launch_id == launch_id)
    )
    record = result.scalar_one_or_none()
    if record is None:
        record = LaunchRecord(launch_id=launch_id, **values)
        session.add(record)
        logger.debug(f"[DB] Inserted launch {launch_id[:12]}")
    else:
        for key, value in values.items():
            setattr(record, key, value)
    await session.flush()
    return record


async def load_launch(session: AsyncSession, launch_id: str) -> Launch | None:
    result = await session.execute(
        select(LaunchRecord).where(LaunchRecord.launch_id == launch_id)
    )
    record = result.scalar_one_or_none()
    if record is None:
        return None
    return Launch(
        mint=record.mint,
        creator=record.creator,
        metadata=LaunchMetadata(
            name=record.name,
            symbol=record.symbol,
            uri=record.uri,
            twitter=record.twitter,
            telegram=record.telegram,
            website=record.website,
        ),
        graduation_threshold=record.graduation_threshold,
        reserves=CurveReserves(
            virtual_base=record.virtual_base,
            virtual_quote=record.virtual_quote,
            real_base=record.real_base,
            real_quote=record.real_quote,
        ),
        status=LaunchStatus(record.status),
        total_supply=record.total_supply,
        curve_tokens=record.curve_tokens,
        graduation_tokens=record.graduation_tokens,
        creator_tokens=record.creator_tokens,
        tokens_sold=record.tokens_sold,
        creator_fee_bps=record.creator_fee_bps,
        buy_volume=record.buy_volume,
        sell_volume=record.sell_volume,
        trade_count=record.trade_count,
        holder_count=record.holder_count,
        created_at=record.created_at,
        graduated_at=record.graduated_at,
        pool=record.pool,
    )


async def save_position(session: AsyncSession, position: UserPosition) -> PositionRecord:
    result = await session.execute(
        select(PositionRecord).where(
            PositionRecord.launch_id == position.launch_id,
            PositionRecord.user_id == position.user_id,
        )
    )
    record = result.scalar_one_or_none()
    values = {name: getattr(position, name) for name in _POSITION_FIELDS}
    if record is None:
        record = PositionRecord(launch_id=position.launch_id, user_id=position.user_id, **values)
        session.add(record)
    else:
        for key, value in values.items():
            setattr(record, key, value)
    await session.flush()
    return record


async def load_position(session: AsyncSession, launch_id: str, user_id: str) -> UserPosition | None:
    result = await session.execute(
        select(PositionRecord).where(
            PositionRecord.launch_id == launch_id,
            PositionRecord.user_id == user_id,
        )
    )
    record = result.scalar_one_or_none()
    if record is None:
        return None
    return UserPosition(
        launch_id=launch_id,
        user_id=user_id,
        **{name: getattr(record, name) for name in _POSITION_FIELDS},
    )


async def record_trade(session: AsyncSession, receipt: TradeReceipt) -> TradeRecord:
    """Append one executed trade."""
    quote = receipt.quote
    record = TradeRecord(
        launch_id=receipt.launch_id,
        user_id=receipt.user,
        side=receipt.side,
        amount_in=quote.amount_in,
        amount_out=quote.amount_out,
        total_fee=quote.total_fee,
        protocol_fee=quote.protocol_fee,
        creator_fee=quote.creator_fee,
        price_before=quote.price_before,
        price_after=quote.price_after,
        price_impact_bps=quote.price_impact_bps,
        threshold_crossed=receipt.threshold_crossed,
        timestamp=receipt.timestamp,
    )
    session.add(record)
    await session.flush()
    return record


async def trades_for_launch(session: AsyncSession, launch_id: str) -> list[TradeRecord]:
    result = await session.execute(
        select(TradeRecord)
        .where(TradeRecord.launch_id == launch_id)
        .order_by(TradeRecord.timestamp, TradeRecord.id)
    )
    return list(result.scalars().all())
