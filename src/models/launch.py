from datetime import datetime

from sqlalchemy import (
    BigInteger,
    DateTime,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base


class LaunchRecord(Base):
    """Persisted launch state. Amounts are lamports / raw token units."""

    __tablename__ = "launches"

    id: Mapped[int] = mapped_column(primary_key=True)
    launch_id: Mapped[str] = mapped_column(String(64), unique=True)
    mint: Mapped[str] = mapped_column(String(64), unique=True)
    creator: Mapped[str] = mapped_column(String(64))
    status: Mapped[str] = mapped_column(String(20), default="active")

    # Metadata
    name: Mapped[str] = mapped_column(String(32))
    symbol: Mapped[str] = mapped_column(String(10))
    uri: Mapped[str] = mapped_column(String(200))
    twitter: Mapped[str | None] = mapped_column(String(64))
    telegram: Mapped[str | None] = mapped_column(String(64))
    website: Mapped[str | None] = mapped_column(String(64))

    # Curve
    graduation_threshold: Mapped[int] = mapped_column(BigInteger)
    virtual_base: Mapped[int] = mapped_column(BigInteger)
    virtual_quote: Mapped[int] = mapped_column(BigInteger)
    real_base: Mapped[int] = mapped_column(BigInteger)
    real_quote: Mapped[int] = mapped_column(BigInteger)

    # Supply split
    total_supply: Mapped[int] = mapped_column(BigInteger)
    curve_tokens: Mapped[int] = mapped_column(BigInteger)
    graduation_tokens: Mapped[int] = mapped_column(BigInteger)
    creator_tokens: Mapped[int] = mapped_column(BigInteger, default=0)
    tokens_sold: Mapped[int] = mapped_column(BigInteger, default=0)
    creator_fee_bps: Mapped[int] = mapped_column(Integer)

    # Statistics
    buy_volume: Mapped[int] = mapped_column(BigInteger, default=0)
    sell_volume: Mapped[int] = mapped_column(BigInteger, default=0)
    trade_count: Mapped[int] = mapped_column(BigInteger, default=0)
    holder_count: Mapped[int] = mapped_column(Integer, default=1)

    created_at: Mapped[int] = mapped_column(BigInteger)  # unix seconds
    graduated_at: Mapped[int] = mapped_column(BigInteger, default=0)
    pool: Mapped[str | None] = mapped_column(String(64))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_launches_status", "status"),
        Index("idx_launches_creator", "creator"),
    )


class PositionRecord(Base):
    """One user's position in one launch."""

    __tablename__ = "user_positions"

    id: Mapped[int] = mapped_column(primary_key=True)
    launch_id: Mapped[str] = mapped_column(String(64))
    user_id: Mapped[str] = mapped_column(String(64))
    tokens_bought: Mapped[int] = mapped_column(BigInteger, default=0)
    tokens_sold: Mapped[int] = mapped_column(BigInteger, default=0)
    token_balance: Mapped[int] = mapped_column(BigInteger, default=0)
    quote_spent: Mapped[int] = mapped_column(BigInteger, default=0)
    quote_received: Mapped[int] = mapped_column(BigInteger, default=0)
    cost_basis: Mapped[int] = mapped_column(BigInteger, default=0)
    avg_buy_price: Mapped[int] = mapped_column(BigInteger, default=0)
    buy_count: Mapped[int] = mapped_column(Integer, default=0)
    sell_count: Mapped[int] = mapped_column(Integer, default=0)
    first_trade_at: Mapped[int] = mapped_column(BigInteger, default=0)
    last_trade_at: Mapped[int] = mapped_column(BigInteger, default=0)

    __table_args__ = (
        UniqueConstraint("launch_id", "user_id", name="uq_position_launch_user"),
        Index("idx_positions_user", "user_id"),
    )
