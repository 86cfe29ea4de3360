from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base


class TradeRecord(Base):
    """Executed curve trade. Append-only."""

    __tablename__ = "trades"

    id: Mapped[int] = mapped_column(primary_key=True)
    launch_id: Mapped[str] = mapped_column(String(64))
    user_id: Mapped[str] = mapped_column(String(64))
    side: Mapped[str] = mapped_column(String(10))  # "buy" | "sell"
    amount_in: Mapped[int] = mapped_column(BigInteger)
    amount_out: Mapped[int] = mapped_column(BigInteger)
    total_fee: Mapped[int] = mapped_column(BigInteger)
    protocol_fee: Mapped[int] = mapped_column(BigInteger)
    creator_fee: Mapped[int] = mapped_column(BigInteger)
    price_before: Mapped[int] = mapped_column(BigInteger)
    price_after: Mapped[int] = mapped_column(BigInteger)
    price_impact_bps: Mapped[int] = mapped_column(Integer)
    threshold_crossed: Mapped[bool] = mapped_column(Boolean, default=False)
    timestamp: Mapped[int] = mapped_column(BigInteger)  # unix seconds
    executed_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    __table_args__ = (
        Index("idx_trades_launch_time", "launch_id", "timestamp"),
        Index("idx_trades_user", "user_id"),
    )
