from src.models.base import Base
from src.models.launch import LaunchRecord, PositionRecord
from src.models.trade import TradeRecord

__all__ = [
    "Base",
    "LaunchRecord",
    "PositionRecord",
    "TradeRecord",
]
