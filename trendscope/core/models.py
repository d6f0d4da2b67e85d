"""Database models for Trendscope."""
from sqlalchemy import (
    DateTime, Integer, BigInteger, String, Text, Index, UniqueConstraint
)
from sqlalchemy.orm import mapped_column

from .db import Base


class TrendHistory(Base):
    """One ranked topic of one snapshot run.

    All rows written by the same run share ``geo`` and ``timestamp``;
    rows are appended once and never updated.
    """
    __tablename__ = "trend_history"

    id = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    timestamp = mapped_column(DateTime(timezone=True), nullable=False, index=True)  # UTC
    geo = mapped_column(String(8), nullable=False, index=True)
    rank = mapped_column(Integer, nullable=False)
    keyword = mapped_column(String(500), nullable=False)
    score = mapped_column(Integer, nullable=False, default=0)
    data = mapped_column(Text, nullable=False)  # serialized Topic payload

    __table_args__ = (
        UniqueConstraint("geo", "timestamp", "rank", name="uq_trend_history_run_rank"),
    )


Index('idx_trend_history_geo_timestamp', TrendHistory.geo, TrendHistory.timestamp.desc())
