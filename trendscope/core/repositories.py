"""Repository layer for snapshot persistence.

A snapshot run is a batch of ``trend_history`` rows sharing one region and
one timestamp. Runs are written in a single transaction, so readers see
either the whole run or none of it, and are never updated afterwards.
"""

import json
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from trendscope.core.logging import get_logger
from trendscope.core.models import TrendHistory
from trendscope.core.time import normalize_timezone
from trendscope.trender.models import Snapshot, Topic

logger = get_logger(__name__)


def _to_rows(region: str, timestamp: datetime, topics: Sequence[Topic]) -> List[TrendHistory]:
    return [
        TrendHistory(
            timestamp=timestamp,
            geo=region,
            rank=position,
            keyword=topic.keyword,
            score=topic.total_score,
            data=json.dumps(topic.to_dict(), ensure_ascii=False),
        )
        for position, topic in enumerate(topics, start=1)
    ]


def _to_topics(rows: Sequence[TrendHistory]) -> List[Topic]:
    """Deserialize payloads in rank order, skipping unreadable rows."""
    topics = []
    for row in rows:
        try:
            topics.append(Topic.from_dict(json.loads(row.data)))
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Failed to parse trend payload (geo={row.geo}, rank={row.rank}): {e}")
    return topics


class TrendHistoryStore:
    """Async store for snapshot runs."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def write_run(self, region: str, timestamp: datetime, topics: Sequence[Topic]) -> bool:
        """
        Persist all topics of one run under ``(region, timestamp)``.

        Rank is the 1-based position in ``topics``. The insert is
        all-or-nothing.

        Returns:
            True when the run was committed, False otherwise
        """
        timestamp = normalize_timezone(timestamp)

        try:
            rows = _to_rows(region, timestamp, topics)
            async with self.session_factory() as session:
                async with session.begin():
                    session.add_all(rows)
        except (SQLAlchemyError, TypeError, ValueError) as e:
            logger.error(
                f"Failed to save {len(topics)} trends for {region} at {timestamp.isoformat()}: {e}",
                extra={"region": region, "collaborator": "store"}
            )
            return False

        logger.info(f"Saved {len(topics)} trends for {region} at {timestamp.isoformat()}")
        return True

    async def _load_run(self, session, region: str, timestamp: datetime) -> Snapshot:
        stmt = (
            select(TrendHistory)
            .where(TrendHistory.geo == region, TrendHistory.timestamp == timestamp)
            .order_by(TrendHistory.rank.asc())
        )
        result = await session.execute(stmt)
        rows = result.scalars().all()
        return Snapshot(region=region, timestamp=normalize_timezone(timestamp), topics=_to_topics(rows))

    async def read_latest(self, region: str, since: datetime) -> Optional[Snapshot]:
        """
        Newest run for ``region`` with timestamp >= ``since``.

        Only rows of that single run are returned, ordered by rank.
        """
        since = normalize_timezone(since)

        try:
            async with self.session_factory() as session:
                stmt = (
                    select(TrendHistory.timestamp)
                    .where(TrendHistory.geo == region, TrendHistory.timestamp >= since)
                    .order_by(TrendHistory.timestamp.desc())
                    .limit(1)
                )
                latest = (await session.execute(stmt)).scalar_one_or_none()
                if latest is None:
                    return None
                return await self._load_run(session, region, latest)

        except SQLAlchemyError as e:
            logger.error(f"Failed to read latest snapshot for {region}: {e}", extra={"region": region, "collaborator": "store"})
            return None

    async def read_run(
        self,
        region: str,
        start: datetime,
        end: datetime,
        target: Optional[datetime] = None
    ) -> Optional[Snapshot]:
        """
        The run for ``region`` with timestamp in ``[start, end]``.

        When several runs fall in the window, the one closest to ``target``
        (default: window midpoint) wins; ties go to the later run.
        """
        start = normalize_timezone(start)
        end = normalize_timezone(end)
        target = normalize_timezone(target) if target else start + (end - start) / 2

        try:
            async with self.session_factory() as session:
                stmt = (
                    select(TrendHistory.timestamp)
                    .where(
                        TrendHistory.geo == region,
                        TrendHistory.timestamp >= start,
                        TrendHistory.timestamp <= end,
                    )
                    .distinct()
                    .order_by(TrendHistory.timestamp.desc())
                )
                candidates = (await session.execute(stmt)).scalars().all()
                if not candidates:
                    return None

                chosen = min(candidates, key=lambda ts: abs(normalize_timezone(ts) - target))
                return await self._load_run(session, region, chosen)

        except SQLAlchemyError as e:
            logger.error(f"Failed to read snapshot history for {region}: {e}", extra={"region": region, "collaborator": "store"})
            return None
