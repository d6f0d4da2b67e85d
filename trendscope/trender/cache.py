"""Snapshot cache for trending topics.

Per region there are two states:
- FRESH: the newest stored run is younger than the freshness window. It is
  served as is, ordered by persisted rank.
- STALE/ABSENT: no run, or the newest is older than the window. The
  pipeline runs, the result is stored as a new run stamped with the
  request time, and the fresh result is returned.

Cache writes are best-effort: a failed write is logged and the computed
ranking is still returned. Historical lookups only read.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Optional

from trendscope.core.db import get_sessionmaker
from trendscope.core.logging import get_logger
from trendscope.core.repositories import TrendHistoryStore
from trendscope.core.settings import Settings, get_settings
from trendscope.core.time import get_current_utc_time, normalize_timezone
from trendscope.trender.models import TrendsResult
from trendscope.trender.pipeline import TrendPipeline, build_pipeline

logger = get_logger(__name__)

DEFAULT_FRESHNESS_WINDOW = timedelta(hours=1)
DEFAULT_HISTORY_TOLERANCE = timedelta(minutes=30)
DEFAULT_STORE_TIMEOUT = 5.0


class SnapshotCache:
    """Decides between serving a stored snapshot and running the pipeline."""

    def __init__(
        self,
        store: TrendHistoryStore,
        pipeline: TrendPipeline,
        freshness_window: timedelta = DEFAULT_FRESHNESS_WINDOW,
        history_tolerance: timedelta = DEFAULT_HISTORY_TOLERANCE,
        store_timeout: float = DEFAULT_STORE_TIMEOUT
    ):
        self.store = store
        self.pipeline = pipeline
        self.freshness_window = freshness_window
        self.history_tolerance = history_tolerance
        self.store_timeout = store_timeout

    async def get_trends(self, region: str, now: Optional[datetime] = None) -> TrendsResult:
        """Serve the region's fresh snapshot, or compute and store a new one."""
        now = normalize_timezone(now) if now else get_current_utc_time()

        try:
            snapshot = await asyncio.wait_for(
                self.store.read_latest(region, since=now - self.freshness_window),
                timeout=self.store_timeout
            )
        except asyncio.TimeoutError:
            logger.error(f"Snapshot lookup timed out for {region}, treating as miss", extra={"region": region})
            snapshot = None
        except Exception as e:
            logger.error(f"Snapshot lookup failed for {region}, treating as miss: {e}", extra={"region": region})
            snapshot = None

        if snapshot and snapshot.topics:
            logger.info(f"[Cache Hit] Serving {len(snapshot.topics)} trends for {region} from store")
            return TrendsResult(region=region, trends=snapshot.topics, source='cache', timestamp=snapshot.timestamp)

        logger.info(f"[Cache Miss] Fetching live trends for {region}")
        return await self.refresh(region, now)

    async def refresh(self, region: str, now: Optional[datetime] = None) -> TrendsResult:
        """
        Run the pipeline and store the result as a new snapshot,
        regardless of freshness.
        """
        now = normalize_timezone(now) if now else get_current_utc_time()

        trends = await self.pipeline.run(region)

        if trends:
            try:
                saved = await asyncio.wait_for(
                    self.store.write_run(region, now, trends),
                    timeout=self.store_timeout
                )
            except asyncio.TimeoutError:
                logger.error(f"Snapshot write timed out for {region}", extra={"region": region})
                saved = False
            except Exception as e:
                logger.error(f"Snapshot write failed for {region}: {e}", extra={"region": region})
                saved = False
            if saved:
                logger.info(f"[Cache Update] Saved {len(trends)} trends for {region}")
            else:
                logger.warning(f"[Cache Update] Snapshot for {region} not saved, serving live result")
        else:
            logger.info(f"No trends computed for {region}, nothing to store")

        return TrendsResult(region=region, trends=trends, source='live', timestamp=now)

    async def get_history(self, region: str, target: datetime) -> TrendsResult:
        """
        Topics of the run within +/- ``history_tolerance`` of ``target``.

        Never triggers a fetch; the result is empty when no run matches.
        """
        target = normalize_timezone(target)
        try:
            snapshot = await asyncio.wait_for(
                self.store.read_run(
                    region,
                    start=target - self.history_tolerance,
                    end=target + self.history_tolerance,
                    target=target,
                ),
                timeout=self.store_timeout
            )
        except asyncio.TimeoutError:
            logger.error(f"Snapshot history lookup timed out for {region}", extra={"region": region})
            snapshot = None

        if not snapshot:
            logger.info(f"No snapshot for {region} near {target.isoformat()}")
            return TrendsResult(region=region, trends=[], source='history', timestamp=None)

        return TrendsResult(region=region, trends=snapshot.topics, source='history', timestamp=snapshot.timestamp)

    async def aclose(self) -> None:
        await self.pipeline.aclose()


def build_snapshot_cache(config: Optional[Settings] = None) -> SnapshotCache:
    """Snapshot cache over the application database and pipeline."""
    config = config or get_settings()
    return SnapshotCache(
        store=TrendHistoryStore(get_sessionmaker()),
        pipeline=build_pipeline(config),
        freshness_window=timedelta(minutes=config.freshness_window_minutes),
        history_tolerance=timedelta(minutes=config.history_tolerance_minutes),
        store_timeout=config.store_timeout_seconds,
    )
