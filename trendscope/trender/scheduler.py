"""Periodic pre-warm of the snapshot cache for tracked regions."""

import asyncio
import time
from typing import Any, Dict, List, Optional, Sequence

from trendscope.core.logging import get_logger
from trendscope.core.regions import tracked_regions
from trendscope.core.time import get_current_utc_time
from trendscope.trender.cache import SnapshotCache

logger = get_logger(__name__)


async def run_scheduled_job(cache: SnapshotCache, regions: Optional[Sequence[str]] = None) -> Dict[str, Any]:
    """
    Refresh every region once, irrespective of freshness.

    Regions run one after another so that enrichment quotas are shared
    fairly; a failure in one region does not stop the others.
    """
    regions = list(regions) if regions is not None else tracked_regions()
    timestamp = get_current_utc_time()
    start_time = time.time()
    results: List[Dict[str, Any]] = []

    logger.info(f"[Scheduler] Starting trend refresh for {len(regions)} regions")

    for region in regions:
        try:
            result = await cache.refresh(region, now=timestamp)
            results.append({'geo': region, 'count': len(result.trends)})
            logger.info(f"[Scheduler] Refreshed {len(result.trends)} trends for {region}")
        except Exception as e:
            logger.error(f"[Scheduler] Failed to refresh {region}: {e}", extra={"region": region})
            results.append({'geo': region, 'error': str(e)})

    runtime = round(time.time() - start_time, 2)
    logger.info(f"[Scheduler] Job completed in {runtime}s")
    return {
        'success': all('error' not in r for r in results),
        'timestamp': timestamp.isoformat(),
        'runtime_seconds': runtime,
        'results': results,
    }


async def scheduler_loop(
    cache: SnapshotCache,
    interval_seconds: float,
    regions: Optional[Sequence[str]] = None
) -> None:
    """Run the refresh job every ``interval_seconds`` until cancelled.

    The first run happens one interval after start.
    """
    logger.info(f"[Scheduler] Trend refresh scheduled every {interval_seconds / 3600:.1f}h")
    while True:
        await asyncio.sleep(interval_seconds)
        await run_scheduled_job(cache, regions)
