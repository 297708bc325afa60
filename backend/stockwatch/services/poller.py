"""Periodic re-check of every tracked product."""

import asyncio
from dataclasses import asdict, dataclass

import structlog

from stockwatch.config import settings
from stockwatch.models.tracked import TrackedRecord
from stockwatch.services.store import Store
from stockwatch.services.tracking_service import TrackingService
from stockwatch.sources.utils.rate_limiter import ConcurrencyGate

logger = structlog.get_logger(__name__)


@dataclass
class CycleStats:
    checked: int = 0
    updated: int = 0
    failed: int = 0
    events: int = 0


class Poller:
    """Re-resolves the tracked set with bounded concurrency.

    A cycle works on a snapshot taken when it starts, so products added
    mid-cycle wait for the next one. A product that fails stays tracked and
    is retried next cycle.
    """

    def __init__(
        self,
        tracking: TrackingService,
        store: Store,
        concurrency: int = settings.POLL_CONCURRENCY,
    ):
        self.tracking = tracking
        self.store = store
        self.concurrency = concurrency
        self.logger = logger.bind(service="poller")

    async def run_cycle(self) -> CycleStats:
        snapshot = self.store.records()
        stats = CycleStats(checked=len(snapshot))
        gate = ConcurrencyGate(self.concurrency)

        self.logger.info("poll_cycle_started", products=len(snapshot))

        async def _check(record: TrackedRecord) -> None:
            async with gate, self.store.lock_for(record.numeric_product_id):
                try:
                    result = await self.tracking.track(record.url)
                except Exception as e:
                    stats.failed += 1
                    self.logger.error(
                        "poll_item_failed",
                        numeric_product_id=record.numeric_product_id,
                        error=str(e),
                        exc_info=True,
                    )
                    return

            if result is None:
                stats.failed += 1
                self.logger.warning(
                    "poll_item_unresolved",
                    numeric_product_id=record.numeric_product_id,
                    url=record.url,
                )
                return

            stats.updated += 1
            stats.events += len(result.events)

        await asyncio.gather(*(_check(record) for record in snapshot))

        self.logger.info("poll_cycle_completed", **asdict(stats))
        return stats
