"""Tracking pipeline: resolve an input, upsert it, alert on its events."""

import asyncio
from datetime import datetime
from typing import List, Optional, Sequence

import structlog

from stockwatch.config import settings
from stockwatch.models.tracked import TrackedRecord
from stockwatch.services.alert_service import AlertDispatcher
from stockwatch.services.resolver import Resolver
from stockwatch.services.store import Store, UpsertResult
from stockwatch.sources.utils.rate_limiter import ConcurrencyGate

logger = structlog.get_logger(__name__)


class TrackingService:
    """Connects the resolver, the store and the alert dispatcher.

    Used for on-demand resolve batches and, through the poller, for
    scheduled re-checks.
    """

    def __init__(
        self,
        resolver: Resolver,
        store: Store,
        dispatcher: AlertDispatcher,
        batch_concurrency: int = settings.BATCH_CONCURRENCY,
    ):
        self.resolver = resolver
        self.store = store
        self.dispatcher = dispatcher
        self.batch_concurrency = batch_concurrency
        self.logger = logger.bind(service="tracking_service")

    async def track(self, raw: str, now: Optional[datetime] = None) -> Optional[UpsertResult]:
        """Resolve one input and record it.

        Returns:
            UpsertResult, or None if the input did not resolve
        """
        product = await self.resolver.resolve(raw)
        if product is None:
            return None

        result = self.store.upsert(product, now)
        if result.events:
            await self.dispatcher.dispatch(result.events)
        return result

    async def track_many(self, inputs: Sequence[str]) -> List[TrackedRecord]:
        """Resolve and record a batch of inputs.

        Every input is awaited before returning. Results keep input order;
        inputs that fail are left out.
        """
        gate = ConcurrencyGate(self.batch_concurrency)

        async def _track_one(raw: str) -> Optional[TrackedRecord]:
            async with gate:
                try:
                    result = await self.track(raw)
                except Exception as e:
                    self.logger.error(
                        "track_failed",
                        raw=raw,
                        error=str(e),
                        exc_info=True,
                    )
                    return None
            return result.record if result else None

        results = await asyncio.gather(*(_track_one(raw) for raw in inputs))
        tracked = [record for record in results if record is not None]

        self.logger.info(
            "batch_tracked",
            inputs=len(inputs),
            tracked=len(tracked),
            failed=len(inputs) - len(tracked),
        )
        return tracked
