"""Core services: classification, resolution, storage, diffing and polling."""

from stockwatch.services.alert_service import AlertDispatcher, Alerter, LogAlerter, WebhookAlerter
from stockwatch.services.classifier import classify
from stockwatch.services.diff import diff
from stockwatch.services.poller import CycleStats, Poller
from stockwatch.services.resolver import Resolver, merge_fragments
from stockwatch.services.store import Store, UpsertResult
from stockwatch.services.tracking_service import TrackingService

__all__ = [
    "AlertDispatcher",
    "Alerter",
    "LogAlerter",
    "WebhookAlerter",
    "classify",
    "diff",
    "CycleStats",
    "Poller",
    "Resolver",
    "merge_fragments",
    "Store",
    "UpsertResult",
    "TrackingService",
]
