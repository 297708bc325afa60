"""Domain events emitted by the diff engine."""

from dataclasses import dataclass
from typing import Union

from stockwatch.models.tracked import TrackedRecord, TrackedVariant


@dataclass(frozen=True)
class NewProduct:
    """First successful resolution of a previously unseen product id."""

    record: TrackedRecord


@dataclass(frozen=True)
class Restock:
    """A variant's inventory moved from exactly zero to a positive count."""

    record: TrackedRecord
    variant: TrackedVariant
    previous_inventory: int
    inventory: int


Event = Union[NewProduct, Restock]
