"""Domain models for stockwatch.

Pydantic models are used for everything that is persisted or served, so the
store file and API responses share one serialization.
"""

from stockwatch.models.product import CanonicalProduct, Variant
from stockwatch.models.tracked import TrackedRecord, TrackedVariant
from stockwatch.models.events import Event, NewProduct, Restock
from stockwatch.models.identifier import CandidateIdentifier, IdentifierKind

__all__ = [
    "CanonicalProduct",
    "Variant",
    "TrackedRecord",
    "TrackedVariant",
    "Event",
    "NewProduct",
    "Restock",
    "CandidateIdentifier",
    "IdentifierKind",
]
