"""Candidate identifier produced by the input classifier."""

import enum
from dataclasses import dataclass
from typing import Optional


class IdentifierKind(str, enum.Enum):
    NUMERIC_ID = "numeric_id"
    CART_HASH = "cart_hash"
    PRODUCT_URL = "product_url"
    QUERY = "query"


@dataclass(frozen=True)
class CandidateIdentifier:
    """Shape of a raw input after classification. Never persisted."""

    kind: IdentifierKind
    raw: str
    numeric_id: Optional[str] = None
    hashed_id: Optional[str] = None
    url: Optional[str] = None
    search_term: str = ""

    def with_numeric_id(self, numeric_id: str) -> "CandidateIdentifier":
        """Promote to a numeric id, keeping the raw input."""
        return CandidateIdentifier(
            kind=IdentifierKind.NUMERIC_ID,
            raw=self.raw,
            numeric_id=numeric_id,
            hashed_id=self.hashed_id,
            search_term=numeric_id,
        )
