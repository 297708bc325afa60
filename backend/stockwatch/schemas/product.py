"""Product request/response schemas."""

from typing import List

from pydantic import BaseModel, Field

from stockwatch.models.tracked import TrackedRecord


class ResolveRequest(BaseModel):
    """Inputs to resolve and start tracking, in caller order."""

    inputs: List[str] = Field(default_factory=list, max_length=500)


TrackedProductResponse = TrackedRecord
