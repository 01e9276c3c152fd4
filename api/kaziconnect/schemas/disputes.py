from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from kaziconnect.schemas.common import Envelope

DisputeStatus = Literal["open", "investigating", "resolved", "closed"]
DisputePriority = Literal["low", "medium", "high", "critical"]
DisputeRelatedType = Literal["job", "application", "employer", "other"]


class DisputeCreateRequest(BaseModel):
    subject: str = Field(min_length=3, max_length=255)
    description: str = Field(min_length=10, max_length=5000)
    related_type: DisputeRelatedType | None = None
    related_id: int | None = Field(default=None, ge=1)
    priority: DisputePriority = "medium"

    model_config = {"str_strip_whitespace": True}


class DisputeResolveRequest(BaseModel):
    resolution: str = Field(min_length=1, max_length=5000)

    model_config = {"str_strip_whitespace": True}


class DisputeStatusPatchRequest(BaseModel):
    # "resolved" is reachable only through the resolve endpoint, which stamps the resolution.
    status: Literal["investigating", "closed"]


class DisputeOut(BaseModel):
    id: int
    user_id: int
    subject: str
    description: str
    related_type: DisputeRelatedType | None = None
    related_id: int | None = None
    status: DisputeStatus = "open"
    priority: DisputePriority = "medium"
    filed_date: datetime
    resolved_date: datetime | None = None
    resolved_by: int | None = None
    resolution: str | None = None
    username: str | None = None
    email: str | None = None


class DisputeEnvelope(Envelope):
    dispute: DisputeOut
