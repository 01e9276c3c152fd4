from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from kaziconnect.schemas.common import Envelope

NotificationKind = Literal["info", "success", "warning", "error"]
NotificationRelatedType = Literal["application", "job", "profile", "system", "dispute"]


class NotificationOut(BaseModel):
    id: int
    recipient_id: int
    title: str
    message: str
    kind: NotificationKind = "info"
    related_type: NotificationRelatedType | None = None
    related_id: int | None = None
    is_read: bool = False
    sent_date: datetime


class UnreadCountOut(Envelope):
    count: int


class MarkAllReadOut(Envelope):
    updated: int
