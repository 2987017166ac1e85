# app/schemas/notification.py
from pydantic import BaseModel, ConfigDict
from datetime import datetime

from app.schemas.common import PaginatedResponse

class Notification(BaseModel):
    id: int
    type: str
    kind: str | None
    title: str
    message: str | None
    order_id: str | None # Публичный id связанного заказа
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaginatedNotifications(PaginatedResponse[Notification]):
    pass
