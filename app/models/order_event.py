from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, JSON

from app.utils.clock import utc_now


class OrderEventActor(str, Enum):
    system = "system"
    user = "user"
    guest = "guest"
    admin = "admin"
    webhook = "webhook"


class OrderEvent(SQLModel, table=True):
    """One immutable line of an order's timeline."""
    __tablename__ = "order_event"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    order_id: int = Field(foreign_key="order.id", index=True)

    # ORDER_CREATED, ORDER_CANCELLED, STATUS_CHANGED, PAYMENT_<KIND>
    event_type: str = Field(index=True)
    label: str
    # gateway transaction that caused the event, if any
    transaction_id: Optional[str] = None
    meta: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_by: OrderEventActor = Field(default=OrderEventActor.system)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
