from enum import Enum
from sqlmodel import SQLModel, Field, Relationship
from typing import List, Optional
from datetime import datetime
from sqlalchemy import DateTime

from app.models.order_item import OrderItem
from app.utils.clock import utc_now


class OrderStatus(str, Enum):
    CREATED = "CREATED"
    PAID = "PAID"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, Enum):
    TIPTOP_PAY = "TIPTOP_PAY"


class Order(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    # null for anonymous guest checkout
    user_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)

    recipient_name: str
    recipient_address: str
    recipient_phone: Optional[str] = None
    recipient_email: Optional[str] = None

    payment_method: PaymentMethod = Field(default=PaymentMethod.TIPTOP_PAY)
    status: OrderStatus = Field(default=OrderStatus.CREATED, index=True)
    payment_status: Optional[PaymentStatus] = Field(default=None)
    tiptoppay_transaction_id: Optional[str] = Field(default=None, index=True)

    total_kzt: int
    total_usd: int
    notes: Optional[str] = None

    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))

    items: List["OrderItem"] = Relationship(back_populates="order")
