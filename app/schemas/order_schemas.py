from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional

from app.models.order import OrderStatus, PaymentMethod, PaymentStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# requests; recipient fields are checked by the order service so that a
# missing value surfaces as ValidationError rather than a 422

class OrderFromBasketCreate(CamelModel):
    recipient_name: Optional[str] = None
    recipient_address: Optional[str] = None
    notes: Optional[str] = None


class GuestOrderItem(CamelModel):
    product_id: int
    quantity: int = Field(default=1, ge=1)
    selected_color_id: Optional[int] = None
    selected_size_id: Optional[int] = None


class GuestOrderCreate(CamelModel):
    recipient_name: Optional[str] = None
    recipient_address: Optional[str] = None
    recipient_phone: Optional[str] = None
    recipient_email: Optional[EmailStr] = None
    notes: Optional[str] = None
    items: List[GuestOrderItem] = []


class OrderStatusUpdate(CamelModel):
    status: OrderStatus
    notes: Optional[str] = None


# responses

class OrderItemRead(CamelModel):
    id: int
    product_id: int
    selected_color_id: Optional[int] = None
    selected_size_id: Optional[int] = None
    quantity: int
    price_kzt: int = Field(alias="priceKZT")
    price_usd: int = Field(alias="priceUSD")


class OrderRead(CamelModel):
    id: int
    user_id: Optional[int] = None
    recipient_name: str
    recipient_address: str
    recipient_phone: Optional[str] = None
    recipient_email: Optional[str] = None
    payment_method: PaymentMethod
    status: OrderStatus
    payment_status: Optional[PaymentStatus] = None
    tiptoppay_transaction_id: Optional[str] = None
    total_kzt: int = Field(alias="totalKZT")
    total_usd: int = Field(alias="totalUSD")
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemRead] = []


class PaymentData(CamelModel):
    public_id: str
    order_id: int
    amount: int
    currency: str = "KZT"
    description: str


class OrderCreatedResponse(CamelModel):
    message: str
    order: OrderRead
    payment_data: PaymentData
