from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from app.utils.clock import utc_now


class BasketItem(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint(
            "user_id", "product_id", "selected_color_id", "selected_size_id",
            name="uq_basket_item_selection",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    product_id: int = Field(foreign_key="product.id")
    selected_color_id: Optional[int] = Field(default=None, foreign_key="color.id")
    selected_size_id: Optional[int] = Field(default=None, foreign_key="size.id")
    quantity: int = Field(default=1, ge=1)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
