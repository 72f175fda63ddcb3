from typing import Optional

from app.schemas.order_schemas import CamelModel
from pydantic import Field


class BasketAddRequest(CamelModel):
    product_id: int
    quantity: int = Field(default=1, ge=1)
    selected_color_id: Optional[int] = None
    selected_size_id: Optional[int] = None


class BasketUpdateRequest(CamelModel):
    quantity: int
