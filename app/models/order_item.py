from sqlmodel import SQLModel, Field , Relationship
from typing import Optional , TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.order import Order

class OrderItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="order.id", index=True)
    product_id: int = Field(foreign_key="product.id")
    selected_color_id: Optional[int] = Field(default=None, foreign_key="color.id")
    selected_size_id: Optional[int] = Field(default=None, foreign_key="size.id")

    quantity: int = Field(default=1, ge=1)

    # price snapshot taken when the order was created
    price_kzt: int
    price_usd: int

    order: Optional["Order"] = Relationship(back_populates="items")
