from enum import Enum
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from sqlalchemy import DateTime

from app.utils.clock import utc_now


class ProductStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    SOLD = "SOLD"
    DELETED = "DELETED"


class Color(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    hex: Optional[str] = None


class Size(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str


class Product(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: Optional[str] = None

    # whole currency units
    price_kzt: int
    price_usd: int

    status: ProductStatus = Field(default=ProductStatus.AVAILABLE)

    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))

    @property
    def is_available(self) -> bool:
        return self.status == ProductStatus.AVAILABLE
