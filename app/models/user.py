from enum import Enum
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from sqlalchemy import DateTime

from app.utils.clock import utc_now


class UserRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: Optional[str] = Field(default=None, unique=True)
    password: Optional[str] = None
    role: UserRole = Field(default=UserRole.USER)
    language: Optional[str] = None

    # guest sessions
    is_guest: bool = Field(default=False)
    guest_session_id: Optional[str] = Field(default=None, unique=True, index=True)

    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
