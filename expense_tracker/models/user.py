import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field

from .record import utcnow


class UserAccount(SQLModel, table=True):
    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    # Stable identifier issued by the identity provider
    external_id: str = Field(index=True, unique=True, max_length=255)

    email: str = Field(index=True, unique=True)
    name: Optional[str] = Field(default=None)
    image_url: Optional[str] = Field(default=None)

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
