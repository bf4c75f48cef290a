import uuid
from datetime import datetime, timezone
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExpenseRecord(SQLModel, table=True):
    __tablename__ = "records"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    text: str
    amount: float
    category: str = Field(max_length=50)
    # Calendar day anchored at 12:00 UTC
    date: datetime = Field(sa_type=DateTime(timezone=True))

    user_id: str = Field(
        foreign_key="users.external_id",
        index=True,
    )

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
