from typing import Optional
from datetime import datetime
from sqlmodel import Field, SQLModel

class Subscriber(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # Always stored trimmed and lowercase
    email: str = Field(unique=True, index=True)

    # Status
    is_active: bool = Field(default=True, index=True)
    subscribed_at: datetime = Field(default_factory=datetime.utcnow)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
