from typing import Optional
from datetime import datetime
from enum import Enum
from sqlmodel import Field, SQLModel

class AdminRole(str, Enum):
    SUPER_ADMIN = "super_admin"  # Full access
    ADMIN = "admin"  # Manage blogs, subscribers and comments
    MODERATOR = "moderator"  # Approve and delete comments

class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # Basic Info
    name: str
    email: str = Field(unique=True, index=True)
    password_hash: str

    # Role
    role: AdminRole = Field(default=AdminRole.MODERATOR)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
