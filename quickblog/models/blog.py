from typing import Optional, List
from datetime import datetime
from enum import Enum
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import JSON, Text

class BlogCategory(str, Enum):
    TECHNOLOGY = "Technology"
    STARTUP = "Startup"
    LIFESTYLE = "Lifestyle"
    FINANCE = "Finance"

class Blog(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # Author (staff user who wrote it); old posts may have none
    author_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)

    # Content
    title: str = Field(index=True, max_length=200)
    sub_title: str = ""
    description: str = Field(sa_column=Column(Text, nullable=False))  # Rich text body (HTML)

    # Categorization
    category: BlogCategory = Field(index=True)
    tags: List[str] = Field(default=[], sa_column=Column(JSON))  # e.g., ["python", "fastapi"]

    # Cover image URL
    image: str

    # Status
    is_published: bool = Field(default=False, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
