from typing import Optional
from datetime import datetime
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import Index, Text

class Comment(SQLModel, table=True):
    __table_args__ = (Index("ix_comment_blog_id_is_approved", "blog_id", "is_approved"),)

    id: Optional[int] = Field(default=None, primary_key=True)

    # Plain reference, no FK constraint: BlogService removes a blog's comments itself
    blog_id: int

    # Commenter
    name: str = Field(max_length=100)
    email: Optional[str] = None

    content: str = Field(sa_column=Column(Text, nullable=False))

    # Hidden from the public until a moderator approves it
    is_approved: bool = Field(default=False)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
