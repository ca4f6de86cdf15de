# Import all models to register them with SQLModel
from quickblog.models.user import User, AdminRole
from quickblog.models.blog import Blog, BlogCategory
from quickblog.models.comment import Comment
from quickblog.models.subscriber import Subscriber

__all__ = [
    "User",
    "AdminRole",
    "Blog",
    "BlogCategory",
    "Comment",
    "Subscriber",
]
