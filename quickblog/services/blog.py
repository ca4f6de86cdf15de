import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlmodel import Session, select, func, delete

from quickblog.core.errors import NotFoundError
from quickblog.models.blog import Blog, BlogCategory
from quickblog.models.comment import Comment
from quickblog.services.notification import FanoutEvent

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "sub_title", "description", "category", "tags", "image", "is_published")


def normalize_tags(tags: Optional[List[str]]) -> List[str]:
    normalized = []
    for tag in tags or []:
        tag = str(tag).strip().lower()
        if tag and tag not in normalized:
            normalized.append(tag)
    return normalized


def publication_event(was_published: bool, is_published: bool) -> Optional[FanoutEvent]:
    """Which newsletter, if any, a change of publish state should trigger."""
    if not is_published:
        return None
    if was_published:
        return FanoutEvent.BLOG_UPDATE
    return FanoutEvent.NEW_BLOG


class BlogService:
    def __init__(self, session: Session):
        self.session = session

    def get_blog(self, blog_id: int) -> Blog:
        blog = self.session.get(Blog, blog_id)
        if not blog:
            raise NotFoundError("Blog not found")
        return blog

    def get_public_blog(self, blog_id: int) -> Blog:
        blog = self.session.get(Blog, blog_id)
        # Drafts look exactly like missing blogs to the public
        if not blog or not blog.is_published:
            raise NotFoundError("Blog not found")
        return blog

    def create_blog(
        self,
        title: str,
        description: str,
        category: BlogCategory,
        image: str,
        sub_title: str = "",
        tags: Optional[List[str]] = None,
        is_published: bool = False,
        author_id: Optional[int] = None,
    ) -> Tuple[Blog, Optional[FanoutEvent]]:
        blog = Blog(
            title=title.strip(),
            sub_title=(sub_title or "").strip(),
            description=description,
            category=category,
            tags=normalize_tags(tags),
            image=image,
            is_published=is_published,
            author_id=author_id,
        )
        self.session.add(blog)
        self.session.commit()
        self.session.refresh(blog)
        logger.info("Blog #%s created (published=%s)", blog.id, blog.is_published)
        return blog, publication_event(False, blog.is_published)

    def update_blog(self, blog_id: int, changes: Dict[str, Any]) -> Tuple[Blog, Optional[FanoutEvent]]:
        blog = self.get_blog(blog_id)
        was_published = blog.is_published

        for field, value in changes.items():
            if field not in UPDATABLE_FIELDS or value is None:
                continue
            if field == "tags":
                value = normalize_tags(value)
            elif field in ("title", "sub_title"):
                value = value.strip()
            setattr(blog, field, value)

        blog.updated_at = datetime.utcnow()
        self.session.add(blog)
        self.session.commit()
        self.session.refresh(blog)
        logger.info("Blog #%s updated", blog.id)
        return blog, publication_event(was_published, blog.is_published)

    def toggle_publish(self, blog_id: int) -> Tuple[Blog, Optional[FanoutEvent]]:
        blog = self.get_blog(blog_id)
        blog.is_published = not blog.is_published
        blog.updated_at = datetime.utcnow()
        self.session.add(blog)
        self.session.commit()
        self.session.refresh(blog)
        logger.info("Blog #%s is now %s", blog.id, "published" if blog.is_published else "a draft")
        # Re-publishing a draft announces it as new
        return blog, publication_event(False, blog.is_published)

    def delete_blog(self, blog_id: int) -> int:
        """Delete a blog, then its comments. Returns the number of comments removed.

        The two deletes are separate commits; a crash in between leaves
        orphans for ``CommentService.delete_orphans``.
        """
        blog = self.get_blog(blog_id)
        self.session.delete(blog)
        self.session.commit()

        result = self.session.exec(delete(Comment).where(Comment.blog_id == blog_id))
        self.session.commit()
        logger.info("Blog #%s deleted with %s comments", blog_id, result.rowcount)
        return result.rowcount

    def dashboard(self) -> Dict[str, Any]:
        recent_blogs = self.session.exec(
            select(Blog).order_by(Blog.created_at.desc(), Blog.id.desc()).limit(5)
        ).all()
        return {
            "blogs": self.session.exec(select(func.count(Blog.id))).one(),
            "comments": self.session.exec(select(func.count(Comment.id))).one(),
            "drafts": self.session.exec(select(func.count(Blog.id)).where(Blog.is_published == False)).one(),
            "recentBlogs": recent_blogs,
        }
