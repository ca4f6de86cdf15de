import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select, delete

from quickblog.core.errors import NotFoundError
from quickblog.models.blog import Blog
from quickblog.models.comment import Comment

logger = logging.getLogger(__name__)


class CommentService:
    def __init__(self, session: Session):
        self.session = session

    def get_comment(self, comment_id: int) -> Comment:
        comment = self.session.get(Comment, comment_id)
        if not comment:
            raise NotFoundError("Comment not found")
        return comment

    def get_public_blog(self, blog_id: int) -> Blog:
        blog = self.session.get(Blog, blog_id)
        # Drafts are hidden from the public comment endpoints too
        if not blog or not blog.is_published:
            raise NotFoundError("Blog not found")
        return blog

    def add_comment(self, blog_id: int, name: str, content: str, email: Optional[str] = None) -> Comment:
        self.get_public_blog(blog_id)

        comment = Comment(
            blog_id=blog_id,
            name=name.strip(),
            email=email.strip() if email else None,
            content=content.strip(),
        )
        self.session.add(comment)
        self.session.commit()
        self.session.refresh(comment)
        return comment

    def list_approved(self, blog_id: int) -> List[Comment]:
        self.get_public_blog(blog_id)
        return list(self.session.exec(
            select(Comment)
            .where(Comment.blog_id == blog_id, Comment.is_approved == True)
            .order_by(Comment.created_at.desc(), Comment.id.desc())
        ).all())

    def list_comments(
        self,
        approved: Optional[bool] = None,
        blog_id: Optional[int] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        """Moderation queue: every comment with the title of its blog, newest first."""
        query = select(Comment, Blog.title).outerjoin(Blog, Blog.id == Comment.blog_id)
        if approved is not None:
            query = query.where(Comment.is_approved == approved)
        if blog_id is not None:
            query = query.where(Comment.blog_id == blog_id)
        if start_date and end_date:
            query = query.where(Comment.created_at >= start_date, Comment.created_at <= end_date)

        rows = self.session.exec(query.order_by(Comment.created_at.desc(), Comment.id.desc())).all()
        comments = []
        for comment, blog_title in rows:
            data = comment.model_dump()
            data["blog"] = {"id": comment.blog_id, "title": blog_title} if blog_title is not None else None
            comments.append(data)
        return comments

    def approve(self, comment_id: int) -> Comment:
        comment = self.get_comment(comment_id)
        comment.is_approved = True
        comment.updated_at = datetime.utcnow()
        self.session.add(comment)
        self.session.commit()
        self.session.refresh(comment)
        return comment

    def delete(self, comment_id: int) -> None:
        comment = self.get_comment(comment_id)
        self.session.delete(comment)
        self.session.commit()

    def delete_orphans(self) -> int:
        """Remove comments whose blog no longer exists."""
        blog_ids = select(Blog.id)
        result = self.session.exec(delete(Comment).where(Comment.blog_id.not_in(blog_ids)))
        self.session.commit()
        if result.rowcount:
            logger.info("Deleted %s orphaned comments", result.rowcount)
        return result.rowcount
