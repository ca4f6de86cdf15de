from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends

from quickblog.core.errors import ValidationError
from quickblog.routers.auth import CurrentAdmin, get_current_admin, require_moderator
from quickblog.routers.blogs import get_blog_service, get_comment_service, get_listing_service
from quickblog.schemas import IdRequest
from quickblog.services.blog import BlogService
from quickblog.services.blog_query import BlogListingService, BlogListParams
from quickblog.services.comment import CommentService

router = APIRouter()


def parse_date(value: Optional[str], field: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"Invalid {field}: {value}")


@router.get("/dashboard")
def get_dashboard(
    admin: CurrentAdmin = Depends(get_current_admin),
    service: BlogService = Depends(get_blog_service)
):
    """Counts plus the five most recent blogs, drafts included"""
    return {"success": True, "dashboardData": service.dashboard()}

@router.get("/blogs")
def get_blogs(
    category: Optional[str] = None,
    status: Optional[str] = None,
    sort: Optional[str] = None,
    q: Optional[str] = None,
    tags: Optional[str] = None,
    author: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    admin: CurrentAdmin = Depends(get_current_admin),
    service: BlogListingService = Depends(get_listing_service)
):
    """All blogs including drafts; ``status`` is ``published`` or ``draft``"""
    params = BlogListParams.from_query(
        q=q, category=category, tags=tags, author=author, sort=sort, page=page, limit=limit,
        include_drafts=True, status=status,
    )
    result = service.list_blogs(params)
    return {
        "success": True,
        "blogs": result.items,
        "pagination": {
            "currentPage": result.pagination.current_page,
            "totalPages": result.pagination.total_pages,
            "totalBlogs": result.pagination.total,
            "blogsPerPage": result.pagination.per_page,
        },
    }

@router.get("/comments")
def get_comments(
    status: Optional[str] = None,
    blogId: Optional[int] = None,
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    admin: CurrentAdmin = Depends(get_current_admin),
    service: CommentService = Depends(get_comment_service)
):
    """Moderation queue; ``status`` is ``approved`` or ``pending``"""
    approved = None
    if status:
        approved = status.lower() == "approved"
    comments = service.list_comments(
        approved=approved,
        blog_id=blogId,
        start_date=parse_date(startDate, "startDate"),
        end_date=parse_date(endDate, "endDate"),
    )
    return {"success": True, "comments": comments}

@router.post("/approve-comment")
def approve_comment(
    data: IdRequest,
    admin: CurrentAdmin = Depends(require_moderator),
    service: CommentService = Depends(get_comment_service)
):
    service.approve(data.id)
    return {"success": True, "message": "Comment approved successfully"}

@router.post("/delete-comment")
def delete_comment(
    data: IdRequest,
    admin: CurrentAdmin = Depends(require_moderator),
    service: CommentService = Depends(get_comment_service)
):
    service.delete(data.id)
    return {"success": True, "message": "Comment deleted successfully"}
