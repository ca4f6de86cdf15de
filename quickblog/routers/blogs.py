from typing import Optional, Type

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile
from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy.engine import Engine
from sqlmodel import Session
from starlette.concurrency import run_in_threadpool

from quickblog.core.errors import ServerError, ValidationError
from quickblog.db.session import get_engine, get_session
from quickblog.routers.auth import CurrentAdmin, require_editor
from quickblog.schemas import (
    BlogCommentsRequest,
    BlogCreate,
    BlogUpdate,
    CommentCreate,
    GenerateRequest,
    IdRequest,
    describe_validation_errors,
)
from quickblog.services.blog import BlogService
from quickblog.services.blog_query import BlogListingService, BlogListParams
from quickblog.services.comment import CommentService
from quickblog.services.email import EmailClient, get_email_client
from quickblog.services.generation import ContentGenerator, get_content_generator
from quickblog.services.notification import schedule_blog_notification
from quickblog.services.s3 import ALLOWED_IMAGE_TYPES, MAX_IMAGE_BYTES, S3Service, get_s3_service

router = APIRouter()


def get_blog_service(session: Session = Depends(get_session)) -> BlogService:
    return BlogService(session)

def get_listing_service(session: Session = Depends(get_session)) -> BlogListingService:
    return BlogListingService(session)

def get_comment_service(session: Session = Depends(get_session)) -> CommentService:
    return CommentService(session)


def parse_blog_form(raw: str, schema: Type[BaseModel]):
    """The multipart ``blog`` field carries the post as a JSON string."""
    try:
        return schema.model_validate_json(raw)
    except PydanticValidationError as e:
        errors = e.errors()
        if errors and errors[0].get("type") == "json_invalid":
            raise ValidationError("Invalid blog data format")
        raise ValidationError(describe_validation_errors(errors))

async def upload_cover_image(image: UploadFile, storage: S3Service) -> str:
    if image.content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationError("Invalid file type. Only JPEG, PNG, WebP and GIF images are allowed.")
    content = await image.read()
    if not content:
        raise ValidationError("Image file is empty")
    if len(content) > MAX_IMAGE_BYTES:
        raise ValidationError("Image must be 5MB or smaller")

    image_url = await run_in_threadpool(storage.upload_blog_image, content, image.filename, image.content_type)
    if not image_url:
        raise ServerError("Image upload failed")
    return image_url

def listing_response(page, total_key: str, per_page_key: str) -> dict:
    return {
        "success": True,
        "blogs": page.items,
        "pagination": {
            "currentPage": page.pagination.current_page,
            "totalPages": page.pagination.total_pages,
            total_key: page.pagination.total,
            per_page_key: page.pagination.per_page,
        },
    }


@router.get("/all")
def list_blogs(
    q: Optional[str] = None,
    category: Optional[str] = None,
    tags: Optional[str] = None,
    author: Optional[str] = None,
    sort: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    service: BlogListingService = Depends(get_listing_service)
):
    """Published blogs, filtered, sorted and paginated"""
    params = BlogListParams.from_query(
        q=q, category=category, tags=tags, author=author, sort=sort, page=page, limit=limit
    )
    return listing_response(service.list_blogs(params), "totalBlogs", "blogsPerPage")

@router.get("/search")
def search_blogs(
    q: Optional[str] = None,
    category: Optional[str] = None,
    tags: Optional[str] = None,
    author: Optional[str] = None,
    sort: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    service: BlogListingService = Depends(get_listing_service)
):
    """Relevance-ranked text search; wrap the query in double quotes for a phrase"""
    if not q or not q.strip():
        raise ValidationError("Search query is required")
    params = BlogListParams.from_query(
        q=q, category=category, tags=tags, author=author, sort=sort, page=page, limit=limit
    )
    response = listing_response(service.list_blogs(params), "totalResults", "resultsPerPage")
    response["query"] = params.q
    return response

@router.post("/add", status_code=201)
async def add_blog(
    background_tasks: BackgroundTasks,
    blog: str = Form(...),
    image: UploadFile = File(None),
    admin: CurrentAdmin = Depends(require_editor),
    service: BlogService = Depends(get_blog_service),
    storage: S3Service = Depends(get_s3_service),
    email_client: EmailClient = Depends(get_email_client),
    engine: Engine = Depends(get_engine)
):
    """Create a blog from a JSON ``blog`` form field and a cover ``image``"""
    data = parse_blog_form(blog, BlogCreate)
    if not image:
        raise ValidationError("Blog cover image is required")
    image_url = await upload_cover_image(image, storage)

    created, event = service.create_blog(**data.model_dump(), image=image_url, author_id=admin.id)
    if event:
        schedule_blog_notification(background_tasks, engine, email_client, created.id, event)
    return {"success": True, "message": "Blog added successfully", "blog": created}

@router.post("/delete")
def delete_blog(
    data: IdRequest,
    admin: CurrentAdmin = Depends(require_editor),
    service: BlogService = Depends(get_blog_service)
):
    service.delete_blog(data.id)
    return {"success": True, "message": "Blog deleted successfully"}

@router.post("/toggle-publish")
def toggle_publish(
    data: IdRequest,
    background_tasks: BackgroundTasks,
    admin: CurrentAdmin = Depends(require_editor),
    service: BlogService = Depends(get_blog_service),
    email_client: EmailClient = Depends(get_email_client),
    engine: Engine = Depends(get_engine)
):
    blog, event = service.toggle_publish(data.id)
    if event:
        schedule_blog_notification(background_tasks, engine, email_client, blog.id, event)
    return {"success": True, "message": "Blog status updated", "isPublished": blog.is_published}

@router.post("/add-comment", status_code=201)
def add_comment(data: CommentCreate, service: CommentService = Depends(get_comment_service)):
    """Public; the comment stays hidden until a moderator approves it"""
    service.add_comment(data.blog, data.name, data.content, email=data.email)
    return {"success": True, "message": "Comment added for review"}

@router.post("/comments")
def blog_comments(data: BlogCommentsRequest, service: CommentService = Depends(get_comment_service)):
    comments = service.list_approved(data.blog_id)
    return {"success": True, "comments": [c.model_dump(exclude={"email"}) for c in comments]}

@router.post("/generate")
def generate_content(
    data: GenerateRequest,
    admin: CurrentAdmin = Depends(require_editor),
    generator: ContentGenerator = Depends(get_content_generator)
):
    return {"success": True, "content": generator.generate(data.prompt)}

@router.get("/{blog_id}")
def get_blog(blog_id: int, service: BlogService = Depends(get_blog_service)):
    return {"success": True, "blog": service.get_public_blog(blog_id)}

@router.get("/{blog_id}/comments")
def get_blog_comments(blog_id: int, service: CommentService = Depends(get_comment_service)):
    comments = service.list_approved(blog_id)
    return {"success": True, "comments": [c.model_dump(exclude={"email"}) for c in comments]}

@router.put("/{blog_id}")
async def update_blog(
    blog_id: int,
    background_tasks: BackgroundTasks,
    blog: str = Form(None),
    image: UploadFile = File(None),
    admin: CurrentAdmin = Depends(require_editor),
    service: BlogService = Depends(get_blog_service),
    storage: S3Service = Depends(get_s3_service),
    email_client: EmailClient = Depends(get_email_client),
    engine: Engine = Depends(get_engine)
):
    """Partial update; publishing or editing a published blog notifies subscribers"""
    changes = parse_blog_form(blog, BlogUpdate).model_dump(exclude_none=True) if blog else {}
    service.get_blog(blog_id)
    if image:
        changes["image"] = await upload_cover_image(image, storage)
    if not changes:
        raise ValidationError("Nothing to update")

    updated, event = service.update_blog(blog_id, changes)
    if event:
        schedule_blog_notification(background_tasks, engine, email_client, updated.id, event)
    return {"success": True, "message": "Blog updated successfully", "blog": updated}
