"""Request bodies accepted by the API, validated before any service call."""

from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from quickblog.models.blog import BlogCategory

MAX_TITLE_LENGTH = 200
MAX_COMMENT_NAME_LENGTH = 100
MAX_COMMENT_LENGTH = 1000

CATEGORY_CHOICES = ", ".join(category.value for category in BlogCategory)


def _required_text(value: Any, message: str) -> str:
    if value is None or not str(value).strip():
        raise ValueError(message)
    return str(value)


def _coerce_tags(value: Any) -> Any:
    # Accept a JSON list or a comma-separated string
    if isinstance(value, str):
        return [tag for tag in value.split(",")]
    return value


def _coerce_category(value: Any) -> Any:
    if value is None or isinstance(value, BlogCategory):
        return value
    if not str(value).strip():
        raise ValueError("Blog category is required")
    try:
        return BlogCategory(str(value).strip())
    except ValueError:
        raise ValueError(f"Category must be one of: {CATEGORY_CHOICES}")


class IdRequest(BaseModel):
    id: int


class BlogCreate(BaseModel):
    title: str = Field(..., max_length=MAX_TITLE_LENGTH)
    sub_title: str = Field("", validation_alias=AliasChoices("sub_title", "subTitle"))
    description: str
    category: BlogCategory
    tags: List[str] = Field(default_factory=list)
    is_published: bool = Field(False, validation_alias=AliasChoices("is_published", "isPublished"))

    @field_validator("title", mode="before")
    @classmethod
    def title_required(cls, value):
        return _required_text(value, "Blog title is required")

    @field_validator("description", mode="before")
    @classmethod
    def description_required(cls, value):
        return _required_text(value, "Blog description is required")

    @field_validator("category", mode="before")
    @classmethod
    def category_allowed(cls, value):
        if value is None:
            raise ValueError("Blog category is required")
        return _coerce_category(value)

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value):
        return _coerce_tags(value) if value is not None else []


class BlogUpdate(BaseModel):
    """Partial update: only the fields present are changed."""

    title: Optional[str] = Field(None, max_length=MAX_TITLE_LENGTH)
    sub_title: Optional[str] = Field(None, validation_alias=AliasChoices("sub_title", "subTitle"))
    description: Optional[str] = None
    category: Optional[BlogCategory] = None
    tags: Optional[List[str]] = None
    is_published: Optional[bool] = Field(None, validation_alias=AliasChoices("is_published", "isPublished"))

    @field_validator("title", mode="before")
    @classmethod
    def title_not_blank(cls, value):
        return None if value is None else _required_text(value, "Blog title is required")

    @field_validator("description", mode="before")
    @classmethod
    def description_not_blank(cls, value):
        return None if value is None else _required_text(value, "Blog description is required")

    @field_validator("category", mode="before")
    @classmethod
    def category_allowed(cls, value):
        return _coerce_category(value)

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value):
        return _coerce_tags(value)


class CommentCreate(BaseModel):
    blog: int = Field(..., validation_alias=AliasChoices("blog", "blog_id", "blogId"))
    name: str = Field(..., max_length=MAX_COMMENT_NAME_LENGTH)
    email: Optional[str] = None
    content: str = Field(..., max_length=MAX_COMMENT_LENGTH)

    @field_validator("name", mode="before")
    @classmethod
    def name_required(cls, value):
        return _required_text(value, "Name is required")

    @field_validator("content", mode="before")
    @classmethod
    def content_required(cls, value):
        return _required_text(value, "Comment content is required")


class BlogCommentsRequest(BaseModel):
    blog_id: int = Field(..., validation_alias=AliasChoices("blogId", "blog_id"))


class SubscribeRequest(BaseModel):
    email: Optional[str] = None


class GenerateRequest(BaseModel):
    prompt: str

    @field_validator("prompt", mode="before")
    @classmethod
    def prompt_required(cls, value):
        return _required_text(value, "Prompt is required")


def describe_validation_errors(errors: List[dict]) -> str:
    """First pydantic error as a single human readable sentence."""
    if not errors:
        return "Invalid request"
    error = errors[0]
    message = error.get("msg", "Invalid value")
    if message.startswith("Value error, "):
        return message[len("Value error, "):]
    location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "form")]
    if location:
        return f"{'.'.join(location)}: {message}"
    return message
