"""
Blog listing and search.

``BlogListParams`` turns raw query-string values into a normalized filter,
``build_listing_statement`` turns that filter into a SQLAlchemy plan and
``BlogListingService`` runs the plan and shapes a paginated page.

The page query and the count query share one WHERE clause, so ``total_pages``
always agrees with ``total``. Malformed pagination never raises: it is clamped
back to a sane value.

Sorting (``id`` breaks every tie so a plan always orders the same way):

- ``newest``: created_at DESC
- ``oldest``: created_at ASC
- ``most-comments``: comment count DESC, then newest
- ``relevance``: text score DESC, then newest (only meaningful with ``q``)

Text search is case-insensitive over title and description. A query wrapped in
double quotes is matched as one phrase, otherwise each whitespace-separated
term may match. Each term scores 2 for a title hit and 1 for a description hit.
"""

import json
import math
from enum import Enum
from functools import reduce
from typing import Any, List, Optional, Sequence

from pydantic import BaseModel, Field
from sqlalchemy import String, case, cast, func, or_
from sqlmodel import Session, select

from quickblog.models.blog import Blog, BlogCategory
from quickblog.models.comment import Comment
from quickblog.models.user import User

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

TITLE_WEIGHT = 2
DESCRIPTION_WEIGHT = 1


class BlogSort(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    MOST_COMMENTS = "most-comments"
    RELEVANCE = "relevance"


def clamp_int(value: Any, default: int, minimum: int = 1, maximum: Optional[int] = None) -> int:
    """Parse a query-string integer, falling back to ``default`` when unusable."""
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    if number < minimum:
        number = minimum
    if maximum is not None and number > maximum:
        number = maximum
    return number


def parse_tags(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    tags = []
    for tag in raw.split(","):
        tag = tag.strip().lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def parse_search_terms(q: Optional[str]) -> List[str]:
    """Split a free-text query into match terms.

    ``"20/10"`` (quoted) yields the single phrase ``20/10``; ``python async``
    yields ``["python", "async"]``.
    """
    if not q:
        return []
    q = q.strip()
    if len(q) >= 2 and q.startswith('"') and q.endswith('"'):
        phrase = q[1:-1].strip()
        return [phrase] if phrase else []
    terms, seen = [], set()
    for term in q.split():
        if term.lower() not in seen:
            seen.add(term.lower())
            terms.append(term)
    return terms


class BlogListParams(BaseModel):
    q: Optional[str] = None
    terms: List[str] = Field(default_factory=list)
    category: Optional[BlogCategory] = None
    tags: List[str] = Field(default_factory=list)
    author: Optional[str] = None
    sort: BlogSort = BlogSort.NEWEST
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    # Admin listing only
    include_drafts: bool = False
    published: Optional[bool] = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_query(
        cls,
        q: Optional[str] = None,
        category: Optional[str] = None,
        tags: Optional[str] = None,
        author: Optional[str] = None,
        sort: Optional[str] = None,
        page: Any = None,
        limit: Any = None,
        include_drafts: bool = False,
        status: Optional[str] = None,
    ) -> "BlogListParams":
        q = q.strip() if q and q.strip() else None
        terms = parse_search_terms(q)
        if q and not terms:
            q = None

        try:
            category_value = BlogCategory(category) if category else None
        except ValueError:
            # Unknown category: the filter is ignored
            category_value = None

        default_sort = BlogSort.RELEVANCE if q else BlogSort.NEWEST
        try:
            sort_value = BlogSort(sort) if sort else default_sort
        except ValueError:
            sort_value = default_sort
        if sort_value == BlogSort.RELEVANCE and not q:
            sort_value = BlogSort.NEWEST

        published = None
        if include_drafts and status:
            if status.lower() == "published":
                published = True
            elif status.lower() == "draft":
                published = False

        return cls(
            q=q,
            terms=terms,
            category=category_value,
            tags=parse_tags(tags),
            author=author.strip() if author and author.strip() else None,
            sort=sort_value,
            page=clamp_int(page, DEFAULT_PAGE),
            limit=clamp_int(limit, DEFAULT_LIMIT, maximum=MAX_LIMIT),
            include_drafts=include_drafts,
            published=published,
        )


class BlogAuthor(BaseModel):
    name: str
    email: str


class BlogListItem(BaseModel):
    id: int
    title: str
    sub_title: str
    description: str
    category: BlogCategory
    tags: List[str]
    image: str
    is_published: bool
    author_id: Optional[int] = None
    author: Optional[BlogAuthor] = None
    comment_count: int = 0
    created_at: Any
    updated_at: Any


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total: int
    per_page: int


class BlogListPage(BaseModel):
    items: List[BlogListItem]
    pagination: Pagination


def relevance_score(terms: Sequence[str]):
    parts = []
    for term in terms:
        parts.append(case((Blog.title.icontains(term, autoescape=True), TITLE_WEIGHT), else_=0))
        parts.append(case((Blog.description.icontains(term, autoescape=True), DESCRIPTION_WEIGHT), else_=0))
    return reduce(lambda left, right: left + right, parts)


def build_conditions(params: BlogListParams, author_ids: Optional[List[int]] = None) -> list:
    conditions = []

    if not params.include_drafts:
        conditions.append(Blog.is_published == True)
    elif params.published is not None:
        conditions.append(Blog.is_published == params.published)

    if params.category:
        conditions.append(Blog.category == params.category)

    if params.tags:
        # Tags are a JSON array; match the JSON-encoded element including its quotes
        tags_text = cast(Blog.tags, String)
        conditions.append(or_(*[tags_text.contains(json.dumps(tag), autoescape=True) for tag in params.tags]))

    if author_ids is not None:
        conditions.append(Blog.author_id.in_(author_ids))

    if params.terms:
        conditions.append(
            or_(*[
                or_(Blog.title.icontains(term, autoescape=True), Blog.description.icontains(term, autoescape=True))
                for term in params.terms
            ])
        )

    return conditions


def build_listing_statement(params: BlogListParams, author_ids: Optional[List[int]] = None):
    """Return ``(page_statement, count_statement)`` for one listing request."""
    conditions = build_conditions(params, author_ids)

    comment_counts = (
        select(Comment.blog_id, func.count(Comment.id).label("comment_count"))
        .group_by(Comment.blog_id)
        .subquery()
    )
    comment_count = func.coalesce(comment_counts.c.comment_count, 0)
    score = relevance_score(params.terms) if params.terms else None

    if params.sort == BlogSort.OLDEST:
        ordering = [Blog.created_at.asc(), Blog.id.asc()]
    elif params.sort == BlogSort.MOST_COMMENTS:
        ordering = [comment_count.desc(), Blog.created_at.desc(), Blog.id.desc()]
    elif params.sort == BlogSort.RELEVANCE and score is not None:
        ordering = [score.desc(), Blog.created_at.desc(), Blog.id.desc()]
    else:
        ordering = [Blog.created_at.desc(), Blog.id.desc()]

    page_statement = (
        select(Blog, comment_count.label("comment_count"), User.name, User.email)
        .outerjoin(comment_counts, comment_counts.c.blog_id == Blog.id)
        .outerjoin(User, User.id == Blog.author_id)
        .where(*conditions)
        .order_by(*ordering)
        .offset(params.offset)
        .limit(params.limit)
    )
    count_statement = select(func.count(Blog.id)).where(*conditions)
    return page_statement, count_statement


class BlogListingService:
    def __init__(self, session: Session):
        self.session = session

    def resolve_author_ids(self, author: Optional[str]) -> Optional[List[int]]:
        """An all-ASCII-digit value is an author id, anything else a name substring."""
        if not author:
            return None
        if author.isascii() and author.isdigit():
            return [int(author)]
        return list(self.session.exec(select(User.id).where(User.name.icontains(author, autoescape=True))).all())

    def list_blogs(self, params: BlogListParams) -> BlogListPage:
        author_ids = self.resolve_author_ids(params.author)
        if author_ids is not None and not author_ids:
            return self._page([], 0, params)

        page_statement, count_statement = build_listing_statement(params, author_ids)
        total = self.session.exec(count_statement).one() or 0
        rows = self.session.exec(page_statement).all()

        items = []
        for blog, comment_count, author_name, author_email in rows:
            author = BlogAuthor(name=author_name, email=author_email) if author_name is not None else None
            items.append(BlogListItem(**blog.model_dump(), author=author, comment_count=comment_count or 0))
        return self._page(items, total, params)

    def _page(self, items: List[BlogListItem], total: int, params: BlogListParams) -> BlogListPage:
        return BlogListPage(
            items=items,
            pagination=Pagination(
                current_page=params.page,
                total_pages=math.ceil(total / params.limit) if total else 0,
                total=total,
                per_page=params.limit,
            ),
        )
