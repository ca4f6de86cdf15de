from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from quickblog.core.config import settings
from quickblog.core.security import get_password_hash
from quickblog.db.session import get_engine, get_session
from quickblog.main import app
from quickblog.models import AdminRole, Blog, BlogCategory, Comment, Subscriber, User
from quickblog.services.email import get_email_client
from quickblog.services.s3 import get_s3_service


class FakeEmailClient:
    """Records sends; raises for any address in ``fail_for``."""

    def __init__(self, configured=True, fail_for=()):
        self.configured = configured
        self.fail_for = set(fail_for)
        self.sent = []
        self.attempts = []

    def send(self, to, subject, html):
        self.attempts.append(to)
        if to in self.fail_for:
            raise RuntimeError(f"Mailbox unavailable: {to}")
        self.sent.append((to, subject, html))


class FakeStorage:
    def __init__(self, fail=False):
        self.fail = fail
        self.uploads = []

    def upload_blog_image(self, content, filename, content_type):
        if self.fail:
            return None
        self.uploads.append((filename, content_type, len(content)))
        return f"https://images.test/blogs/{filename}"


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="email_client")
def email_client_fixture():
    return FakeEmailClient()


@pytest.fixture(name="storage")
def storage_fixture():
    return FakeStorage()


@pytest.fixture(name="client")
def client_fixture(engine, email_client, storage):
    def get_session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_email_client] = lambda: email_client
    app.dependency_overrides[get_s3_service] = lambda: storage
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


def make_token(user_id=1, role=AdminRole.ADMIN, secret=None, expires_in=timedelta(hours=1)):
    payload = {
        "sub": str(user_id),
        "role": role.value if isinstance(role, AdminRole) else role,
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    return jwt.encode(payload, secret or settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def auth_headers(role=AdminRole.ADMIN, user_id=1):
    return {"Authorization": f"Bearer {make_token(user_id=user_id, role=role)}"}


@pytest.fixture(name="admin_user")
def admin_user_fixture(session):
    user = User(
        name="Ada Lovelace",
        email="ada@quickblog.test",
        password_hash=get_password_hash("analytical-engine"),
        role=AdminRole.ADMIN,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def add_blog(session, title="A post", description="Body text", category=BlogCategory.TECHNOLOGY,
             tags=None, is_published=True, author_id=None, created_at=None, sub_title=""):
    blog = Blog(
        title=title,
        sub_title=sub_title,
        description=description,
        category=category,
        tags=tags or [],
        image="https://images.test/blogs/cover.webp",
        is_published=is_published,
        author_id=author_id,
    )
    if created_at is not None:
        blog.created_at = created_at
        blog.updated_at = created_at
    session.add(blog)
    session.commit()
    session.refresh(blog)
    return blog


def add_comment(session, blog_id, name="Reader", content="Nice post", is_approved=False, created_at=None):
    comment = Comment(blog_id=blog_id, name=name, content=content, is_approved=is_approved)
    if created_at is not None:
        comment.created_at = created_at
    session.add(comment)
    session.commit()
    session.refresh(comment)
    return comment


def add_subscriber(session, email, is_active=True):
    subscriber = Subscriber(email=email, is_active=is_active)
    session.add(subscriber)
    session.commit()
    session.refresh(subscriber)
    return subscriber


BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


def days(n):
    return BASE_TIME + timedelta(days=n)
