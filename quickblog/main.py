import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from starlette.exceptions import HTTPException as StarletteHTTPException

from quickblog.core.config import settings
from quickblog.core.errors import AppError
from quickblog.core.logging import configure_logging, log_requests
from quickblog.db.session import create_db_and_tables
from quickblog.schemas import describe_validation_errors
from quickblog.services.email import EmailClient

# Import models to ensure they are registered with SQLModel metadata
from quickblog.models import User, Blog, Comment, Subscriber  # noqa: F401

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    create_db_and_tables()
    # Built once; an unconfigured client stays unconfigured for the process lifetime
    app.state.email_client = EmailClient.from_settings()
    yield

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    lifespan=lifespan,
    description="Blog publishing, moderated comments and newsletter API"
)


def error_response(status_code: int, message: str, exc: Exception = None, headers: dict = None) -> JSONResponse:
    content = {"success": False, "message": message}
    if settings.is_development and exc is not None:
        content["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status_code, content=content, headers=headers)

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return error_response(exc.status_code, exc.message, exc, headers)

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail), exc, getattr(exc, "headers", None))

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(400, describe_validation_errors(exc.errors()), exc)

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, "Internal Server Error", exc)


@app.get("/")
def read_root():
    return {"success": True, "message": "API is Working. Visit /docs for Swagger UI."}

from quickblog.routers import auth, admin, blogs, subscribers

app.include_router(auth.router, prefix="/api/admin", tags=["auth"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
app.include_router(blogs.router, prefix="/api/blog", tags=["blog"])
app.include_router(subscribers.router, prefix="/api/subscriber", tags=["subscriber"])

app.middleware("http")(log_requests)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
