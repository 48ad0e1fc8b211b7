import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import ApiError, RouteNotFound, ValidationFailed
from .routers import calendar as calendar_router
from .routers import posts as posts_router
from .routers import todolist as todolist_router
from .routers import users as users_router
from .settings import get_settings
from .uploads import UPLOAD_URL_PREFIX

_settings = get_settings()

logging.basicConfig(
    level=_settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "users", "description": "Sign up and log in; both return a bearer token."},
    {"name": "posts", "description": "Image posts owned by a user."},
    {"name": "calendar", "description": "Calendar entries owned by a user."},
    {"name": "todolist", "description": "To-do items owned by a user."},
]

app = FastAPI(
    title="Organizer Backend",
    description="Backend API for a personal organizer: accounts, posts, calendar entries and to-do items.",
    version="0.1.0",
    openapi_tags=openapi_tags,
)

# Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization"],
)


# Every failure leaves the service as {"message": ...}
@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %r", request.method, request.url.path, exc, exc_info=exc.__cause__)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return the uniform error body for request validation errors.

    Response format:
        {"message": "Invalid inputs provided"}
    """
    logger.debug("Validation failed for %s %s: %s", request.method, request.url.path, exc.errors())
    error = ValidationFailed()
    return JSONResponse(status_code=error.status_code, content={"message": error.message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        error = RouteNotFound()
        return JSONResponse(status_code=error.status_code, content={"message": error.message})
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = ApiError()
    return JSONResponse(status_code=error.status_code, content={"message": error.message})


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health.
    """
    return {"message": "Healthy", "backend": _settings.persistence_backend}


# Include routers
app.include_router(users_router.router)
app.include_router(posts_router.router)
app.include_router(calendar_router.router)
app.include_router(todolist_router.router)

# Uploaded images are served back under a fixed prefix
os.makedirs(_settings.upload_dir, exist_ok=True)
app.mount(UPLOAD_URL_PREFIX, StaticFiles(directory=_settings.upload_dir), name="uploads")
