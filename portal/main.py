"""School Portal - FastAPI entrypoint."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from portal.api import assignments, auth, classes, feed, users
from portal.config import settings
from portal.db import db_shutdown, db_startup
from portal.errors import (
    AlreadyEnrolled,
    CapacityExceeded,
    NotFound,
    PermissionDenied,
    PortalError,
    ValidationError,
)

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    PermissionDenied: status.HTTP_403_FORBIDDEN,
    NotFound: status.HTTP_404_NOT_FOUND,
    CapacityExceeded: status.HTTP_409_CONFLICT,
    AlreadyEnrolled: status.HTTP_409_CONFLICT,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    db_startup()
    yield
    db_shutdown()


app = FastAPI(
    title=settings.app_name,
    description="School portal: users, classes, posts and assignments",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": errors},
    )


@app.exception_handler(PortalError)
async def portal_exception_handler(request: Request, exc: PortalError):
    status_code = STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
    content = {"detail": exc.message, "error": type(exc).__name__}
    if isinstance(exc, ValidationError):
        content["errors"] = exc.errors
    return JSONResponse(status_code=status_code, content=content)


app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(classes.router, prefix="/api/classes", tags=["Classes"])
app.include_router(feed.router, prefix="/api/feed", tags=["Posts"])
app.include_router(assignments.router, prefix="/api/assignments", tags=["Assignments"])


@app.get("/health")
def health():
    return {"status": "ok", "app": settings.app_name}
