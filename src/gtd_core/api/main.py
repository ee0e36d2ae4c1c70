"""GTD Core FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config import get_settings
from ..database import init_db
from .routers import auth, inbox, projects, actions, waiting_for, someday_maybe, review

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("gtd-core")

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.auto_create_tables:
        init_db()
    logger.info("Starting GTD Core API")
    yield
    logger.info("GTD Core API stopped")


# Create FastAPI app
app = FastAPI(
    title="GTD Core API",
    description="Getting Things Done - inbox, projects, next actions and weekly review",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def describe_validation_error(exc: RequestValidationError) -> str:
    """Turn the first pydantic error into a short client-facing message."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    error = errors[0]
    location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    field = location[-1] if location else "body"

    if error.get("type") == "missing":
        return f"Missing required field: {field}"
    if error.get("type") == "extra_forbidden":
        return f"Unknown field: {field}"
    message = error.get("msg", "invalid value")
    return f"Invalid {field}: {message}"


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    detail = describe_validation_error(exc)
    logger.warning(f"Validation failed for {request.method} {request.url.path}: {detail}")
    return JSONResponse(status_code=400, content={"detail": detail})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Operation failed"})


app.include_router(auth.router, prefix="/api/auth")
app.include_router(inbox.router, prefix="/api/inbox")
app.include_router(projects.router, prefix="/api/projects")
app.include_router(actions.router, prefix="/api/actions")
app.include_router(waiting_for.router, prefix="/api/waiting-for")
app.include_router(someday_maybe.router, prefix="/api/someday-maybe")
app.include_router(review.router, prefix="/api/review")


@app.get("/")
def root():
    """Root endpoint with server info."""
    return {
        "name": "GTD Core API",
        "version": "1.0.0",
        "status": "ok",
        "docs": "/docs",
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
