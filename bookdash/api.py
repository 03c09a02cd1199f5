import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from bookdash import database
from bookdash.config import settings
from bookdash.errors import ApiError
from bookdash.routers import ALL_ROUTERS
from bookdash.schemas import HealthRead
from bookdash.services.identity_seeder import IdentitySeeder

logger = logging.getLogger(__name__)

_DEFAULT_ERROR_CODES = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
}


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    database.initialize_database()
    if settings.seed_identity:
        IdentitySeeder().seed()
    os.makedirs(settings.upload_dir, exist_ok=True)
    logger.info(f"{settings.app_name} {settings.app_version} started")
    yield
    logger.info(f"{settings.app_name} stopped")


app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)

app.add_middleware(GZipMiddleware, minimum_size=1000)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Resource segments are matched case-insensitively, so /api/books reaches /api/Books.
_CANONICAL_PREFIXES = {router.prefix.lower(): router.prefix for router in ALL_ROUTERS}


@app.middleware("http")
async def canonical_resource_path(request: Request, call_next):
    path = request.scope["path"]
    parts = path.split("/", 3)
    if len(parts) >= 3 and parts[1].lower() == "api":
        prefix = f"/{parts[1]}/{parts[2]}"
        canonical = _CANONICAL_PREFIXES.get(prefix.lower())
        if canonical and canonical != prefix:
            request.scope["path"] = canonical + path[len(prefix):]
    return await call_next(request)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)

    if request.url.path.startswith("/uploads/"):
        response.headers["Cache-Control"] = "public, max-age=86400"

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-XSS-Protection"] = "1; mode=block"
    return response


# --- Error handling ---
def envelope(message: str, error_code: str, data=None) -> dict:
    return {"success": False, "message": message, "errorCode": error_code, "data": data}


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc, ApiError):
        body = envelope(exc.message, exc.error_code or _DEFAULT_ERROR_CODES.get(exc.status_code, "error"), exc.data)
    else:
        body = envelope(str(exc.detail), _DEFAULT_ERROR_CODES.get(exc.status_code, "error"))
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    logger.info(f"Validation failed for {request.method} {request.url.path}: {messages}")
    return JSONResponse(status_code=400, content=envelope("One or more validation errors occurred.", "validation_error", messages))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content=envelope("An unexpected error occurred.", "internal_error"))


# --- Routers & static files ---
for router in ALL_ROUTERS:
    app.include_router(router)

app.mount("/uploads", StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")


# --- Health Check ---
@app.get("/health", response_model=HealthRead)
async def health():
    """Lightweight health endpoint: tries a database round trip."""
    db_ok = True
    try:
        conn = database.get_db_connection()
        conn.execute("SELECT 1")
        conn.close()
    except Exception as e:
        logger.error(f"Health check database check failed: {e}")
        db_ok = False
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "db": db_ok,
    }
