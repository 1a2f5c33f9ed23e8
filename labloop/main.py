from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from labloop.config import settings
from labloop.database import init_db, close_db
from labloop.middleware.admin_whitelist import AdminWhitelistMiddleware
from labloop.services.id_allocator import (
    AllocationExhausted,
    CounterOverflow,
    CounterResetForbidden,
    CounterStoreError,
    IdGenerationError,
    InvalidPrefix,
    InvalidStartValue,
    init_id_allocator,
)
from labloop.web.admin.counter_routes import router as admin_counter_router
from contextlib import asynccontextmanager
from pathlib import Path

import logging

_log_dir = Path(settings.LOG_DIR)
_log_dir.mkdir(parents=True, exist_ok=True)

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.FileHandler(_log_dir / "app.log"), logging.StreamHandler()],
)
logger = logging.getLogger(__name__)

# Status code per ID generation error, most specific first
ID_ERROR_STATUS = [
    (InvalidPrefix, 422),
    (InvalidStartValue, 422),
    (CounterOverflow, 409),
    (CounterResetForbidden, 403),
    (AllocationExhausted, 503),
    (CounterStoreError, 503),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown events"""
    logger.info(f"[>>] Starting {settings.APP_NAME} ({settings.ENVIRONMENT})...")
    init_db()
    logger.info("[OK] Database initialized")

    allocator = init_id_allocator()
    logger.info(
        f"[OK] ID allocator initialized (max_retries={allocator.max_retries}, "
        f"reset_enabled={allocator.allow_reset})"
    )
    yield
    logger.info(f"[<<] Shutting down {settings.APP_NAME}...")
    close_db()
    logger.info("[OK] Database connections closed")


app = FastAPI(
    title=settings.APP_NAME,
    description="Backend API for the LabLoop laboratory management system",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(IdGenerationError)
async def id_generation_exception_handler(request: Request, exc: IdGenerationError):
    status_code = 500
    for error_type, code in ID_ERROR_STATUS:
        if isinstance(exc, error_type):
            status_code = code
            break

    if status_code >= 500:
        logger.error(
            "ID generation failed on %s %s: %s",
            request.method,
            request.url.path,
            str(exc),
        )
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": str(exc),
            "error": type(exc).__name__,
            "prefix": exc.prefix,
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log every unhandled exception"""
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        str(exc),
        exc_info=True,
    )
    return PlainTextResponse(
        "Internal Server Error. Please contact support if the problem persists.",
        status_code=500,
    )


# Admin IP Whitelist Middleware (fail fast for external IPs)
app.add_middleware(AdminWhitelistMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.get("/api/health")
async def health_check():
    return {"status": "ok"}


app.include_router(admin_counter_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
