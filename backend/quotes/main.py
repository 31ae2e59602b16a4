"""Quotes Backend -- FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from quotes.api.v1.router import api_v1_router
from quotes.config import settings
from quotes.core.exceptions import AlreadyLikedError, NotFoundError, QuotesException, UnavailableError
from quotes.db.session import create_tables, engine
from quotes.schemas import ErrorDetail, ErrorResponse

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.DEBUG else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

_ERROR_STATUS = {
    NotFoundError: (404, "not_found"),
    AlreadyLikedError: (409, "already_liked"),
    UnavailableError: (503, "unavailable"),
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    # Startup
    logger.info("Starting Quotes API server...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    # Auto-create tables on startup (safe for fresh deployments)
    try:
        await create_tables(engine)
        logger.info("Database tables verified/created")
    except Exception as e:
        logger.error(f"Database init failed: {e}", exc_info=True)

    yield

    # Shutdown
    logger.info("Shutting down Quotes API server...")
    await engine.dispose()


app = FastAPI(
    title="Quotes API",
    description="Random quotes, likes and top rankings",
    version="0.1.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# CORS
if settings.CORS_ORIGIN == "*":
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["*"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.CORS_ORIGIN],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["Origin", "Content-Type", "Accept", "Authorization", "X-Requested-With"],
        expose_headers=["Content-Length", "Content-Type"],
    )


@app.exception_handler(QuotesException)
async def quotes_exception_handler(request: Request, exc: QuotesException):
    """Translate domain errors into the standard error envelope."""
    status_code, code = 500, "internal_error"
    for exc_type, mapping in _ERROR_STATUS.items():
        if isinstance(exc, exc_type):
            status_code, code = mapping
            break

    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")

    body = ErrorResponse(error=ErrorDetail(code=code, message=exc.message))
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


# Register API v1 router
app.include_router(api_v1_router, prefix="/api/v1")


def mount_frontend(app: FastAPI, static_dir: str) -> bool:
    """Serve a built single-page frontend from ``static_dir`` if it exists.

    Hashed assets are served from /assets; any other non-API path falls
    back to index.html so client-side routing works.
    """
    root = Path(static_dir)
    if not root.is_dir():
        return False

    assets = root / "assets"
    if assets.is_dir():
        app.mount("/assets", StaticFiles(directory=assets), name="assets")

    index = root / "index.html"

    @app.get("/{full_path:path}", include_in_schema=False)
    async def spa_fallback(full_path: str):
        if full_path == "api" or full_path.startswith("api/"):
            body = ErrorResponse(error=ErrorDetail(code="not_found", message="Not found"))
            return JSONResponse(status_code=404, content=body.model_dump(exclude_none=True))

        candidate = (root / full_path).resolve()
        if full_path and candidate.is_file() and root.resolve() in candidate.parents:
            return FileResponse(candidate, headers={"Cache-Control": "public, max-age=86400"})

        if index.is_file():
            return FileResponse(
                index,
                headers={"Cache-Control": "no-cache, no-store, must-revalidate"},
            )
        return JSONResponse(status_code=404, content={"detail": "Frontend not found"})

    logger.info(f"Serving frontend from {root}")
    return True


if not mount_frontend(app, settings.STATIC_DIR):

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "Quotes API",
            "version": "0.1.0",
            "docs": "/docs" if settings.DEBUG else None,
            "health": "/api/v1/health",
        }


def run() -> None:
    """Console entry point: serve the app on API_PORT."""
    uvicorn.run("quotes.main:app", host="0.0.0.0", port=settings.API_PORT)


if __name__ == "__main__":
    run()
