import os
import platform
import subprocess
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from gokaku.config.logger import app_logger, log_request_start, log_request_end, log_request_error
from gokaku.config.settings import settings
from gokaku.api.naming.router import router as naming_router
from gokaku.api.feedback.router import router as feedback_router
from gokaku.services.stroke_dictionary import load_stroke_dictionary
from gokaku.services.stroke_resolver import ResolutionCache, StrokeResolver
from gokaku.services.stroke_sources import KanjiApiStrokeSource, NullStrokeSource


_git_sha_cache: Optional[str] = None


def get_git_sha() -> str:
    """Get the current Git commit SHA (cached to avoid blocking)."""
    global _git_sha_cache
    if _git_sha_cache is not None:
        return _git_sha_cache

    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            capture_output=True,
            text=True,
            check=True,
            timeout=1.0
        )
        _git_sha_cache = result.stdout.strip()[:8]
        return _git_sha_cache
    except (subprocess.CalledProcessError, FileNotFoundError, subprocess.TimeoutExpired):
        _git_sha_cache = "local-dev"
        return _git_sha_cache


def build_stroke_resolver() -> StrokeResolver:
    """Create the process-wide dictionary, resolution cache and auxiliary source."""
    dictionary = load_stroke_dictionary(settings.effective_dictionary_path)
    cache = ResolutionCache(max_size=settings.RESOLUTION_CACHE_MAX_SIZE)
    if settings.STROKE_LOOKUP_ENABLED:
        source = KanjiApiStrokeSource()
        app_logger.info(f"Auxiliary stroke lookup enabled: {settings.STROKE_LOOKUP_URL}")
    else:
        source = NullStrokeSource()
        app_logger.info("Auxiliary stroke lookup disabled; unknown characters count as zero")
    return StrokeResolver(dictionary, cache, source)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager for startup and shutdown events."""
    # Startup
    app_logger.info("Gokaku Naming API starting up")
    app.state.stroke_resolver = build_stroke_resolver()
    if not settings.OPENAI_API_KEY:
        app_logger.warning("OPENAI_API_KEY is not set; only debug generation will work")
    app_logger.info("Application initialized successfully")

    yield

    # Shutdown
    app_logger.info("Gokaku Naming API shutting down")
    source = app.state.stroke_resolver.source
    if isinstance(source, KanjiApiStrokeSource):
        await source.aclose()
    app_logger.info("Application shutdown complete")


app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    license_info={
        "name": "MIT License",
        "url": "https://opensource.org/licenses/MIT",
    },
    servers=[
        {
            "url": "http://localhost:8000",
            "description": "Development server",
        },
    ],
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests with timing information."""
    start_time = datetime.now()

    log_request_start(request)

    try:
        response = await call_next(request)
        process_time = (datetime.now() - start_time).total_seconds()
        log_request_end(request, response.status_code, process_time)
        return response

    except Exception as e:
        process_time = (datetime.now() - start_time).total_seconds()
        log_request_error(request, e, process_time)
        raise


@app.get("/", tags=["health"])
async def root():
    """Root endpoint with basic API information."""
    app_logger.info("Root endpoint accessed")
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "status": "operational",
        "docs": "/docs",
        "redoc": "/redoc"
    }


@app.get("/status", tags=["health"])
async def status():
    """Status endpoint with build information for CI/CD monitoring."""
    app_logger.info("Status endpoint accessed")

    # Get build information from environment variables (CI-injected)
    build_number = os.getenv("BUILD_NUMBER", "local-dev")
    git_sha = os.getenv("GIT_SHA", os.getenv("GITHUB_SHA", get_git_sha()))
    environment = os.getenv("ENVIRONMENT", os.getenv("ENV", "development"))

    return {
        "status": "ok",
        "build": build_number,
        "sha": git_sha,
        "env": environment
    }


@app.get("/diag", tags=["health"])
async def diag(request: Request):
    """Diagnostics: configuration presence and engine state. Never returns the full API key."""
    key = settings.OPENAI_API_KEY
    resolver = getattr(request.app.state, "stroke_resolver", None)
    return {
        "ok": True,
        "has_openai_key": bool(key),
        "openai_key_preview": f"{key[:8]}…" if key else None,
        "python": platform.python_version(),
        "dictionary_size": len(resolver.dictionary) if resolver else None,
        "resolution_cache_size": len(resolver.cache) if resolver else None,
        "now": datetime.now(timezone.utc).isoformat(),
    }


app.include_router(naming_router)
app.include_router(feedback_router)


if __name__ == "__main__":
    import uvicorn

    app_logger.info("Starting Gokaku Naming API server")

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        log_config=None  # Use our custom logger
    )
