"""notesync backend API - FastAPI application."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from . import __version__
from .config import get_settings
from .database import get_database
from .logging_config import get_logger, setup_logging
from .rate_limit import limiter
from .routes import sync_router

logger = get_logger("notesync.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    settings = get_settings()
    setup_logging(settings.log_level)
    database = get_database(settings)
    await database.create_all()
    logger.info(f"Starting notesync backend (debug={settings.debug})")
    yield
    # Shutdown
    logger.info("Shutting down notesync backend")
    await database.dispose()


app = FastAPI(
    title="notesync Backend API",
    description="Multi-device note sync backend",
    version=__version__,
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(sync_router)


@app.get("/")
async def root():
    """Service identity."""
    return {
        "service": "notesync-backend",
        "version": __version__,
        "status": "ok",
    }


@app.get("/health")
async def health():
    """Health check with an actual database round trip."""
    db_status = "disconnected"
    try:
        await get_database().ping()
        db_status = "connected"
    except Exception as e:
        db_status = f"error: {str(e)[:50]}"

    overall_status = "healthy" if db_status == "connected" else "degraded"

    return {
        "status": overall_status,
        "database": db_status,
    }
