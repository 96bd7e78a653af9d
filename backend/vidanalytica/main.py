import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from sqlalchemy.exc import OperationalError
from vidanalytica.core.config import settings
from vidanalytica.core.database import engine, Base
from vidanalytica.core.errors import register_error_handlers
from vidanalytica.core.scheduler import start_scheduler, stop_scheduler
from vidanalytica.api.routes import auth, channels, videos, transcripts, ideas, analytics
from vidanalytica.api.routes import settings as settings_routes

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def init_database() -> bool:
    """
    Create tables for every model that inherits from Base.

    In production an unreachable database is fatal. Elsewhere the app keeps
    running so the frontend can still be exercised.
    """
    try:
        Base.metadata.create_all(bind=engine)
    except OperationalError as e:
        logger.error(f"Database connection error: {e.orig}")
        if settings.is_production:
            raise
        logger.warning("Continuing without database connection for development...")
        return False
    logger.info("Database tables created/verified")
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage app lifecycle events.

    Startup: create tables, start background scheduler
    Shutdown: stop background scheduler
    """
    logger.info(f"Starting {settings.APP_NAME} ({settings.ENVIRONMENT})")
    if settings.dev_auth_fallback_enabled:
        logger.warning("DEV_AUTH_FALLBACK is on: logins issue placeholder sessions when the database is down")
    init_database()
    if settings.SCHEDULER_ENABLED:
        start_scheduler()
    yield
    stop_scheduler()
    logger.info(f"Shutting down {settings.APP_NAME}")


app = FastAPI(
    title=settings.APP_NAME,
    description="Content operations dashboard for YouTube creators",
    version=settings.APP_VERSION,
    lifespan=lifespan
)

# CORS middleware - allows frontend to make requests to backend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Register API route modules
# All routes are prefixed with /api for consistency
app.include_router(auth.router, prefix="/api")
app.include_router(channels.router, prefix="/api")
app.include_router(videos.router, prefix="/api")
app.include_router(transcripts.router, prefix="/api")
app.include_router(ideas.router, prefix="/api")
app.include_router(analytics.router, prefix="/api")
app.include_router(settings_routes.router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint - API information"""
    return {"message": settings.APP_NAME, "version": settings.APP_VERSION}


@app.get("/health")
async def health():
    """Health check endpoint - used by monitoring/deployment tools"""
    return {"status": "healthy"}
