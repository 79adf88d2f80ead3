from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from oliver.config import settings
from oliver.db import database
from oliver.exceptions import AppException
from oliver.routes import api_router
from oliver.logging_config import setup_logging, get_logger
from oliver.middleware.logging_middleware import LoggingMiddleware
from oliver.services.retention_service import run_retention_sweep

# Setup logging
setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = None
    try:
        logger.info("Starting up...")
        from oliver.db import connect_with_retry
        await connect_with_retry()

        if settings.RETENTION_SWEEP_ENABLED:
            scheduler = AsyncIOScheduler()
            scheduler.add_job(
                run_retention_sweep,
                'interval',
                minutes=settings.RETENTION_SWEEP_INTERVAL_MINUTES,
            )
            scheduler.start()
            logger.info(
                f"Scheduler started. Expiring trash older than {settings.TRASH_RETENTION_DAYS} days "
                f"every {settings.RETENTION_SWEEP_INTERVAL_MINUTES} minutes."
            )

        yield
    finally:
        logger.info("Shutting down...")
        if scheduler is not None and scheduler.running:
            scheduler.shutdown()
            logger.info("Scheduler shut down.")
        await database.disconnect()


app = FastAPI(
    title="Oliver API",
    description="Repair quote management API",
    version="1.0.0",
    lifespan=lifespan
)

# Logging middleware
app.add_middleware(LoggingMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["DELETE", "GET", "POST", "PUT"],
    allow_headers=["*"],
)


# Global exception handler
@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


# Include routers
app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health():
    from oliver.db import check_database_connection
    db_status = await check_database_connection()
    return {
        "status": "ok" if db_status else "degraded",
        "database": "connected" if db_status else "disconnected"
    }
