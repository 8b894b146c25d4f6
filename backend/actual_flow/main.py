import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .models.database import init_db
from .routers import connections_router, accounts_router, mappings_router, imports_router
from .services.scheduler import initialize_scheduler, shutdown_scheduler

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: str = None):
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format=LOG_FORMAT
    )


configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    settings = get_settings()

    # Ensure data directory exists
    data_dir = Path("./data")
    data_dir.mkdir(exist_ok=True)

    # Initialize database
    engine = await init_db(settings.database_url)
    await engine.dispose()
    logger.info("Database initialized")

    if settings.scheduler_enabled:
        await initialize_scheduler()
        logger.info("Scheduler initialized")

    yield

    # Shutdown
    await shutdown_scheduler()


# Create FastAPI app
app = FastAPI(
    title="Actual Flow",
    description="Import transactions from Lunch Flow into Actual Budget",
    version="1.0.0",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify allowed origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(connections_router, prefix="/api")
app.include_router(accounts_router, prefix="/api")
app.include_router(mappings_router, prefix="/api")
app.include_router(imports_router, prefix="/api")


# Health check endpoint
@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "actual-flow"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
