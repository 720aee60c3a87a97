import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logfire

from telehealth.config import settings
from telehealth.database import init_db, close_db
from telehealth.api import api_router
from telehealth.api.errors import register_exception_handlers

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize Logfire - structured workflow events plus request tracing
if settings.logfire_token:
    logfire.configure(
        token=settings.logfire_token,
        service_name="telehealth-booking",
        environment=settings.app_env,
        console=False,
    )
    logging.getLogger().addHandler(logfire.LogfireLoggingHandler())
    logger.info("Logfire initialized")
else:
    logfire.configure(send_to_logfire=False, console=False)
    logger.warning("Logfire token not set - observability disabled")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting telehealth booking API...")
    await init_db()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down...")
    await close_db()
    logger.info("Database connections closed")


app = FastAPI(
    title=settings.app_name,
    description="Telehealth appointment booking and consultation sessions",
    version="1.0.0",
    lifespan=lifespan,
)

if settings.logfire_token:
    logfire.instrument_fastapi(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(api_router, prefix="/api")


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": "1.0.0",
    }


@app.get("/health")
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "database": "connected",
        "livekit": "configured" if settings.livekit_api_key else "not_configured",
    }
