import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST, REGISTRY

from app.core.db.mongodb import connect_to_mongo, close_mongo_connection
from app.core.cache.cache_manager import close_dragonfly_client
from app.api.v1.api import api_router
from app.core.setting import config

# Import Prometheus middleware
from app.core.monitoring.prometheus_middleware import PrometheusMiddleware

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# Use lifespan context manager instead of @app.on_event for newer FastAPI versions
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await connect_to_mongo()
    logger.info(f"{config.PROJECT_NAME} started ({config.ENVIRONMENT})")
    yield
    # Shutdown
    close_dragonfly_client()
    await close_mongo_connection()

app = FastAPI(
    title=config.PROJECT_NAME,
    version="0.1.0",
    openapi_url=f"{config.API_V1_STR}/openapi.json",
    lifespan=lifespan
)

# ============================================================================
# CORS Middleware
# ============================================================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================================
# Prometheus Middleware (Add BEFORE routes)
# ============================================================================
app.middleware("http")(PrometheusMiddleware())

# ============================================================================
# Metrics Endpoint (Add BEFORE api_router to avoid conflicts)
# ============================================================================
@app.get("/metrics")
async def metrics():
    """
    Prometheus metrics endpoint, scraped by Prometheus.
    Includes summary aggregation / approval counters and write conflicts.
    """
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST
    )

# ============================================================================
# Health Check Endpoint
# ============================================================================
@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": config.PROJECT_NAME,
        "environment": config.ENVIRONMENT
    }

# ============================================================================
# API Router
# ============================================================================
app.include_router(api_router, prefix=config.API_V1_STR)

# ============================================================================
# Root Endpoint
# ============================================================================
@app.get("/")
async def root():
    return {
        "message": "Production Summary API",
        "docs": "/redoc",
        "metrics": "/metrics",
        "health": "/health"
    }
