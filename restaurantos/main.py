"""
FastAPI Application Entry Point

RestaurantOS - restaurant management backend.
Runs with mock services in development and the hosted AI backend,
SendGrid and Redis in staging/production.

Endpoints:
    - /api/auth/*: Sign up, sign in, password reset
    - /api/menu, /api/orders, /api/tables: Menu, orders and floor plan
    - /api/dashboard/*: Kitchen, bar, waiter, customer and manager views
    - /api/inventory: Bar stock
    - /api/reports/*: Sales reports and exports
    - /api/voice-orders, /api/invoices: Voice quick order and invoices
    - /api/assistant/*: AI assistant
    - /ws/orders: Realtime order notifications
    - GET /health: System health check
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

# Windows-specific event loop policy
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from restaurantos.api import ROUTERS
from restaurantos.core.config import get_settings, setup_logging
from restaurantos.database import async_session_maker, engine, get_db, init_db
from restaurantos.schemas import HealthResponse
from restaurantos.services.ai import get_ai_service
from restaurantos.services.events import get_event_broker
from restaurantos.services.notifications import get_notification_service
from restaurantos.services.seed import seed_defaults

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    # Initialize database
    await init_db()
    async with async_session_maker() as db:
        await seed_defaults(db, include_menu=settings.seed_demo_menu)
    logger.info("✅ Database initialized")

    # Log service configuration
    logger.info(f"✅ AI Service: {get_ai_service().provider_name}")
    logger.info(f"✅ Notification Service: {get_notification_service().provider_name}")
    logger.info(f"✅ Event Broker: {get_event_broker().provider_name}")

    # Validate production config
    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Missing production config: {missing}")

    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await get_event_broker().close()
    await engine.dispose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Restaurant management backend: role dashboards, orders, floor plan, "
        "bar inventory, sales reports and voice quick orders with invoicing."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router in ROUTERS:
    app.include_router(router)


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"🍽️ Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    db: AsyncSession = Depends(get_db)
) -> HealthResponse:
    """Verify all system components are operational."""

    # Check database
    db_status = "healthy"
    try:
        await db.execute(select(1))
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        logger.error(f"Database health check failed: {e}")

    # Check the event broker (Redis outside development)
    broker = get_event_broker()
    redis_status = "healthy" if await broker.health_check() else "unhealthy"
    if broker.provider_name != "redis":
        redis_status = f"{redis_status} ({broker.provider_name})"

    ai_status = "healthy" if await get_ai_service().health_check() else "unhealthy"
    notification_status = "healthy" if await get_notification_service().health_check() else "unhealthy"

    overall = "operational" if all(
        s.startswith("healthy") for s in [db_status, redis_status, ai_status, notification_status]
    ) else "degraded"

    return HealthResponse(
        status=overall,
        database=db_status,
        redis=redis_status,
        ai_service=ai_status,
        notification_service=notification_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "restaurantos.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
