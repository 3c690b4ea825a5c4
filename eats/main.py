"""
Eats Delivery API application.

Clients order food, restaurant owners cook it and delivery drivers carry
it. Providers are mocked in development and real (Stripe, SendGrid) in
staging and production.

Routes:
    - /users: accounts, login, profile and email verification
    - /restaurants, /categories, /dishes: catalog and menus
    - /orders: order placement and status workflow
    - /payments: restaurant promotion payments
    - /uploads: image upload (files served back under /uploads)
    - GET /health: dependency status
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

import redis
import redis.asyncio as aioredis
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from eats.core.config import get_settings, setup_logging
from eats.database import engine, get_db, init_db
from eats.routers import all_routers
from eats.routers.deps import get_gateway
from eats.schemas import HealthResponse
from eats.services.gateway import BasePaymentGateway
from eats.services.notifications import get_notification_service

settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"{settings.app_name} {settings.app_version} starting "
        f"(env={settings.env_mode.value}, debug={settings.debug})"
    )

    await init_db()
    logger.info("Tables ready")
    logger.info(
        f"Providers: payments={get_gateway().provider_name}, "
        f"email={get_notification_service().provider_name}"
    )

    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"Running without required settings: {', '.join(missing)}")

    yield

    await engine.dispose()
    logger.info("Connections closed")


app = FastAPI(
    title=settings.app_name,
    description=(
        "Food delivery marketplace: clients order, restaurant owners cook "
        "and delivery drivers carry."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router in all_routers:
    app.include_router(router)

Path(settings.upload_directory).mkdir(parents=True, exist_ok=True)
app.mount(
    "/uploads",
    StaticFiles(directory=settings.upload_directory),
    name="uploaded-files",
)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "env": settings.env_mode.value,
        "docs": "/docs",
    }


async def _ping_redis() -> str:
    client = aioredis.Redis.from_url(settings.redis_url, socket_timeout=2)
    try:
        await client.ping()
    except redis.RedisError as e:
        logger.error(f"Redis ping failed: {e}")
        return f"unhealthy: {e}"
    finally:
        await client.aclose()
    return "healthy"


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(
    db: AsyncSession = Depends(get_db),
    gateway: BasePaymentGateway = Depends(get_gateway),
) -> HealthResponse:
    """Report the state of every backing service; "degraded" if any is down."""
    try:
        await db.execute(select(1))
        database = "healthy"
    except SQLAlchemyError as e:
        logger.error(f"Database ping failed: {e}")
        database = f"unhealthy: {e}"

    broker = await _ping_redis()
    payments = "healthy" if await gateway.health_check() else "unhealthy"
    email = "healthy" if await get_notification_service().health_check() else "unhealthy"

    checks = (database, broker, payments, email)
    return HealthResponse(
        status="operational" if all(c == "healthy" for c in checks) else "degraded",
        database=database,
        redis=broker,
        payment_gateway=payments,
        notification_service=email,
        timestamp=datetime.now(),
    )


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "ok": False,
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "Unexpected error",
        },
    )
