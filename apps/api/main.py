import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from apps.api.errors import register_exception_handlers
from apps.api.middlewares.metrics import MetricsMiddleware
from apps.api.routers import auth, discover, health, likes, matches, me
from apps.workers.otp_sweeper import OtpSweeper
from core import close_redis, get_redis
from core.config import Settings, settings
from services.email import EmailSender
from services.otp import MemoryOtpStore, OtpStore, OtpVerifier, RedisOtpStore

logging.basicConfig(
    level=logging.DEBUG if settings.is_development else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


async def build_otp_store(config: Settings) -> OtpStore:
    """Create the OTP store selected by ``otp_backend``."""
    if config.otp_backend == "redis":
        return RedisOtpStore(
            await get_redis(),
            max_attempts=config.otp_max_attempts,
            grace_seconds=config.otp_sweep_interval_seconds,
        )
    if config.otp_backend != "memory":
        raise ValueError(f"Unknown otp_backend: {config.otp_backend}")
    logger.warning("Using in-memory OTP store; codes are not shared between API instances")
    return MemoryOtpStore(max_attempts=config.otp_max_attempts)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    # Startup
    store = await build_otp_store(settings)
    sweeper = OtpSweeper(store, interval_seconds=settings.otp_sweep_interval_seconds)
    app.state.otp_verifier = OtpVerifier(store, ttl_minutes=settings.otp_ttl_minutes)
    app.state.email_sender = EmailSender(settings)
    sweeper.start()
    yield
    # Shutdown
    await sweeper.stop()
    await close_redis()


app = FastAPI(
    title="Campus Connect API",
    description="API for campus-exclusive dating: profiles, likes, matches and chat",
    version="0.1.0",
    lifespan=lifespan,
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
)

register_exception_handlers(app)

# Middlewares
app.add_middleware(MetricsMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.is_development else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, prefix="/api/health", tags=["health"])
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(me.router, prefix="/api/me", tags=["me"])
app.include_router(discover.router, prefix="/api/discover", tags=["discover"])
app.include_router(likes.router, prefix="/api/likes", tags=["likes"])
app.include_router(matches.router, prefix="/api/matches", tags=["matches"])


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"status": "ok", "service": "campus-connect"}


@app.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("apps.api.main:app", host="0.0.0.0", port=settings.api_port, reload=settings.is_development)
