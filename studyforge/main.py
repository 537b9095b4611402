import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studyforge.api.routes import generate, usage, metrics, health
from studyforge.core import config
from studyforge.core.errors import register_exception_handlers
from studyforge.core.logging_config import setup_logging, sanitize_log_data
from studyforge.core.rate_limit import RateLimiter
from studyforge.db.init_db import init_db
from studyforge.services.content_cache import ContentCache
from studyforge.services.metrics import MetricsRecorder

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(config.LOG_LEVEL, config.LOG_DIR)
    logger.info(
        "Starting StudyForge API: %s",
        sanitize_log_data({
            "subscription_backend": config.SUBSCRIPTION_BACKEND,
            "database_url": config.DATABASE_URL,
            "llm_provider": config.LLM_PROVIDER,
            "rate_limit_max_requests": config.RATE_LIMIT_MAX_REQUESTS,
            "cache_ttl_minutes": config.CACHE_TTL_MINUTES,
        }),
    )
    if config.SUBSCRIPTION_BACKEND == "sql":
        init_db()
    yield


# ============================================
# ✅ FASTAPI APP INIT
# ============================================

def create_app() -> FastAPI:
    app = FastAPI(title="StudyForge API", lifespan=lifespan)

    # ✅ CORS LOCKDOWN: ONLY ALLOW THE FRONTEND
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            config.FRONTEND_URL,
            "http://127.0.0.1:3000",
        ],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type"],
    )

    # ✅ Process-local stores, one set per app
    app.state.rate_limiter = RateLimiter()
    app.state.content_cache = ContentCache()
    app.state.metrics = MetricsRecorder()
    app.state.llm_provider = None  # created on first generation request

    register_exception_handlers(app)

    # ✅ REGISTER ALL ROUTERS
    app.include_router(generate.router)
    app.include_router(usage.router)
    app.include_router(metrics.router)
    app.include_router(health.router)

    @app.get("/")
    def root():
        return {"status": "StudyForge API running"}

    return app


app = create_app()
