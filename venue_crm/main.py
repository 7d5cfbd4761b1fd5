import logging
from contextlib import asynccontextmanager

import redis
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models  # noqa: F401 - registers the tables on Base
from .api_response import error_response, success_response
from .config import ALLOWED_ORIGINS, API_VERSION, ENVIRONMENT, MAX_BODY_SIZE
from .database import Base, engine, get_db
from .domain.auth.router import router as auth_router
from .domain.bookings.router import router as bookings_router
from .domain.claims.router import router as claims_router
from .domain.clients.router import router as clients_router
from .domain.proposals.router import router as proposals_router
from .domain.reports.router import router as reports_router
from .domain.users.router import router as users_router
from .domain.venues.router import router as venues_router
from .errors import register_exception_handlers
from .rate_limiter import api_rate_limit, get_redis_client
from .security_headers import SecurityHeadersMiddleware
from .security_middleware import BodySizeLimitMiddleware, RequestContextMiddleware

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("botocore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Application starting up ({ENVIRONMENT})...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")
            raise

    if get_redis_client() is not None:
        logger.info("Redis connection established")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Venue CRM API", version=API_VERSION, lifespan=lifespan)

register_exception_handlers(app)

app.add_middleware(BodySizeLimitMiddleware, max_body_size=MAX_BODY_SIZE)
app.add_middleware(SecurityHeadersMiddleware, exclude_paths=["/docs", "/redoc", "/openapi.json"])
app.add_middleware(RequestContextMiddleware)

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count", "X-Page-Count", "X-Request-ID", "X-API-Version", "Retry-After"],
)

# Routes
app.include_router(auth_router)

api_dependencies = [Depends(api_rate_limit)]
app.include_router(users_router, dependencies=api_dependencies)
app.include_router(clients_router, dependencies=api_dependencies)
app.include_router(venues_router, dependencies=api_dependencies)
app.include_router(proposals_router, dependencies=api_dependencies)
app.include_router(bookings_router, dependencies=api_dependencies)
app.include_router(claims_router, dependencies=api_dependencies)
app.include_router(reports_router, dependencies=api_dependencies)


@app.get("/health")
def health(db: Session = Depends(get_db)):
    """Liveness plus a round trip to the database"""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"❌ Health check database failure: {e}")
        return error_response(
            "SERVICE_UNAVAILABLE", "Database unavailable", status_code=503, path="/health"
        )
    return success_response({"status": "healthy", "database": "connected", "version": API_VERSION})


@app.get("/health/redis")
def health_redis():
    client = get_redis_client()
    if client is None:
        return success_response({"status": "not_configured", "fallback": "memory"})

    try:
        client.ping()
    except redis.RedisError as e:
        logger.error(f"❌ Redis health check failed: {e}")
        return error_response("SERVICE_UNAVAILABLE", "Redis unavailable", status_code=503, path="/health/redis")
    return success_response({"status": "connected"})


@app.get("/api")
def api_info():
    return success_response(
        {
            "name": "Venue CRM API",
            "version": API_VERSION,
            "environment": ENVIRONMENT,
            "endpoints": {
                "auth": "/auth",
                "users": "/api/users",
                "clients": "/api/clients",
                "venues": "/api/venues",
                "proposals": "/api/proposals",
                "bookings": "/api/bookings",
                "claims": "/api/claims",
                "reports": "/api/reports",
            },
        }
    )
