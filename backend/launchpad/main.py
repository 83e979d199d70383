import logging
import json
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from launchpad.core.database import engine, Base
from launchpad.core.config import settings
from launchpad.core.errors import LaunchpadError
from launchpad.core.limiter import limiter
from launchpad.models import account, curve, global_config  # noqa: F401
from launchpad.routes import auth, curves, portfolio
from launchpad.routes import global_config as global_config_routes

# Configure structured JSON logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(message)s",
)
logger = logging.getLogger(__name__)


class JSONFormatter(logging.Formatter):
    def format(self, record):
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
        }
        for field in (
            "account_id",
            "curve_id",
            "is_buy",
            "sol_amount",
            "token_amount",
            "event",
            "error_code",
            "request_path",
            "response_time",
        ):
            if hasattr(record, field):
                log_data[field] = getattr(record, field)
        return json.dumps(log_data)


# Apply JSON formatter to root logger
handler = logging.StreamHandler()
handler.setFormatter(JSONFormatter())
logging.getLogger().handlers = [handler]


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Launchpad API")
    if settings.ENVIRONMENT.lower() in {"development", "dev", "testing", "test"}:
        # NOTE: create_all is acceptable for local and test workflows.
        Base.metadata.create_all(bind=engine)
    else:
        logger.info(
            "Skipping schema auto-creation in non-dev environment; run migrations instead"
        )
    yield
    # Shutdown
    logger.info("Shutting down Launchpad API")


app = FastAPI(
    title="Bonding Curve Launchpad API",
    description="Token launches priced by a virtual-reserve constant-product curve",
    version="1.0.0",
    lifespan=lifespan,
)

# Rate limiting: per-IP throttle on auth and trade endpoints
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware: origins driven by CORS_ORIGINS env var
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    response = await call_next(request)

    process_time = time.time() - start_time

    log_record = logging.LogRecord(
        name="api",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg=f"{request.method} {request.url.path}",
        args=(),
        exc_info=None,
    )
    log_record.request_path = str(request.url.path)
    log_record.response_time = f"{process_time:.3f}s"

    logger.handle(log_record)

    return response


# Include routers
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(global_config_routes.router, prefix="/global", tags=["Global"])
app.include_router(curves.router, prefix="/curves", tags=["Curves"])
app.include_router(portfolio.router, prefix="/portfolio", tags=["Portfolio"])


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": "launchpad-api",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT,
    }


@app.get("/ready")
async def readiness_check():
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return {
            "status": "ready",
            "service": "launchpad-api",
            "environment": settings.ENVIRONMENT,
        }
    except Exception:
        return JSONResponse(status_code=503, content={"status": "not_ready"})


@app.exception_handler(LaunchpadError)
async def launchpad_exception_handler(request: Request, exc: LaunchpadError):
    log_record = logging.LogRecord(
        name="api",
        level=logging.WARNING,
        pathname="",
        lineno=0,
        msg=f"Rejected {request.method} {request.url.path}: {exc.message}",
        args=(),
        exc_info=None,
    )
    log_record.error_code = exc.code
    log_record.request_path = str(request.url.path)
    logger.handle(log_record)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
