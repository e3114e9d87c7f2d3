# FILE: teletext/app.py
"""
FastAPI application entry point for the teletext page service
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from teletext.config import get_settings
from teletext.errors import InvalidParametersError, TeletextError
from teletext.middleware.body_limit import BodySizeLimitMiddleware
from teletext.middleware.no_cache import NoCacheMiddleware
from teletext.routes import ai, conversations, health, pages
from teletext.services.container import get_services, set_services
from teletext.services.telemetry import init_telemetry

settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown"""
    logger.info(f"Starting teletext page service v{VERSION}")

    init_telemetry()

    services = get_services()
    if not services.provider_result.ok:
        error = services.provider_result.config_error
        logger.warning(f"AI pages disabled: {error.service} needs {error.setting}")
    services.start()

    yield

    # Shutdown
    logger.info("Shutting down teletext page service")
    await services.aclose()
    set_services(None)


app = FastAPI(
    title="Teletext Page Service",
    description="24x40 teletext pages with live content, AI and games",
    version=VERSION,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Body size limit
app.add_middleware(BodySizeLimitMiddleware, max_size=settings.body_size_limit_kb * 1024)

# Page responses are cached server-side only; added last so it wraps every response
app.add_middleware(NoCacheMiddleware)


# Exception handlers
@app.exception_handler(TeletextError)
async def teletext_error_handler(request: Request, exc: TeletextError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.code} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body") or "body"
        message = f"{field}: {first.get('msg', 'invalid value')}"
    else:
        message = "invalid request"
    error = InvalidParametersError(message)
    return JSONResponse(status_code=error.status_code, content=error.to_response())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error", "code": "INTERNAL_ERROR"}
    )


# Include routers
app.include_router(pages.router, prefix="/page", tags=["pages"])
app.include_router(ai.router, prefix="/ai", tags=["ai"])
app.include_router(conversations.router, prefix="/conversation", tags=["conversations"])
app.include_router(health.router, prefix="/health", tags=["health"])


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": "Teletext Page Service",
        "version": VERSION,
        "status": "active",
        "start_page": "100",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "teletext.app:app",
        host=settings.backend_host,
        port=settings.backend_port,
        reload=settings.environment == "development"
    )
