from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from warranty_api.core.config import get_settings
from warranty_api.core.errors import InfrastructureError, TokenError, WarrantyError
from warranty_api.routers.health import router as health_router
from warranty_api.routers.warranty_links import router as warranty_links_router
from warranty_api.routers.warranty_public import router as warranty_public_router

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Public warranty certificates for a phone resale store - shareable signed links and CPF lookup.",
    version="0.1.0",
)


@app.exception_handler(WarrantyError)
async def warranty_exception_handler(request: Request, exc: WarrantyError):
    """Map service errors to their status and public message; details stay in the log."""
    if isinstance(exc, InfrastructureError):
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}", exc_info=exc)
    elif isinstance(exc, TokenError):
        logger.info(f"Warranty token rejected ({exc.code}): {exc.detail}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.code}): {exc.detail}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.code,
            "message": exc.public_message,
        }
    )


# Global exception handler for unhandled errors
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected server errors with structured response."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again later.",
            "request_id": request.headers.get("X-Request-ID"),
        }
    )

# The public warranty page is served from another origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

app.include_router(health_router)
app.include_router(warranty_public_router, prefix="/api")
app.include_router(warranty_links_router, prefix="/api")


@app.get("/")
def read_root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "docs": "/docs",
        "health": "/health"
    }
