"""
FastAPI server for the CharaSphere web client.

This is the main entry point for the API server. It sets up the FastAPI application,
configures middleware and error rendering, and includes all routers from the
modular router files under /api.
"""

import logging
import traceback
import uvicorn

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from charasphere.api.config import ALLOWED_ORIGINS, DEBUG_MODE
from charasphere.api.limiter import limiter
from charasphere.api.routers import (
    ai_router,
    characters_router,
    collection_router,
    gacha_router,
    game_router,
    player_router,
    sync_router,
)
from charasphere.utils import database

logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title="CharaSphere API",
    description="API for the CharaSphere character collection game",
    version="1.0.0",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render errors as {"error": ...}; dict details are merged into the body."""
    if isinstance(exc.detail, dict):
        content = dict(exc.detail)
    else:
        content = {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    logger.info(f"Rejected invalid request on {request.method} {request.url.path}: {errors}")
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log full tracebacks for unhandled exceptions."""
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}:\n" f"{traceback.format_exc()}"
    )
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"},
    )


# CORS configuration
if DEBUG_MODE:
    # Allow any origin in debug mode for easier local development
    allowed_origins = ["*"]
else:
    allowed_origins = ALLOWED_ORIGINS

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=not DEBUG_MODE,  # credentials not supported with wildcard origin
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Include all routers
app.include_router(player_router, prefix="/api")
app.include_router(gacha_router, prefix="/api")
app.include_router(game_router, prefix="/api")
app.include_router(characters_router, prefix="/api")
app.include_router(collection_router, prefix="/api")
app.include_router(ai_router, prefix="/api")
app.include_router(sync_router, prefix="/api")


@app.get("/health")
async def health():
    return {"status": "ok"}


def run_server(host: str = "0.0.0.0", port: int = 8000):
    """Apply migrations and run the FastAPI server."""
    if DEBUG_MODE:
        logger.info("🧪 Running API server in DEBUG mode")
    else:
        logger.info("🚀 Running API server in PRODUCTION mode")

    database.run_migrations()

    logger.info(f"🌐 Starting FastAPI server on http://{host}:{port}")
    uvicorn.run("charasphere.api.server:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    run_server()
