"""
FastAPI application for the notekeeper API.

This module wires routers, middleware and exception handlers.
Business logic is in notekeeper/core, infrastructure in notekeeper/infrastructure.
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import UTC, datetime

# Configure logging FIRST, before other local imports
from notekeeper.logging_config import setup_global_logging

setup_global_logging()

# Now import other modules (they will use the configured logging)
from fastapi import FastAPI, Request, status  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402

from notekeeper.api import users  # noqa: E402
from notekeeper.auth import routes as auth_routes  # noqa: E402
from notekeeper.auth.config import get_auth_config  # noqa: E402
from notekeeper.core.exceptions import RepositoryError  # noqa: E402
from notekeeper.infrastructure.firestore import close_firestore_client  # noqa: E402
from notekeeper.oauth.config import get_github_oauth_config  # noqa: E402

logger = logging.getLogger(__name__)


# ============================================================================
# Application Lifecycle
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Validates auth and GitHub configuration on startup and releases the
    Firestore client on shutdown.
    """
    get_auth_config().validate()
    get_github_oauth_config().validate()
    logger.info("Application starting up...")
    yield
    logger.info("Shutting down application...")
    try:
        await close_firestore_client()
    except Exception as e:
        logger.warning(f"Error closing Firestore client during shutdown: {e}")


app = FastAPI(
    title="Notekeeper API",
    description="Note-taking backend with GitHub login",
    version="1.0.0",
    lifespan=lifespan,
)


# ============================================================================
# CORS
# ============================================================================

_auth_config = get_auth_config()
if _auth_config.client_url:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[_auth_config.client_origin],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"],
        allow_headers=["Origin", "Authorization", "Content-Length", "Content-Type"],
        max_age=12 * 60 * 60,
    )
    logger.info(f"Allowing CORS for {_auth_config.client_origin}")
else:
    logger.warning("CLIENT_URL is not configured, CORS disabled")


# ============================================================================
# Centralized Exception Handlers
# ============================================================================


@app.exception_handler(RepositoryError)
async def repository_error_handler(request: Request, exc: RepositoryError):
    """
    Handle user store failures outside the login flow.

    The login callback maps its own failures to redirects; this covers the
    JSON endpoints.
    """
    logger.error(f"Repository error: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "status": "error",
            "message": "Internal error - please retry",
        },
    )


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "notekeeper",
        "timestamp": datetime.now(UTC).isoformat(),
    }


@app.get("/health")
async def health():
    """Health check endpoint for Cloud Run."""
    return {"status": "healthy"}


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(auth_routes.router)
app.include_router(users.router)


# ============================================================================
# Main Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8080))
    uvicorn.run(app, host="0.0.0.0", port=port)
