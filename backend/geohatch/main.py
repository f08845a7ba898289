"""
Main application module for the hatching backend.

This file sets up the FastAPI application, configures CORS so browser
clients can make cross-origin requests, and exposes a simple health
check endpoint.  The hatching router is included under the `/api`
namespace.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes_hatching import router as hatching_router


def create_app() -> FastAPI:
    """Factory to create and configure the FastAPI application.

    Returns:
        FastAPI: The configured FastAPI application instance.
    """
    app = FastAPI(title="geohatch")

    # Allow all origins by default.  In production you should restrict
    # this to the domains that are allowed to access your API.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check endpoint for monitoring and deployment checks.
    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(hatching_router, prefix="/api", tags=["hatching"])

    return app


# Create the application instance.  Uvicorn will import this when
# running `uvicorn geohatch.main:app` from within the backend directory.
app = create_app()
