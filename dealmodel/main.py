"""
Main FastAPI application entry point.

Run locally with ``python -m dealmodel.main`` or ``uvicorn dealmodel.main:app``.
"""

import logging

import uvicorn
from fastapi import FastAPI

from dealmodel.config import get_settings
from dealmodel.api import router as api_router

settings = get_settings()

logging.basicConfig(level=settings.log_level, format=settings.log_format)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Acquisition underwriting projections and Excel reports",
    version="0.1.0",
    debug=settings.debug,
)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy", "version": "0.1.0", "environment": settings.app_env}


if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
