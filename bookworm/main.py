"""
Main application entry point.
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from bookworm.api.v1.catalog_endpoints import router as catalog_router
from bookworm.api.v1.dependencies import shutdown_dependencies

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Teardown: cancel pending empty-result timers and in-flight fetches.
    await shutdown_dependencies()


app = FastAPI(
    title="Bookworm Catalog API",
    description="Browse and search books and authors, and submit ratings and reviews.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Include API routers
app.include_router(catalog_router, prefix="/api/v1", tags=["catalog"])


@app.get("/")
def read_root():
    """Root endpoint."""
    return {
        "message": "Welcome to the Bookworm Catalog API",
        "docs": "/docs",
        "health": "/api/v1/health",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("bookworm.main:app", host="0.0.0.0", port=8000, reload=True)
