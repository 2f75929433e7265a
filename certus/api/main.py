"""Certus API - shape-contract data layer service.

Serves the data asset catalog, shape-typed data asset queries, the widget
registry, widget prop resolution, and the helpers the assistant layer uses.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from certus import __version__
from certus.api.routes import ai, dashboards, data_assets, widgets
from certus.data_assets.registry import get_data_asset_registry
from certus.executor import db
from certus.widgets.registry import get_widget_registry

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Loading data asset definitions...")
    asset_registry = get_data_asset_registry()
    logger.info(f"Loaded {asset_registry.count()} data assets")

    logger.info("Loading widget registry...")
    widget_registry = get_widget_registry()
    logger.info(f"Loaded {widget_registry.count()} widget types")

    db.init_db()

    logger.info("Certus API ready")
    yield
    logger.info("Shutting down Certus API")


app = FastAPI(
    title="Certus API",
    description="""
## Shape-contract data layer

Data assets are named business metrics that serialize into one of six
shape contracts; widgets consume exactly one shape.

### Key Endpoints

- `GET /v1/data-assets` - List active data assets
- `POST /v1/data-assets/query` - Query an asset as a shape
- `GET /v1/data-assets/{key}/compatible-widgets` - Widget types for an asset
- `GET /v1/widgets` - Widget registry
- `GET /v1/dashboards/{id}/widgets` - Resolve a dashboard's widgets
""",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers with /v1 prefix
app.include_router(data_assets.router, prefix="/v1")
app.include_router(widgets.router, prefix="/v1")
app.include_router(dashboards.router, prefix="/v1")
app.include_router(ai.router, prefix="/v1")


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "Certus API",
        "version": __version__,
        "description": "Shape-contract data layer",
        "docs": "/docs",
        "endpoints": {
            "data_assets": "/v1/data-assets",
            "widgets": "/v1/widgets",
            "dashboards": "/v1/dashboards",
            "ai": "/v1/ai",
        },
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    asset_registry = get_data_asset_registry()
    return {
        "status": "healthy",
        "data_assets_loaded": asset_registry.count(),
        "active_data_assets": len(asset_registry.list_active_assets()),
        "widget_types_loaded": get_widget_registry().count(),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "certus.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
