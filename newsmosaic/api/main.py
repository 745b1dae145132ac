"""FastAPI application for the mosaic layout service."""

import logging
import random
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from newsmosaic import __version__
from newsmosaic.config import get_settings
from newsmosaic.models.schemas import MosaicRequest, MosaicResponse
from newsmosaic.tiling import RulesConfigError, TilingEngine, load_tiling_rules

# Configure logging
logging.basicConfig(level=get_settings().log_level)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="News Mosaic API",
    description="Lays out headline tiles as a variable-size mosaic grid.",
    version=__version__,
)

# CORS middleware for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/api/rules")
async def get_rules():
    """Return the active tiling rules document."""
    settings = get_settings()
    try:
        rules = load_tiling_rules(settings.tiling_rules_path)
    except RulesConfigError as e:
        logger.error(f"Tiling rules unavailable: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return rules.to_document()


@app.post("/api/mosaic", response_model=MosaicResponse, response_model_by_alias=True)
def create_mosaic(request: MosaicRequest):
    """
    Generate a mosaic layout.

    Each request gets its own engine and grid. Pass ``seed`` for a
    reproducible layout. Runs in the threadpool.
    """
    settings = get_settings()
    rng = random.Random(request.seed) if request.seed is not None else None

    try:
        engine = TilingEngine.from_settings(
            settings, rules_override=request.rules_override, rng=rng
        )
    except RulesConfigError as e:
        if e.source == "override":
            raise HTTPException(status_code=422, detail=str(e))
        logger.error(f"Tiling rules unavailable: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    columns = request.columns
    if columns is None:
        columns = engine.columns_for_width(request.container_width)
    grid = engine.generate(request.article_count, columns)

    if grid.articles_placed < request.article_count:
        logger.warning(
            f"Mosaic shortfall: placed {grid.articles_placed} of {request.article_count}"
        )

    return engine.render(grid, request.article_count, request.container_width)
