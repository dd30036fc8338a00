"""
FixtureCast - FastAPI Application

Main entry point for the backend API.
This module configures the FastAPI app, middleware, and routes.
"""

import os
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dotenv import load_dotenv

# Load environment variables before modules that read them at import time
load_dotenv()

from fixturecast.api.dependencies import get_api_football, get_persistence_repository  # noqa: E402
from fixturecast.api.routes import analysis, fixtures, predictions, standings  # noqa: E402
from fixturecast.application.dtos.dtos import (  # noqa: E402
    ApiServiceHealthDTO,
    DatabaseHealthDTO,
    ErrorResponseDTO,
    HealthResponseDTO,
    ServicesHealthDTO,
)
from fixturecast.application.use_cases.use_cases import api_usage_to_dto  # noqa: E402
from fixturecast.infrastructure.data_sources.api_football import APIFootballSource  # noqa: E402
from fixturecast.infrastructure.repositories.persistence_repository import PersistenceRepository  # noqa: E402
from fixturecast.domain.constants import ALGORITHM_VERSION  # noqa: E402
from fixturecast.utils.time_utils import get_current_time  # noqa: E402


# Log timestamps in the application timezone
class AppTimeFormatter(logging.Formatter):
    def formatTime(self, record, datefmt=None):
        ct = get_current_time()
        if datefmt:
            s = ct.strftime(datefmt)
        else:
            t = ct.strftime("%Y-%m-%d %H:%M:%S")
            s = "%s,%03d" % (t, record.msecs)
        return s


formatter = AppTimeFormatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
handler = logging.StreamHandler()
handler.setFormatter(formatter)
root_logger = logging.getLogger()
root_logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
root_logger.handlers = [handler]
logger = logging.getLogger(__name__)


# Application metadata
APP_TITLE = "FixtureCast"
APP_DESCRIPTION = """
**Football Fixture Prediction API**

Predicts home win / draw / away win for scheduled fixtures, with a confidence
score, from recent form, multi-season team statistics and head-to-head records.

## Data Sources

- **API-Football** - Teams, fixtures, results, standings and season statistics (requires API key)

## Predictions Include

- Predicted outcome and integer confidence (0-100)
- The five named factors behind the call
- Tie-break outcome probabilities (analysis view)
"""
APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info(f"Starting {APP_TITLE} v{APP_VERSION} (algorithm {ALGORITHM_VERSION})")

    if os.getenv("API_FOOTBALL_KEY"):
        logger.info("API-Football configured")
    else:
        logger.warning("API-Football not configured, serving stored data only")

    from fixturecast.scheduler import get_scheduler

    get_persistence_repository().create_tables()

    scheduler = get_scheduler()
    scheduler.start(run_immediate=False)

    yield

    # Shutdown
    logger.info("Shutting down...")
    scheduler.shutdown()


# Create FastAPI app
app = FastAPI(
    title=APP_TITLE,
    description=APP_DESCRIPTION,
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# Configure CORS
base_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]
cors_origins = os.getenv("CORS_ORIGINS", "").split(",")
# Combine and remove empty/duplicates
all_origins = list(set([o.strip() for o in base_origins + cors_origins if o.strip()]))

app.add_middleware(
    CORSMiddleware,
    allow_origins=all_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=ErrorResponseDTO(
            error="internal_server_error",
            message="An unexpected error occurred",
            details={"path": str(request.url)},
        ).model_dump(),
    )


# Health check endpoint
@app.get(
    "/health",
    response_model=HealthResponseDTO,
    tags=["Health"],
    responses={503: {"model": HealthResponseDTO, "description": "A backing service is down"}},
    summary="Health check",
    description=(
        "API-Football configuration and request budget, database reachability "
        "and row counts. Answers 503 with status `degraded` when either is down."
    ),
)
async def health_check(
    source: APIFootballSource = Depends(get_api_football),
    store: PersistenceRepository = Depends(get_persistence_repository),
):
    """Health check endpoint."""
    usage = api_usage_to_dto(source)
    api_up = source.is_configured and usage.remaining > 0
    api = ApiServiceHealthDTO(
        status="up" if api_up else "down",
        configured=source.is_configured,
        usage=usage,
    )

    if store.health_check():
        database = DatabaseHealthDTO(
            status="up",
            teams=store.count_teams(),
            fixtures=store.count_fixtures(),
        )
    else:
        database = DatabaseHealthDTO(status="down")

    healthy = api_up and database.status == "up"
    health = HealthResponseDTO(
        status="healthy" if healthy else "degraded",
        version=APP_VERSION,
        timestamp=get_current_time(),
        services=ServicesHealthDTO(api=api, database=database),
    )
    if not healthy:
        logger.warning(f"Health check degraded: api={api.status}, database={database.status}")
        return JSONResponse(status_code=503, content=health.model_dump(mode="json"))
    return health


# Root endpoint
@app.get(
    "/",
    tags=["Root"],
    summary="API Information",
    description="Get basic API information and links.",
)
async def root():
    """Root endpoint with API info."""
    return {
        "name": APP_TITLE,
        "version": APP_VERSION,
        "algorithm_version": ALGORITHM_VERSION,
        "documentation": "/docs",
        "health": "/health",
        "endpoints": {
            "predictions": "/api/v1/predictions",
            "analysis": "/api/v1/analysis",
            "fixtures": "/api/v1/fixtures",
            "teams": "/api/v1/teams",
            "standings": "/api/v1/standings",
        },
    }


# Include routers
app.include_router(predictions.router, prefix="/api/v1")
app.include_router(analysis.router, prefix="/api/v1")
app.include_router(fixtures.router, prefix="/api/v1")
app.include_router(standings.router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8000"))
    uvicorn.run("fixturecast.api.main:app", host="0.0.0.0", port=port)
