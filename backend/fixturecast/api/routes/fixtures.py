"""
Fixtures Router

API endpoints for fixtures and teams, and their on-demand sync from API-Football.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from fixturecast.application.dtos.dtos import (
    ErrorResponseDTO,
    FixtureDTO,
    FixturesResponseDTO,
    SyncResponseDTO,
    TeamsResponseDTO,
)
from fixturecast.application.use_cases.use_cases import (
    GetFixtureUseCase,
    GetFixturesUseCase,
    GetTeamsUseCase,
    SyncTeamsUseCase,
    SyncUpcomingFixturesUseCase,
)
from fixturecast.api.dependencies import (
    data_source_error,
    get_data_repository,
    get_data_sync_service,
)
from fixturecast.application.services.data_sync_service import DataSyncService
from fixturecast.domain.exceptions import DataSourceException, FixtureNotFoundException
from fixturecast.domain.repositories.repositories import FootballDataRepository


router = APIRouter(tags=["Fixtures"])


@router.get(
    "/fixtures",
    response_model=FixturesResponseDTO,
    summary="List fixtures",
    description="Upcoming fixtures in the next `days` days, or the most recent completed ones with `upcoming=false`.",
)
async def get_fixtures(
    upcoming: bool = Query(default=True, description="Upcoming instead of completed fixtures"),
    days: int = Query(default=7, ge=1, le=30, description="Look-ahead window in days"),
    limit: int = Query(default=20, ge=1, le=100, description="Completed fixtures to return"),
    data_repository: FootballDataRepository = Depends(get_data_repository),
) -> FixturesResponseDTO:
    return await GetFixturesUseCase(data_repository).execute(upcoming, days, limit)


@router.post(
    "/fixtures/sync",
    response_model=SyncResponseDTO,
    responses={
        502: {"model": ErrorResponseDTO, "description": "API-Football request failed"},
        503: {"model": ErrorResponseDTO, "description": "API-Football not configured"},
    },
    summary="Sync upcoming fixtures",
    description="Fetch the fixtures of the next `days` days from API-Football into the store.",
)
async def sync_fixtures(
    days: int = Query(default=7, ge=1, le=30, description="Look-ahead window in days"),
    sync_service: DataSyncService = Depends(get_data_sync_service),
) -> SyncResponseDTO:
    try:
        return await SyncUpcomingFixturesUseCase(sync_service).execute(days)
    except DataSourceException as e:
        raise data_source_error(sync_service.source, e)


@router.get(
    "/fixtures/{fixture_id}",
    response_model=FixtureDTO,
    responses={404: {"model": ErrorResponseDTO, "description": "Fixture not found"}},
    summary="Get a fixture",
)
async def get_fixture(
    fixture_id: int,
    data_repository: FootballDataRepository = Depends(get_data_repository),
) -> FixtureDTO:
    try:
        return await GetFixtureUseCase(data_repository).execute(fixture_id)
    except FixtureNotFoundException as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get(
    "/teams",
    response_model=TeamsResponseDTO,
    summary="List teams",
)
async def get_teams(
    data_repository: FootballDataRepository = Depends(get_data_repository),
) -> TeamsResponseDTO:
    return await GetTeamsUseCase(data_repository).execute()


@router.post(
    "/teams/sync",
    response_model=SyncResponseDTO,
    responses={
        502: {"model": ErrorResponseDTO, "description": "API-Football request failed"},
        503: {"model": ErrorResponseDTO, "description": "API-Football not configured"},
    },
    summary="Sync teams",
    description="Fetch the teams of the configured league from API-Football into the store.",
)
async def sync_teams(
    season: Optional[int] = Query(default=None, description="Season start year, current season by default"),
    sync_service: DataSyncService = Depends(get_data_sync_service),
) -> SyncResponseDTO:
    try:
        return await SyncTeamsUseCase(sync_service).execute(season)
    except DataSourceException as e:
        raise data_source_error(sync_service.source, e)
