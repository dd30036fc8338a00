"""
Standings Router

League table of the configured league.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from fixturecast.application.dtos.dtos import (
    ErrorResponseDTO,
    StandingsResponseDTO,
    SyncResponseDTO,
)
from fixturecast.application.use_cases.use_cases import GetStandingsUseCase, SyncStandingsUseCase
from fixturecast.api.dependencies import data_source_error, get_data_sync_service
from fixturecast.application.services.data_sync_service import DataSyncService
from fixturecast.domain.exceptions import DataSourceException


router = APIRouter(prefix="/standings", tags=["Standings"])

SOURCE_ERRORS = {
    502: {"model": ErrorResponseDTO, "description": "API-Football request failed"},
    503: {"model": ErrorResponseDTO, "description": "API-Football not configured"},
}


@router.get(
    "",
    response_model=StandingsResponseDTO,
    responses=SOURCE_ERRORS,
    summary="Get league standings",
    description=(
        "League table for a season, read from the database. "
        "When nothing is stored yet it is fetched from API-Football and saved."
    ),
)
async def get_standings(
    season: Optional[int] = Query(default=None, description="Season start year, latest stored by default"),
    sync_service: DataSyncService = Depends(get_data_sync_service),
) -> StandingsResponseDTO:
    try:
        return await GetStandingsUseCase(sync_service).execute(season)
    except DataSourceException as e:
        raise data_source_error(sync_service.source, e)


@router.post(
    "/sync",
    response_model=SyncResponseDTO,
    responses=SOURCE_ERRORS,
    summary="Sync league standings",
)
async def sync_standings(
    season: Optional[int] = Query(default=None, description="Season start year, current season by default"),
    sync_service: DataSyncService = Depends(get_data_sync_service),
) -> SyncResponseDTO:
    try:
        return await SyncStandingsUseCase(sync_service).execute(season)
    except DataSourceException as e:
        raise data_source_error(sync_service.source, e)
