"""
API Dependencies Module

Provides dependency injection for FastAPI routes.
Contains factory functions for creating use case dependencies.
"""

from functools import lru_cache

from fastapi import Depends, HTTPException

from fixturecast.application.services.data_sync_service import DataSyncService
from fixturecast.domain.exceptions import DataSourceException
from fixturecast.domain.repositories.repositories import (
    FootballDataRepository,
    PredictionRepository,
)
from fixturecast.domain.services.prediction_engine import PredictionEngine
from fixturecast.infrastructure.data_sources.api_football import APIFootballSource
from fixturecast.infrastructure.repositories.persistence_repository import PersistenceRepository


@lru_cache()
def get_api_football() -> APIFootballSource:
    """Get API-Football data source (cached)."""
    return APIFootballSource()


@lru_cache()
def get_persistence_repository() -> PersistenceRepository:
    """Get the SQL store (cached)."""
    return PersistenceRepository()


def get_data_repository() -> FootballDataRepository:
    """Historical data used by the analyzers is read from the local store."""
    return get_persistence_repository()


def get_prediction_repository() -> PredictionRepository:
    return get_persistence_repository()


def get_prediction_engine(
    data_repository: FootballDataRepository = Depends(get_data_repository),
) -> PredictionEngine:
    """Get a prediction engine bound to the data repository."""
    return PredictionEngine(data_repository)


def get_data_sync_service(
    source: APIFootballSource = Depends(get_api_football),
    store: PersistenceRepository = Depends(get_persistence_repository),
) -> DataSyncService:
    """Sync service for on-demand refreshes from API-Football."""
    return DataSyncService(source, store)


def data_source_error(source: APIFootballSource, exc: DataSourceException) -> HTTPException:
    """503 while API-Football has no key, 502 for failures of the API itself."""
    status_code = 503 if not source.is_configured else 502
    return HTTPException(status_code=status_code, detail=str(exc))
