"""
Predictions Router

API endpoints for generating, listing and evaluating fixture predictions.
"""

from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query

from fixturecast.application.dtos.dtos import (
    AccuracyResponseDTO,
    BatchPredictionRequestDTO,
    BatchPredictionResponseDTO,
    ErrorResponseDTO,
    PredictionResponseDTO,
    PredictionStatsDTO,
    PredictionsListResponseDTO,
    UpcomingPredictionsResponseDTO,
)
from fixturecast.application.use_cases.use_cases import (
    BacktestAccuracyUseCase,
    BatchPredictUseCase,
    GetPredictionStatsUseCase,
    GetStoredPredictionsUseCase,
    PredictFixtureUseCase,
    PredictUpcomingFixturesUseCase,
)
from fixturecast.api.dependencies import (
    get_data_repository,
    get_prediction_engine,
    get_prediction_repository,
)
from fixturecast.domain.exceptions import FixtureNotFoundException
from fixturecast.domain.repositories.repositories import (
    FootballDataRepository,
    PredictionRepository,
)
from fixturecast.domain.services.prediction_engine import PredictionEngine


router = APIRouter(prefix="/predictions", tags=["Predictions"])


@router.get(
    "",
    response_model=Union[PredictionResponseDTO, UpcomingPredictionsResponseDTO, PredictionsListResponseDTO],
    responses={
        404: {"model": ErrorResponseDTO, "description": "Fixture not found"},
        500: {"model": ErrorResponseDTO, "description": "Internal server error"},
    },
    summary="Get predictions",
    description=(
        "With `fixture_id`: the stored prediction of that fixture, generated on demand "
        "(or always, with `generate=true`). With `upcoming=true`: predicts and stores every "
        "fixture in the next `days` days. Otherwise: all stored predictions."
    ),
)
async def get_predictions(
    fixture_id: Optional[int] = Query(default=None, description="Fixture identifier"),
    generate: bool = Query(default=False, description="Regenerate even if a prediction is stored"),
    upcoming: bool = Query(default=False, description="Predict upcoming fixtures"),
    days: int = Query(default=7, ge=1, le=30, description="Look-ahead window in days"),
    data_repository: FootballDataRepository = Depends(get_data_repository),
    prediction_repository: PredictionRepository = Depends(get_prediction_repository),
    engine: PredictionEngine = Depends(get_prediction_engine),
):
    if fixture_id is not None:
        use_case = PredictFixtureUseCase(data_repository, prediction_repository, engine)
        try:
            return await use_case.execute(fixture_id, generate)
        except FixtureNotFoundException as e:
            raise HTTPException(status_code=404, detail=str(e))

    if upcoming:
        return await PredictUpcomingFixturesUseCase(prediction_repository, engine).execute(days)

    return await GetStoredPredictionsUseCase(prediction_repository).execute()


@router.post(
    "",
    response_model=BatchPredictionResponseDTO,
    summary="Predict several fixtures",
    description="Generates (or returns existing) predictions for each fixture id; failures are reported per fixture.",
)
async def predict_fixtures(
    request: BatchPredictionRequestDTO,
    data_repository: FootballDataRepository = Depends(get_data_repository),
    prediction_repository: PredictionRepository = Depends(get_prediction_repository),
    engine: PredictionEngine = Depends(get_prediction_engine),
) -> BatchPredictionResponseDTO:
    use_case = BatchPredictUseCase(data_repository, prediction_repository, engine)
    return await use_case.execute(request)


@router.get(
    "/stats",
    response_model=PredictionStatsDTO,
    summary="Prediction statistics",
    description="Outcome distribution, confidence bands and mean confidence of stored predictions.",
)
async def get_prediction_stats(
    prediction_repository: PredictionRepository = Depends(get_prediction_repository),
) -> PredictionStatsDTO:
    return await GetPredictionStatsUseCase(prediction_repository).execute()


@router.get(
    "/accuracy",
    response_model=AccuracyResponseDTO,
    summary="Back-test accuracy",
    description="Predicts the most recent completed fixtures and compares against their results.",
)
async def get_prediction_accuracy(
    matches: int = Query(default=10, ge=1, le=100, description="Completed fixtures to test"),
    data_repository: FootballDataRepository = Depends(get_data_repository),
    engine: PredictionEngine = Depends(get_prediction_engine),
) -> AccuracyResponseDTO:
    return await BacktestAccuracyUseCase(data_repository, engine).execute(matches)
