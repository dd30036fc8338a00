"""
Analysis Router

API endpoints for detailed match and team analysis.
"""

from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query

from fixturecast.application.dtos.dtos import (
    ErrorResponseDTO,
    MatchAnalysisDTO,
    TeamComparisonDTO,
    TeamInsightsDTO,
)
from fixturecast.application.use_cases.use_cases import (
    CompareTeamsUseCase,
    GetMatchAnalysisUseCase,
    GetTeamAnalysisUseCase,
)
from fixturecast.api.dependencies import (
    get_data_repository,
    get_prediction_engine,
    get_prediction_repository,
)
from fixturecast.domain.exceptions import FixtureNotFoundException, TeamNotFoundException
from fixturecast.domain.repositories.repositories import (
    FootballDataRepository,
    PredictionRepository,
)
from fixturecast.domain.services.prediction_engine import PredictionEngine


router = APIRouter(tags=["Analysis"])


@router.get(
    "/analysis",
    response_model=Union[MatchAnalysisDTO, TeamComparisonDTO],
    responses={
        400: {"model": ErrorResponseDTO, "description": "Missing parameters"},
        404: {"model": ErrorResponseDTO, "description": "Fixture or team not found"},
    },
    summary="Match or head-to-head analysis",
    description=(
        "With `fixture_id`: full match context, prediction and outcome probabilities. "
        "With `team1_id` and `team2_id`: form, statistics and head-to-head of both teams."
    ),
)
async def get_analysis(
    fixture_id: Optional[int] = Query(default=None, description="Fixture identifier"),
    team1_id: Optional[int] = Query(default=None, description="First team"),
    team2_id: Optional[int] = Query(default=None, description="Second team"),
    data_repository: FootballDataRepository = Depends(get_data_repository),
    prediction_repository: PredictionRepository = Depends(get_prediction_repository),
    engine: PredictionEngine = Depends(get_prediction_engine),
):
    try:
        if fixture_id is not None:
            use_case = GetMatchAnalysisUseCase(data_repository, prediction_repository, engine)
            return await use_case.execute(fixture_id)

        if team1_id is not None and team2_id is not None:
            if team1_id == team2_id:
                raise HTTPException(status_code=400, detail="team1_id and team2_id must differ")
            return await CompareTeamsUseCase(data_repository, engine).execute(team1_id, team2_id)
    except (FixtureNotFoundException, TeamNotFoundException) as e:
        raise HTTPException(status_code=404, detail=str(e))

    raise HTTPException(
        status_code=400,
        detail="Either fixture_id or both team1_id and team2_id are required",
    )


@router.get(
    "/teams/{team_id}/analysis",
    response_model=TeamInsightsDTO,
    responses={404: {"model": ErrorResponseDTO, "description": "Team not found"}},
    summary="Team analysis",
    description="Recent form, multi-season statistics and insights of a team.",
)
async def get_team_analysis(
    team_id: int,
    data_repository: FootballDataRepository = Depends(get_data_repository),
    engine: PredictionEngine = Depends(get_prediction_engine),
) -> TeamInsightsDTO:
    try:
        return await GetTeamAnalysisUseCase(data_repository, engine).execute(team_id)
    except TeamNotFoundException as e:
        raise HTTPException(status_code=404, detail=str(e))
