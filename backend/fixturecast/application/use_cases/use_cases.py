"""
Application Use Cases Module

Use cases represent application-specific business rules and orchestrate
the flow of data between the domain layer and the infrastructure layer.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from fixturecast.domain.entities.entities import (
    Fixture,
    FormAnalysis,
    HeadToHeadSummary,
    MatchOutcome,
    PredictionRecord,
    Standing,
    StatisticalAnalysis,
    Team,
)
from fixturecast.domain.exceptions import FixtureNotFoundException, TeamNotFoundException
from fixturecast.domain.repositories.repositories import (
    FootballDataRepository,
    PredictionRepository,
)
from fixturecast.domain.services.head_to_head_analyzer import HeadToHeadAnalyzer
from fixturecast.domain.services.prediction_engine import PredictionEngine
from fixturecast.domain.services.team_insights import describe_team
from fixturecast.application.services.data_sync_service import DataSyncService
from fixturecast.application.dtos.dtos import (
    AccuracyResponseDTO,
    AccuracyResultDTO,
    ApiUsageDTO,
    BatchItemStatus,
    BatchPredictionErrorDTO,
    BatchPredictionItemDTO,
    BatchPredictionRequestDTO,
    BatchPredictionResponseDTO,
    ComparisonDTO,
    FixtureDTO,
    FixturePredictionDTO,
    FixturesResponseDTO,
    FormAnalysisDTO,
    HeadToHeadDTO,
    HeadToHeadSummaryDTO,
    MatchAnalysisDTO,
    OutcomeProbabilitiesDTO,
    PredictionDTO,
    PredictionFactorsDTO,
    PredictionResponseDTO,
    PredictionSource,
    PredictionStatsDTO,
    PredictionsListResponseDTO,
    StandingDTO,
    StandingsResponseDTO,
    StatisticalAnalysisDTO,
    SyncResponseDTO,
    TeamAnalysisDTO,
    TeamComparisonDTO,
    TeamDTO,
    TeamInsightsDTO,
    TeamsResponseDTO,
    UpcomingPredictionsResponseDTO,
)


logger = logging.getLogger(__name__)


# ============================================================
# Mapping helpers
# ============================================================

def team_to_dto(team: Team) -> TeamDTO:
    return TeamDTO(
        id=team.id,
        name=team.name,
        code=team.code,
        country=team.country,
        logo=team.logo,
    )


def fixture_to_dto(fixture: Fixture) -> FixtureDTO:
    return FixtureDTO(
        id=fixture.id,
        home_team=team_to_dto(fixture.home_team),
        away_team=team_to_dto(fixture.away_team),
        match_date=fixture.match_date,
        status=fixture.status,
        home_goals=fixture.home_goals,
        away_goals=fixture.away_goals,
        season=fixture.season,
        league_id=fixture.league_id,
        venue=fixture.venue,
    )


def standing_to_dto(standing: Standing) -> StandingDTO:
    return StandingDTO(
        rank=standing.rank,
        team=team_to_dto(standing.team),
        points=standing.points,
        goals_diff=standing.goals_diff,
        played=standing.played,
        win=standing.win,
        draw=standing.draw,
        lose=standing.lose,
        goals_for=standing.goals_for,
        goals_against=standing.goals_against,
        group=standing.group,
        form=standing.form,
        status=standing.status,
        description=standing.description,
    )


def api_usage_to_dto(source) -> ApiUsageDTO:
    remaining = source.get_remaining_requests()
    return ApiUsageDTO(
        used=source.config.daily_limit - remaining,
        remaining=remaining,
        total=source.config.daily_limit,
    )


def record_to_dto(record: PredictionRecord) -> PredictionDTO:
    return PredictionDTO(
        fixture_id=record.fixture_id,
        home_team_id=record.home_team_id,
        away_team_id=record.away_team_id,
        prediction=record.outcome.value,
        confidence=record.confidence,
        confidence_band=PredictionEngine.confidence_band(record.confidence),
        algorithm_version=record.algorithm_version,
        factors=PredictionFactorsDTO(**record.factors.to_dict()),
        created_at=record.created_at,
    )


def form_to_dto(form: FormAnalysis) -> FormAnalysisDTO:
    return FormAnalysisDTO(
        wins=form.wins,
        draws=form.draws,
        losses=form.losses,
        goals_for=form.goals_for,
        goals_against=form.goals_against,
        points=form.points,
        form_score=form.form_score,
    )


def stats_to_dto(stats: StatisticalAnalysis) -> StatisticalAnalysisDTO:
    return StatisticalAnalysisDTO(
        home_advantage=stats.home_advantage,
        goal_differential=stats.goal_differential,
        clean_sheet_ratio=stats.clean_sheet_ratio,
        scoring_consistency=stats.scoring_consistency,
        defensive_strength=stats.defensive_strength,
        attacking_strength=stats.attacking_strength,
        seasons_used=list(stats.seasons_used),
    )


def summary_to_dto(summary: HeadToHeadSummary, score: float) -> HeadToHeadSummaryDTO:
    return HeadToHeadSummaryDTO(
        total_matches=summary.total_matches,
        team1_wins=summary.team1_wins,
        team2_wins=summary.team2_wins,
        draws=summary.draws,
        team1_goals=summary.team1_goals,
        team2_goals=summary.team2_goals,
        average_goals_per_match=summary.average_goals_per_match,
        dominant=summary.dominant,
        score=score,
    )


def compare(first: float, second: float) -> ComparisonDTO:
    if first > second:
        advantage = "first"
    elif second > first:
        advantage = "second"
    else:
        advantage = "neutral"
    return ComparisonDTO(first=first, second=second, difference=first - second, advantage=advantage)


def build_comparison(
    first_form: FormAnalysis,
    second_form: FormAnalysis,
    first_stats: StatisticalAnalysis,
    second_stats: StatisticalAnalysis,
) -> dict[str, ComparisonDTO]:
    return {
        "form": compare(first_form.form_score, second_form.form_score),
        "attack": compare(first_stats.attacking_strength, second_stats.attacking_strength),
        "defense": compare(first_stats.defensive_strength, second_stats.defensive_strength),
    }


def head_to_head_dto(team1_id: int, meetings: list[Fixture]) -> HeadToHeadDTO:
    return HeadToHeadDTO(
        matches=[fixture_to_dto(m) for m in meetings],
        summary=summary_to_dto(
            HeadToHeadAnalyzer.summarize(team1_id, meetings),
            HeadToHeadAnalyzer.score_meetings(team1_id, meetings),
        ),
    )


# ============================================================
# Predictions
# ============================================================

class PredictFixtureUseCase:
    """Use case for getting the cached or freshly generated prediction of a fixture."""

    def __init__(
        self,
        data_repository: FootballDataRepository,
        prediction_repository: PredictionRepository,
        engine: PredictionEngine,
    ):
        self.data_repository = data_repository
        self.prediction_repository = prediction_repository
        self.engine = engine

    async def generate(self, fixture: Fixture) -> PredictionRecord:
        """Predict a fixture and persist the result, replacing any earlier one."""
        result = await self.engine.predict_match(fixture)
        record = PredictionRecord.from_result(fixture, result)
        return await self.prediction_repository.save_prediction(record)

    async def execute(self, fixture_id: int, generate: bool = False) -> PredictionResponseDTO:
        """
        Get the prediction of a fixture.

        Args:
            fixture_id: Fixture identifier
            generate: Force a fresh prediction even if one is stored

        Raises:
            FixtureNotFoundException: unknown fixture
        """
        if not generate:
            existing = await self.prediction_repository.get_prediction_by_fixture_id(fixture_id)
            if existing:
                return PredictionResponseDTO(data=record_to_dto(existing), source=PredictionSource.CACHED)

        fixture = await self.data_repository.get_fixture_by_id(fixture_id)
        if fixture is None:
            raise FixtureNotFoundException(fixture_id)

        record = await self.generate(fixture)
        logger.info(
            f"Generated prediction for fixture {fixture_id}: {record.outcome.value} ({record.confidence}%)"
        )
        return PredictionResponseDTO(data=record_to_dto(record), source=PredictionSource.GENERATED)


class PredictUpcomingFixturesUseCase:
    """Use case for predicting and persisting every upcoming fixture."""

    def __init__(
        self,
        prediction_repository: PredictionRepository,
        engine: PredictionEngine,
    ):
        self.prediction_repository = prediction_repository
        self.engine = engine

    async def execute(self, days: int = 7) -> UpcomingPredictionsResponseDTO:
        predictions = await self.engine.predict_upcoming_matches(days)

        items = []
        for fixture, result in predictions:
            record = await self.prediction_repository.save_prediction(
                PredictionRecord.from_result(fixture, result)
            )
            items.append(FixturePredictionDTO(
                fixture=fixture_to_dto(fixture),
                prediction=record_to_dto(record),
            ))

        logger.info(f"Saved {len(items)} predictions for the next {days} days")
        return UpcomingPredictionsResponseDTO(data=items, count=len(items), days=days)


class GetStoredPredictionsUseCase:
    """Use case for listing stored predictions."""

    def __init__(self, prediction_repository: PredictionRepository):
        self.prediction_repository = prediction_repository

    async def execute(self) -> PredictionsListResponseDTO:
        records = await self.prediction_repository.get_predictions()
        return PredictionsListResponseDTO(
            data=[record_to_dto(r) for r in records],
            count=len(records),
        )


class BatchPredictUseCase:
    """
    Use case for predicting a list of fixtures.

    Each fixture is handled on its own: an unknown fixture or a failing
    save is reported in `errors` and does not stop the others.
    """

    def __init__(
        self,
        data_repository: FootballDataRepository,
        prediction_repository: PredictionRepository,
        engine: PredictionEngine,
    ):
        self.prediction_repository = prediction_repository
        self.fixture_use_case = PredictFixtureUseCase(data_repository, prediction_repository, engine)
        self.data_repository = data_repository

    async def execute(self, request: BatchPredictionRequestDTO) -> BatchPredictionResponseDTO:
        results: list[BatchPredictionItemDTO] = []
        errors: list[BatchPredictionErrorDTO] = []

        for fixture_id in request.fixture_ids:
            try:
                if not request.regenerate:
                    existing = await self.prediction_repository.get_prediction_by_fixture_id(fixture_id)
                    if existing:
                        results.append(BatchPredictionItemDTO(
                            fixture_id=fixture_id,
                            prediction=record_to_dto(existing),
                            status=BatchItemStatus.EXISTING,
                        ))
                        continue

                fixture = await self.data_repository.get_fixture_by_id(fixture_id)
                if fixture is None:
                    errors.append(BatchPredictionErrorDTO(fixture_id=fixture_id, error="Fixture not found"))
                    continue

                record = await self.fixture_use_case.generate(fixture)
                results.append(BatchPredictionItemDTO(
                    fixture_id=fixture_id,
                    prediction=record_to_dto(record),
                    status=BatchItemStatus.REGENERATED if request.regenerate else BatchItemStatus.GENERATED,
                ))
            except Exception as e:
                logger.error(f"Batch prediction failed for fixture {fixture_id}: {e}")
                errors.append(BatchPredictionErrorDTO(fixture_id=fixture_id, error=str(e)))

        return BatchPredictionResponseDTO(
            predictions=results,
            errors=errors,
            processed=len(request.fixture_ids),
            successful=len(results),
            failed=len(errors),
        )


class GetPredictionStatsUseCase:
    """Use case for the outcome distribution of stored predictions."""

    def __init__(self, prediction_repository: PredictionRepository):
        self.prediction_repository = prediction_repository

    async def execute(self) -> PredictionStatsDTO:
        records = await self.prediction_repository.get_predictions()
        total = len(records)

        counts = {outcome: 0 for outcome in MatchOutcome}
        bands = {band: 0 for band in PredictionEngine.get_confidence_levels()}
        total_confidence = 0
        for record in records:
            counts[record.outcome] += 1
            bands[PredictionEngine.confidence_band(record.confidence)] += 1
            total_confidence += record.confidence

        def percentage(count: int) -> float:
            return round(count / total * 100, 1) if total else 0.0

        return PredictionStatsDTO(
            total_predictions=total,
            home_wins=counts[MatchOutcome.HOME_WIN],
            draws=counts[MatchOutcome.DRAW],
            away_wins=counts[MatchOutcome.AWAY_WIN],
            home_win_percentage=percentage(counts[MatchOutcome.HOME_WIN]),
            draw_percentage=percentage(counts[MatchOutcome.DRAW]),
            away_win_percentage=percentage(counts[MatchOutcome.AWAY_WIN]),
            average_confidence=round(total_confidence / total, 1) if total else 0.0,
            confidence_bands=bands,
        )


class BacktestAccuracyUseCase:
    """
    Use case for back-testing the engine on the most recent completed fixtures.

    Predictions made here are not persisted.
    """

    def __init__(self, data_repository: FootballDataRepository, engine: PredictionEngine):
        self.data_repository = data_repository
        self.engine = engine

    async def execute(self, matches: int = 10, now: Optional[datetime] = None) -> AccuracyResponseDTO:
        fixtures = await self.data_repository.get_completed_fixtures(matches)
        fixtures = [f for f in fixtures if f.is_completed][:matches]

        predictions = await self.engine.predict_matches(fixtures, now)

        results = []
        correct = 0
        for fixture, result in predictions:
            actual = fixture.outcome
            is_correct = result.outcome == actual
            if is_correct:
                correct += 1
            results.append(AccuracyResultDTO(
                fixture_id=fixture.id,
                fixture=(
                    f"{fixture.home_team.name} {fixture.home_goals}-{fixture.away_goals} "
                    f"{fixture.away_team.name}"
                ),
                predicted=result.outcome.value,
                actual=actual.value,
                confidence=result.confidence,
                correct=is_correct,
            ))

        total = len(results)
        accuracy = round(correct / total * 100, 1) if total else 0.0
        logger.info(f"Accuracy test: {correct}/{total} correct ({accuracy}%)")

        return AccuracyResponseDTO(
            matches_tested=total,
            correct_predictions=correct,
            accuracy=accuracy,
            results=results,
        )


# ============================================================
# Analysis
# ============================================================

class GetMatchAnalysisUseCase:
    """Use case for the full analysis of a fixture."""

    def __init__(
        self,
        data_repository: FootballDataRepository,
        prediction_repository: PredictionRepository,
        engine: PredictionEngine,
    ):
        self.data_repository = data_repository
        self.prediction_repository = prediction_repository
        self.engine = engine

    async def execute(self, fixture_id: int) -> MatchAnalysisDTO:
        fixture = await self.data_repository.get_fixture_by_id(fixture_id)
        if fixture is None:
            raise FixtureNotFoundException(fixture_id)

        context, stored = await asyncio.gather(
            self.engine.build_match_context(fixture),
            self.prediction_repository.get_prediction_by_fixture_id(fixture_id),
        )
        result = self.engine.scorer.score(context)
        probabilities = self.engine.scorer.calculate_probabilities(context)
        meetings = list(context.head_to_head)

        return MatchAnalysisDTO(
            fixture=fixture_to_dto(fixture),
            home=TeamAnalysisDTO(
                team=team_to_dto(context.home_team),
                form=form_to_dto(context.home_form),
                statistics=stats_to_dto(context.home_stats),
            ),
            away=TeamAnalysisDTO(
                team=team_to_dto(context.away_team),
                form=form_to_dto(context.away_form),
                statistics=stats_to_dto(context.away_stats),
            ),
            head_to_head=head_to_head_dto(context.home_team.id, meetings),
            home_advantage=context.home_advantage,
            comparison=build_comparison(
                context.home_form, context.away_form, context.home_stats, context.away_stats
            ),
            prediction=record_to_dto(PredictionRecord.from_result(fixture, result)),
            stored_prediction=record_to_dto(stored) if stored else None,
            probabilities=OutcomeProbabilitiesDTO(**probabilities.as_dict()),
            confidence_levels=self.engine.get_confidence_levels(),
        )


async def _require_team(repository: FootballDataRepository, team_id: int) -> Team:
    team = await repository.get_team_by_id(team_id)
    if team is None:
        raise TeamNotFoundException(team_id)
    return team


class CompareTeamsUseCase:
    """Use case for comparing two teams outside of any fixture."""

    def __init__(self, data_repository: FootballDataRepository, engine: PredictionEngine):
        self.data_repository = data_repository
        self.engine = engine

    async def execute(self, team1_id: int, team2_id: int) -> TeamComparisonDTO:
        team1, team2 = await asyncio.gather(
            _require_team(self.data_repository, team1_id),
            _require_team(self.data_repository, team2_id),
        )

        form1, form2, stats1, stats2, meetings = await asyncio.gather(
            self.engine.analyze_form(team1.id),
            self.engine.analyze_form(team2.id),
            self.engine.analyze_statistics(team1.id),
            self.engine.analyze_statistics(team2.id),
            self.engine.head_to_head_analyzer.fetch_meetings(team1.id, team2.id),
        )

        return TeamComparisonDTO(
            team1=TeamAnalysisDTO(team=team_to_dto(team1), form=form_to_dto(form1), statistics=stats_to_dto(stats1)),
            team2=TeamAnalysisDTO(team=team_to_dto(team2), form=form_to_dto(form2), statistics=stats_to_dto(stats2)),
            comparison=build_comparison(form1, form2, stats1, stats2),
            head_to_head=head_to_head_dto(team1.id, meetings),
        )


class GetTeamAnalysisUseCase:
    """Use case for a team's form, statistics and insights."""

    def __init__(self, data_repository: FootballDataRepository, engine: PredictionEngine):
        self.data_repository = data_repository
        self.engine = engine

    async def execute(self, team_id: int) -> TeamInsightsDTO:
        team = await _require_team(self.data_repository, team_id)

        form, stats = await asyncio.gather(
            self.engine.analyze_form(team.id),
            self.engine.analyze_statistics(team.id),
        )

        return TeamInsightsDTO(
            team=team_to_dto(team),
            form=form_to_dto(form),
            statistics=stats_to_dto(stats),
            insights=describe_team(form, stats),
        )


# ============================================================
# Reference data
# ============================================================

class GetFixturesUseCase:
    """Use case for listing upcoming or recently completed fixtures."""

    def __init__(self, data_repository: FootballDataRepository):
        self.data_repository = data_repository

    async def execute(self, upcoming: bool = True, days: int = 7, limit: int = 20) -> FixturesResponseDTO:
        if upcoming:
            fixtures = await self.data_repository.get_upcoming_fixtures(days)
        else:
            fixtures = await self.data_repository.get_completed_fixtures(limit)

        return FixturesResponseDTO(
            data=[fixture_to_dto(f) for f in fixtures],
            count=len(fixtures),
            upcoming=upcoming,
            days=days,
        )


class GetFixtureUseCase:
    def __init__(self, data_repository: FootballDataRepository):
        self.data_repository = data_repository

    async def execute(self, fixture_id: int) -> FixtureDTO:
        fixture = await self.data_repository.get_fixture_by_id(fixture_id)
        if fixture is None:
            raise FixtureNotFoundException(fixture_id)
        return fixture_to_dto(fixture)


class GetTeamsUseCase:
    def __init__(self, data_repository: FootballDataRepository):
        self.data_repository = data_repository

    async def execute(self) -> TeamsResponseDTO:
        teams = await self.data_repository.get_teams()
        return TeamsResponseDTO(data=[team_to_dto(t) for t in teams], count=len(teams))


# ============================================================
# Standings and on-demand sync
# ============================================================

class GetStandingsUseCase:
    """
    League table from the store.

    An empty store is filled from API-Football first, so the first call of a
    season spends one request.
    """

    def __init__(self, sync_service: DataSyncService):
        self.sync_service = sync_service

    async def execute(self, season: Optional[int] = None) -> StandingsResponseDTO:
        standings = await self.sync_service.store.get_standings(season)
        source = "database"
        if not standings:
            logger.info(f"No stored standings for season {season or 'latest'}, fetching from API-Football")
            await self.sync_service.sync_standings(season)
            standings = await self.sync_service.store.get_standings(season)
            source = "api"

        return StandingsResponseDTO(
            data=[standing_to_dto(s) for s in standings],
            count=len(standings),
            season=standings[0].season if standings else season,
            source=source,
        )


class SyncUpcomingFixturesUseCase:
    def __init__(self, sync_service: DataSyncService):
        self.sync_service = sync_service

    async def execute(self, days: int = 7) -> SyncResponseDTO:
        count = await self.sync_service.sync_upcoming_fixtures(days)
        return SyncResponseDTO(
            message=f"Synced {count} upcoming fixtures",
            count=count,
            api_usage=api_usage_to_dto(self.sync_service.source),
        )


class SyncTeamsUseCase:
    def __init__(self, sync_service: DataSyncService):
        self.sync_service = sync_service

    async def execute(self, season: Optional[int] = None) -> SyncResponseDTO:
        count = await self.sync_service.sync_teams(season)
        return SyncResponseDTO(
            message=f"Synced {count} teams",
            count=count,
            api_usage=api_usage_to_dto(self.sync_service.source),
        )


class SyncStandingsUseCase:
    def __init__(self, sync_service: DataSyncService):
        self.sync_service = sync_service

    async def execute(self, season: Optional[int] = None) -> SyncResponseDTO:
        count = await self.sync_service.sync_standings(season)
        return SyncResponseDTO(
            message=f"Synced {count} standings rows",
            count=count,
            api_usage=api_usage_to_dto(self.sync_service.source),
        )
