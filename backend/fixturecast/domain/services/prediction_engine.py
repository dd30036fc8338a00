"""
Prediction Engine Module

Facade over the analyzers, the context builder and the outcome scorer.
Every public operation is total: data-source failures become neutral
analyses and scoring failures become the conservative fallback result.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional, Sequence

from fixturecast.domain.constants import (
    CONFIDENCE_LEVELS,
    DEFAULT_FORM_MATCHES,
    PREDICTION_BATCH_PAUSE_SECONDS,
    PREDICTION_BATCH_SIZE,
)
from fixturecast.domain.entities.entities import (
    Fixture,
    FormAnalysis,
    MatchContext,
    MatchOutcome,
    PredictionResult,
    StatisticalAnalysis,
)
from fixturecast.domain.repositories.repositories import FootballDataRepository
from fixturecast.domain.services.form_analyzer import FormAnalyzer
from fixturecast.domain.services.head_to_head_analyzer import HeadToHeadAnalyzer
from fixturecast.domain.services.match_context_builder import MatchContextBuilder
from fixturecast.domain.services.outcome_scorer import OutcomeScorer
from fixturecast.domain.services.statistics_analyzer import StatisticsAnalyzer

logger = logging.getLogger(__name__)


class PredictionEngine:
    """
    Domain service for generating fixture predictions.

    Wires one repository into the three analyzers and exposes the
    single-fixture and batch prediction operations.
    """

    def __init__(
        self,
        repository: FootballDataRepository,
        scorer: Optional[OutcomeScorer] = None,
        batch_size: int = PREDICTION_BATCH_SIZE,
        batch_pause_seconds: float = PREDICTION_BATCH_PAUSE_SECONDS,
    ):
        self.repository = repository
        self.form_analyzer = FormAnalyzer(repository)
        self.statistics_analyzer = StatisticsAnalyzer(repository)
        self.head_to_head_analyzer = HeadToHeadAnalyzer(repository)
        self.context_builder = MatchContextBuilder(
            self.form_analyzer,
            self.statistics_analyzer,
            self.head_to_head_analyzer,
        )
        self.scorer = scorer or OutcomeScorer()
        self.batch_size = max(1, batch_size)
        self.batch_pause_seconds = batch_pause_seconds

    async def analyze_form(self, team_id: int, n: int = DEFAULT_FORM_MATCHES) -> FormAnalysis:
        """Recent form of a team over its last n completed matches."""
        return await self.form_analyzer.analyze(team_id, n)

    async def analyze_statistics(
        self,
        team_id: int,
        now: Optional[datetime] = None,
    ) -> StatisticalAnalysis:
        """Multi-season statistical profile of a team."""
        return await self.statistics_analyzer.analyze(team_id, now)

    async def analyze_head_to_head(self, team_a: int, team_b: int) -> float:
        """Head-to-head advantage of team_a over team_b (0-100)."""
        return await self.head_to_head_analyzer.analyze(team_a, team_b)

    async def build_match_context(
        self,
        fixture: Fixture,
        now: Optional[datetime] = None,
    ) -> MatchContext:
        """Assemble the full analysis context of a fixture."""
        return await self.context_builder.build(fixture, now)

    async def predict_match(
        self,
        fixture: Fixture,
        now: Optional[datetime] = None,
    ) -> PredictionResult:
        """
        Predict the outcome of a fixture.

        Args:
            fixture: Fixture with embedded home/away teams
            now: Reference time for season resolution

        Returns:
            PredictionResult; the conservative fallback if anything fails
        """
        try:
            context = await self.build_match_context(fixture, now)
            return self.scorer.score(context)
        except Exception as e:
            logger.error(f"Error predicting fixture {getattr(fixture, 'id', None)}: {e}", exc_info=True)
            return PredictionResult.fallback()

    async def predict_matches(
        self,
        fixtures: Sequence[Fixture],
        now: Optional[datetime] = None,
    ) -> list[tuple[Fixture, PredictionResult]]:
        """
        Predict many fixtures in small concurrent batches.

        A pause between batches keeps the load on the data source's request
        budget even. Results keep the input order.
        """
        results: list[tuple[Fixture, PredictionResult]] = []
        fixtures = list(fixtures)

        for start in range(0, len(fixtures), self.batch_size):
            batch = fixtures[start:start + self.batch_size]
            predictions = await asyncio.gather(
                *[self.predict_match(fixture, now) for fixture in batch]
            )
            results.extend(zip(batch, predictions))

            if self.batch_pause_seconds > 0 and start + self.batch_size < len(fixtures):
                await asyncio.sleep(self.batch_pause_seconds)

        return results

    async def predict_upcoming_matches(
        self,
        days: int = 7,
        now: Optional[datetime] = None,
    ) -> list[tuple[Fixture, PredictionResult]]:
        """Predict every fixture kicking off within the next `days` days."""
        try:
            fixtures = await self.repository.get_upcoming_fixtures(days)
        except Exception as e:
            logger.error(f"Error loading upcoming fixtures: {e}")
            return []

        logger.info(f"Predicting {len(fixtures)} upcoming fixtures (next {days} days)")
        return await self.predict_matches(fixtures, now)

    @staticmethod
    def get_confidence_levels() -> dict[str, int]:
        """Lower bounds of the reporting confidence bands."""
        return dict(CONFIDENCE_LEVELS)

    @staticmethod
    def confidence_band(confidence: int) -> str:
        """'high', 'medium' or 'low' for a confidence value."""
        if confidence >= CONFIDENCE_LEVELS["high"]:
            return "high"
        if confidence >= CONFIDENCE_LEVELS["medium"]:
            return "medium"
        return "low"

    @staticmethod
    def validate_prediction(prediction: PredictionResult) -> bool:
        """Sanity check of a prediction's ranges."""
        return (
            0 <= prediction.confidence <= 100
            and isinstance(prediction.outcome, MatchOutcome)
            and prediction.factors.home_form_score >= 0
            and prediction.factors.away_form_score >= 0
        )
