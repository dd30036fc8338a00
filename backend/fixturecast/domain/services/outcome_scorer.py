"""
Outcome Scorer Service Module

This domain service turns a MatchContext into a single outcome call using:
1. A weighted composite score per side (form, strength, head-to-head, home advantage)
2. A fixed-coefficient logistic model that breaks ties when the composites are close

This is a pure domain service with no external dependencies.
"""

import math
import logging
from dataclasses import dataclass

from fixturecast.domain.constants import (
    AWAY_LOGIT_SCALE,
    CLOSE_BASE_CONFIDENCE,
    CLOSE_MAX_CONFIDENCE,
    CLOSE_PROBABILITY_SCALE,
    DECISIVE_BASE_CONFIDENCE,
    DECISIVE_MARGIN,
    DECISIVE_MAX_CONFIDENCE,
    FORM_WEIGHT,
    GOAL_DIFFERENCE_MULTIPLIER,
    HEAD_TO_HEAD_WEIGHT,
    HOME_ADVANTAGE_WEIGHT,
    MIN_DRAW_PROBABILITY,
    STATS_WEIGHT,
    TIE_BREAK_COEFFICIENTS,
)
from fixturecast.domain.entities.entities import (
    MatchContext,
    MatchOutcome,
    PredictionFactors,
    PredictionResult,
)
from fixturecast.domain.services.form_analyzer import clamp
from fixturecast.domain.services.head_to_head_analyzer import HeadToHeadAnalyzer
from fixturecast.domain.value_objects.value_objects import OutcomeProbabilities

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompositeScores:
    """Weighted composite score of each side."""
    home: float
    away: float

    @property
    def difference(self) -> float:
        return self.home - self.away


def sigmoid(x: float) -> float:
    """Numerically stable logistic function."""
    if x >= 0:
        return 1 / (1 + math.exp(-x))
    z = math.exp(x)
    return z / (1 + z)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up."""
    return int(math.floor(value + 0.5))


class OutcomeScorer:
    """
    Domain service producing a PredictionResult from a MatchContext.

    The home composite carries a home-advantage term that the away composite
    does not. That asymmetry is part of the scoring formula and must stay.
    """

    def calculate_factors(self, context: MatchContext) -> PredictionFactors:
        """
        Derive the five named factors.

        Args:
            context: Match context of the fixture

        Returns:
            PredictionFactors, all on a 0-100 scale
        """
        form_difference = context.home_form.form_score - context.away_form.form_score
        head_to_head_score = HeadToHeadAnalyzer.score_meetings(
            context.home_team.id, context.head_to_head
        )
        goal_difference = context.home_stats.goal_differential - context.away_stats.goal_differential

        return PredictionFactors(
            home_form_score=clamp(50 + form_difference),
            away_form_score=clamp(50 - form_difference),
            head_to_head_score=clamp(head_to_head_score),
            home_advantage=context.home_advantage,
            goal_difference_factor=clamp(50 + goal_difference * GOAL_DIFFERENCE_MULTIPLIER),
        )

    def calculate_composite_scores(
        self,
        context: MatchContext,
        factors: PredictionFactors,
    ) -> CompositeScores:
        """Weighted composite of form, strength, head-to-head and home advantage."""
        home_score = (
            factors.home_form_score * FORM_WEIGHT
            + context.home_stats.overall_strength * STATS_WEIGHT
            + factors.head_to_head_score * HEAD_TO_HEAD_WEIGHT
            + factors.home_advantage * HOME_ADVANTAGE_WEIGHT
        )
        away_score = (
            factors.away_form_score * FORM_WEIGHT
            + context.away_stats.overall_strength * STATS_WEIGHT
            + (100 - factors.head_to_head_score) * HEAD_TO_HEAD_WEIGHT
        )
        return CompositeScores(home=home_score, away=away_score)

    def calculate_probabilities(self, context: MatchContext) -> OutcomeProbabilities:
        """
        Tie-break probability model.

        The home logit is a linear combination of feature differences with
        fixed coefficients. The away logit is the negated home logit damped by
        0.8; the draw takes the remainder, floored at 0.1, before all three are
        normalized to sum to 1.
        """
        w = TIE_BREAK_COEFFICIENTS
        home, away = context.home_stats, context.away_stats

        logit = (
            w["form_diff"] * (context.home_form.form_score - context.away_form.form_score)
            + w["goal_diff"] * (home.goal_differential - away.goal_differential)
            + w["attack_defense_balance"] * (home.attacking_strength - away.defensive_strength)
            + w["clean_sheet_diff"] * (home.clean_sheet_ratio - away.clean_sheet_ratio)
            + w["home_advantage"] * context.home_advantage
            + w["intercept"]
        )

        home_win = sigmoid(logit)
        away_win = sigmoid(-logit * AWAY_LOGIT_SCALE)
        draw = max(MIN_DRAW_PROBABILITY, 1 - home_win - away_win)

        return OutcomeProbabilities.normalized(home_win, draw, away_win)

    def decide(
        self,
        scores: CompositeScores,
        probabilities: OutcomeProbabilities,
    ) -> tuple[MatchOutcome, int]:
        """Rule-based decision, falling back to the probability model for close calls."""
        diff = scores.difference

        if diff > DECISIVE_MARGIN:
            outcome = MatchOutcome.HOME_WIN
            confidence = min(DECISIVE_MAX_CONFIDENCE, DECISIVE_BASE_CONFIDENCE + diff / 2)
        elif diff < -DECISIVE_MARGIN:
            outcome = MatchOutcome.AWAY_WIN
            confidence = min(DECISIVE_MAX_CONFIDENCE, DECISIVE_BASE_CONFIDENCE + abs(diff) / 2)
        else:
            outcome = probabilities.most_likely
            confidence = min(
                CLOSE_MAX_CONFIDENCE,
                CLOSE_BASE_CONFIDENCE + probabilities.max_probability * CLOSE_PROBABILITY_SCALE,
            )

        return outcome, round_half_up(clamp(confidence))

    def score(self, context: MatchContext) -> PredictionResult:
        """
        Produce the prediction for a context.

        Any unexpected failure yields the conservative fallback result.
        """
        try:
            factors = self.calculate_factors(context)
            scores = self.calculate_composite_scores(context, factors)
            probabilities = self.calculate_probabilities(context)
            outcome, confidence = self.decide(scores, probabilities)
        except Exception as e:
            fixture_id = getattr(getattr(context, "fixture", None), "id", None)
            logger.error(f"Scoring failed for fixture {fixture_id}: {e}", exc_info=True)
            return PredictionResult.fallback()

        return PredictionResult(outcome=outcome, confidence=confidence, factors=factors)
