"""
Form Analyzer Service

Turns a team's most recent completed matches into a 0-100 form score.
"""

import logging
from typing import Iterable

from fixturecast.domain.constants import DEFAULT_FORM_MATCHES
from fixturecast.domain.entities.entities import Fixture, FormAnalysis
from fixturecast.domain.repositories.repositories import FootballDataRepository

logger = logging.getLogger(__name__)


def clamp(value: float, lower: float = 0.0, upper: float = 100.0) -> float:
    """Clamp a value into [lower, upper]."""
    return max(lower, min(upper, value))


class FormAnalyzer:
    """
    Recent-form analysis.

    Each match is classified from the team's perspective (win/draw/loss) and
    scored 3/1/0. The score is the share of the maximum points over the
    requested window, so a short history is scored against the full window.
    """

    def __init__(self, repository: FootballDataRepository):
        self.repository = repository

    @staticmethod
    def calculate_form(
        team_id: int,
        matches: Iterable[Fixture],
        n: int = DEFAULT_FORM_MATCHES,
    ) -> FormAnalysis:
        """
        Calculate form from a match history view.

        Args:
            team_id: Team whose perspective is used
            matches: Completed fixtures, most recent first
            n: Size of the form window

        Returns:
            FormAnalysis (neutral when no qualifying match exists)
        """
        wins = draws = losses = 0
        goals_for = goals_against = 0

        qualifying = [m for m in matches if m.is_completed and m.involves(team_id)][:n]
        if not qualifying or n <= 0:
            return FormAnalysis.neutral()

        for match in qualifying:
            scored = match.goals_for(team_id)
            conceded = match.goals_against(team_id)
            goals_for += scored
            goals_against += conceded

            if scored > conceded:
                wins += 1
            elif scored == conceded:
                draws += 1
            else:
                losses += 1

        points = wins * 3 + draws
        form_score = clamp(points / (n * 3) * 100)

        return FormAnalysis(
            wins=wins,
            draws=draws,
            losses=losses,
            goals_for=goals_for,
            goals_against=goals_against,
            points=points,
            form_score=form_score,
        )

    async def analyze(self, team_id: int, n: int = DEFAULT_FORM_MATCHES) -> FormAnalysis:
        """Fetch the team's recent matches and analyze them. Never raises."""
        try:
            matches = await self.repository.get_recent_completed_matches(team_id, n)
        except Exception as e:
            logger.warning(f"Recent matches unavailable for team {team_id}, using neutral form: {e}")
            return FormAnalysis.neutral()

        return self.calculate_form(team_id, matches, n)
