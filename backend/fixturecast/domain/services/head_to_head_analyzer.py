"""
Head-to-Head Analyzer Service

Scores the historical advantage of one team over another from their direct meetings.
"""

import logging
from typing import Iterable

from fixturecast.domain.constants import HEAD_TO_HEAD_LIMIT, NEUTRAL_SCORE
from fixturecast.domain.entities.entities import Fixture, HeadToHeadSummary
from fixturecast.domain.repositories.repositories import FootballDataRepository

logger = logging.getLogger(__name__)


class HeadToHeadAnalyzer:
    """Head-to-head scoring from team-1's perspective (0-100, 50 = even)."""

    def __init__(self, repository: FootballDataRepository, limit: int = HEAD_TO_HEAD_LIMIT):
        self.repository = repository
        self.limit = limit

    @staticmethod
    def score_meetings(team1_id: int, meetings: Iterable[Fixture]) -> float:
        """
        Score already-fetched meetings.

        Win = 3, draw = 1, loss = 0 for team 1, whichever side was home.
        Returns 50 when there is no completed meeting.
        """
        points = 0
        count = 0
        for match in meetings:
            if not match.is_completed:
                continue
            scored = match.goals_for(team1_id)
            conceded = match.goals_against(team1_id)
            if scored > conceded:
                points += 3
            elif scored == conceded:
                points += 1
            count += 1

        if count == 0:
            return NEUTRAL_SCORE
        return points / (count * 3) * 100

    @staticmethod
    def summarize(team1_id: int, meetings: Iterable[Fixture]) -> HeadToHeadSummary:
        """Win/draw/goal tally of the completed meetings for reporting."""
        team1_wins = team2_wins = draws = 0
        team1_goals = team2_goals = 0
        total = 0
        for match in meetings:
            if not match.is_completed:
                continue
            scored = match.goals_for(team1_id)
            conceded = match.goals_against(team1_id)
            team1_goals += scored
            team2_goals += conceded
            if scored > conceded:
                team1_wins += 1
            elif scored < conceded:
                team2_wins += 1
            else:
                draws += 1
            total += 1

        return HeadToHeadSummary(
            total_matches=total,
            team1_wins=team1_wins,
            team2_wins=team2_wins,
            draws=draws,
            team1_goals=team1_goals,
            team2_goals=team2_goals,
        )

    async def fetch_meetings(self, team1_id: int, team2_id: int) -> list[Fixture]:
        """Fetch up to `limit` meetings; an unavailable source yields no meetings."""
        try:
            meetings = await self.repository.get_head_to_head_matches(team1_id, team2_id, self.limit)
        except Exception as e:
            logger.warning(f"Head-to-head unavailable for {team1_id} vs {team2_id}: {e}")
            return []
        return list(meetings)[:self.limit]

    async def analyze(self, team1_id: int, team2_id: int) -> float:
        """Fetch and score the meetings between two teams. Never raises."""
        meetings = await self.fetch_meetings(team1_id, team2_id)
        return self.score_meetings(team1_id, meetings)
