"""
Match Context Builder Service Module

Runs the analyzers for both sides of a fixture concurrently and assembles
their results into the MatchContext consumed by the outcome scorer.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from fixturecast.domain.constants import DEFAULT_FORM_MATCHES, HOME_ADVANTAGE_POINTS
from fixturecast.domain.entities.entities import Fixture, MatchContext
from fixturecast.domain.services.form_analyzer import FormAnalyzer
from fixturecast.domain.services.head_to_head_analyzer import HeadToHeadAnalyzer
from fixturecast.domain.services.statistics_analyzer import StatisticsAnalyzer

logger = logging.getLogger(__name__)


class MatchContextBuilder:
    """
    Fan-out/fan-in orchestration of the analyzers.

    Every analyzer absorbs its own failures into a neutral result, so building
    a context does not fail.
    """

    def __init__(
        self,
        form_analyzer: FormAnalyzer,
        statistics_analyzer: StatisticsAnalyzer,
        head_to_head_analyzer: HeadToHeadAnalyzer,
        form_matches: int = DEFAULT_FORM_MATCHES,
    ):
        self.form_analyzer = form_analyzer
        self.statistics_analyzer = statistics_analyzer
        self.head_to_head_analyzer = head_to_head_analyzer
        self.form_matches = form_matches

    @property
    def home_advantage(self) -> float:
        """Home advantage in percentage points."""
        return HOME_ADVANTAGE_POINTS

    async def build(self, fixture: Fixture, now: Optional[datetime] = None) -> MatchContext:
        """
        Build the context of a fixture.

        Args:
            fixture: Fixture with embedded home/away teams
            now: Reference time for season resolution (defaults to current time)

        Returns:
            MatchContext for the fixture
        """
        home_team = fixture.home_team
        away_team = fixture.away_team

        # Analyze both teams in parallel
        home_form, away_form, home_stats, away_stats, head_to_head = await asyncio.gather(
            self.form_analyzer.analyze(home_team.id, self.form_matches),
            self.form_analyzer.analyze(away_team.id, self.form_matches),
            self.statistics_analyzer.analyze(home_team.id, now),
            self.statistics_analyzer.analyze(away_team.id, now),
            self.head_to_head_analyzer.fetch_meetings(home_team.id, away_team.id),
        )

        logger.debug(
            f"Context for fixture {fixture.id}: form {home_form.form_score:.1f}/{away_form.form_score:.1f}, "
            f"{len(head_to_head)} meetings"
        )

        return MatchContext(
            home_team=home_team,
            away_team=away_team,
            fixture=fixture,
            home_form=home_form,
            away_form=away_form,
            home_stats=home_stats,
            away_stats=away_stats,
            head_to_head=tuple(head_to_head),
            home_advantage=self.home_advantage,
        )
