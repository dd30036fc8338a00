"""
Team Insights

Plain-language observations about a team's form and statistical profile.
"""

from fixturecast.domain.constants import (
    EXCELLENT_FORM_THRESHOLD,
    GOOD_FORM_THRESHOLD,
    SOLID_DEFENSE_THRESHOLD,
    STRONG_ATTACK_THRESHOLD,
    STRONG_HOME_THRESHOLD,
)
from fixturecast.domain.entities.entities import FormAnalysis, StatisticalAnalysis


def describe_team(form: FormAnalysis, stats: StatisticalAnalysis) -> list[str]:
    """
    Build the insight strings for a team.

    The form line is always present; strength lines only when a threshold is met.
    """
    insights = []

    if form.form_score >= EXCELLENT_FORM_THRESHOLD:
        insights.append("Excellent recent form")
    elif form.form_score >= GOOD_FORM_THRESHOLD:
        insights.append("Good recent form")
    else:
        insights.append("Poor recent form")

    if stats.attacking_strength >= STRONG_ATTACK_THRESHOLD:
        insights.append("Strong attacking team")

    if stats.defensive_strength >= SOLID_DEFENSE_THRESHOLD:
        insights.append("Solid defensive team")

    if stats.home_advantage >= STRONG_HOME_THRESHOLD:
        insights.append("Strong home advantage")

    return insights
