"""
Domain Value Objects Module

Value objects are immutable objects that are defined by their attributes rather than identity.
They encapsulate validation logic and provide type safety.
"""

from dataclasses import dataclass

from fixturecast.domain.entities.entities import MatchOutcome


@dataclass(frozen=True)
class AnalysisSeason:
    """A season taking part in the statistical blend, with its recency weight."""
    season: int
    weight: float

    def __post_init__(self):
        if self.weight <= 0:
            raise ValueError(f"Season weight must be positive, got {self.weight}")


@dataclass(frozen=True)
class OutcomeProbabilities:
    """
    Probabilities of the three outcomes from the tie-break model.

    Values are non-negative and sum to 1.
    """
    home_win: float
    draw: float
    away_win: float

    def __post_init__(self):
        for prob in (self.home_win, self.draw, self.away_win):
            if not 0.0 <= prob <= 1.0:
                raise ValueError(f"Probability must be between 0 and 1, got {prob}")
        total = self.home_win + self.draw + self.away_win
        if abs(total - 1.0) > 1e-9:
            raise ValueError(f"Outcome probabilities must sum to 1, got {total}")

    @classmethod
    def normalized(cls, home_win: float, draw: float, away_win: float) -> "OutcomeProbabilities":
        """Build from raw non-negative weights by dividing through their sum."""
        total = home_win + draw + away_win
        return cls(
            home_win=home_win / total,
            draw=draw / total,
            away_win=away_win / total,
        )

    @property
    def most_likely(self) -> MatchOutcome:
        """Highest-probability outcome; ties resolve home, then away, then draw."""
        best = max(self.home_win, self.draw, self.away_win)
        if best == self.home_win:
            return MatchOutcome.HOME_WIN
        if best == self.away_win:
            return MatchOutcome.AWAY_WIN
        return MatchOutcome.DRAW

    @property
    def max_probability(self) -> float:
        return max(self.home_win, self.draw, self.away_win)

    def as_dict(self) -> dict[str, float]:
        return {
            "home_win": self.home_win,
            "draw": self.draw,
            "away_win": self.away_win,
        }
