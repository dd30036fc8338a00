"""
Domain exceptions for the prediction system.
"""

class PredictionException(Exception):
    """Base exception for prediction-related errors."""
    pass

class DataSourceException(PredictionException):
    """Exception raised when an external data source cannot serve a request."""
    pass

class FixtureNotFoundException(PredictionException):
    """Exception raised when a fixture id does not match any known fixture."""

    def __init__(self, fixture_id: int):
        self.fixture_id = fixture_id
        super().__init__(f"Fixture not found: {fixture_id}")

class TeamNotFoundException(PredictionException):
    """Exception raised when a team id does not match any known team."""

    def __init__(self, team_id: int):
        self.team_id = team_id
        super().__init__(f"Team not found: {team_id}")
