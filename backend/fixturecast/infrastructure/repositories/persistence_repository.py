import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    and_,
    or_,
    text,
)
from sqlalchemy.orm import relationship

from fixturecast.domain.constants import FINISHED_STATUSES, UPCOMING_STATUSES
from fixturecast.domain.entities.entities import (
    Fixture,
    MatchOutcome,
    PredictionFactors,
    PredictionRecord,
    SeasonStatistics,
    Standing,
    Team,
)
from fixturecast.domain.repositories.repositories import (
    FootballDataRepository,
    PredictionRepository,
)
from fixturecast.infrastructure.database.database_service import (
    Base,
    DatabaseService,
    get_database_service,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _to_db_datetime(value: Optional[datetime]) -> Optional[datetime]:
    """Datetimes are stored as naive UTC."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _from_db_datetime(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TeamModel(Base):
    """
    SQLAlchemy model for teams.
    """
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    code = Column(String)
    country = Column(String)
    logo = Column(String)


class FixtureModel(Base):
    """
    SQLAlchemy model for scheduled and completed fixtures.
    """
    __tablename__ = "fixtures"

    id = Column(Integer, primary_key=True)
    home_team_id = Column(Integer, ForeignKey("teams.id"), index=True, nullable=False)
    away_team_id = Column(Integer, ForeignKey("teams.id"), index=True, nullable=False)
    match_date = Column(DateTime, index=True, nullable=False)
    status = Column(String, default="NS", nullable=False)
    home_goals = Column(Integer)
    away_goals = Column(Integer)
    season = Column(Integer, index=True)
    league_id = Column(Integer)
    venue = Column(String)
    last_updated = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    home_team = relationship(TeamModel, foreign_keys=[home_team_id], lazy="joined")
    away_team = relationship(TeamModel, foreign_keys=[away_team_id], lazy="joined")


class SeasonStatisticsModel(Base):
    """
    SQLAlchemy model for per-season team statistics, one row per (team, season).
    """
    __tablename__ = "season_statistics"
    __table_args__ = (UniqueConstraint("team_id", "season", name="uq_team_season"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("teams.id"), index=True, nullable=False)
    season = Column(Integer, nullable=False)
    played = Column(Integer, default=0)
    wins = Column(Integer, default=0)
    draws = Column(Integer, default=0)
    losses = Column(Integer, default=0)
    goals_for = Column(Integer, default=0)
    goals_against = Column(Integer, default=0)
    home_wins = Column(Integer, default=0)
    home_draws = Column(Integer, default=0)
    home_losses = Column(Integer, default=0)
    away_wins = Column(Integer, default=0)
    away_draws = Column(Integer, default=0)
    away_losses = Column(Integer, default=0)
    clean_sheets = Column(Integer, default=0)
    failed_to_score = Column(Integer, default=0)
    form = Column(String, default="")
    last_updated = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class StandingModel(Base):
    """
    SQLAlchemy model for league table rows, one per (team, season, league).
    """
    __tablename__ = "standings"
    __table_args__ = (UniqueConstraint("team_id", "season", "league_id", name="uq_team_season_league"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("teams.id"), index=True, nullable=False)
    season = Column(Integer, index=True, nullable=False)
    league_id = Column(Integer, nullable=False)
    rank = Column(Integer, nullable=False)
    points = Column(Integer, default=0)
    goals_diff = Column(Integer, default=0)
    played = Column(Integer, default=0)
    win = Column(Integer, default=0)
    draw = Column(Integer, default=0)
    lose = Column(Integer, default=0)
    goals_for = Column(Integer, default=0)
    goals_against = Column(Integer, default=0)
    group_name = Column(String)
    form = Column(String)
    status = Column(String)
    description = Column(String)
    last_updated = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    team = relationship(TeamModel, lazy="joined")


class PredictionModel(Base):
    """
    SQLAlchemy model for predictions, keyed by fixture.
    """
    __tablename__ = "predictions"

    fixture_id = Column(Integer, primary_key=True)
    home_team_id = Column(Integer, nullable=False)
    away_team_id = Column(Integer, nullable=False)
    outcome = Column(String, nullable=False)
    confidence = Column(Integer, nullable=False)
    factors = Column(JSON, nullable=False)
    algorithm_version = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


STATISTICS_FIELDS = (
    "played", "wins", "draws", "losses", "goals_for", "goals_against",
    "home_wins", "home_draws", "home_losses",
    "away_wins", "away_draws", "away_losses",
    "clean_sheets", "failed_to_score", "form",
)


class PersistenceRepository(FootballDataRepository, PredictionRepository):
    """
    SQL-backed store of teams, fixtures, season statistics and predictions.

    Reads propagate errors to the caller; writes roll back, log and re-raise.
    """

    def __init__(self, db_service: DatabaseService = None):
        self.db_service = db_service or get_database_service()
        # Note: Tables are created in main.py lifespan to avoid redundant checks

    def create_tables(self):
        """Create all tables defined in Base."""
        self.db_service.create_tables()

    # Mapping

    @staticmethod
    def _to_team(model: Optional[TeamModel], team_id: int) -> Team:
        if model is None:
            return Team(id=team_id, name=f"Team {team_id}")
        return Team(
            id=model.id,
            name=model.name,
            code=model.code,
            country=model.country,
            logo=model.logo,
        )

    @classmethod
    def _to_fixture(cls, model: FixtureModel) -> Fixture:
        return Fixture(
            id=model.id,
            home_team=cls._to_team(model.home_team, model.home_team_id),
            away_team=cls._to_team(model.away_team, model.away_team_id),
            match_date=_from_db_datetime(model.match_date),
            status=model.status,
            home_goals=model.home_goals,
            away_goals=model.away_goals,
            season=model.season,
            league_id=model.league_id,
            venue=model.venue,
        )

    @staticmethod
    def _to_statistics(model: SeasonStatisticsModel) -> SeasonStatistics:
        values = {name: getattr(model, name) for name in STATISTICS_FIELDS}
        return SeasonStatistics(
            team_id=model.team_id,
            season=model.season,
            updated_at=_from_db_datetime(model.last_updated),
            **values,
        )

    @classmethod
    def _to_standing(cls, model: StandingModel) -> Standing:
        return Standing(
            team=cls._to_team(model.team, model.team_id),
            season=model.season,
            league_id=model.league_id,
            rank=model.rank,
            points=model.points,
            goals_diff=model.goals_diff,
            played=model.played,
            win=model.win,
            draw=model.draw,
            lose=model.lose,
            goals_for=model.goals_for,
            goals_against=model.goals_against,
            group=model.group_name,
            form=model.form,
            status=model.status,
            description=model.description,
            updated_at=_from_db_datetime(model.last_updated),
        )

    @staticmethod
    def _to_record(model: PredictionModel) -> PredictionRecord:
        return PredictionRecord(
            fixture_id=model.fixture_id,
            home_team_id=model.home_team_id,
            away_team_id=model.away_team_id,
            outcome=MatchOutcome(model.outcome),
            confidence=model.confidence,
            factors=PredictionFactors(**model.factors),
            algorithm_version=model.algorithm_version,
            created_at=_from_db_datetime(model.created_at),
        )

    @staticmethod
    def _completed_filter():
        return and_(
            FixtureModel.status.in_(FINISHED_STATUSES),
            FixtureModel.home_goals.isnot(None),
            FixtureModel.away_goals.isnot(None),
        )

    @staticmethod
    def _ensure_team(session, team: Team) -> None:
        """Add a referenced team that the store does not know yet."""
        if session.query(TeamModel).filter(TeamModel.id == team.id).first() is None:
            session.add(TeamModel(
                id=team.id,
                name=team.name,
                code=team.code,
                country=team.country,
                logo=team.logo,
            ))
            session.flush()

    # FootballDataRepository

    async def get_recent_completed_matches(self, team_id: int, n: int = 5) -> list[Fixture]:
        session = self.db_service.get_session()
        try:
            records = (
                session.query(FixtureModel)
                .filter(
                    or_(FixtureModel.home_team_id == team_id, FixtureModel.away_team_id == team_id),
                    self._completed_filter(),
                )
                .order_by(FixtureModel.match_date.desc())
                .limit(n)
                .all()
            )
            return [self._to_fixture(r) for r in records]
        finally:
            session.close()

    async def get_season_statistics(self, team_id: int, season: int) -> Optional[SeasonStatistics]:
        session = self.db_service.get_session()
        try:
            record = session.query(SeasonStatisticsModel).filter(
                SeasonStatisticsModel.team_id == team_id,
                SeasonStatisticsModel.season == season,
            ).first()
            return self._to_statistics(record) if record else None
        finally:
            session.close()

    async def get_head_to_head_matches(
        self,
        team_a: int,
        team_b: int,
        limit: int = 10,
    ) -> list[Fixture]:
        session = self.db_service.get_session()
        try:
            records = (
                session.query(FixtureModel)
                .filter(
                    or_(
                        and_(FixtureModel.home_team_id == team_a, FixtureModel.away_team_id == team_b),
                        and_(FixtureModel.home_team_id == team_b, FixtureModel.away_team_id == team_a),
                    ),
                    self._completed_filter(),
                )
                .order_by(FixtureModel.match_date.desc())
                .limit(limit)
                .all()
            )
            return [self._to_fixture(r) for r in records]
        finally:
            session.close()

    async def get_fixture_by_id(self, fixture_id: int) -> Optional[Fixture]:
        session = self.db_service.get_session()
        try:
            record = session.query(FixtureModel).filter(FixtureModel.id == fixture_id).first()
            return self._to_fixture(record) if record else None
        finally:
            session.close()

    async def get_upcoming_fixtures(self, days: int = 7) -> list[Fixture]:
        session = self.db_service.get_session()
        try:
            now = _utcnow()
            records = (
                session.query(FixtureModel)
                .filter(
                    FixtureModel.status.in_(UPCOMING_STATUSES),
                    FixtureModel.match_date >= now,
                    FixtureModel.match_date <= now + timedelta(days=days),
                )
                .order_by(FixtureModel.match_date.asc())
                .all()
            )
            return [self._to_fixture(r) for r in records]
        finally:
            session.close()

    async def get_completed_fixtures(self, limit: int = 10) -> list[Fixture]:
        session = self.db_service.get_session()
        try:
            records = (
                session.query(FixtureModel)
                .filter(self._completed_filter())
                .order_by(FixtureModel.match_date.desc())
                .limit(limit)
                .all()
            )
            return [self._to_fixture(r) for r in records]
        finally:
            session.close()

    async def get_team_by_id(self, team_id: int) -> Optional[Team]:
        session = self.db_service.get_session()
        try:
            record = session.query(TeamModel).filter(TeamModel.id == team_id).first()
            return self._to_team(record, team_id) if record else None
        finally:
            session.close()

    async def get_teams(self) -> list[Team]:
        session = self.db_service.get_session()
        try:
            records = session.query(TeamModel).order_by(TeamModel.name.asc()).all()
            return [self._to_team(r, r.id) for r in records]
        finally:
            session.close()

    # Writes used by the data sync

    async def save_teams(self, teams: Iterable[Team]) -> int:
        """Insert or update teams. Returns the number of teams written."""
        session = self.db_service.get_session()
        try:
            count = 0
            for team in teams:
                record = session.query(TeamModel).filter(TeamModel.id == team.id).first()
                if record is None:
                    record = TeamModel(id=team.id)
                    session.add(record)
                record.name = team.name
                record.code = team.code
                record.country = team.country
                record.logo = team.logo
                count += 1
            session.commit()
            return count
        except Exception as e:
            session.rollback()
            logger.error(f"Failed to save teams: {e}")
            raise
        finally:
            session.close()

    async def save_fixtures(self, fixtures: Iterable[Fixture]) -> int:
        """Insert or update fixtures, along with both team references."""
        session = self.db_service.get_session()
        try:
            count = 0
            for fixture in fixtures:
                for team in (fixture.home_team, fixture.away_team):
                    self._ensure_team(session, team)

                record = session.query(FixtureModel).filter(FixtureModel.id == fixture.id).first()
                if record is None:
                    record = FixtureModel(id=fixture.id)
                    session.add(record)
                record.home_team_id = fixture.home_team.id
                record.away_team_id = fixture.away_team.id
                record.match_date = _to_db_datetime(fixture.match_date)
                record.status = fixture.status
                record.home_goals = fixture.home_goals
                record.away_goals = fixture.away_goals
                record.season = fixture.season
                record.league_id = fixture.league_id
                record.venue = fixture.venue
                count += 1
            session.commit()
            return count
        except Exception as e:
            session.rollback()
            logger.error(f"Failed to save fixtures: {e}")
            raise
        finally:
            session.close()

    async def save_season_statistics(self, stats: SeasonStatistics) -> SeasonStatistics:
        """Replace the (team, season) statistics record as a whole."""
        session = self.db_service.get_session()
        try:
            record = session.query(SeasonStatisticsModel).filter(
                SeasonStatisticsModel.team_id == stats.team_id,
                SeasonStatisticsModel.season == stats.season,
            ).first()
            if record is None:
                record = SeasonStatisticsModel(team_id=stats.team_id, season=stats.season)
                session.add(record)
            for name in STATISTICS_FIELDS:
                setattr(record, name, getattr(stats, name))
            record.last_updated = _utcnow()
            session.commit()
            return self._to_statistics(record)
        except Exception as e:
            session.rollback()
            logger.error(f"Failed to save statistics for team {stats.team_id} season {stats.season}: {e}")
            raise
        finally:
            session.close()

    async def save_standings(self, standings: Iterable[Standing]) -> int:
        """
        Replace the league table of every (season, league) present in `standings`.

        Teams missing from the store are added from the rows.
        """
        standings = list(standings)
        session = self.db_service.get_session()
        try:
            for season, league_id in {(s.season, s.league_id) for s in standings}:
                session.query(StandingModel).filter(
                    StandingModel.season == season,
                    StandingModel.league_id == league_id,
                ).delete(synchronize_session=False)

            for standing in standings:
                self._ensure_team(session, standing.team)
                session.add(StandingModel(
                    team_id=standing.team.id,
                    season=standing.season,
                    league_id=standing.league_id,
                    rank=standing.rank,
                    points=standing.points,
                    goals_diff=standing.goals_diff,
                    played=standing.played,
                    win=standing.win,
                    draw=standing.draw,
                    lose=standing.lose,
                    goals_for=standing.goals_for,
                    goals_against=standing.goals_against,
                    group_name=standing.group,
                    form=standing.form,
                    status=standing.status,
                    description=standing.description,
                ))
            session.commit()
            return len(standings)
        except Exception as e:
            session.rollback()
            logger.error(f"Failed to save standings: {e}")
            raise
        finally:
            session.close()

    async def get_standings(self, season: Optional[int] = None) -> list[Standing]:
        """League table for a season, by rank. Defaults to the latest stored season."""
        session = self.db_service.get_session()
        try:
            if season is None:
                latest = session.query(StandingModel.season).order_by(StandingModel.season.desc()).first()
                if latest is None:
                    return []
                season = latest[0]
            records = (
                session.query(StandingModel)
                .filter(StandingModel.season == season)
                .order_by(StandingModel.rank.asc())
                .all()
            )
            return [self._to_standing(r) for r in records]
        finally:
            session.close()

    # Health

    def health_check(self) -> bool:
        """Whether the database answers a trivial query."""
        session = self.db_service.get_session()
        try:
            session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False
        finally:
            session.close()

    def count_teams(self) -> int:
        session = self.db_service.get_session()
        try:
            return session.query(TeamModel).count()
        finally:
            session.close()

    def count_fixtures(self) -> int:
        session = self.db_service.get_session()
        try:
            return session.query(FixtureModel).count()
        finally:
            session.close()

    # PredictionRepository

    async def save_prediction(self, record: PredictionRecord) -> PredictionRecord:
        session = self.db_service.get_session()
        try:
            model = session.query(PredictionModel).filter(
                PredictionModel.fixture_id == record.fixture_id
            ).first()
            if model is None:
                model = PredictionModel(fixture_id=record.fixture_id)
                session.add(model)
            model.home_team_id = record.home_team_id
            model.away_team_id = record.away_team_id
            model.outcome = record.outcome.value
            model.confidence = record.confidence
            model.factors = record.factors.to_dict()
            model.algorithm_version = record.algorithm_version
            model.created_at = _to_db_datetime(record.created_at)
            session.commit()
            logger.debug(f"Prediction saved for fixture {record.fixture_id}")
            return self._to_record(model)
        except Exception as e:
            session.rollback()
            logger.error(f"Failed to save prediction for fixture {record.fixture_id}: {e}")
            raise
        finally:
            session.close()

    async def get_prediction_by_fixture_id(self, fixture_id: int) -> Optional[PredictionRecord]:
        session = self.db_service.get_session()
        try:
            model = session.query(PredictionModel).filter(
                PredictionModel.fixture_id == fixture_id
            ).first()
            return self._to_record(model) if model else None
        finally:
            session.close()

    async def get_predictions(self) -> list[PredictionRecord]:
        session = self.db_service.get_session()
        try:
            models = session.query(PredictionModel).order_by(PredictionModel.created_at.desc()).all()
            return [self._to_record(m) for m in models]
        finally:
            session.close()
