from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, Text
from courtside.db.base import Base
from courtside.models._time import utcnow


class Game(Base):
    __tablename__ = "games"

    id = Column(Integer, primary_key=True)
    team_name = Column(Text, nullable=False)
    opponent_team = Column(Text, nullable=False)
    is_home = Column(Boolean, nullable=False)
    game_date = Column(DateTime(timezone=True), nullable=False)

    home_score = Column(Integer, nullable=False, default=0)
    away_score = Column(Integer, nullable=False, default=0)

    status = Column(Text, nullable=False, default="upcoming")
    stats_locked = Column(Boolean, nullable=False, default=False)
    shared_to_feed = Column(Boolean, nullable=False, default=False)
    notes = Column(Text)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        CheckConstraint("home_score >= 0", name="ck_games_home_score"),
        CheckConstraint("away_score >= 0", name="ck_games_away_score"),
        CheckConstraint(
            "status IN ('upcoming', 'live', 'completed')", name="ck_games_status"
        ),
    )

    # the side our team's points land on
    @property
    def our_score(self) -> int:
        return self.home_score if self.is_home else self.away_score

    def to_dict(self):
        return {
            "id": self.id,
            "teamName": self.team_name,
            "opponentTeam": self.opponent_team,
            "isHome": self.is_home,
            "gameDate": self.game_date.isoformat() if self.game_date else None,
            "homeScore": self.home_score,
            "awayScore": self.away_score,
            "status": self.status,
            "statsLocked": self.stats_locked,
            "sharedToFeed": self.shared_to_feed,
            "notes": self.notes,
        }
