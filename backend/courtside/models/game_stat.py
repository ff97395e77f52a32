from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text
from courtside.db.base import Base
from courtside.models._time import utcnow


class GameStat(Base):
    __tablename__ = "game_stats"

    id = Column(Integer, primary_key=True)
    game_id = Column(Integer, ForeignKey("games.id", ondelete="CASCADE"), nullable=False)
    game_player_id = Column(
        Integer, ForeignKey("game_players.id", ondelete="CASCADE"), nullable=False, index=True
    )

    stat_type = Column(Text, nullable=False)  # see StatType
    value = Column(Integer, nullable=False, default=1)
    quarter = Column(Integer)
    time_minute = Column(Integer)

    created_by = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "gameId": self.game_id,
            "gamePlayerId": self.game_player_id,
            "statType": self.stat_type,
            "value": self.value,
            "quarter": self.quarter,
            "timeMinute": self.time_minute,
            "createdBy": self.created_by,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
