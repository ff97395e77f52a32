from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, Text
from courtside.db.base import Base
from courtside.models._time import utcnow


# Append-only; rows are never updated
class GameActivity(Base):
    __tablename__ = "game_activities"

    id = Column(Integer, primary_key=True)
    game_id = Column(
        Integer, ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True
    )

    activity_type = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSON)

    performed_by = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "gameId": self.game_id,
            "activityType": self.activity_type,
            "description": self.description,
            "metadata": self.meta,
            "performedBy": self.performed_by,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
