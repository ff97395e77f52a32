from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text
from courtside.db.base import Base
from courtside.models._time import utcnow


class ManualPlayer(Base):
    __tablename__ = "manual_players"

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)
    jersey_number = Column(Integer)
    notes = Column(Text)

    # parent account that looks after this placeholder
    parent_account_id = Column(Text, ForeignKey("accounts.id", ondelete="SET NULL"))
    parent_linked_by = Column(Text)
    parent_linked_at = Column(DateTime(timezone=True))

    # registered account this placeholder resolves to
    linked_account_id = Column(Text, ForeignKey("accounts.id", ondelete="SET NULL"))
    linked_by = Column(Text)
    linked_at = Column(DateTime(timezone=True))

    # set by the first migration onto the linked account
    migrated_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "jerseyNumber": self.jersey_number,
            "notes": self.notes,
            "parentAccountId": self.parent_account_id,
            "linkedAccountId": self.linked_account_id,
            "linkedBy": self.linked_by,
            "linkedAt": self.linked_at.isoformat() if self.linked_at else None,
            "migratedAt": self.migrated_at.isoformat() if self.migrated_at else None,
        }
