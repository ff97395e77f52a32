from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
)
from courtside.core.player_ref import ManualRef, PlayerRef, RegisteredRef
from courtside.db.base import Base
from courtside.models._time import utcnow


# A roster entry: one participant in one game
class GamePlayer(Base):
    __tablename__ = "game_players"

    id = Column(Integer, primary_key=True)
    game_id = Column(Integer, ForeignKey("games.id", ondelete="CASCADE"), nullable=False)

    # exactly one of these is set, see player_ref
    account_id = Column(Text, ForeignKey("accounts.id", ondelete="CASCADE"))
    manual_player_id = Column(Integer, ForeignKey("manual_players.id"))

    jersey_number = Column(Integer)
    is_starter = Column(Boolean, nullable=False, default=False)
    minutes_played = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("game_id", "account_id", name="uq_game_player_account"),
        UniqueConstraint("game_id", "manual_player_id", name="uq_game_player_manual"),
        CheckConstraint(
            "(account_id IS NULL) != (manual_player_id IS NULL)",
            name="ck_game_player_one_identity",
        ),
    )

    @property
    def player_ref(self) -> PlayerRef:
        if self.account_id is not None:
            return RegisteredRef(self.account_id)
        return ManualRef(self.manual_player_id)

    @player_ref.setter
    def player_ref(self, ref: PlayerRef):
        match ref:
            case RegisteredRef(account_id=account_id):
                self.account_id = account_id
                self.manual_player_id = None
            case ManualRef(manual_id=manual_id):
                self.account_id = None
                self.manual_player_id = manual_id
            case _:
                raise TypeError(f"not a player reference: {ref!r}")

    @classmethod
    def for_ref(cls, game_id: int, ref: PlayerRef, **fields):
        entry = cls(game_id=game_id, **fields)
        entry.player_ref = ref
        return entry
