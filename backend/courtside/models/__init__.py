# import every model so Base.metadata sees all tables
from courtside.models.account import Account
from courtside.models.game import Game
from courtside.models.manual_player import ManualPlayer
from courtside.models.game_player import GamePlayer
from courtside.models.game_stat import GameStat
from courtside.models.game_activity import GameActivity
from courtside.models.parent_child_relation import ParentChildRelation

__all__ = [
    "Account",
    "Game",
    "ManualPlayer",
    "GamePlayer",
    "GameStat",
    "GameActivity",
    "ParentChildRelation",
]
