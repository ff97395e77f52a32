from enum import Enum


class StatType(str, Enum):
    TWO_POINT = "2pt"
    THREE_POINT = "3pt"
    FREE_THROW = "1pt"
    STEAL = "steal"
    REBOUND = "rebound"
    ASSIST = "assist"
    BLOCK = "block"
    TURNOVER = "turnover"


class GameStatus(str, Enum):
    UPCOMING = "upcoming"
    LIVE = "live"
    COMPLETED = "completed"


class Role(str, Enum):
    PLAYER = "player"
    PARENT = "parent"


# fixed score contribution per stat type; anything missing scores 0
POINT_VALUES = {
    StatType.THREE_POINT: 3,
    StatType.TWO_POINT: 2,
    StatType.FREE_THROW: 1,
}

SCORING_STAT_TYPES = frozenset(POINT_VALUES)

MANUAL_PLAYER_SEARCH_LIMIT = 10


def point_value(stat_type) -> int:
    return POINT_VALUES.get(StatType(stat_type), 0)


def is_scoring(stat_type) -> bool:
    return StatType(stat_type) in SCORING_STAT_TYPES
