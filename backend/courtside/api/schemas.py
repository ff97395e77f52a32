# Request bodies; camelCase on the wire
from typing import Any, Literal
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _Body(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GameCreate(_Body):
    # loosely typed so the store answers bad input with its own ValidationError
    team_name: Any = None
    opponent_team: Any = None
    is_home: Any = None
    game_date: Any = None


class GameUpdate(_Body):
    team_name: Any = None
    opponent_team: Any = None
    is_home: Any = None
    game_date: Any = None


class ScoreUpdate(_Body):
    home_score: Any = None
    away_score: Any = None


class StatusUpdate(_Body):
    status: str | None = None
    notes: str | None = None


class StatsLockUpdate(_Body):
    stats_locked: Any = None


class RosterAdd(_Body):
    account_id: str | None = None
    manual_player_id: int | None = None
    jersey_number: int | None = None
    is_starter: bool = False


class BulkPlayer(_Body):
    kind: Literal["registered", "manual"] = "registered"
    id: str


class RosterBulkAdd(_Body):
    players: list[BulkPlayer]


class StatCreate(_Body):
    stat_type: str
    value: Any = 1
    quarter: int | None = None
    time_minute: int | None = None


class ManualPlayerCreate(_Body):
    name: str
    jersey_number: int | None = None
    notes: str | None = None
    parent_account_id: str | None = None


class LinkAccount(_Body):
    account_id: str


class LinkParent(_Body):
    parent_id: str
