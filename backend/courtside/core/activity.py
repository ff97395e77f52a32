"""
Typed metadata for game activity log entries.

Each activity kind has its own pydantic model; the `kind` field discriminates
between them so stored JSON can be validated back into the right variant.
"""
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _Metadata(BaseModel):
    model_config = ConfigDict(extra="forbid")


class StatAdded(_Metadata):
    kind: Literal["stat_added"] = "stat_added"
    stat_id: int
    stat_type: str
    value: int
    player_name: str
    home_score: int | None = None
    away_score: int | None = None


class StatRemoved(_Metadata):
    kind: Literal["stat_removed"] = "stat_removed"
    stat_id: int
    stat_type: str
    value: int
    player_name: str


class PlayerAdded(_Metadata):
    kind: Literal["player_added"] = "player_added"
    game_player_id: int
    player_kind: Literal["registered", "manual"]
    account_id: str | None = None
    manual_player_id: int | None = None


class PlayerRemoved(_Metadata):
    kind: Literal["player_removed"] = "player_removed"
    game_player_id: int
    account_id: str | None = None
    manual_player_id: int | None = None
    stats_removed: int = 0


class ScoreUpdated(_Metadata):
    kind: Literal["score_updated"] = "score_updated"
    previous_home_score: int
    previous_away_score: int
    new_home_score: int
    new_away_score: int
    points_delta: int
    stat_type: str | None = None
    player_name: str | None = None
    reason: Literal["stat_added", "stat_removed", "reconciled"] = "stat_added"


ActivityMetadata = Annotated[
    Union[StatAdded, StatRemoved, PlayerAdded, PlayerRemoved, ScoreUpdated],
    Field(discriminator="kind"),
]

metadata_adapter = TypeAdapter(ActivityMetadata)


def load_metadata(raw: dict) -> ActivityMetadata:
    return metadata_adapter.validate_python(raw)
