# courtside/db/store_stats.py
import logging
from sqlalchemy import case, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from courtside.core.activity import ScoreUpdated, StatAdded, StatRemoved
from courtside.core.constants import StatType, is_scoring, point_value
from courtside.core.errors import Locked, NotFound, ValidationError
from courtside.core.principal import Principal
from courtside.db.lookups import get_game, get_roster_entry, player_name
from courtside.db.permissions import IdentityResolver, require_admin
from courtside.db.store_activity import append_activity
from courtside.db.transaction import transaction
from courtside.models.game import Game
from courtside.models.game_stat import GameStat
from courtside.services.broadcaster import Broadcaster

logger = logging.getLogger(__name__)

ADDED_DESCRIPTIONS = {
    StatType.THREE_POINT: "{name} sank a 3-pointer!",
    StatType.TWO_POINT: "{name} scored 2 points!",
    StatType.FREE_THROW: "{name} made a free throw!",
    StatType.STEAL: "{name} stole the ball!",
    StatType.REBOUND: "{name} grabbed a rebound!",
    StatType.ASSIST: "{name} dished an assist!",
    StatType.BLOCK: "{name} blocked a shot!",
    StatType.TURNOVER: "{name} turned the ball over",
}

REMOVED_DESCRIPTIONS = {
    StatType.THREE_POINT: "{name}'s 3-pointer was corrected",
    StatType.TWO_POINT: "{name}'s 2-point shot was corrected",
    StatType.FREE_THROW: "{name}'s free throw was corrected",
    StatType.STEAL: "{name}'s steal was corrected",
    StatType.REBOUND: "{name}'s rebound was corrected",
    StatType.ASSIST: "{name}'s assist was corrected",
    StatType.BLOCK: "{name}'s block was corrected",
    StatType.TURNOVER: "{name}'s turnover was corrected",
}


def parse_stat_type(stat_type) -> StatType:
    try:
        return StatType(stat_type)
    except ValueError:
        allowed = ", ".join(t.value for t in StatType)
        raise ValidationError(f"Invalid stat type '{stat_type}', expected one of: {allowed}")


def validate_value(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError("Stat value must be a positive integer")
    return value


async def shift_score(db: AsyncSession, game: Game, delta: int):
    """
    Add `delta` to our side of the scoreboard in SQL, clamped at zero.

    Runs as `score = score + delta` so concurrent commits add up instead of
    overwriting each other. Returns the (home, away) score before the shift.
    """
    previous = (game.home_score, game.away_score)
    column = Game.home_score if game.is_home else Game.away_score
    shifted = column + delta
    await db.execute(
        update(Game)
        .where(Game.id == game.id)
        .values({column.key: case((shifted < 0, 0), else_=shifted)})
        .execution_options(synchronize_session=False)
    )
    await db.refresh(game)
    return previous


def score_payload(game: Game, previous, delta: int, **extra):
    return {
        "gameId": game.id,
        "homeScore": game.home_score,
        "awayScore": game.away_score,
        "previousHomeScore": previous[0],
        "previousAwayScore": previous[1],
        "pointsDelta": delta,
        **extra,
    }


async def expected_scores(db: AsyncSession, game: Game):
    result = await db.execute(
        select(GameStat.stat_type, func.count(GameStat.id))
        .where(GameStat.game_id == game.id)
        .group_by(GameStat.stat_type)
    )
    ours = sum(point_value(stat_type) * count for stat_type, count in result.all())
    # only our team's points are recorded as stats; the opponent's side is
    # whatever was last entered by hand
    if game.is_home:
        return ours, game.away_score
    return game.home_score, ours


class StatLedger:
    def __init__(self, db: AsyncSession, broadcaster: Broadcaster):
        self.db = db
        self.broadcaster = broadcaster

    async def _check_can_change(self, game: Game, entry, principal: Principal):
        if game.stats_locked and not principal.is_admin:
            raise Locked("Stats are locked for this game")
        await IdentityResolver(self.db, principal).require_mutate(entry.player_ref)

    async def record_stat(
        self,
        game_id: int,
        game_player_id: int,
        stat_type,
        principal: Principal,
        value: int = 1,
        quarter: int | None = None,
        time_minute: int | None = None,
    ):
        stat_type = parse_stat_type(stat_type)
        value = validate_value(value)

        score_event = None
        async with transaction(self.db):
            game = await get_game(self.db, game_id)
            entry = await get_roster_entry(self.db, game_id, game_player_id)
            await self._check_can_change(game, entry, principal)

            stat = GameStat(
                game_id=game_id,
                game_player_id=entry.id,
                stat_type=stat_type.value,
                value=value,
                quarter=quarter,
                time_minute=time_minute,
                created_by=principal.id,
            )
            self.db.add(stat)
            await self.db.flush()

            name = await player_name(self.db, entry.player_ref)
            description = ADDED_DESCRIPTIONS[stat_type].format(name=name)
            metadata = StatAdded(
                stat_id=stat.id, stat_type=stat_type.value, value=value, player_name=name
            )

            if is_scoring(stat_type):
                delta = point_value(stat_type)
                previous = await shift_score(self.db, game, delta)
                await append_activity(
                    self.db,
                    game_id,
                    f"Score updated: {game.home_score}-{game.away_score} "
                    f"({delta} pts from {name}'s {stat_type.value})",
                    ScoreUpdated(
                        previous_home_score=previous[0],
                        previous_away_score=previous[1],
                        new_home_score=game.home_score,
                        new_away_score=game.away_score,
                        points_delta=delta,
                        stat_type=stat_type.value,
                        player_name=name,
                    ),
                    principal.id,
                )
                description = f"{description} ({game.home_score}-{game.away_score})"
                metadata.home_score = game.home_score
                metadata.away_score = game.away_score
                score_event = score_payload(
                    game, previous, delta, playerName=name, statType=stat_type.value
                )

            activity = await append_activity(
                self.db, game_id, description, metadata, principal.id
            )

        logger.info(f"Recorded {stat_type.value} for {name} in game {game_id}")
        stat_row = {**stat.to_dict(), "playerName": name}
        if score_event:
            await self.broadcaster.publish(game_id, "score_updated", score_event)
        await self.broadcaster.publish(
            game_id,
            "activity_added",
            {"gameId": game_id, "activity": activity.to_dict(), "stat": stat_row},
        )
        return {
            "stat": stat_row,
            "homeScore": game.home_score,
            "awayScore": game.away_score,
        }

    async def remove_stat(self, game_id: int, stat_id: int, principal: Principal):
        score_event = None
        async with transaction(self.db):
            game = await get_game(self.db, game_id)
            stat = await self.db.get(GameStat, stat_id)
            if stat is None or stat.game_id != game_id:
                raise NotFound(f"Stat {stat_id} not found in game {game_id}")
            entry = await get_roster_entry(self.db, game_id, stat.game_player_id)
            await self._check_can_change(game, entry, principal)

            stat_type = StatType(stat.stat_type)
            removed = {**stat.to_dict()}
            name = await player_name(self.db, entry.player_ref)

            if is_scoring(stat_type):
                delta = -point_value(stat_type)
                previous = await shift_score(self.db, game, delta)
                await append_activity(
                    self.db,
                    game_id,
                    f"Score updated: {game.home_score}-{game.away_score} "
                    f"(removed {-delta} pts from {name}'s {stat_type.value})",
                    ScoreUpdated(
                        previous_home_score=previous[0],
                        previous_away_score=previous[1],
                        new_home_score=game.home_score,
                        new_away_score=game.away_score,
                        points_delta=delta,
                        stat_type=stat_type.value,
                        player_name=name,
                        reason="stat_removed",
                    ),
                    principal.id,
                )
                score_event = score_payload(
                    game, previous, delta, playerName=name, statType=stat_type.value
                )

            await self.db.execute(delete(GameStat).where(GameStat.id == stat_id))

            activity = await append_activity(
                self.db,
                game_id,
                REMOVED_DESCRIPTIONS[stat_type].format(name=name),
                StatRemoved(
                    stat_id=stat_id,
                    stat_type=stat_type.value,
                    value=removed["value"],
                    player_name=name,
                ),
                principal.id,
            )

        logger.info(f"Removed stat {stat_id} ({stat_type.value}) from game {game_id}")
        if score_event:
            await self.broadcaster.publish(game_id, "score_updated", score_event)
        await self.broadcaster.publish(
            game_id,
            "activity_added",
            {
                "gameId": game_id,
                "activity": activity.to_dict(),
                "statRemoved": {**removed, "playerName": name},
            },
        )
        return {
            "removed": removed,
            "homeScore": game.home_score,
            "awayScore": game.away_score,
        }

    async def audit_score(self, game_id: int):
        """
        Recompute the score from the stats present and compare with the
        stored one. Read only.
        """
        game = await get_game(self.db, game_id)
        expected_home, expected_away = await expected_scores(self.db, game)
        drift = (expected_home - game.home_score, expected_away - game.away_score)
        return {
            "gameId": game_id,
            "stored": {"homeScore": game.home_score, "awayScore": game.away_score},
            "expected": {"homeScore": expected_home, "awayScore": expected_away},
            "drift": {"homeScore": drift[0], "awayScore": drift[1]},
            "consistent": drift == (0, 0),
        }

    async def reconcile_score(self, game_id: int, principal: Principal):
        require_admin(principal, "score reconciliation")
        audit = await self.audit_score(game_id)
        if audit["consistent"]:
            return {**audit, "reconciled": False}

        async with transaction(self.db):
            game = await get_game(self.db, game_id)
            previous = (game.home_score, game.away_score)
            game.home_score = audit["expected"]["homeScore"]
            game.away_score = audit["expected"]["awayScore"]
            await self.db.flush()
            delta = game.our_score - (previous[0] if game.is_home else previous[1])
            activity = await append_activity(
                self.db,
                game_id,
                f"Score reconciled: {game.home_score}-{game.away_score}",
                ScoreUpdated(
                    previous_home_score=previous[0],
                    previous_away_score=previous[1],
                    new_home_score=game.home_score,
                    new_away_score=game.away_score,
                    points_delta=delta,
                    reason="reconciled",
                ),
                principal.id,
            )

        logger.warning(
            f"Game {game_id} score drifted by {delta}, reset to "
            f"{game.home_score}-{game.away_score}"
        )
        await self.broadcaster.publish(
            game_id, "score_updated", score_payload(game, previous, delta, isReconciled=True)
        )
        await self.broadcaster.publish(
            game_id, "activity_added", {"gameId": game_id, "activity": activity.to_dict()}
        )
        return {**audit, "reconciled": True}
