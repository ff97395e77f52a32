# courtside/db/store_roster.py
import logging
from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from courtside.core.activity import PlayerAdded, PlayerRemoved
from courtside.core.constants import point_value
from courtside.core.errors import Conflict, CourtsideError
from courtside.core.player_ref import ManualRef, PlayerRef, ref_to_dict
from courtside.core.principal import Principal
from courtside.db.lookups import ensure_ref_exists, get_game, get_roster_entry, player_name
from courtside.db.permissions import IdentityResolver, require_admin, resolve_player
from courtside.db.store_activity import append_activity
from courtside.db.store_stats import shift_score
from courtside.db.transaction import transaction
from courtside.models.account import Account
from courtside.models.game_player import GamePlayer
from courtside.models.game_stat import GameStat
from courtside.models.manual_player import ManualPlayer
from courtside.services.broadcaster import Broadcaster

logger = logging.getLogger(__name__)


async def find_identity_entry(db: AsyncSession, game_id: int, ref: PlayerRef):
    """
    Return the roster entry that already represents `ref`'s identity in the
    game, or None.

    Identity is the resolved one: a manual record linked to account U and a
    registered entry for U are the same person, and so are two manual
    records linked to the same account.
    """
    player = await resolve_player(db, ref)
    conditions = []
    if isinstance(ref, ManualRef):
        conditions.append(GamePlayer.manual_player_id == ref.manual_id)
    if player.account_id is not None:
        conditions.append(GamePlayer.account_id == player.account_id)
        conditions.append(ManualPlayer.linked_account_id == player.account_id)

    result = await db.execute(
        select(GamePlayer)
        .outerjoin(ManualPlayer, GamePlayer.manual_player_id == ManualPlayer.id)
        .where(GamePlayer.game_id == game_id, or_(*conditions))
        .limit(1)
    )
    return result.scalar_one_or_none()


# Stats grouped by roster entry id for one game
async def stats_by_entry(db: AsyncSession, game_id: int):
    result = await db.execute(
        select(GameStat).where(GameStat.game_id == game_id).order_by(GameStat.id)
    )
    grouped = {}
    for stat in result.scalars().all():
        grouped.setdefault(stat.game_player_id, []).append(stat.to_dict())
    return grouped


class RosterStore:
    def __init__(self, db: AsyncSession, broadcaster: Broadcaster):
        self.db = db
        self.broadcaster = broadcaster

    async def _insert_entry(
        self, game_id: int, ref: PlayerRef, principal: Principal, jersey_number, is_starter
    ):
        await ensure_ref_exists(self.db, ref)
        existing = await find_identity_entry(self.db, game_id, ref)
        if existing is not None:
            raise Conflict("Player is already added to this game")

        entry = GamePlayer.for_ref(
            game_id,
            ref,
            jersey_number=jersey_number,
            is_starter=bool(is_starter),
        )
        self.db.add(entry)
        await self.db.flush()

        name = await player_name(self.db, ref)
        activity = await append_activity(
            self.db,
            game_id,
            f"Added {ref.kind} player {name} to the game",
            PlayerAdded(
                game_player_id=entry.id,
                player_kind=ref.kind,
                account_id=entry.account_id,
                manual_player_id=entry.manual_player_id,
            ),
            principal.id,
        )
        return entry, name, activity

    async def _publish_added(self, game_id, entry, name, activity):
        await self.broadcaster.publish(
            game_id,
            "roster_updated",
            {
                "gameId": game_id,
                "action": "added",
                "gamePlayerId": entry.id,
                "player": ref_to_dict(entry.player_ref),
                "playerName": name,
            },
        )
        await self.broadcaster.publish(
            game_id, "activity_added", {"gameId": game_id, "activity": activity.to_dict()}
        )

    async def add_to_roster(
        self,
        game_id: int,
        ref: PlayerRef,
        principal: Principal,
        jersey_number: int | None = None,
        is_starter: bool = False,
    ):
        require_admin(principal, "adding players")
        async with transaction(self.db):
            await get_game(self.db, game_id)
            entry, name, activity = await self._insert_entry(
                game_id, ref, principal, jersey_number, is_starter
            )

        logger.info(f"Added {ref.kind} player {name} to game {game_id}")
        await self._publish_added(game_id, entry, name, activity)
        return entry_to_dict(entry, name)

    async def bulk_add(self, game_id: int, refs: list, principal: Principal):
        """
        Add several players; one that is already present or unknown is
        reported in `errors` and does not stop the rest.
        """
        require_admin(principal, "adding players")
        await get_game(self.db, game_id)

        added = []
        errors = []
        for ref in refs:
            try:
                async with transaction(self.db):
                    entry, name, activity = await self._insert_entry(
                        game_id, ref, principal, None, False
                    )
            except CourtsideError as e:
                errors.append({"player": ref_to_dict(ref), "kind": e.kind, "error": e.reason})
                continue
            await self._publish_added(game_id, entry, name, activity)
            added.append(entry_to_dict(entry, name))

        return {
            "added": added,
            "errors": errors,
            "totalProcessed": len(refs),
            "successCount": len(added),
            "errorCount": len(errors),
        }

    async def remove_from_roster(self, game_id: int, game_player_id: int, principal: Principal):
        require_admin(principal, "removing players")
        score_event = None
        async with transaction(self.db):
            game = await get_game(self.db, game_id)
            entry = await get_roster_entry(self.db, game_id, game_player_id)
            ref = entry.player_ref
            account_id, manual_player_id = entry.account_id, entry.manual_player_id
            name = await player_name(self.db, ref)

            result = await self.db.execute(
                select(GameStat.stat_type).where(GameStat.game_player_id == entry.id)
            )
            stat_types = [row[0] for row in result.all()]
            # each scoring stat is reversed; clamping per stat or once on the
            # total gives the same result since every delta is negative
            reversal = -sum(point_value(t) for t in stat_types)
            if reversal:
                previous = await shift_score(self.db, game, reversal)
                score_event = {
                    "gameId": game_id,
                    "homeScore": game.home_score,
                    "awayScore": game.away_score,
                    "previousHomeScore": previous[0],
                    "previousAwayScore": previous[1],
                    "pointsDelta": reversal,
                    "playerName": name,
                }

            await self.db.execute(delete(GameStat).where(GameStat.game_player_id == entry.id))
            await self.db.execute(delete(GamePlayer).where(GamePlayer.id == entry.id))

            activity = await append_activity(
                self.db,
                game_id,
                f"Removed player {name} from the game",
                PlayerRemoved(
                    game_player_id=game_player_id,
                    account_id=account_id,
                    manual_player_id=manual_player_id,
                    stats_removed=len(stat_types),
                ),
                principal.id,
            )

        logger.info(f"Removed {name} and {len(stat_types)} stats from game {game_id}")
        if score_event:
            await self.broadcaster.publish(game_id, "score_updated", score_event)
        await self.broadcaster.publish(
            game_id,
            "roster_updated",
            {
                "gameId": game_id,
                "action": "removed",
                "gamePlayerId": game_player_id,
                "player": ref_to_dict(ref),
                "playerName": name,
            },
        )
        await self.broadcaster.publish(
            game_id, "activity_added", {"gameId": game_id, "activity": activity.to_dict()}
        )
        return {"removed": game_player_id, "statsRemoved": len(stat_types)}

    async def list_roster(self, game_id: int, principal: Principal):
        """
        Every roster entry of the game, each with the stats the principal is
        allowed to see. Entries whose stats are hidden keep an empty list.
        """
        await get_game(self.db, game_id)
        result = await self.db.execute(
            select(GamePlayer, Account, ManualPlayer)
            .outerjoin(Account, GamePlayer.account_id == Account.id)
            .outerjoin(ManualPlayer, GamePlayer.manual_player_id == ManualPlayer.id)
            .where(GamePlayer.game_id == game_id)
            .order_by(GamePlayer.created_at, GamePlayer.id)
        )
        rows = result.all()
        stats = await stats_by_entry(self.db, game_id)
        resolver = IdentityResolver(self.db, principal)

        roster = []
        for entry, account, manual in rows:
            visible = await resolver.can_view(entry.player_ref)
            row = entry_to_dict(entry)
            row["user"] = (
                {
                    "id": account.id,
                    "name": account.name,
                    "email": account.email,
                    "jerseyNumber": account.jersey_number,
                }
                if account is not None
                else None
            )
            row["manualPlayer"] = (
                {
                    "id": manual.id,
                    "name": manual.name,
                    "jerseyNumber": manual.jersey_number,
                    "notes": manual.notes,
                    "linkedAccountId": manual.linked_account_id,
                }
                if manual is not None
                else None
            )
            row["statsVisible"] = visible
            row["stats"] = stats.get(entry.id, []) if visible else []
            roster.append(row)
        return roster


def entry_to_dict(entry: GamePlayer, name: str | None = None):
    row = {
        "id": entry.id,
        "gameId": entry.game_id,
        "player": ref_to_dict(entry.player_ref),
        "accountId": entry.account_id,
        "manualPlayerId": entry.manual_player_id,
        "jerseyNumber": entry.jersey_number,
        "isStarter": entry.is_starter,
        "minutesPlayed": entry.minutes_played,
    }
    if name is not None:
        row["playerName"] = name
    return row
