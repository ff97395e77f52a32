# courtside/db/store_games.py
import logging
from datetime import datetime
from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from courtside.core.constants import GameStatus
from courtside.core.errors import Conflict, Forbidden, ValidationError
from courtside.core.player_ref import RegisteredRef
from courtside.core.principal import Principal
from courtside.db.lookups import get_game
from courtside.db.permissions import IdentityResolver, get_child_ids, require_admin
from courtside.db.transaction import transaction
from courtside.models.game import Game
from courtside.models.game_activity import GameActivity
from courtside.models.game_player import GamePlayer
from courtside.models.game_stat import GameStat
from courtside.models.manual_player import ManualPlayer
from courtside.services.broadcaster import Broadcaster

logger = logging.getLogger(__name__)


def parse_game_date(value) -> datetime:
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"Invalid game date '{value}'")


def require_text(field: str, value):
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Missing required field: {field}")
    return value.strip()


def require_score(field: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{field} must be a non-negative integer")
    return value


class GameStore:
    def __init__(self, db: AsyncSession, broadcaster: Broadcaster):
        self.db = db
        self.broadcaster = broadcaster

    async def create_game(
        self, principal: Principal, team_name, opponent_team, is_home, game_date
    ):
        require_admin(principal, "creating games")
        team_name = require_text("teamName", team_name)
        opponent_team = require_text("opponentTeam", opponent_team)
        if not isinstance(is_home, bool):
            raise ValidationError("isHome must be a boolean")
        if game_date is None:
            raise ValidationError("Missing required field: gameDate")

        async with transaction(self.db):
            game = Game(
                team_name=team_name,
                opponent_team=opponent_team,
                is_home=is_home,
                game_date=parse_game_date(game_date),
                home_score=0,
                away_score=0,
                status=GameStatus.UPCOMING.value,
                stats_locked=False,
                shared_to_feed=False,
            )
            self.db.add(game)
            await self.db.flush()

        logger.info(f"Created game {game.id}: {team_name} vs {opponent_team}")
        return game.to_dict()

    async def get_game(self, game_id: int):
        game = await get_game(self.db, game_id)
        return game.to_dict()

    async def list_games(self):
        result = await self.db.execute(select(Game).order_by(Game.game_date))
        return [g.to_dict() for g in result.scalars().all()]

    async def list_my_games(self, principal: Principal):
        """
        Games the principal has a stake in: their own, or their children's,
        counting manual records linked to those accounts. Admins get all.
        """
        if principal.is_admin:
            return await self.list_games()

        account_ids = {principal.id} | await get_child_ids(self.db, principal.id)
        result = await self.db.execute(
            select(Game)
            .join(GamePlayer, GamePlayer.game_id == Game.id)
            .outerjoin(ManualPlayer, GamePlayer.manual_player_id == ManualPlayer.id)
            .where(
                or_(
                    GamePlayer.account_id.in_(account_ids),
                    ManualPlayer.linked_account_id.in_(account_ids),
                    ManualPlayer.parent_account_id == principal.id,
                )
            )
            .distinct()
            .order_by(Game.game_date)
        )
        return [g.to_dict() for g in result.scalars().all()]

    async def player_games(self, principal: Principal, account_id: str):
        """Games of one account with that account's stats, newest first."""
        if not await IdentityResolver(self.db, principal).can_view(RegisteredRef(account_id)):
            raise Forbidden("Permission denied: you can only view games for yourself or your children")

        result = await self.db.execute(
            select(Game, GamePlayer)
            .join(GamePlayer, GamePlayer.game_id == Game.id)
            .outerjoin(ManualPlayer, GamePlayer.manual_player_id == ManualPlayer.id)
            .where(
                or_(
                    GamePlayer.account_id == account_id,
                    ManualPlayer.linked_account_id == account_id,
                )
            )
            .order_by(Game.game_date.desc())
        )
        games = []
        for game, entry in result.all():
            stats = await self.db.execute(
                select(GameStat)
                .where(GameStat.game_player_id == entry.id)
                .order_by(GameStat.id)
            )
            games.append(
                {
                    **game.to_dict(),
                    "gamePlayerId": entry.id,
                    "jerseyNumber": entry.jersey_number,
                    "isStarter": entry.is_starter,
                    "stats": [s.to_dict() for s in stats.scalars().all()],
                }
            )
        return games

    async def update_game(
        self,
        game_id: int,
        principal: Principal,
        team_name=None,
        opponent_team=None,
        is_home=None,
        game_date=None,
    ):
        require_admin(principal, "editing games")
        async with transaction(self.db):
            game = await get_game(self.db, game_id)
            if team_name is not None:
                game.team_name = require_text("teamName", team_name)
            if opponent_team is not None:
                game.opponent_team = require_text("opponentTeam", opponent_team)
            if is_home is not None:
                if not isinstance(is_home, bool):
                    raise ValidationError("isHome must be a boolean")
                game.is_home = is_home
            if game_date is not None:
                game.game_date = parse_game_date(game_date)
        return game.to_dict()

    async def update_score(self, game_id: int, home_score, away_score, principal: Principal):
        """Manual score edit; overrides whatever the stats added up to."""
        require_admin(principal, "editing scores")
        home_score = require_score("homeScore", home_score)
        away_score = require_score("awayScore", away_score)
        async with transaction(self.db):
            game = await get_game(self.db, game_id)
            game.home_score = home_score
            game.away_score = away_score

        await self.broadcaster.publish(
            game_id,
            "score_updated",
            {
                "gameId": game_id,
                "homeScore": home_score,
                "awayScore": away_score,
                "isManualUpdate": True,
            },
        )
        return game.to_dict()

    async def set_status(self, game_id: int, principal: Principal, status=None, notes=None):
        require_admin(principal, "changing game status")
        if status is not None:
            try:
                status = GameStatus(status).value
            except ValueError:
                raise ValidationError(f"Invalid status '{status}'")
        async with transaction(self.db):
            game = await get_game(self.db, game_id)
            if status is not None:
                game.status = status
            if notes is not None:
                game.notes = notes

        await self.broadcaster.publish(
            game_id, "status_updated", {"gameId": game_id, "status": game.status}
        )
        return game.to_dict()

    async def set_stats_locked(self, game_id: int, locked: bool, principal: Principal):
        require_admin(principal, "locking stats")
        if not isinstance(locked, bool):
            raise ValidationError("statsLocked must be a boolean")
        async with transaction(self.db):
            game = await get_game(self.db, game_id)
            game.stats_locked = locked

        logger.info(f"Stats for game {game_id} {'locked' if locked else 'unlocked'}")
        await self.broadcaster.publish(
            game_id, "stats_locked", {"gameId": game_id, "statsLocked": locked}
        )
        return game.to_dict()

    async def share_to_feed(self, game_id: int, principal: Principal):
        require_admin(principal, "sharing games")
        async with transaction(self.db):
            game = await get_game(self.db, game_id)
            if game.shared_to_feed:
                raise Conflict("Game is already shared to feed")
            game.shared_to_feed = True
        return game.to_dict()

    async def delete_game(self, game_id: int, principal: Principal):
        require_admin(principal, "deleting games")
        async with transaction(self.db):
            await get_game(self.db, game_id)
            await self.db.execute(delete(GameStat).where(GameStat.game_id == game_id))
            await self.db.execute(delete(GameActivity).where(GameActivity.game_id == game_id))
            await self.db.execute(delete(GamePlayer).where(GamePlayer.game_id == game_id))
            await self.db.execute(delete(Game).where(Game.id == game_id))

        logger.info(f"Deleted game {game_id}")
        return {"deleted": game_id}
