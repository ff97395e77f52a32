# Shared loaders that raise NotFound instead of returning None
from sqlalchemy.ext.asyncio import AsyncSession
from courtside.core.errors import NotFound
from courtside.core.player_ref import ManualRef, PlayerRef, RegisteredRef
from courtside.models.account import Account
from courtside.models.game import Game
from courtside.models.game_player import GamePlayer
from courtside.models.manual_player import ManualPlayer


async def get_game(db: AsyncSession, game_id: int) -> Game:
    game = await db.get(Game, game_id)
    if game is None:
        raise NotFound(f"Game {game_id} not found")
    return game


async def get_account(db: AsyncSession, account_id: str) -> Account:
    account = await db.get(Account, account_id)
    if account is None:
        raise NotFound(f"Account {account_id} not found")
    return account


async def get_manual_player(db: AsyncSession, manual_id: int) -> ManualPlayer:
    manual = await db.get(ManualPlayer, manual_id)
    if manual is None:
        raise NotFound(f"Manual player {manual_id} not found")
    return manual


# the roster entry must belong to the given game
async def get_roster_entry(db: AsyncSession, game_id: int, entry_id: int) -> GamePlayer:
    entry = await db.get(GamePlayer, entry_id)
    if entry is None or entry.game_id != game_id:
        raise NotFound(f"Player {entry_id} not found in game {game_id}")
    return entry


async def ensure_ref_exists(db: AsyncSession, ref: PlayerRef):
    match ref:
        case RegisteredRef(account_id=account_id):
            await get_account(db, account_id)
        case ManualRef(manual_id=manual_id):
            await get_manual_player(db, manual_id)


async def player_name(db: AsyncSession, ref: PlayerRef) -> str:
    match ref:
        case RegisteredRef(account_id=account_id):
            account = await db.get(Account, account_id)
            if account is None:
                return "Unknown User"
            return account.name or account.email or "Unknown User"
        case ManualRef(manual_id=manual_id):
            manual = await db.get(ManualPlayer, manual_id)
            return manual.name if manual is not None else "Unknown Player"
    return "Unknown Player"
