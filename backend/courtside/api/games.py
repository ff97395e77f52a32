from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from courtside.api.deps import get_game_store, get_principal, get_stat_ledger
from courtside.api.schemas import (
    GameCreate,
    GameUpdate,
    ScoreUpdate,
    StatsLockUpdate,
    StatusUpdate,
)
from courtside.core.principal import Principal
from courtside.db.lookups import get_game
from courtside.db.session import get_db
from courtside.db.store_activity import list_activities
from courtside.db.store_games import GameStore
from courtside.db.store_stats import StatLedger

router = APIRouter()


@router.get("/")
async def list_games(store: GameStore = Depends(get_game_store)):
    return await store.list_games()


# games where the caller or their children played
@router.get("/mine")
async def my_games(
    principal: Principal = Depends(get_principal),
    store: GameStore = Depends(get_game_store),
):
    return await store.list_my_games(principal)


# parent dashboard: one account's games with its stats
@router.get("/player/{account_id}")
async def player_games(
    account_id: str,
    principal: Principal = Depends(get_principal),
    store: GameStore = Depends(get_game_store),
):
    return await store.player_games(principal, account_id)


@router.post("/", status_code=201)
async def create_game(
    body: GameCreate,
    principal: Principal = Depends(get_principal),
    store: GameStore = Depends(get_game_store),
):
    return await store.create_game(
        principal, body.team_name, body.opponent_team, body.is_home, body.game_date
    )


@router.get("/{game_id}")
async def get_one(game_id: int, store: GameStore = Depends(get_game_store)):
    return await store.get_game(game_id)


@router.patch("/{game_id}")
async def update_game(
    game_id: int,
    body: GameUpdate,
    principal: Principal = Depends(get_principal),
    store: GameStore = Depends(get_game_store),
):
    return await store.update_game(
        game_id,
        principal,
        team_name=body.team_name,
        opponent_team=body.opponent_team,
        is_home=body.is_home,
        game_date=body.game_date,
    )


@router.patch("/{game_id}/score")
async def update_score(
    game_id: int,
    body: ScoreUpdate,
    principal: Principal = Depends(get_principal),
    store: GameStore = Depends(get_game_store),
):
    return await store.update_score(game_id, body.home_score, body.away_score, principal)


@router.patch("/{game_id}/status")
async def update_status(
    game_id: int,
    body: StatusUpdate,
    principal: Principal = Depends(get_principal),
    store: GameStore = Depends(get_game_store),
):
    return await store.set_status(game_id, principal, status=body.status, notes=body.notes)


@router.patch("/{game_id}/stats-lock")
async def update_stats_lock(
    game_id: int,
    body: StatsLockUpdate,
    principal: Principal = Depends(get_principal),
    store: GameStore = Depends(get_game_store),
):
    return await store.set_stats_locked(game_id, body.stats_locked, principal)


@router.post("/{game_id}/share-to-feed")
async def share_to_feed(
    game_id: int,
    principal: Principal = Depends(get_principal),
    store: GameStore = Depends(get_game_store),
):
    return await store.share_to_feed(game_id, principal)


@router.delete("/{game_id}")
async def delete_game(
    game_id: int,
    principal: Principal = Depends(get_principal),
    store: GameStore = Depends(get_game_store),
):
    return await store.delete_game(game_id, principal)


@router.get("/{game_id}/activities")
async def activities(game_id: int, limit: int | None = None, db: AsyncSession = Depends(get_db)):
    await get_game(db, game_id)
    return await list_activities(db, game_id, limit=limit)


@router.get("/{game_id}/score/audit")
async def audit_score(game_id: int, ledger: StatLedger = Depends(get_stat_ledger)):
    return await ledger.audit_score(game_id)


@router.post("/{game_id}/score/reconcile")
async def reconcile_score(
    game_id: int,
    principal: Principal = Depends(get_principal),
    ledger: StatLedger = Depends(get_stat_ledger),
):
    return await ledger.reconcile_score(game_id, principal)
