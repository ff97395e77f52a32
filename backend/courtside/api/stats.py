from fastapi import APIRouter, Depends
from courtside.api.deps import get_principal, get_stat_ledger
from courtside.api.schemas import StatCreate
from courtside.core.principal import Principal
from courtside.db.store_stats import StatLedger

router = APIRouter()


# admin, the player themself, or their parent
@router.post("/{game_id}/players/{game_player_id}/stats", status_code=201)
async def add_stat(
    game_id: int,
    game_player_id: int,
    body: StatCreate,
    principal: Principal = Depends(get_principal),
    ledger: StatLedger = Depends(get_stat_ledger),
):
    return await ledger.record_stat(
        game_id,
        game_player_id,
        body.stat_type,
        principal,
        value=body.value,
        quarter=body.quarter,
        time_minute=body.time_minute,
    )


@router.delete("/{game_id}/stats/{stat_id}")
async def remove_stat(
    game_id: int,
    stat_id: int,
    principal: Principal = Depends(get_principal),
    ledger: StatLedger = Depends(get_stat_ledger),
):
    return await ledger.remove_stat(game_id, stat_id, principal)
