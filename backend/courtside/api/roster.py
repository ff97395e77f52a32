from fastapi import APIRouter, Depends
from courtside.api.deps import get_principal, get_roster_store
from courtside.api.schemas import RosterAdd, RosterBulkAdd
from courtside.core.errors import ValidationError
from courtside.core.player_ref import ManualRef, RegisteredRef
from courtside.core.principal import Principal
from courtside.db.store_roster import RosterStore

router = APIRouter()


def ref_from_body(body: RosterAdd):
    if (body.account_id is None) == (body.manual_player_id is None):
        raise ValidationError("Provide exactly one of accountId or manualPlayerId")
    if body.account_id is not None:
        return RegisteredRef(body.account_id)
    return ManualRef(body.manual_player_id)


@router.get("/{game_id}/players")
async def list_roster(
    game_id: int,
    principal: Principal = Depends(get_principal),
    store: RosterStore = Depends(get_roster_store),
):
    return await store.list_roster(game_id, principal)


@router.post("/{game_id}/players", status_code=201)
async def add_player(
    game_id: int,
    body: RosterAdd,
    principal: Principal = Depends(get_principal),
    store: RosterStore = Depends(get_roster_store),
):
    return await store.add_to_roster(
        game_id,
        ref_from_body(body),
        principal,
        jersey_number=body.jersey_number,
        is_starter=body.is_starter,
    )


@router.post("/{game_id}/players/bulk")
async def bulk_add_players(
    game_id: int,
    body: RosterBulkAdd,
    principal: Principal = Depends(get_principal),
    store: RosterStore = Depends(get_roster_store),
):
    if not body.players:
        raise ValidationError("Players array is required and must not be empty")
    refs = []
    for p in body.players:
        if p.kind == "manual":
            try:
                refs.append(ManualRef(int(p.id)))
            except ValueError:
                raise ValidationError(f"Invalid manual player id '{p.id}'")
        else:
            refs.append(RegisteredRef(p.id))
    return await store.bulk_add(game_id, refs, principal)


@router.delete("/{game_id}/players/{game_player_id}")
async def remove_player(
    game_id: int,
    game_player_id: int,
    principal: Principal = Depends(get_principal),
    store: RosterStore = Depends(get_roster_store),
):
    return await store.remove_from_roster(game_id, game_player_id, principal)
