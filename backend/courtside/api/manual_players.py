from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from courtside.api.deps import get_principal
from courtside.api.schemas import LinkAccount, LinkParent, ManualPlayerCreate
from courtside.core.principal import Principal
from courtside.db import identity_merge, store_manual_players
from courtside.db.session import get_db

router = APIRouter()


@router.get("/")
async def list_manual_players(
    principal: Principal = Depends(get_principal), db: AsyncSession = Depends(get_db)
):
    return await store_manual_players.list_manual_players(db, principal)


@router.get("/search")
async def search(
    q: str = "",
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await store_manual_players.search_manual_players(db, principal, q)


@router.post("/", status_code=201)
async def create(
    body: ManualPlayerCreate,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await store_manual_players.create_manual_player(
        db,
        principal,
        body.name,
        jersey_number=body.jersey_number,
        notes=body.notes,
        parent_account_id=body.parent_account_id,
    )


@router.patch("/{manual_id}/link")
async def link(
    manual_id: int,
    body: LinkAccount,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await store_manual_players.link(db, manual_id, body.account_id, principal)


@router.patch("/{manual_id}/unlink")
async def unlink(
    manual_id: int,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await store_manual_players.unlink(db, manual_id, principal)


@router.patch("/{manual_id}/link-parent")
async def link_parent(
    manual_id: int,
    body: LinkParent,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await store_manual_players.link_parent(db, manual_id, body.parent_id, principal)


@router.patch("/{manual_id}/unlink-parent")
async def unlink_parent(
    manual_id: int,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await store_manual_players.unlink_parent(db, manual_id, principal)


# reattach the manual player's games to its linked account
@router.post("/{manual_id}/migrate")
async def migrate(
    manual_id: int,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    report = await identity_merge.migrate(db, manual_id, principal)
    return report.to_dict()


@router.delete("/{manual_id}")
async def delete_migrated(
    manual_id: int,
    force: bool = False,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    if force:
        return await identity_merge.force_delete(db, manual_id, principal)
    return await identity_merge.delete_migrated(db, manual_id, principal)
