# courtside/db/store_manual_players.py
import logging
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from courtside.core.constants import MANUAL_PLAYER_SEARCH_LIMIT, Role
from courtside.core.errors import MigrationGuardError, ValidationError
from courtside.core.principal import Principal
from courtside.db.lookups import get_account, get_manual_player
from courtside.db.permissions import require_admin
from courtside.db.transaction import transaction
from courtside.models._time import utcnow
from courtside.models.manual_player import ManualPlayer

logger = logging.getLogger(__name__)


async def create_manual_player(
    db: AsyncSession,
    principal: Principal,
    name: str,
    jersey_number: int | None = None,
    notes: str | None = None,
    parent_account_id: str | None = None,
):
    require_admin(principal, "creating manual players")
    if not name or not name.strip():
        raise ValidationError("Player name is required")

    async with transaction(db):
        manual = ManualPlayer(name=name.strip(), jersey_number=jersey_number, notes=notes)
        if parent_account_id is not None:
            await _check_parent(db, parent_account_id)
            manual.parent_account_id = parent_account_id
            manual.parent_linked_by = principal.id
            manual.parent_linked_at = utcnow()
        db.add(manual)
        await db.flush()

    logger.info(f"Created manual player {manual.name} ({manual.id})")
    return manual.to_dict()


async def list_manual_players(db: AsyncSession, principal: Principal):
    require_admin(principal, "listing manual players")
    result = await db.execute(select(ManualPlayer).order_by(ManualPlayer.name))
    return [m.to_dict() for m in result.scalars().all()]


# case-insensitive name search for autocomplete; % and _ match literally
async def search_manual_players(db: AsyncSession, principal: Principal, q: str):
    require_admin(principal, "searching manual players")
    if not q or not q.strip():
        return []
    term = q.strip().lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    result = await db.execute(
        select(ManualPlayer)
        .where(func.lower(ManualPlayer.name).like(f"%{term}%", escape="\\"))
        .order_by(ManualPlayer.name)
        .limit(MANUAL_PLAYER_SEARCH_LIMIT)
    )
    return [m.to_dict() for m in result.scalars().all()]


async def link(db: AsyncSession, manual_id: int, account_id: str, principal: Principal):
    """
    Point a manual record at the registered account it really is.

    Linking does not touch roster entries; that is what migration is for.
    """
    require_admin(principal, "linking manual players")
    async with transaction(db):
        manual = await get_manual_player(db, manual_id)
        await get_account(db, account_id)
        if manual.migrated_at is not None and manual.linked_account_id != account_id:
            raise MigrationGuardError(
                f"{manual.name} was already migrated to {manual.linked_account_id}"
            )
        manual.linked_account_id = account_id
        manual.linked_by = principal.id
        manual.linked_at = utcnow()

    logger.info(f"Linked manual player {manual_id} to account {account_id}")
    return manual.to_dict()


async def unlink(db: AsyncSession, manual_id: int, principal: Principal):
    require_admin(principal, "unlinking manual players")
    async with transaction(db):
        manual = await get_manual_player(db, manual_id)
        if manual.linked_account_id is None:
            raise ValidationError(f"{manual.name} is not currently linked to any account")
        if manual.migrated_at is not None:
            raise MigrationGuardError(
                f"{manual.name} has been migrated; the link can no longer be removed"
            )
        manual.linked_account_id = None
        manual.linked_by = None
        manual.linked_at = None

    logger.info(f"Unlinked manual player {manual_id}")
    return manual.to_dict()


async def _check_parent(db: AsyncSession, parent_id: str):
    parent = await get_account(db, parent_id)
    if parent.role != Role.PARENT.value:
        raise ValidationError(f"Account {parent_id} is not a parent")


async def link_parent(db: AsyncSession, manual_id: int, parent_id: str, principal: Principal):
    require_admin(principal, "linking parents")
    async with transaction(db):
        manual = await get_manual_player(db, manual_id)
        await _check_parent(db, parent_id)
        manual.parent_account_id = parent_id
        manual.parent_linked_by = principal.id
        manual.parent_linked_at = utcnow()
    return manual.to_dict()


async def unlink_parent(db: AsyncSession, manual_id: int, principal: Principal):
    require_admin(principal, "unlinking parents")
    async with transaction(db):
        manual = await get_manual_player(db, manual_id)
        manual.parent_account_id = None
        manual.parent_linked_by = None
        manual.parent_linked_at = None
    return manual.to_dict()
