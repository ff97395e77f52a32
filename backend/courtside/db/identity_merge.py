"""
Merging a manual participant's history into a registered account.

`migrate` repoints the manual record's roster entries at the account it is
linked to. Stats hang off roster entry ids, so they move with their entry.
The manual record itself stays until an admin has checked the result and
calls `delete_migrated` (or `force_delete`).
"""
import logging
from dataclasses import asdict, dataclass, field

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from courtside.core.errors import Conflict, MigrationGuardError, ValidationError
from courtside.core.principal import Principal
from courtside.db.lookups import get_manual_player
from courtside.db.permissions import require_admin
from courtside.db.transaction import transaction
from courtside.models._time import utcnow
from courtside.models.account import Account
from courtside.models.game import Game
from courtside.models.game_player import GamePlayer
from courtside.models.manual_player import ManualPlayer

logger = logging.getLogger(__name__)


@dataclass
class MigrationReport:
    manual_player_id: int
    target_account_id: str
    found: int = 0
    migrated: int = 0
    duplicates: int = 0
    duplicate_game_ids: list = field(default_factory=list)
    migrated_entry_ids: list = field(default_factory=list)
    errors: list = field(default_factory=list)
    jersey_backfilled: bool = False

    def to_dict(self):
        data = asdict(self)
        return {
            "manualPlayerId": data["manual_player_id"],
            "targetAccountId": data["target_account_id"],
            "found": data["found"],
            "migrated": data["migrated"],
            "duplicates": data["duplicates"],
            "duplicateGameIds": data["duplicate_game_ids"],
            "migratedEntryIds": data["migrated_entry_ids"],
            "errors": data["errors"],
            "jerseyBackfilled": data["jersey_backfilled"],
        }


async def count_entries_for_manual(db: AsyncSession, manual_id: int) -> int:
    result = await db.execute(
        select(func.count(GamePlayer.id)).where(GamePlayer.manual_player_id == manual_id)
    )
    return result.scalar_one()


async def count_entries_for_account(db: AsyncSession, account_id: str) -> int:
    result = await db.execute(
        select(func.count(GamePlayer.id)).where(GamePlayer.account_id == account_id)
    )
    return result.scalar_one()


async def migrate(db: AsyncSession, manual_id: int, principal: Principal) -> MigrationReport:
    require_admin(principal, "player migration")

    async with transaction(db):
        manual = await get_manual_player(db, manual_id)
        if manual.linked_account_id is None:
            raise ValidationError(
                f"Manual player {manual.name} must be linked to a registered account before migrating"
            )
        account = await db.get(Account, manual.linked_account_id)
        if account is None:
            raise ValidationError(
                f"Linked account {manual.linked_account_id} no longer exists"
            )

        report = MigrationReport(manual_player_id=manual.id, target_account_id=account.id)

        result = await db.execute(
            select(GamePlayer)
            .where(GamePlayer.manual_player_id == manual.id)
            .order_by(GamePlayer.id)
        )
        entries = result.scalars().all()
        report.found = len(entries)

        taken = await db.execute(
            select(GamePlayer.game_id).where(GamePlayer.account_id == account.id)
        )
        account_game_ids = {row[0] for row in taken.all()}

        existing = await db.execute(
            select(Game.id).where(Game.id.in_([e.game_id for e in entries]))
        )
        existing_game_ids = {row[0] for row in existing.all()}

        for entry in entries:
            if entry.game_id not in existing_game_ids:
                report.errors.append(
                    {"gamePlayerId": entry.id, "gameId": entry.game_id, "error": "game no longer exists"}
                )
                continue
            if entry.game_id in account_game_ids:
                report.duplicates += 1
                report.duplicate_game_ids.append(entry.game_id)
                continue

            entry.account_id = account.id
            entry.manual_player_id = None
            account_game_ids.add(entry.game_id)
            report.migrated += 1
            report.migrated_entry_ids.append(entry.id)

        if account.jersey_number is None and manual.jersey_number is not None:
            account.jersey_number = manual.jersey_number
            report.jersey_backfilled = True

        if report.migrated and manual.migrated_at is None:
            manual.migrated_at = utcnow()

        try:
            await db.flush()
        except IntegrityError as e:
            logger.error(f"Migration of manual player {manual_id} violated a constraint: {e}")
            raise Conflict(
                f"Migrating {manual.name} would break roster uniqueness; nothing was changed"
            )

    logger.info(
        f"Migrated manual player {manual_id} -> {report.target_account_id}: "
        f"found={report.found} migrated={report.migrated} duplicates={report.duplicates}"
    )
    return report


async def delete_migrated(db: AsyncSession, manual_id: int, principal: Principal):
    """Delete a manual record once its history has verifiably landed on the linked account."""
    require_admin(principal, "deleting manual players")
    async with transaction(db):
        manual = await get_manual_player(db, manual_id)

        remaining = await count_entries_for_manual(db, manual_id)
        if remaining:
            raise MigrationGuardError(
                f"{manual.name} still has {remaining} roster entries; migrate them first"
            )
        if manual.linked_account_id is None:
            raise MigrationGuardError(
                f"{manual.name} is not linked to a registered account"
            )
        landed = await count_entries_for_account(db, manual.linked_account_id)
        if not landed:
            raise MigrationGuardError(
                f"Linked account {manual.linked_account_id} has no roster entries; "
                "the migration did not land"
            )

        await db.execute(delete(ManualPlayer).where(ManualPlayer.id == manual_id))

    logger.info(f"Deleted migrated manual player {manual_id}")
    return {"deleted": manual_id}


async def force_delete(db: AsyncSession, manual_id: int, principal: Principal):
    require_admin(principal, "deleting manual players")
    async with transaction(db):
        manual = await get_manual_player(db, manual_id)
        remaining = await count_entries_for_manual(db, manual_id)
        if remaining:
            raise MigrationGuardError(
                f"{manual.name} still has {remaining} roster entries"
            )
        await db.execute(delete(ManualPlayer).where(ManualPlayer.id == manual_id))

    logger.warning(f"Force deleted manual player {manual_id}")
    return {"deleted": manual_id}
