from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from courtside.core.principal import Principal
from courtside.db.session import get_db
from courtside.db.store_games import GameStore
from courtside.db.store_roster import RosterStore
from courtside.db.store_stats import StatLedger
from courtside.services.broadcaster import Broadcaster


# The gateway in front of us authenticates the caller and forwards who they are
def get_principal(
    x_principal_id: str | None = Header(default=None),
    x_principal_email: str | None = Header(default=None),
    x_principal_role: str = Header(default="player"),
    x_principal_admin: bool = Header(default=False),
) -> Principal:
    if not x_principal_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return Principal(
        id=x_principal_id,
        email=x_principal_email,
        role=x_principal_role,
        is_admin=x_principal_admin,
    )


def get_broadcaster(request: Request) -> Broadcaster:
    return request.app.state.broadcaster


def get_game_store(
    db: AsyncSession = Depends(get_db), broadcaster: Broadcaster = Depends(get_broadcaster)
) -> GameStore:
    return GameStore(db, broadcaster)


def get_roster_store(
    db: AsyncSession = Depends(get_db), broadcaster: Broadcaster = Depends(get_broadcaster)
) -> RosterStore:
    return RosterStore(db, broadcaster)


def get_stat_ledger(
    db: AsyncSession = Depends(get_db), broadcaster: Broadcaster = Depends(get_broadcaster)
) -> StatLedger:
    return StatLedger(db, broadcaster)
