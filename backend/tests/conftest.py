import pytest
import pytest_asyncio
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import courtside.models  # noqa: F401
from courtside.core.principal import Principal
from courtside.db.base import Base
from courtside.db.store_games import GameStore
from courtside.db.store_roster import RosterStore
from courtside.db.store_stats import StatLedger
from courtside.models.account import Account
from courtside.models.game import Game
from courtside.models.manual_player import ManualPlayer
from courtside.models.parent_child_relation import ParentChildRelation
from courtside.services.broadcaster import Broadcaster

ADMIN = Principal(id="admin-1", email="admin@example.com", role="parent", is_admin=True)


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def events():
    return []


# Records every published message as (topic, message) the moment it is
# published
class RecordingBroadcaster(Broadcaster):
    def __init__(self, events):
        self.events = events

    def _dispatch(self, game_id, message):
        self.events.append((f"game:{game_id}", message))


@pytest.fixture
def broadcaster(events):
    return RecordingBroadcaster(events)


@pytest.fixture
def admin():
    return ADMIN


def principal_for(account_id: str, role: str = "player") -> Principal:
    return Principal(id=account_id, email=f"{account_id}@example.com", role=role)


# Rows are detached after commit so a rolled-back operation in a test does
# not expire them
class Seed:
    def __init__(self, db):
        self.db = db

    async def account(self, account_id: str, role: str = "player", name: str | None = None, jersey_number=None):
        account = Account(
            id=account_id,
            name=name or account_id.title(),
            email=f"{account_id}@example.com",
            role=role,
            is_admin=False,
            jersey_number=jersey_number,
        )
        self.db.add(account)
        await self.db.commit()
        self.db.expunge(account)
        return account

    async def relation(self, parent_id: str, child_id: str):
        self.db.add(ParentChildRelation(parent_id=parent_id, child_id=child_id))
        await self.db.commit()

    async def game(self, is_home: bool = True, stats_locked: bool = False, status: str = "live"):
        game = Game(
            team_name="Hornets",
            opponent_team="Wildcats",
            is_home=is_home,
            game_date=datetime(2026, 10, 1, 18, 0, tzinfo=timezone.utc),
            home_score=0,
            away_score=0,
            status=status,
            stats_locked=stats_locked,
            shared_to_feed=False,
        )
        self.db.add(game)
        await self.db.commit()
        self.db.expunge(game)
        return game

    async def manual(self, name: str = "Jamie", jersey_number=None, linked_account_id=None, parent_account_id=None):
        manual = ManualPlayer(
            name=name,
            jersey_number=jersey_number,
            linked_account_id=linked_account_id,
            parent_account_id=parent_account_id,
        )
        self.db.add(manual)
        await self.db.commit()
        self.db.expunge(manual)
        return manual


@pytest.fixture
def seed(db):
    return Seed(db)


@pytest.fixture
def as_user():
    return principal_for


@pytest.fixture
def roster(db, broadcaster):
    return RosterStore(db, broadcaster)


@pytest.fixture
def ledger(db, broadcaster):
    return StatLedger(db, broadcaster)


@pytest.fixture
def games(db, broadcaster):
    return GameStore(db, broadcaster)
