import pytest
from sqlalchemy import func, select

from courtside.core.errors import Conflict, Forbidden, NotFound
from courtside.core.player_ref import ManualRef, RegisteredRef
from courtside.db.store_manual_players import link
from courtside.models.game_player import GamePlayer
from courtside.models.game_stat import GameStat


async def roster_rows(db, game_id):
    result = await db.execute(
        select(func.count(GamePlayer.id)).where(GamePlayer.game_id == game_id)
    )
    return result.scalar_one()


async def test_add_registered_player_logs_activity(db, seed, roster, admin, events):
    await seed.account("pat", name="Pat Riley")
    game = await seed.game()

    entry = await roster.add_to_roster(game.id, RegisteredRef("pat"), admin, jersey_number=7, is_starter=True)

    assert entry["accountId"] == "pat"
    assert entry["manualPlayerId"] is None
    assert entry["jerseyNumber"] == 7
    assert entry["isStarter"] is True
    assert entry["player"] == {"kind": "registered", "accountId": "pat"}
    activity = [m for _, m in events if m["event"] == "activity_added"][0]
    assert activity["data"]["activity"]["description"] == "Added registered player Pat Riley to the game"


async def test_manual_player_description_says_manual(seed, roster, admin, events):
    manual = await seed.manual("Jamie")
    game = await seed.game()

    await roster.add_to_roster(game.id, ManualRef(manual.id), admin)

    activity = [m for _, m in events if m["event"] == "activity_added"][0]
    assert activity["data"]["activity"]["description"] == "Added manual player Jamie to the game"


async def test_duplicate_registered_entry_conflicts(db, seed, roster, admin):
    await seed.account("pat")
    game = await seed.game()
    await roster.add_to_roster(game.id, RegisteredRef("pat"), admin)

    with pytest.raises(Conflict):
        await roster.add_to_roster(game.id, RegisteredRef("pat"), admin)
    assert await roster_rows(db, game.id) == 1


async def test_linked_manual_and_its_account_are_the_same_identity(db, seed, roster, admin):
    await seed.account("uma")
    manual = await seed.manual("Jamie", linked_account_id="uma")
    game = await seed.game()
    other = await seed.game()

    await roster.add_to_roster(game.id, RegisteredRef("uma"), admin)
    with pytest.raises(Conflict):
        await roster.add_to_roster(game.id, ManualRef(manual.id), admin)

    await roster.add_to_roster(other.id, ManualRef(manual.id), admin)
    with pytest.raises(Conflict):
        await roster.add_to_roster(other.id, RegisteredRef("uma"), admin)

    assert await roster_rows(db, game.id) == 1
    assert await roster_rows(db, other.id) == 1


async def test_two_manual_records_linked_to_one_account_conflict(db, seed, roster, admin):
    await seed.account("uma")
    first = await seed.manual("Jamie", linked_account_id="uma")
    second = await seed.manual("J. Smith", linked_account_id="uma")
    game = await seed.game()

    await roster.add_to_roster(game.id, ManualRef(first.id), admin)
    with pytest.raises(Conflict):
        await roster.add_to_roster(game.id, ManualRef(second.id), admin)


async def test_only_admins_change_the_roster(seed, roster, admin, as_user):
    await seed.account("pat")
    game = await seed.game()

    with pytest.raises(Forbidden):
        await roster.add_to_roster(game.id, RegisteredRef("pat"), as_user("pat"))

    entry = await roster.add_to_roster(game.id, RegisteredRef("pat"), admin)
    with pytest.raises(Forbidden):
        await roster.remove_from_roster(game.id, entry["id"], as_user("pat"))


async def test_unknown_game_or_player(seed, roster, admin):
    game = await seed.game()

    with pytest.raises(NotFound):
        await roster.add_to_roster(game.id + 1, RegisteredRef("nobody"), admin)
    with pytest.raises(NotFound):
        await roster.add_to_roster(game.id, RegisteredRef("nobody"), admin)
    with pytest.raises(NotFound):
        await roster.add_to_roster(game.id, ManualRef(404), admin)
    with pytest.raises(NotFound):
        await roster.remove_from_roster(game.id, 404, admin)


async def test_removal_cascades_stats_and_reverses_score(db, seed, roster, ledger, admin):
    await seed.account("pat")
    await seed.account("kim")
    game = await seed.game()
    pat = await roster.add_to_roster(game.id, RegisteredRef("pat"), admin)
    kim = await roster.add_to_roster(game.id, RegisteredRef("kim"), admin)
    await ledger.record_stat(game.id, pat["id"], "3pt", admin)
    await ledger.record_stat(game.id, pat["id"], "steal", admin)
    await ledger.record_stat(game.id, kim["id"], "2pt", admin)

    result = await roster.remove_from_roster(game.id, pat["id"], admin)

    assert result["statsRemoved"] == 2
    remaining = await db.execute(select(GameStat.game_player_id))
    assert [row[0] for row in remaining.all()] == [kim["id"]]
    audit = await ledger.audit_score(game.id)
    assert audit["stored"]["homeScore"] == 2
    assert audit["consistent"]


async def test_bulk_add_reports_duplicates_without_stopping(seed, roster, admin):
    await seed.account("pat")
    await seed.account("kim")
    manual = await seed.manual("Jamie")
    game = await seed.game()
    await roster.add_to_roster(game.id, RegisteredRef("pat"), admin)

    result = await roster.bulk_add(
        game.id,
        [RegisteredRef("pat"), RegisteredRef("kim"), ManualRef(manual.id), RegisteredRef("ghost")],
        admin,
    )

    assert result["successCount"] == 2
    assert result["errorCount"] == 2
    assert {e["kind"] for e in result["errors"]} == {"conflict", "not_found"}


async def test_listing_hides_stats_from_unrelated_parent(db, seed, roster, ledger, admin, as_user):
    await seed.account("cal")
    await seed.account("amy", role="parent")
    await seed.account("ben", role="parent")
    await seed.relation("amy", "cal")
    unlinked = await seed.manual("Walk-on")
    game = await seed.game()
    cal = await roster.add_to_roster(game.id, RegisteredRef("cal"), admin)
    walk_on = await roster.add_to_roster(game.id, ManualRef(unlinked.id), admin)
    await ledger.record_stat(game.id, cal["id"], "2pt", admin)
    await ledger.record_stat(game.id, walk_on["id"], "rebound", admin)

    amy_view = {row["id"]: row for row in await roster.list_roster(game.id, as_user("amy", "parent"))}
    ben_view = {row["id"]: row for row in await roster.list_roster(game.id, as_user("ben", "parent"))}

    assert set(amy_view) == set(ben_view) == {cal["id"], walk_on["id"]}
    assert len(amy_view[cal["id"]]["stats"]) == 1
    assert ben_view[cal["id"]]["stats"] == []
    assert ben_view[cal["id"]]["statsVisible"] is False
    # unlinked manual players stay visible to everyone
    assert len(ben_view[walk_on["id"]]["stats"]) == 1


async def test_listing_follows_manual_link_to_child(db, seed, roster, ledger, admin, as_user):
    await seed.account("cal")
    await seed.account("amy", role="parent")
    await seed.account("ben", role="parent")
    await seed.relation("amy", "cal")
    manual = await seed.manual("Cally")
    game = await seed.game()
    entry = await roster.add_to_roster(game.id, ManualRef(manual.id), admin)
    await ledger.record_stat(game.id, entry["id"], "3pt", admin)
    await link(db, manual.id, "cal", admin)

    amy_view = await roster.list_roster(game.id, as_user("amy", "parent"))
    ben_view = await roster.list_roster(game.id, as_user("ben", "parent"))

    assert len(amy_view[0]["stats"]) == 1
    assert amy_view[0]["manualPlayer"]["linkedAccountId"] == "cal"
    assert ben_view[0]["stats"] == []


async def test_manual_parent_of_linked_record_gets_no_stat_access(seed, roster, ledger, admin, as_user):
    await seed.account("cal")
    await seed.account("bea", role="parent")
    jamie = await seed.manual("Jamie", linked_account_id="cal", parent_account_id="bea")
    game = await seed.game()
    entry = await roster.add_to_roster(game.id, ManualRef(jamie.id), admin)
    await ledger.record_stat(game.id, entry["id"], "2pt", admin)

    bea_view = await roster.list_roster(game.id, as_user("bea", "parent"))

    assert bea_view[0]["stats"] == []
    assert bea_view[0]["statsVisible"] is False
    with pytest.raises(Forbidden):
        await ledger.record_stat(game.id, entry["id"], "2pt", as_user("bea", "parent"))
