import pytest
from sqlalchemy import func, select

from courtside.core.errors import Conflict, Forbidden, NotFound, ValidationError
from courtside.core.player_ref import ManualRef, RegisteredRef
from courtside.models.game_activity import GameActivity
from courtside.models.game_player import GamePlayer
from courtside.models.game_stat import GameStat


async def test_create_game_starts_at_zero(games, admin):
    game = await games.create_game(admin, "Hornets", "Wildcats", True, "2026-10-01T18:00:00Z")

    assert game["homeScore"] == game["awayScore"] == 0
    assert game["status"] == "upcoming"
    assert game["statsLocked"] is False
    assert (await games.get_game(game["id"]))["teamName"] == "Hornets"


@pytest.mark.parametrize(
    "team, opponent, is_home, date",
    [
        ("", "Wildcats", True, "2026-10-01"),
        ("Hornets", None, True, "2026-10-01"),
        ("Hornets", "Wildcats", "yes", "2026-10-01"),
        ("Hornets", "Wildcats", True, None),
        ("Hornets", "Wildcats", True, "next tuesday"),
    ],
)
async def test_create_game_rejects_bad_input(games, admin, team, opponent, is_home, date):
    with pytest.raises(ValidationError):
        await games.create_game(admin, team, opponent, is_home, date)


async def test_only_admins_create_games(games, as_user):
    with pytest.raises(Forbidden):
        await games.create_game(as_user("pat"), "Hornets", "Wildcats", True, "2026-10-01")


async def test_missing_game(games, admin):
    with pytest.raises(NotFound):
        await games.get_game(404)
    with pytest.raises(NotFound):
        await games.update_score(404, 1, 1, admin)


async def test_update_score_validates_and_publishes(seed, games, admin, events):
    game = await seed.game()

    with pytest.raises(ValidationError):
        await games.update_score(game.id, -1, 0, admin)
    with pytest.raises(ValidationError):
        await games.update_score(game.id, True, 0, admin)

    result = await games.update_score(game.id, 40, 38, admin)
    assert (result["homeScore"], result["awayScore"]) == (40, 38)
    _, message = events[-1]
    assert message["event"] == "score_updated"
    assert message["data"]["isManualUpdate"] is True


async def test_status_and_lock(seed, games, admin, events):
    game = await seed.game(status="upcoming")

    with pytest.raises(ValidationError):
        await games.set_status(game.id, admin, status="halftime")

    result = await games.set_status(game.id, admin, status="completed", notes="OT win")
    assert result["status"] == "completed"
    assert result["notes"] == "OT win"

    with pytest.raises(ValidationError):
        await games.set_stats_locked(game.id, "true", admin)
    result = await games.set_stats_locked(game.id, True, admin)
    assert result["statsLocked"] is True
    assert [m["event"] for _, m in events] == ["status_updated", "stats_locked"]


async def test_share_to_feed_once(seed, games, admin):
    game = await seed.game()

    assert (await games.share_to_feed(game.id, admin))["sharedToFeed"] is True
    with pytest.raises(Conflict):
        await games.share_to_feed(game.id, admin)


async def test_update_game_partial(seed, games, admin):
    game = await seed.game()

    result = await games.update_game(game.id, admin, opponent_team="Eagles")

    assert result["opponentTeam"] == "Eagles"
    assert result["teamName"] == "Hornets"


async def test_delete_game_removes_everything(db, seed, roster, ledger, games, admin):
    await seed.account("pat")
    game = await seed.game()
    keep = await seed.game()
    entry = await roster.add_to_roster(game.id, RegisteredRef("pat"), admin)
    await ledger.record_stat(game.id, entry["id"], "2pt", admin)
    await roster.add_to_roster(keep.id, RegisteredRef("pat"), admin)

    assert await games.delete_game(game.id, admin) == {"deleted": game.id}

    for model in (GamePlayer, GameStat, GameActivity):
        result = await db.execute(select(func.count(model.id)).where(model.game_id == game.id))
        assert result.scalar_one() == 0
    assert [g["id"] for g in await games.list_games()] == [keep.id]


async def test_my_games_include_children_and_linked_manual_records(seed, roster, games, admin, as_user):
    await seed.account("pat")
    await seed.account("kim")
    await seed.account("mom", role="parent")
    await seed.relation("mom", "pat")
    patty = await seed.manual("Patty", linked_account_id="pat")
    own, via_manual, unrelated = await seed.game(), await seed.game(), await seed.game()
    await roster.add_to_roster(own.id, RegisteredRef("pat"), admin)
    await roster.add_to_roster(via_manual.id, ManualRef(patty.id), admin)
    await roster.add_to_roster(unrelated.id, RegisteredRef("kim"), admin)

    pat_games = {g["id"] for g in await games.list_my_games(as_user("pat"))}
    mom_games = {g["id"] for g in await games.list_my_games(as_user("mom", "parent"))}

    assert pat_games == mom_games == {own.id, via_manual.id}
    assert len(await games.list_my_games(admin)) == 3


async def test_player_games_requires_view_access(seed, roster, ledger, games, admin, as_user):
    await seed.account("pat")
    await seed.account("mom", role="parent")
    await seed.account("sam")
    await seed.relation("mom", "pat")
    game = await seed.game()
    entry = await roster.add_to_roster(game.id, RegisteredRef("pat"), admin)
    await ledger.record_stat(game.id, entry["id"], "3pt", admin)

    history = await games.player_games(as_user("mom", "parent"), "pat")
    assert history[0]["gamePlayerId"] == entry["id"]
    assert history[0]["stats"][0]["statType"] == "3pt"

    with pytest.raises(Forbidden):
        await games.player_games(as_user("sam"), "pat")


async def test_manual_parent_link_lists_the_game(seed, roster, games, admin, as_user):
    await seed.account("bea", role="parent")
    kid = await seed.manual("Kid", parent_account_id="bea")
    game = await seed.game()
    await seed.game()
    await roster.add_to_roster(game.id, ManualRef(kid.id), admin)

    mine = await games.list_my_games(as_user("bea", "parent"))

    assert [g["id"] for g in mine] == [game.id]
