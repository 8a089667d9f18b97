import datetime as dt
import json

import pytest
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

from conftest import make_holes, make_round
from database.converters import (
    course_from_row,
    decode_page_token,
    encode_page_token,
    group_intent_from_row,
    hole_scores_from_json,
    hole_scores_to_json,
    round_from_row,
    round_to_row,
    user_from_row,
)
from database.db_manager import DatabaseManager
from database.exceptions import InvalidPageToken, NotFoundError
from database.memory import (
    InMemoryCourseRepository,
    InMemoryRoundRepository,
    InMemoryUserRepository,
)
from database.repositories.course_repo import CourseRepositoryDB
from database.repositories.group_intent_repo import GroupIntentRepositoryDB
from database.repositories.round_repo import RoundRepositoryDB
from database.repositories.user_repo import UserRepositoryDB
from models import Course, GroupIntent, User


# ================================================================
# Fixtures
# ================================================================

@pytest.fixture
def mock_pool():
    pool = MagicMock()
    conn = AsyncMock()
    pool.acquire.return_value.__aenter__.return_value = conn
    return pool, conn


NOW = dt.datetime(2024, 6, 1, 12, 0, tzinfo=dt.timezone.utc)


def _round_row(round_id=None, *, user_id=None, round_date=dt.date(2024, 6, 1),
               holes=None, players=(), group_id=None):
    """Helper: users.rounds row dict."""
    holes = hole_scores_to_json(make_holes(5)) if holes is None else holes
    return {
        "id": round_id or uuid4(),
        "user_id": user_id or uuid4(),
        "course_id": uuid4(),
        "course_name": "Pine Valley",
        "tee_color": "white",
        "number_of_holes": 18,
        "round_date": round_date,
        "holes": holes,
        "total_score": 90,
        "total_par": 72,
        "score_differential": 18.0,
        "players": list(players),
        "group_id": group_id,
        "created_at": NOW,
        "updated_at": NOW,
    }


# ================================================================
# Converters
# ================================================================

def test_round_converter_maps_ids_and_holes():
    ben = uuid4()
    group_id = uuid4()
    row = _round_row(players=[ben], group_id=group_id)
    r = round_from_row(row)

    assert r.id == str(row["id"])
    assert r.players == [str(ben)]
    assert r.group_id == str(group_id)
    assert r.total_score == 90
    assert r.date == dt.date(2024, 6, 1)


def test_round_converter_decodes_text_jsonb_and_sorts_holes():
    holes = list(reversed(hole_scores_to_json(make_holes(4, number_of_holes=9))))
    row = _round_row(holes=json.dumps(holes))
    row["number_of_holes"] = 9

    r = round_from_row(row)
    assert [h.hole_number for h in r.holes] == list(range(1, 10))
    assert r.group_id is None


def test_round_to_row_uses_uuids_and_derived_totals():
    user_id, ben, course_id, group_id = (str(uuid4()) for _ in range(4))
    row = round_to_row(make_round(user_id, course_id, players=[ben], group_id=group_id, strokes=6))

    assert row["user_id"] == UUID(user_id)
    assert row["players"] == [UUID(ben)]
    assert row["group_id"] == UUID(group_id)
    assert row["total_score"] == 108
    assert row["total_par"] == 72
    assert row["holes"][0] == {
        "hole_number": 1, "par": 4, "strokes": 6, "putts": None,
        "fairway_hit": None, "green_in_regulation": None,
    }


def test_hole_scores_from_json_handles_null():
    assert hole_scores_from_json(None) == []


def test_user_and_course_converters():
    user_id = uuid4()
    user = user_from_row({
        "id": user_id, "first_name": "Ann", "last_name": "Able", "email": "ann@example.com",
        "handicap_index": 12.4, "created_at": NOW, "updated_at": NOW,
    })
    assert user.id == str(user_id)
    assert user.handicap_index == 12.4

    course = course_from_row({
        "id": uuid4(), "name": "Links", "location": None,
        "course_rating": '{"white": 70.1}', "slope_rating": {"white": 118},
    })
    assert course.get_ratings("white", 18) == (70.1, 118.0)


def test_group_intent_converter():
    group_id, ann = uuid4(), uuid4()
    intent = group_intent_from_row({
        "group_id": group_id, "requested_by": ann, "operation": "recreate",
        "player_ids": [ann], "created_at": NOW,
    })
    assert intent.group_id == str(group_id)
    assert intent.player_ids == [str(ann)]
    assert intent.operation == "recreate"


def test_page_token_roundtrip_and_garbage():
    r = make_round("u1", "c1", date=dt.date(2024, 5, 2)).model_copy(update={"id": "r-1"})
    assert decode_page_token(encode_page_token(r)) == (dt.date(2024, 5, 2), "r-1")

    with pytest.raises(InvalidPageToken):
        decode_page_token("not-a-token")
    with pytest.raises(ValueError):   # also a ValueError for callers
        decode_page_token("e30=")        # "{}"


# ================================================================
# RoundRepositoryDB
# ================================================================

@pytest.mark.asyncio
async def test_round_repo_get_round(mock_pool):
    pool, conn = mock_pool
    repo = RoundRepositoryDB(pool)

    round_id = uuid4()
    conn.fetchrow.return_value = _round_row(round_id)
    r = await repo.get_round(str(round_id))
    assert r.id == str(round_id)
    assert conn.fetchrow.call_args.args[1] == round_id


@pytest.mark.asyncio
async def test_round_repo_get_round_not_found(mock_pool):
    pool, conn = mock_pool
    conn.fetchrow.return_value = None
    assert await RoundRepositoryDB(pool).get_round(str(uuid4())) is None


@pytest.mark.asyncio
async def test_round_repo_query_filters_and_paginates(mock_pool):
    pool, conn = mock_pool
    repo = RoundRepositoryDB(pool)
    user_id, course_id = uuid4(), uuid4()
    conn.fetch.return_value = [
        _round_row(user_id=user_id, round_date=dt.date(2024, 6, d)) for d in (3, 2, 1)
    ]

    page = await repo.query_rounds_for_user(
        str(user_id), date=dt.date(2024, 6, 1), course_id=str(course_id), limit=2
    )

    query, *values = conn.fetch.call_args.args
    assert "round_date = $2" in query
    assert "course_id = $3" in query
    assert "ORDER BY round_date DESC, id DESC LIMIT $4" in query
    assert values == [user_id, dt.date(2024, 6, 1), course_id, 3]

    assert len(page.rounds) == 2
    assert page.has_more
    assert decode_page_token(page.next_token) == (dt.date(2024, 6, 2), page.rounds[-1].id)


@pytest.mark.asyncio
async def test_round_repo_query_continues_after_token(mock_pool):
    pool, conn = mock_pool
    repo = RoundRepositoryDB(pool)
    after_id = str(uuid4())
    token = encode_page_token(
        make_round("u1", "c1", date=dt.date(2024, 6, 2)).model_copy(update={"id": after_id})
    )
    conn.fetch.return_value = [_round_row()]

    page = await repo.query_rounds_for_user(str(uuid4()), limit=5, next_token=token)

    query, *values = conn.fetch.call_args.args
    assert "(round_date, id) < ($2, $3)" in query
    assert values[1:] == [dt.date(2024, 6, 2), UUID(after_id), 6]
    assert page.next_token is None


@pytest.mark.asyncio
async def test_round_repo_create_round(mock_pool):
    pool, conn = mock_pool
    repo = RoundRepositoryDB(pool)
    user_id, course_id = str(uuid4()), str(uuid4())
    conn.fetchrow.return_value = _round_row(user_id=UUID(user_id))

    saved = await repo.create_round(make_round(user_id, course_id))

    args = conn.fetchrow.call_args.args
    assert isinstance(args[1], UUID)          # id generated client side
    assert args[2] == UUID(user_id)
    assert args[9:11] == (90, 72)             # totals from the holes
    assert saved.user_id == user_id


@pytest.mark.asyncio
async def test_round_repo_update_holes_rewrites_totals(mock_pool):
    pool, conn = mock_pool
    repo = RoundRepositoryDB(pool)
    round_id = uuid4()
    conn.fetchrow.return_value = _round_row(round_id)

    await repo.update_round(
        str(round_id), holes=make_holes(4), score_differential=0.0, course_name="ignored"
    )

    query, *values = conn.fetchrow.call_args.args
    assert "course_name" not in query
    assert "total_score = $4" in query and "total_par = $5" in query
    assert values[0] == round_id
    assert values[3:] == [72, 72]


@pytest.mark.asyncio
async def test_round_repo_update_players_and_group(mock_pool):
    pool, conn = mock_pool
    repo = RoundRepositoryDB(pool)
    ben = str(uuid4())
    conn.fetchrow.return_value = None

    result = await repo.update_round(str(uuid4()), players=[ben], group_id=None)

    _, *values = conn.fetchrow.call_args.args
    assert values[1:] == [[UUID(ben)], None]
    assert result is None


@pytest.mark.asyncio
async def test_round_repo_delete_round(mock_pool):
    pool, conn = mock_pool
    repo = RoundRepositoryDB(pool)

    conn.execute.return_value = "DELETE 1"
    assert await repo.delete_round(str(uuid4())) is True
    conn.execute.return_value = "DELETE 0"
    assert await repo.delete_round(str(uuid4())) is False


# ================================================================
# UserRepositoryDB
# ================================================================

@pytest.mark.asyncio
async def test_user_repo_update_handicap(mock_pool):
    pool, conn = mock_pool
    repo = UserRepositoryDB(pool)
    user_id = uuid4()

    conn.execute.return_value = "UPDATE 1"
    await repo.update_handicap(str(user_id), 12.3)
    assert conn.execute.call_args.args[1:] == (user_id, 12.3)

    conn.execute.return_value = "UPDATE 0"
    with pytest.raises(NotFoundError):
        await repo.update_handicap(str(user_id), 12.3)


@pytest.mark.asyncio
async def test_user_repo_get_users_batch(mock_pool):
    pool, conn = mock_pool
    repo = UserRepositoryDB(pool)

    assert await repo.get_users([]) == []
    conn.fetch.assert_not_called()

    ann = uuid4()
    conn.fetch.return_value = [{
        "id": ann, "first_name": "Ann", "last_name": None, "email": None,
        "handicap_index": None, "created_at": NOW, "updated_at": NOW,
    }]
    users = await repo.get_users([str(ann), str(uuid4())])
    assert [u.id for u in users] == [str(ann)]
    assert users[0].handicap_index == 54.0


@pytest.mark.asyncio
async def test_user_repo_search_users(mock_pool):
    pool, conn = mock_pool
    conn.fetch.return_value = [{
        "id": uuid4(), "first_name": "Ann", "last_name": "Golfer", "email": None,
        "handicap_index": 20.1, "created_at": NOW, "updated_at": NOW,
    }]

    users = await UserRepositoryDB(pool).search_users("  ANN ", limit=5)
    assert [u.first_name for u in users] == ["Ann"]
    sql, pattern, limit = conn.fetch.call_args.args
    assert (pattern, limit) == ("ann", 5)
    assert "lower(email)" in sql


@pytest.mark.asyncio
async def test_user_repo_rejects_malformed_id(mock_pool):
    pool, conn = mock_pool
    with pytest.raises(ValueError):
        await UserRepositoryDB(pool).get_user("not-a-uuid")
    conn.fetchrow.assert_not_called()


# ================================================================
# CourseRepositoryDB / GroupIntentRepositoryDB
# ================================================================

@pytest.mark.asyncio
async def test_course_repo_get_course(mock_pool):
    pool, conn = mock_pool
    course_id = uuid4()
    conn.fetchrow.return_value = {
        "id": course_id, "name": "Links", "location": "Coast",
        "course_rating": {"blue": 73.2}, "slope_rating": {"blue": 131},
    }
    course = await CourseRepositoryDB(pool).get_course(str(course_id))
    assert course.id == str(course_id)
    assert course.get_ratings("blue", 9) == (36.6, 131.0)

    conn.fetchrow.return_value = None
    assert await CourseRepositoryDB(pool).get_course(str(uuid4())) is None


@pytest.mark.asyncio
async def test_course_repo_search_and_create(mock_pool):
    pool, conn = mock_pool
    repo = CourseRepositoryDB(pool)
    row = {
        "id": uuid4(), "name": "Links", "location": "Coast",
        "course_rating": {"blue": 73.2}, "slope_rating": {"blue": 131},
    }

    conn.fetch.return_value = [row]
    found = await repo.search_courses(" coast ")
    assert [c.name for c in found] == ["Links"]
    assert conn.fetch.call_args.args[1:] == ("%coast%", 20)

    conn.fetchrow.return_value = row
    created = await repo.create_course(Course(
        name="Links", location="Coast",
        course_rating={"blue": 73.2}, slope_rating={"blue": 131},
    ))
    assert created.id == str(row["id"])
    assert conn.fetchrow.call_args.args[1:] == ("Links", "Coast", {"blue": 73.2}, {"blue": 131.0})


@pytest.mark.asyncio
async def test_group_intent_repo(mock_pool):
    pool, conn = mock_pool
    repo = GroupIntentRepositoryDB(pool)
    group_id, ann, ben = (str(uuid4()) for _ in range(3))
    conn.fetchrow.return_value = {
        "group_id": UUID(group_id), "requested_by": UUID(ann), "operation": "create",
        "player_ids": [UUID(ann), UUID(ben)], "created_at": NOW,
    }

    saved = await repo.create_intent(GroupIntent(group_id=group_id, requested_by=ann, player_ids=[ann, ben]))
    assert saved.created_at == NOW
    assert conn.fetchrow.call_args.args[4] == [UUID(ann), UUID(ben)]

    conn.execute.return_value = "DELETE 1"
    assert await repo.delete_intent(group_id) is True

    conn.fetch.return_value = []
    assert await repo.list_stale_intents(NOW) == []
    assert conn.fetch.call_args.args[1] == NOW


# ================================================================
# DatabaseManager
# ================================================================

@pytest.mark.asyncio
async def test_database_manager_applies_schema(mock_pool):
    pool, conn = mock_pool
    conn.transaction = MagicMock()
    conn.transaction.return_value.__aenter__.return_value = AsyncMock()

    manager = DatabaseManager(pool)
    await manager.initialize_schema()

    sql = conn.execute.call_args.args[0]
    assert "CREATE TABLE IF NOT EXISTS users.rounds" in sql
    assert "round_group_intents" in sql


# ================================================================
# In-memory store pagination
# ================================================================

@pytest.mark.asyncio
async def test_memory_pagination_walks_all_rounds_newest_first():
    repo = InMemoryRoundRepository()
    for day in range(1, 6):
        await repo.create_round(make_round("u1", "c1", date=dt.date(2024, 6, day)))
    await repo.create_round(make_round("u2", "c1"))

    seen, token = [], None
    while True:
        page = await repo.query_rounds_for_user("u1", limit=2, next_token=token)
        seen.extend(r.date.day for r in page.rounds)
        token = page.next_token
        if not page.has_more:
            break

    assert seen == [5, 4, 3, 2, 1]

    with pytest.raises(InvalidPageToken):
        await repo.query_rounds_for_user("u1", next_token="%%%")


# ================================================================
# In-memory search
# ================================================================

@pytest.mark.asyncio
async def test_memory_user_search_puts_name_prefix_first():
    repo = InMemoryUserRepository([
        User(id="u1", first_name="Dan", last_name="Jordan"),
        User(id="u2", first_name="Dana", last_name="Smith"),
        User(id="u3", first_name="Ed", email="dan@club.test"),
        User(id="u4", first_name="Ann"),
    ])

    found = await repo.search_users("DAN")
    assert [u.id for u in found] == ["u1", "u2", "u3"]
    assert [u.id for u in await repo.search_users("dan", limit=1)] == ["u1"]


@pytest.mark.asyncio
async def test_memory_course_search_and_create():
    repo = InMemoryCourseRepository()
    created = await repo.create_course(Course(
        id="ignored", name="Old Course", location="St Andrews",
        course_rating={"white": 72.0}, slope_rating={"white": 113},
    ))
    assert created.id != "ignored"
    assert await repo.get_course(created.id) == created

    assert await repo.search_courses("andrews") == [created]
    assert await repo.search_courses("pebble") == []
