"""Conversion between asyncpg database rows and Pydantic domain models.

Centralizes all mapping logic between the DB schema and the models, plus the
opaque pagination token used by round listings.
"""

import base64
import datetime as dt
import json
from typing import Any, List, Optional, Tuple
from uuid import UUID

from models import Course, GroupIntent, HoleScore, Round, User
from database.exceptions import InvalidPageToken


def _json_value(value: Any) -> Any:
    """JSONB comes back decoded when the pool codec is set, as text otherwise."""
    if isinstance(value, str):
        return json.loads(value)
    return value


def _str_or_none(value) -> Optional[str]:
    return str(value) if value is not None else None


# ================================================================
# Row -> Model (reads)
# ================================================================

def hole_scores_from_json(value) -> List[HoleScore]:
    """users.rounds.holes JSONB -> HoleScore list, ordered by hole number."""
    items = _json_value(value) or []
    return sorted(
        [HoleScore(**item) for item in items],
        key=lambda hs: hs.hole_number,
    )


def round_from_row(row) -> Round:
    """users.rounds row -> Round model."""
    differential = row["score_differential"]
    return Round(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        course_id=str(row["course_id"]),
        course_name=row["course_name"],
        tee_color=row["tee_color"],
        number_of_holes=row["number_of_holes"],
        date=row["round_date"],
        holes=hole_scores_from_json(row["holes"]),
        score_differential=float(differential) if differential is not None else None,
        players=[str(p) for p in (row["players"] or [])],
        group_id=_str_or_none(row["group_id"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def user_from_row(row) -> User:
    """users.users row -> User model."""
    handicap = row["handicap_index"]
    return User(
        id=str(row["id"]),
        first_name=row["first_name"],
        last_name=row["last_name"],
        email=row["email"],
        handicap_index=float(handicap) if handicap is not None else 54.0,
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def course_from_row(row) -> Course:
    """courses.courses row -> Course model (ratings are JSONB keyed by tee)."""
    return Course(
        id=str(row["id"]),
        name=row["name"],
        location=row["location"],
        course_rating={k: float(v) for k, v in (_json_value(row["course_rating"]) or {}).items()},
        slope_rating={k: float(v) for k, v in (_json_value(row["slope_rating"]) or {}).items()},
    )


def group_intent_from_row(row) -> GroupIntent:
    """users.round_group_intents row -> GroupIntent model."""
    return GroupIntent(
        group_id=str(row["group_id"]),
        requested_by=str(row["requested_by"]),
        operation=row["operation"],
        player_ids=[str(p) for p in (row["player_ids"] or [])],
        created_at=row["created_at"],
    )


# ================================================================
# Model -> Row dict (writes)
# ================================================================

def hole_scores_to_json(holes) -> List[dict]:
    """HoleScore list (or plain dicts) -> JSON-ready list for the holes column."""
    return [
        (h if isinstance(h, HoleScore) else HoleScore(**h)).model_dump()
        for h in holes
    ]


def round_to_row(round_: Round) -> dict:
    """Round -> dict for users.rounds INSERT."""
    return {
        "user_id": UUID(round_.user_id),
        "course_id": UUID(round_.course_id),
        "course_name": round_.course_name,
        "tee_color": round_.tee_color,
        "number_of_holes": round_.number_of_holes,
        "round_date": round_.date,
        "holes": hole_scores_to_json(round_.holes),
        "total_score": round_.total_score,
        "total_par": round_.total_par,
        "score_differential": round_.score_differential,
        "players": [UUID(p) for p in round_.players],
        "group_id": UUID(round_.group_id) if round_.group_id else None,
    }


def course_to_row(course: Course) -> dict:
    """Course -> dict for courses.courses INSERT."""
    return {
        "name": course.name,
        "location": course.location,
        "course_rating": course.course_rating,
        "slope_rating": course.slope_rating,
    }


# ================================================================
# Pagination tokens
# ================================================================

def encode_page_token(round_: Round) -> str:
    """Keyset cursor after ``round_`` (date DESC, id DESC) as base64 JSON."""
    payload = {"date": round_.date.isoformat(), "id": round_.id}
    return base64.urlsafe_b64encode(json.dumps(payload).encode()).decode()


def decode_page_token(token: str) -> Tuple[dt.date, str]:
    """Inverse of encode_page_token. Raises InvalidPageToken."""
    try:
        payload = json.loads(base64.urlsafe_b64decode(token.encode()).decode())
        return dt.date.fromisoformat(payload["date"]), str(payload["id"])
    except (ValueError, KeyError, TypeError) as e:
        raise InvalidPageToken(f"Invalid page token: {token!r}") from e
