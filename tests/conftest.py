import datetime as dt
from uuid import uuid4

import pytest

from database.memory import InMemoryDatabase
from models import Course, HoleScore, Round, User
from rounds import RoundGroupCoordinator

OUTING_DATE = dt.date(2024, 6, 1)


def make_holes(strokes=5, number_of_holes=18, par=4):
    """Hole results with the same strokes and par on every hole."""
    return [
        HoleScore(hole_number=i, par=par, strokes=strokes)
        for i in range(1, number_of_holes + 1)
    ]


def make_round(user_id, course_id, *, date=OUTING_DATE, players=(), group_id=None,
               strokes=5, differential=None, number_of_holes=18):
    return Round(
        user_id=user_id,
        course_id=course_id,
        course_name="Pine Valley",
        tee_color="white",
        number_of_holes=number_of_holes,
        date=date,
        holes=make_holes(strokes, number_of_holes),
        score_differential=differential,
        players=list(players),
        group_id=group_id,
    )


@pytest.fixture
def user_ids():
    """Ann, Ben, Cat, Dan."""
    return [str(uuid4()) for _ in range(4)]


@pytest.fixture
def course_id():
    return str(uuid4())


@pytest.fixture
def database(user_ids, course_id):
    db = InMemoryDatabase()
    names = [("Ann", "Able"), ("Ben", "Baker"), ("Cat", "Cole"), ("Dan", "Dunn")]
    for user_id, (first, last) in zip(user_ids, names):
        db.users.add_user(User(
            id=user_id,
            first_name=first,
            last_name=last,
            email=f"{first.lower()}@example.com",
        ))
    db.courses.add_course(Course(
        id=course_id,
        name="Pine Valley",
        location="NJ",
        course_rating={"white": 72.0, "blue": 74.0},
        slope_rating={"white": 113, "blue": 130},
    ))
    return db


@pytest.fixture
def coordinator(database):
    return RoundGroupCoordinator.from_database(database)
