# tests/conftest.py
import os
import sys
from datetime import datetime

# Settings are read at import time, point them at a throwaway database first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["LOG_LEVEL"] = "WARNING"

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "backend")))

import pytest
from fastapi.testclient import TestClient

from database import SessionLocal, drop_db, init_db
from models.tour import Tour, TourStartDate, slugify
from models.users import User
from utils.credentials import set_password
from utils.tokenJWT import create_user_token

DEFAULT_PASSWORD = "pass1234"


@pytest.fixture(autouse=True)
def fresh_schema():
    drop_db()
    init_db()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    from main import app

    with TestClient(app) as c:
        yield c


def make_user(db, email="jonas@example.com", role="user", name="Jonas", password=DEFAULT_PASSWORD, active=True):
    user = User(name=name, email=email, role=role, active=active)
    set_password(user, password, password, is_new=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_tour(
    db,
    name="The Forest Hiker",
    difficulty="easy",
    ratings_average=4.5,
    ratings_quantity=0,
    price=397.0,
    lat=None,
    lng=None,
    start_dates=(),
    duration=5,
):
    tour = Tour(
        name=name,
        slug=slugify(name),
        duration=duration,
        max_group_size=10,
        difficulty=difficulty,
        ratings_average=ratings_average,
        ratings_quantity=ratings_quantity,
        price=price,
        summary=f"Summary of {name}",
        start_lat=lat,
        start_lng=lng,
    )
    tour.start_dates = [
        TourStartDate(start_date=d if isinstance(d, datetime) else datetime.fromisoformat(d))
        for d in start_dates
    ]
    db.add(tour)
    db.commit()
    db.refresh(tour)
    return tour


def auth_header(user):
    return {"Authorization": f"Bearer {create_user_token(user)}"}
