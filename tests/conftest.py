"""
Pytest configuration and fixtures for the realty portal test suite.
"""

import os

# Settings are read at import time
os.environ["DB_URL"] = "sqlite://"
os.environ["AI_API_KEY"] = ""
os.environ["TELEGRAM_BOT_TOKEN"] = ""

from unittest.mock import MagicMock

import pytest

from realty_portal.database.connection import SessionLocal, drop_all_tables, init_db
from realty_portal.scrapers.rate_limiter import TokenBucket


def make_response(text="", status_code=200, json_data=None):
    """Build a stand-in for requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    if json_data is not None:
        response.json.return_value = json_data
    else:
        response.json.side_effect = ValueError("No JSON")
    return response


@pytest.fixture
def db_session():
    """Fresh in-memory database for each test."""
    drop_all_tables()
    init_db()

    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def fast_limiter():
    """Token bucket large enough that tests never wait."""
    return TokenBucket(60000, capacity=1000)


@pytest.fixture
def html_session():
    """Build a requests session mock that serves the given bodies in order."""
    def factory(*bodies, status_code=200):
        session = MagicMock()
        session.get.side_effect = [make_response(body, status_code) for body in bodies]
        return session
    return factory
