from __future__ import annotations

import os
import sys

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from app import app as flask_app
from models import ROLE_ADMIN
from state import load_state
from storage import MemoryStorage


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def session_data():
    return {}


@pytest.fixture
def make_state(storage, session_data):
    """Build a fresh AppState, the way each request does"""
    def _make(hash_passwords=False, registration_role=ROLE_ADMIN):
        return load_state(storage, session_data, hash_passwords=hash_passwords,
                          registration_role=registration_role)
    return _make


@pytest.fixture
def client(storage):
    flask_app.config.update(TESTING=True, STORAGE=storage, HASH_PASSWORDS=False,
                            REGISTRATION_ROLE=ROLE_ADMIN)
    with flask_app.test_client() as client:
        yield client
