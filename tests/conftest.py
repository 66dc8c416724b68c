import os
from datetime import datetime, timedelta, timezone

os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from app.auth.dependencies import get_current_user
from app.auth.utils import jwt_settings
from app.database.connection import get_db
from main import app

USER_ID = "6f1c2a3e-9d7b-4c1e-8a2f-111111111111"
OTHER_USER_ID = "6f1c2a3e-9d7b-4c1e-8a2f-222222222222"
DOCUMENT_ID = "0b6a4c55-2f1e-4b8e-9d3a-333333333333"
QUIZ_ID = "9a8b7c6d-5e4f-4a3b-8c2d-444444444444"


def make_token(subject, email=None, expires_in=timedelta(days=7)):
    """Sign a token the way the issuing auth service does."""
    secret, algorithm = jwt_settings()
    claims = {"sub": str(subject), "exp": datetime.now(timezone.utc) + expires_in}
    if email:
        claims["email"] = email
    return jwt.encode(claims, secret, algorithm=algorithm)


class FakeConnection:
    """Stands in for a pooled connection; route tests patch the query functions."""

    def __init__(self):
        self.rollbacks = 0

    def commit(self):
        pass

    def rollback(self):
        self.rollbacks += 1


@pytest.fixture
def conn():
    return FakeConnection()


@pytest.fixture
def anonymous_client(conn):
    app.dependency_overrides[get_db] = lambda: conn
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def client(conn):
    app.dependency_overrides[get_db] = lambda: conn
    app.dependency_overrides[get_current_user] = lambda: USER_ID
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def ready_document():
    return {
        "id": DOCUMENT_ID,
        "userId": USER_ID,
        "title": "Cell Biology",
        "fileName": "cells.pdf",
        "filePath": "uploads/documents/cells.pdf",
        "fileSize": 1024,
        "status": "ready",
        "extractedText": "Mitochondria are the powerhouse of the cell. Ribosomes build proteins.",
        "lastAccessed": None,
        "createdAt": None,
        "updatedAt": None,
    }
