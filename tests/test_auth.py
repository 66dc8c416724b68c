from datetime import timedelta

from app.auth.utils import decode_access_token
from conftest import QUIZ_ID, USER_ID, make_token


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


def test_token_roundtrip():
    token = make_token(USER_ID, email="student@example.com")
    payload = decode_access_token(token)
    assert payload["sub"] == USER_ID
    assert payload["email"] == "student@example.com"


def test_expired_or_tampered_tokens_decode_to_none():
    expired = make_token(USER_ID, expires_in=timedelta(seconds=-10))
    assert decode_access_token(expired) is None
    assert decode_access_token("not.a.token") is None


def test_missing_token_is_rejected(anonymous_client):
    response = anonymous_client.get(f"/api/quizzes/{QUIZ_ID}")
    assert response.status_code == 401
    assert response.json()["error"] == "Not authorized, no token"


def test_invalid_token_is_rejected(anonymous_client):
    response = anonymous_client.get(f"/api/quizzes/{QUIZ_ID}", headers=_auth("garbage"))
    assert response.status_code == 401
    assert response.json()["error"] == "Not authorized, token failed"


def test_token_subject_must_be_a_user_id(anonymous_client):
    token = make_token("not-a-uuid")
    response = anonymous_client.get("/api/documents", headers=_auth(token))
    assert response.status_code == 401


def test_valid_token_reaches_the_route(anonymous_client, monkeypatch):
    from app.routes import documents as document_routes

    monkeypatch.setattr(document_routes, "get_documents_by_user", lambda conn, user_id: [{"userId": user_id}])
    token = make_token(USER_ID)

    response = anonymous_client.get("/api/documents", headers=_auth(token))

    assert response.status_code == 200
    assert response.json()["data"] == [{"userId": USER_ID}]


def test_health_check_needs_no_token(anonymous_client):
    response = anonymous_client.get("/")
    assert response.status_code == 200
    assert response.json()["success"] is True
