import copy
from datetime import datetime, timezone

import pytest

from app.routes import quiz as quiz_routes
from conftest import DOCUMENT_ID, OTHER_USER_ID, QUIZ_ID, USER_ID

CORRECT = ["A", "B", "C", "D", "A"]


class FakeQuizStore:
    """In-memory quizzes with the same completion guard as complete_quiz."""

    def __init__(self, quizzes):
        self.quizzes = {quiz["id"]: quiz for quiz in quizzes}

    def get_quiz_by_id(self, conn, quiz_id):
        quiz = self.quizzes.get(quiz_id)
        return copy.deepcopy(quiz) if quiz else None

    def get_quizzes_by_document(self, conn, user_id, document_id):
        return [q for q in self.quizzes.values()
                if q["userId"] == user_id and q["documentId"] == document_id]

    def complete_quiz(self, conn, quiz_id, user_id, user_answers, score):
        quiz = self.quizzes.get(quiz_id)
        if quiz is None or quiz["userId"] != user_id or quiz["completedAt"] is not None:
            return None
        quiz.update(userAnswers=user_answers, score=score, completedAt=datetime.now(timezone.utc))
        return copy.deepcopy(quiz)

    def delete_quiz(self, conn, quiz_id, user_id):
        return self.quizzes.pop(quiz_id, None) is not None


def make_quiz(user_id=USER_ID, **overrides):
    quiz = {
        "id": QUIZ_ID,
        "userId": user_id,
        "documentId": DOCUMENT_ID,
        "title": "Cell Biology Quiz",
        "questions": [
            {"question": f"Question {i + 1}", "options": ["A", "B", "C", "D"], "correctAnswer": answer}
            for i, answer in enumerate(CORRECT)
        ],
        "totalQuestions": 5,
        "userAnswers": [],
        "score": 0,
        "completedAt": None,
        "createdAt": None,
        "document": {"id": DOCUMENT_ID, "title": "Cell Biology", "fileName": "cells.pdf"},
    }
    quiz.update(overrides)
    return quiz


@pytest.fixture
def store(monkeypatch):
    store = FakeQuizStore([make_quiz()])
    for name in ("get_quiz_by_id", "get_quizzes_by_document", "complete_quiz", "delete_quiz"):
        monkeypatch.setattr(quiz_routes, name, getattr(store, name))
    return store


def _submit(client, selected, quiz_id=QUIZ_ID):
    answers = [{"questionIndex": i, "selectedAnswer": a} for i, a in enumerate(selected)]
    return client.post(f"/api/quizzes/{quiz_id}/submit", json={"answers": answers})


def test_submit_all_correct(client, store):
    response = _submit(client, CORRECT)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["score"] == 100
    assert body["data"]["correctCount"] == 5
    assert body["data"]["isComplete"] is True
    assert store.quizzes[QUIZ_ID]["completedAt"] is not None


def test_submit_three_right_two_wrong(client, store):
    response = _submit(client, ["A", "B", "C", "A", "B"])
    assert response.json()["data"]["score"] == 60
    assert response.json()["data"]["correctCount"] == 3


def test_second_submission_is_rejected(client, store):
    assert _submit(client, CORRECT).status_code == 200
    first_state = copy.deepcopy(store.quizzes[QUIZ_ID])

    response = _submit(client, ["D", "D", "D", "D", "D"])
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Quiz already completed", "statusCode": 400}
    assert store.quizzes[QUIZ_ID] == first_state


def test_concurrent_completion_is_rejected(client, store, monkeypatch):
    # Simulates another request completing the quiz between the read and the write
    monkeypatch.setattr(quiz_routes, "complete_quiz", lambda *args: None)
    response = _submit(client, CORRECT)
    assert response.status_code == 400
    assert response.json()["error"] == "Quiz already completed"


def test_out_of_range_index_does_not_count(client, store):
    response = client.post(
        f"/api/quizzes/{QUIZ_ID}/submit",
        json={"answers": [{"questionIndex": 99, "selectedAnswer": "A"},
                          {"questionIndex": 0, "selectedAnswer": "A"}]},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["correctCount"] == 1
    assert data["score"] == 20
    assert data["answeredCount"] == 1
    assert data["isComplete"] is False


def test_answers_must_be_a_list(client, store):
    response = client.post(f"/api/quizzes/{QUIZ_ID}/submit", json={"answers": "A,B,C"})
    assert response.status_code == 400
    assert response.json()["error"] == "Please provide answers array"


def test_invalid_quiz_id(client, store):
    response = _submit(client, CORRECT, quiz_id="not-an-id")
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid quiz ID"


def test_unknown_quiz(client, store):
    response = client.get("/api/quizzes/11111111-2222-4333-8444-555555555555")
    assert response.status_code == 404
    assert response.json()["error"] == "Quiz not found"


def test_non_owner_cannot_submit_or_fetch(client, store):
    store.quizzes[QUIZ_ID]["userId"] = OTHER_USER_ID
    assert _submit(client, CORRECT).status_code == 403
    response = client.get(f"/api/quizzes/{QUIZ_ID}")
    assert response.status_code == 403
    assert response.json()["error"] == "Unauthorized access to quiz"


def test_results_require_completion(client, store):
    response = client.get(f"/api/quizzes/{QUIZ_ID}/results")
    assert response.status_code == 400
    assert response.json()["error"] == "Quiz not completed yet"

    _submit(client, ["A", "B"])
    response = client.get(f"/api/quizzes/{QUIZ_ID}/results")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["quiz"]["score"] == 40
    assert [r["isCorrect"] for r in data["results"]] == [True, True, False, False, False]
    assert data["results"][2]["selectedAnswer"] is None


def test_list_quizzes_for_document(client, store):
    response = client.get(f"/api/quizzes/doc/{DOCUMENT_ID}")
    assert response.status_code == 200
    assert response.json()["count"] == 1


def test_delete_quiz(client, store):
    response = client.delete(f"/api/quizzes/{QUIZ_ID}")
    assert response.status_code == 200
    assert QUIZ_ID not in store.quizzes
