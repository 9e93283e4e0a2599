from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from ecoquiz import main
from ecoquiz.config import settings
from ecoquiz.models.quiz import QuizSession
from ecoquiz.models.user import User

from helpers import play_session, post_response, start_session


def test_start_creates_session(client):
    body = start_session(client, "1718000000000_abcdefghi", age=45, gender="männlich")
    assert body["sessionId"] == "1718000000000_abcdefghi"
    assert body["age"] == 45
    assert body["gender"] == "männlich"
    assert body["totalQuestions"] == 10
    assert body["completedAt"] is None
    assert "createdAt" in body


def test_start_with_duplicate_session_id_is_400(client):
    start_session(client, "s-1")
    resp = client.post("/api/quiz/start", json={"sessionId": "s-1", "age": 30, "gender": "divers", "totalQuestions": 10})
    assert resp.status_code == 400
    assert resp.json() == {"detail": "Invalid session data"}


def test_start_validation_errors_are_generic_400(client):
    for payload in (
        {"sessionId": "s", "age": 15, "gender": "divers", "totalQuestions": 10},
        {"sessionId": "s", "age": 101, "gender": "divers", "totalQuestions": 10},
        {"sessionId": "s", "age": 30, "gender": "  ", "totalQuestions": 10},
        {"sessionId": "s", "age": 30, "gender": "divers"},
        {},
    ):
        resp = client.post("/api/quiz/start", json=payload)
        assert resp.status_code == 400, payload
        assert resp.json() == {"detail": "Invalid session data"}


def test_response_is_stored(client):
    start_session(client, "s-1")
    resp = post_response(client, "s-1", 1, "yes", ["spart CO₂", "ist günstiger"])
    assert resp.status_code == 200
    body = resp.json()
    assert body["questionNumber"] == 1
    assert body["questionId"] == 1
    assert body["answer"] == "yes"
    assert body["reasons"] == ["spart CO₂", "ist günstiger"]


def test_response_with_empty_reasons(client):
    start_session(client, "s-1")
    resp = post_response(client, "s-1", 1, "no", [])
    assert resp.status_code == 200
    assert resp.json()["reasons"] == []


def test_response_reasons_are_deduplicated(client):
    start_session(client, "s-1")
    resp = post_response(client, "s-1", 1, "no", ["Zeitdruck", "Zeitdruck"])
    assert resp.json()["reasons"] == ["Zeitdruck"]


def test_response_rejections(client):
    start_session(client, "s-1", total=2)
    # unknown session
    assert post_response(client, "nope", 1, "yes").status_code == 400
    # bad answer value
    resp = client.post("/api/quiz/response", json={
        "sessionId": "s-1", "questionNumber": 1, "questionId": 1,
        "questionText": "x", "answer": "maybe", "reasons": [],
    })
    assert resp.status_code == 400
    assert resp.json() == {"detail": "Invalid response data"}
    # unknown question id
    resp = client.post("/api/quiz/response", json={
        "sessionId": "s-1", "questionNumber": 1, "questionId": 99,
        "questionText": "x", "answer": "yes", "reasons": [],
    })
    assert resp.status_code == 400
    # question number beyond totalQuestions
    assert post_response(client, "s-1", 3, "yes", question_id=3).status_code == 400


def test_response_count_never_exceeds_total(client):
    start_session(client, "s-1", total=2)
    assert post_response(client, "s-1", 1, "yes").status_code == 200
    assert post_response(client, "s-1", 2, "yes").status_code == 200
    assert post_response(client, "s-1", 2, "no").status_code == 400


def test_complete_sets_completed_at_once(client, db):
    start_session(client, "s-1")
    resp = client.post("/api/quiz/complete", json={"sessionId": "s-1"})
    assert resp.status_code == 200
    assert resp.json() == {"success": True}

    first = db.query(QuizSession).filter_by(session_id="s-1").one().completed_at
    assert first is not None
    db.expire_all()

    assert client.post("/api/quiz/complete", json={"sessionId": "s-1"}).json() == {"success": True}
    assert db.query(QuizSession).filter_by(session_id="s-1").one().completed_at == first


def test_complete_unknown_session(client):
    assert client.post("/api/quiz/complete", json={"sessionId": "nope"}).status_code == 404


def test_complete_without_session_id_is_400(client):
    resp = client.post("/api/quiz/complete", json={})
    assert resp.status_code == 400
    assert resp.json() == {"detail": "Invalid session ID"}


def test_session_responses_are_ordered(client):
    start_session(client, "s-1")
    post_response(client, "s-1", 2, "no", question_id=5)
    post_response(client, "s-1", 1, "yes", question_id=3)

    resp = client.get("/api/quiz/session/s-1/responses")
    assert resp.status_code == 200
    assert [(r["questionNumber"], r["questionId"]) for r in resp.json()] == [(1, 3), (2, 5)]


def test_session_responses_for_unknown_session_is_empty(client):
    assert client.get("/api/quiz/session/none/responses").json() == []


def test_full_session_through_api(client):
    play_session(client, "s-full", ["yes"] * 7 + ["no"] * 3)
    responses = client.get("/api/quiz/session/s-full/responses").json()
    assert [r["questionNumber"] for r in responses] == list(range(1, 11))


def test_health(client):
    assert client.get("/health").json() == {"ok": True}


class _UnreachableSession:
    def __init__(self, bind):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, statement):
        raise OperationalError("SELECT 1", {}, Exception("could not connect to db.internal:5432"))


def test_health_reports_503_without_driver_details(client, monkeypatch):
    monkeypatch.setattr(main, "Session", _UnreachableSession)
    resp = client.get("/health")
    assert resp.status_code == 503
    assert resp.json() == {"ok": False}
    assert "db.internal" not in resp.text


def test_startup_bootstraps_admin(db, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_EMAIL", "Chef@EcoQuiz.ch")
    monkeypatch.setattr(settings, "ADMIN_PASSWORD", "chef-passwort")
    with TestClient(main.app) as started:
        assert started.get("/health").json() == {"ok": True}
    admin = db.query(User).filter_by(email="chef@ecoquiz.ch").one()
    assert admin.is_admin
