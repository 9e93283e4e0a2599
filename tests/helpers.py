"""Request helpers shared by the API tests."""
from ecoquiz.utils.catalog import load_catalog

ADMIN_EMAIL = "admin@ecoquiz.ch"
ADMIN_PASSWORD = "geheim-123"


def start_session(client, session_id, age=30, gender="weiblich", total=10):
    resp = client.post("/api/quiz/start", json={
        "sessionId": session_id, "age": age, "gender": gender, "totalQuestions": total,
    })
    assert resp.status_code == 200, resp.text
    return resp.json()


def post_response(client, session_id, number, answer, reasons=(), question_id=None):
    catalog = load_catalog()
    q = catalog[(question_id or number) - 1]
    return client.post("/api/quiz/response", json={
        "sessionId": session_id,
        "questionNumber": number,
        "questionId": q.id,
        "questionText": q.text,
        "answer": answer,
        "reasons": list(reasons),
    })


def play_session(client, session_id, answers, age=30, gender="weiblich", complete=True, reasons=None):
    """Start a session and answer len(answers) questions in catalog order."""
    start_session(client, session_id, age=age, gender=gender)
    for i, answer in enumerate(answers, start=1):
        picked = reasons(i, answer) if reasons else ()
        assert post_response(client, session_id, i, answer, picked).status_code == 200
    if complete:
        assert client.post("/api/quiz/complete", json={"sessionId": session_id}).status_code == 200
