import random

import httpx
import pytest

from ecoquiz.utils.gateway import GatewayError, QuizGateway
from ecoquiz.utils.quiz_engine import QuizMachine, QuizState

from helpers import ADMIN_EMAIL, ADMIN_PASSWORD


@pytest.fixture
def gateway(client):
    return QuizGateway(client=client)


def test_start_record_complete_roundtrip(gateway, client):
    created = gateway.start_session("g-1", 33, "divers", 10)
    assert created["sessionId"] == "g-1"

    stored = gateway.record_response("g-1", 1, 4, "Heizung?", "no", ["schlechte Isolation"])
    assert stored["reasons"] == ["schlechte Isolation"]

    assert gateway.complete_session("g-1") == {"success": True}
    rows = gateway.fetch_aggregate("session-responses", {"session_id": "g-1"})
    assert [r["questionId"] for r in rows] == [4]


def test_http_errors_become_gateway_errors(gateway):
    with pytest.raises(GatewayError) as e:
        gateway.start_session("g-1", 12, "divers", 10)
    assert e.value.status_code == 400
    assert str(e.value) == "Invalid session data"


def test_transport_errors_become_gateway_errors():
    def boom(request):
        raise httpx.ConnectError("offline", request=request)

    gw = QuizGateway(client=httpx.Client(transport=httpx.MockTransport(boom), base_url="http://quiz"))
    with pytest.raises(GatewayError) as e:
        gw.complete_session("x")
    assert e.value.status_code is None


def test_protected_aggregates_need_login(gateway, admin_headers):
    with pytest.raises(GatewayError) as e:
        gateway.fetch_aggregate("overview")
    assert e.value.status_code == 401

    gateway.login(ADMIN_EMAIL, ADMIN_PASSWORD)
    assert gateway.fetch_aggregate("overview")["totalParticipants"] == 0
    assert gateway.fetch_aggregate("trend", {"days": 3}) == []


def test_public_aggregates(gateway):
    assert gateway.fetch_aggregate("simple")["totalParticipants"] == 0
    assert gateway.fetch_aggregate("question-details") == {"questionStats": [], "reasonStats": []}


def test_unknown_aggregate(gateway):
    with pytest.raises(ValueError):
        gateway.fetch_aggregate("everything")
    with pytest.raises(ValueError):
        gateway.fetch_aggregate("session-responses")


def test_seven_of_ten_scenario_end_to_end(gateway, admin_headers):
    """Machine -> API -> aggregates: 7 yes, 3 no gives a completed session scored 70."""
    machine = QuizMachine(gateway, rng=random.Random(42), notify=lambda *_: None)
    session = machine.start(28, "weiblich")
    for answer in ["yes"] * 7 + ["no"] * 3:
        machine.answer(answer)
        machine.submit_reasons(machine.reason_options()[:1])

    assert machine.state == QuizState.RESULTS
    assert machine.score() == 70

    stored = gateway.fetch_aggregate("session-responses", {"session_id": session.session_id})
    assert [r["questionNumber"] for r in stored] == list(range(1, 11))
    assert [r["questionId"] for r in stored] == [q.id for q in session.questions]

    gateway.login(ADMIN_EMAIL, ADMIN_PASSWORD)
    recent = gateway.fetch_aggregate("recent", {"limit": 5})
    assert recent[0]["sessionId"] == session.session_id
    assert recent[0]["score"] == 70
    assert recent[0]["isCompleted"] is True
    assert recent[0]["completedAt"] is not None


def test_rejected_onboarding_sends_nothing(gateway, client):
    machine = QuizMachine(gateway, notify=lambda *_: None)
    with pytest.raises(ValueError):
        machine.start(15, "weiblich")
    assert machine.state == QuizState.ONBOARDING
    assert gateway.fetch_aggregate("simple")["totalParticipants"] == 0


def _proxy(responses):
    """MockTransport handler answering each path with a canned (status, json) pair."""
    def handle(request):
        status, body = responses[request.url.path]
        return httpx.Response(status, json=body)
    return handle


def test_non_object_error_body_becomes_gateway_error():
    gw = QuizGateway(client=httpx.Client(
        transport=httpx.MockTransport(_proxy({"/api/quiz/complete": (502, ["bad gateway"])})),
        base_url="http://quiz",
    ))
    with pytest.raises(GatewayError) as e:
        gw.complete_session("x")
    assert e.value.status_code == 502
    assert str(e.value) == "Bad Gateway"


def test_quiz_moves_on_when_proxy_rejects_a_response():
    gw = QuizGateway(client=httpx.Client(
        transport=httpx.MockTransport(_proxy({
            "/api/quiz/start": (200, {"sessionId": "x"}),
            "/api/quiz/response": (502, ["bad gateway"]),
        })),
        base_url="http://quiz",
    ))
    notes = []
    machine = QuizMachine(gw, rng=random.Random(1), notify=lambda title, text: notes.append(title))
    machine.start(30, "divers")

    machine.answer("yes")
    assert machine.submit_reasons([]) == QuizState.ANSWERING
    assert machine.question_number == 2
    assert [r.question_number for r in machine.session.responses] == [1]
    assert notes[-1] == "Fehler"


def test_session_id_is_escaped_in_the_path():
    seen = []

    def handle(request):
        seen.append(request.url.raw_path)
        return httpx.Response(200, json=[])

    gw = QuizGateway(client=httpx.Client(transport=httpx.MockTransport(handle), base_url="http://quiz"))
    assert gw.fetch_aggregate("session-responses", {"session_id": "a/b?c#d"}) == []
    assert seen == [b"/api/quiz/session/a%2Fb%3Fc%23d/responses"]
