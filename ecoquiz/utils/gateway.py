"""
Client side of the quiz API.

Every call is a single request: no retries, no local queue. Failures surface
as GatewayError and the caller decides what to tell the user.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional
from urllib.parse import quote

import httpx

from ecoquiz.config import settings

logger = logging.getLogger(__name__)

AGGREGATE_PATHS: Dict[str, str] = {
    "overview": "/api/analytics/overview",
    "demographics": "/api/analytics/demographics",
    "questions": "/api/analytics/questions",
    "recent": "/api/analytics/recent",
    "reasons": "/api/analytics/reasons",
    "trend": "/api/analytics/trend",
    "simple": "/api/stats/simple",
    "question-details": "/api/stats/questions",
    "session-responses": "/api/quiz/session/{session_id}/responses",
}


class GatewayError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class QuizGateway:
    def __init__(self, base_url: Optional[str] = None, client: Optional[httpx.Client] = None,
                 token: Optional[str] = None):
        self._owns_client = client is None
        self.client = client or httpx.Client(base_url=base_url or settings.API_BASE_URL)
        self.token = token

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "QuizGateway":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            resp = self.client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise GatewayError(f"Request failed: {e}") from e

        if resp.status_code >= 400:
            try:
                body = resp.json()
            except ValueError:
                body = None
            # error bodies from proxies are not always JSON objects
            detail = body.get("detail") if isinstance(body, dict) else None
            message = detail if isinstance(detail, str) else resp.reason_phrase
            logger.warning("%s %s -> %s %s", method, path, resp.status_code, message)
            raise GatewayError(message, status_code=resp.status_code)

        if "json" in resp.headers.get("content-type", ""):
            try:
                return resp.json()
            except ValueError as e:
                raise GatewayError(f"Invalid JSON from {path}", status_code=resp.status_code) from e
        return resp.text

    # ---- writes -------------------------------------------------------
    def start_session(self, session_id: str, age: int, gender: str, total_questions: int) -> Dict[str, Any]:
        return self._request("POST", "/api/quiz/start", json={
            "sessionId": session_id,
            "age": age,
            "gender": gender,
            "totalQuestions": total_questions,
        })

    def record_response(self, session_id: str, question_number: int, question_id: int,
                        question_text: str, answer: str, reasons: Iterable[str]) -> Dict[str, Any]:
        return self._request("POST", "/api/quiz/response", json={
            "sessionId": session_id,
            "questionNumber": question_number,
            "questionId": question_id,
            "questionText": question_text,
            "answer": answer,
            "reasons": list(reasons),
        })

    def complete_session(self, session_id: str) -> Dict[str, Any]:
        return self._request("POST", "/api/quiz/complete", json={"sessionId": session_id})

    # ---- reads --------------------------------------------------------
    def fetch_aggregate(self, kind: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        kind: one of AGGREGATE_PATHS. Analytics kinds need a token.
        For "session-responses" pass {"session_id": ...}.
        """
        if kind not in AGGREGATE_PATHS:
            raise ValueError(f"Unknown aggregate {kind!r}, expected one of {sorted(AGGREGATE_PATHS)}")
        params = dict(params or {})
        path = AGGREGATE_PATHS[kind]
        if "{session_id}" in path:
            try:
                path = path.format(session_id=quote(str(params.pop("session_id")), safe=""))
            except KeyError:
                raise ValueError("session-responses needs params['session_id']")
        return self._request("GET", path, params=params or None)

    def login(self, email: str, password: str) -> str:
        data = self._request("POST", "/api/auth/token", data={"username": email, "password": password})
        self.token = data["access_token"]
        return self.token
