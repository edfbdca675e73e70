from __future__ import annotations

import pytest
import requests

from beachwatch.common.errors import (
    NetworkError,
    RetryExhaustedError,
    UpstreamClientError,
    UpstreamPayloadError,
    UpstreamServerError,
    UpstreamTimeoutError,
)
from beachwatch.common.http import HttpClient, RetryConfig, TimeoutConfig


class FakeResponse:
    def __init__(self, status_code: int, payload=None, raises_json: bool = False, chunks=(b"{}",)):
        self.status_code = status_code
        self._payload = payload
        self._raises_json = raises_json
        self.chunks = chunks
        self.closed = False

    def iter_content(self, chunk_size=None):
        for chunk in self.chunks:
            if isinstance(chunk, Exception):
                raise chunk
            yield chunk

    def close(self):
        self.closed = True

    def json(self):
        if self._raises_json:
            raise ValueError("bad json")
        return self._payload


class ScriptedSession:
    """Replays one outcome per call: a FakeResponse or an exception to raise."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls: list[dict] = []

    def request(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _client(monkeypatch, outcomes, *, retries: int = 3, backoff: float = 1.0):
    sleeps: list[float] = []
    client = HttpClient(retry=RetryConfig(retries=retries, backoff_seconds=backoff), sleep=sleeps.append)
    session = ScriptedSession(outcomes)
    monkeypatch.setattr(client.session, "request", session.request)
    return client, session, sleeps


def test_http_get_json_success(monkeypatch):
    client, session, _sleeps = _client(monkeypatch, [FakeResponse(200, {"ok": True})])

    assert client.get_json("https://example.com") == {"ok": True}
    assert len(session.calls) == 1
    assert session.calls[0]["headers"]["Accept"] == "application/json"


def test_http_retries_server_errors_then_succeeds(monkeypatch):
    client, session, _sleeps = _client(
        monkeypatch,
        [FakeResponse(503), FakeResponse(503), FakeResponse(200, {"ok": True})],
    )

    response = client.fetch_with_retry("https://example.com")

    assert response.status_code == 200
    assert len(session.calls) == 3


def test_http_client_error_is_not_retried(monkeypatch):
    client, session, sleeps = _client(monkeypatch, [FakeResponse(404), FakeResponse(200, {})])

    with pytest.raises(UpstreamClientError):
        client.fetch_with_retry("https://example.com")

    assert len(session.calls) == 1
    assert sleeps == []


def test_http_backoff_doubles_between_attempts(monkeypatch):
    client, session, sleeps = _client(monkeypatch, [FakeResponse(500)] * 4, retries=3, backoff=0.5)

    with pytest.raises(RetryExhaustedError):
        client.fetch_with_retry("https://example.com")

    assert len(session.calls) == 4
    assert sleeps == [0.5, 1.0, 2.0]


def test_http_exhaustion_wraps_last_error(monkeypatch):
    client, _session, _sleeps = _client(
        monkeypatch,
        [FakeResponse(502), requests.ConnectionError("reset"), requests.Timeout("slow")],
        retries=2,
    )

    with pytest.raises(RetryExhaustedError) as excinfo:
        client.fetch_with_retry("https://example.com")

    assert excinfo.value.attempts == 3
    assert isinstance(excinfo.value.last_error, UpstreamTimeoutError)
    assert excinfo.value.__cause__ is excinfo.value.last_error


def test_http_network_error_is_retried(monkeypatch):
    client, session, _sleeps = _client(
        monkeypatch,
        [requests.ConnectionError("dns"), FakeResponse(200, {"ok": 1})],
    )

    assert client.get_json("https://example.com") == {"ok": 1}
    assert len(session.calls) == 2


def test_http_zero_retries_fails_after_one_attempt(monkeypatch):
    client, session, _sleeps = _client(monkeypatch, [requests.ConnectionError("down")], retries=0)

    with pytest.raises(RetryExhaustedError) as excinfo:
        client.fetch_with_retry("https://example.com")

    assert isinstance(excinfo.value.last_error, NetworkError)
    assert len(session.calls) == 1


def test_http_retryable_classification():
    assert UpstreamServerError.retryable
    assert UpstreamTimeoutError.retryable
    assert NetworkError.retryable
    assert not UpstreamClientError.retryable


def test_http_invalid_json_raises(monkeypatch):
    client, _session, _sleeps = _client(monkeypatch, [FakeResponse(200, raises_json=True)])

    with pytest.raises(UpstreamPayloadError):
        client.get_json("https://example.com")


class SteppingClock:
    def __init__(self, step: float):
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        self.now += self.step
        return self.now


def test_http_attempt_deadline_covers_slow_body(monkeypatch):
    trickle = FakeResponse(200, {"ok": True}, chunks=[b"{", b'"ok"', b": true", b"}"])
    client = HttpClient(
        timeout=TimeoutConfig(connect=1.0, read=1.0, total=2.5),
        retry=RetryConfig(retries=0),
        sleep=lambda _seconds: None,
        clock=SteppingClock(1.0),
    )
    session = ScriptedSession([trickle])
    monkeypatch.setattr(client.session, "request", session.request)

    with pytest.raises(RetryExhaustedError) as excinfo:
        client.fetch_with_retry("https://example.com")

    assert isinstance(excinfo.value.last_error, UpstreamTimeoutError)
    assert trickle.closed
    assert session.calls[0]["stream"] is True


def test_http_slow_body_is_retried_then_succeeds(monkeypatch):
    client = HttpClient(
        timeout=TimeoutConfig(connect=1.0, read=1.0, total=2.5),
        retry=RetryConfig(retries=1),
        sleep=lambda _seconds: None,
        clock=SteppingClock(1.0),
    )
    session = ScriptedSession(
        [
            FakeResponse(200, chunks=[b"a", b"b", b"c"]),
            FakeResponse(200, {"ok": True}, chunks=[b'{"ok": true}']),
        ]
    )
    monkeypatch.setattr(client.session, "request", session.request)

    assert client.get_json("https://example.com") == {"ok": True}
    assert len(session.calls) == 2


def test_http_attempt_deadline_defaults_to_connect_plus_read():
    assert TimeoutConfig(connect=2.0, read=3.0).attempt_seconds == 5.0
    assert TimeoutConfig(connect=2.0, read=3.0, total=4.0).attempt_seconds == 4.0


def test_http_body_read_failure_is_a_retryable_network_error(monkeypatch):
    client, session, _sleeps = _client(
        monkeypatch,
        [
            FakeResponse(200, chunks=[b"{", requests.exceptions.ChunkedEncodingError("cut")]),
            FakeResponse(200, {"ok": 1}),
        ],
    )

    assert client.get_json("https://example.com") == {"ok": 1}
    assert len(session.calls) == 2


def test_http_error_status_closes_streamed_response(monkeypatch):
    rejected = FakeResponse(404)
    client, _session, _sleeps = _client(monkeypatch, [rejected])

    with pytest.raises(UpstreamClientError):
        client.fetch_with_retry("https://example.com")

    assert rejected.closed
