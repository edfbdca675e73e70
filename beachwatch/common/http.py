"""HTTP client with per-attempt timeouts and exponential-backoff retries."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Callable

import requests
from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from beachwatch.common.constants import USER_AGENT
from beachwatch.common.errors import (
    FetchError,
    NetworkError,
    RetryExhaustedError,
    UpstreamClientError,
    UpstreamPayloadError,
    UpstreamServerError,
    UpstreamTimeoutError,
)
from beachwatch.common.logging import get_logger, log_event

logger = get_logger("http")

BODY_CHUNK_BYTES = 8192


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 5.0
    read: float = 10.0
    total: float | None = None

    @property
    def attempt_seconds(self) -> float:
        return self.total if self.total is not None else self.connect + self.read


@dataclass(frozen=True)
class RetryConfig:
    retries: int = 3
    backoff_seconds: float = 1.0
    max_wait: float = 60.0
    jitter: float = 0.0

    @property
    def max_attempts(self) -> int:
        return self.retries + 1


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, FetchError) and exc.retryable


def _log_retry(url: str) -> Callable[[RetryCallState], None]:
    def _before_sleep(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome is not None else None
        delay = state.next_action.sleep if state.next_action is not None else None
        log_event(
            logger,
            f"retrying {url} after {delay}s: {exc}",
            level=logging.WARNING,
            component="http",
            event="FETCH_RETRY",
            status="retry",
            attempt=state.attempt_number,
            error_code=getattr(exc, "error_code", None),
        )

    return _before_sleep


class HttpClient:
    def __init__(
        self,
        *,
        timeout: TimeoutConfig | None = None,
        retry: RetryConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.retry = retry or RetryConfig()
        self.sleep = sleep
        self.clock = clock
        self.session = requests.Session()

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _headers(self, headers: dict[str, str] | None) -> dict[str, str]:
        out = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if headers:
            out.update(headers)
        return out

    def _raise_for_status(self, response: requests.Response, url: str) -> None:
        status = response.status_code
        if 400 <= status < 500:
            raise UpstreamClientError(f"Client error from {url}: HTTP {status}")
        if status >= 500:
            raise UpstreamServerError(f"Server error from {url}: HTTP {status}")

    def _attempt(
        self,
        url: str,
        *,
        params: dict[str, Any] | None,
        headers: dict[str, str] | None,
    ) -> requests.Response:
        started = self.clock()
        try:
            response = self.session.request(
                method="GET",
                url=url,
                params=params,
                headers=self._headers(headers),
                timeout=(self.timeout.connect, self.timeout.read),
                stream=True,
            )
        except requests.Timeout as exc:
            raise UpstreamTimeoutError(
                f"Request to {url} timed out after {self.timeout.connect}s connect / {self.timeout.read}s read"
            ) from exc
        except requests.ConnectionError as exc:
            raise NetworkError(f"Connection to {url} failed: {exc.__class__.__name__}") from exc
        try:
            self._raise_for_status(response, url)
        except FetchError:
            response.close()
            raise
        response._content = self._read_body(response, url, started)
        return response

    def _read_body(self, response: requests.Response, url: str, started: float) -> bytes:
        # Socket timeouts bound each read; the deadline bounds the attempt as a whole.
        deadline = self.timeout.attempt_seconds
        chunks: list[bytes] = []
        try:
            for chunk in response.iter_content(chunk_size=BODY_CHUNK_BYTES):
                chunks.append(chunk)
                if self.clock() - started > deadline:
                    raise UpstreamTimeoutError(f"Response from {url} exceeded the {deadline}s attempt deadline")
        except requests.RequestException as exc:
            raise NetworkError(f"Reading response from {url} failed: {exc.__class__.__name__}") from exc
        finally:
            response.close()
        return b"".join(chunks)

    def _wait(self):
        wait = wait_exponential(multiplier=self.retry.backoff_seconds, exp_base=2, max=self.retry.max_wait)
        if self.retry.jitter > 0:
            wait = wait + wait_random(0, self.retry.jitter)
        return wait

    def fetch_with_retry(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        retrying = Retrying(
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=self._wait(),
            retry=retry_if_exception(_is_retryable),
            before_sleep=_log_retry(url),
            sleep=self.sleep,
        )
        try:
            return retrying(self._attempt, url, params=params, headers=headers)
        except RetryError as exc:
            last_error = exc.last_attempt.exception()
            attempts = exc.last_attempt.attempt_number
            log_event(
                logger,
                f"giving up on {url} after {attempts} attempts: {last_error}",
                level=logging.ERROR,
                component="http",
                event="FETCH_FAIL",
                status="error",
                attempt=attempts,
                error_code=RetryExhaustedError.error_code,
            )
            raise RetryExhaustedError(
                f"Retries exhausted after {attempts} attempts: {last_error}",
                last_error=last_error,
                attempts=attempts,
            ) from last_error

    def get_json(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        response = self.fetch_with_retry(url, params=params, headers=headers)
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamPayloadError(f"Invalid JSON payload from {url}") from exc
