"""Bounded retry with exponential backoff around a single remote call."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from ..models.base import (
    InferenceBackend,
    InferenceRequest,
    InferenceResponse,
    InvalidCredentialError,
    QuotaExceededError,
    TransportError,
    TransportErrorKind,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_INITIAL_BACKOFF = 3.0

SleepFunction = Callable[[float], None]


def classify_error(exc: BaseException) -> TransportErrorKind:
    """Return the transport error kind of ``exc``; untyped errors are ``OTHER``."""
    if isinstance(exc, TransportError):
        return exc.kind
    return TransportErrorKind.OTHER


def backoff_delay(attempt: int, initial_backoff: float = DEFAULT_INITIAL_BACKOFF) -> float:
    """Seconds to wait after the rate-limited attempt with zero-based index ``attempt``."""
    return initial_backoff * (2**attempt)


class ResilientInvoker:
    """Issue remote calls, retrying rate-limited ones with exponential backoff.

    Only rate limiting is retried. A rejected credential fails straight away and
    every other error is re-raised untouched so the caller keeps the original
    diagnostics. Backoff state lives inside each :meth:`invoke` call, so one
    invoker can be shared by concurrent threads.
    """

    def __init__(
        self,
        backend: InferenceBackend,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
        sleep: SleepFunction = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        self._backend = backend
        self._max_attempts = max_attempts
        self._initial_backoff = initial_backoff
        self._sleep = sleep

    def invoke(self, request: InferenceRequest) -> InferenceResponse:
        for attempt in range(self._max_attempts):
            try:
                return self._backend.generate(request)
            except Exception as exc:
                kind = classify_error(exc)
                if kind is TransportErrorKind.CREDENTIAL:
                    logger.error("Remote service rejected the API key: %s", exc)
                    raise InvalidCredentialError(
                        "The remote service rejected the configured API key."
                    ) from exc
                if kind is not TransportErrorKind.RATE_LIMIT:
                    raise
                if attempt == self._max_attempts - 1:
                    logger.error(
                        "Rate limited on %s call; giving up after %d attempts.",
                        request.phase.value,
                        self._max_attempts,
                    )
                    raise QuotaExceededError(
                        f"Remote quota exhausted after {self._max_attempts} attempts."
                    ) from exc
                delay = backoff_delay(attempt, self._initial_backoff)
                logger.warning(
                    "Rate limited on %s call (attempt %d/%d), retrying in %.1fs: %s",
                    request.phase.value,
                    attempt + 1,
                    self._max_attempts,
                    delay,
                    exc,
                )
                self._sleep(delay)
        raise AssertionError("unreachable")  # pragma: no cover
