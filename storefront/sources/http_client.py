"""JSON-over-HTTP client used by the REST rate source.

Transport failures, 5xx responses, 408 and 429 are retried with exponential
backoff plus jitter. Any other 4xx fails on the first attempt.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import requests
from requests import Response, Session
from requests.exceptions import RequestException

logger = logging.getLogger(__name__)

RETRYABLE_CLIENT_STATUSES = frozenset({408, 429})


class HTTPClientError(RuntimeError):
    """Raised when the HTTP client cannot satisfy a request."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        if self.status_code is None:
            return True
        return self.status_code >= 500 or self.status_code in RETRYABLE_CLIENT_STATUSES


@dataclass(frozen=True)
class HTTPClientConfig:
    base_url: str
    timeout: float = 5.0
    max_retries: int = 1
    backoff_seconds: float = 0.5
    backoff_jitter: float = 0.2
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def attempts(self) -> int:
        return max(self.max_retries, 1)

    def backoff(self, attempt: int) -> float:
        """Delay in seconds after failed attempt number ``attempt`` (1-based)."""

        delay = self.backoff_seconds * 2 ** (attempt - 1)
        return max(delay + random.uniform(-self.backoff_jitter, self.backoff_jitter), 0.0)

    def url_for(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"


class HTTPClient:
    def __init__(self, config: HTTPClientConfig, session: Optional[Session] = None) -> None:
        self.config = config
        self._session = session or requests.Session()

    def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """GET ``path`` and return the decoded JSON body."""

        url = self.config.url_for(path)
        attempts = self.config.attempts
        for attempt in range(1, attempts + 1):
            try:
                response = self._session.get(
                    url,
                    params=params,
                    headers=dict(self.config.headers),
                    timeout=self.config.timeout,
                )
                return self._decode(response)
            except HTTPClientError as exc:
                if not exc.retryable:
                    raise
                error: Exception = exc
            except RequestException as exc:
                error = exc

            if attempt < attempts:
                delay = self.config.backoff(attempt)
                logger.warning(
                    "GET %s failed (attempt %d of %d): %s; retrying in %.2fs",
                    url,
                    attempt,
                    attempts,
                    error,
                    delay,
                )
                time.sleep(delay)

        raise HTTPClientError(f"Failed to fetch {url}: {error}") from error

    @staticmethod
    def _decode(response: Response) -> Any:
        status = response.status_code
        if status >= 400:
            kind = "Server" if status >= 500 else "Client"
            raise HTTPClientError(f"{kind} error {status}: {response.text[:200]}", status_code=status)
        try:
            return response.json()
        except ValueError as exc:
            raise HTTPClientError("Invalid JSON response", status_code=status) from exc
