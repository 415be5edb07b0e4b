"""HTTP transport with timeouts and JSON decoding."""

from __future__ import annotations

from dataclasses import dataclass
from types import TracebackType
from typing import Any

import requests

from geomigrate.common.constants import DEFAULT_TIMEOUT_SECONDS, USER_AGENT
from geomigrate.common.errors import PipelineError


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = DEFAULT_TIMEOUT_SECONDS
    read: float = DEFAULT_TIMEOUT_SECONDS


class HttpRequestError(PipelineError):
    error_code = "HTTP_ERROR"

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class HttpClient:
    def __init__(self, *, timeout: TimeoutConfig | None = None) -> None:
        self.timeout = timeout or TimeoutConfig()
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

    def _raise_for_status(self, response: requests.Response) -> None:
        status = response.status_code
        if status < 200 or status >= 300:
            raise HttpRequestError(f"HTTP status: {status}", status=status)

    def request_json(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> dict[str, Any]:
        req_timeout = timeout or self.timeout
        try:
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                headers=self._headers(headers),
                timeout=(req_timeout.connect, req_timeout.read),
            )
        except requests.Timeout as exc:
            raise HttpRequestError(f"Timed out calling {url}") from exc
        except requests.RequestException as exc:
            raise HttpRequestError(f"Request to {url} failed: {exc}") from exc
        self._raise_for_status(response)

        try:
            payload = response.json()
        except ValueError as exc:
            raise HttpRequestError(f"Invalid JSON payload from {url}") from exc
        if not isinstance(payload, dict):
            raise HttpRequestError(f"Expected a JSON object from {url}")

        return payload

    def get_json(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> dict[str, Any]:
        return self.request_json("GET", url, params=params, headers=headers, timeout=timeout)
