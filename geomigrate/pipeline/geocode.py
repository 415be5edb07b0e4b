"""Google Geocoding client with a fixed pre-request delay and bounded retry."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from tenacity import RetryCallState, retry, retry_if_exception_type, stop_after_attempt, wait_none

from geomigrate.common.constants import DEFAULT_DELAY_SECONDS, DEFAULT_MAX_ATTEMPTS, GEOCODE_BASE_URL
from geomigrate.common.errors import GeocodingFailed, PipelineError
from geomigrate.common.http import HttpClient, HttpRequestError, TimeoutConfig
from geomigrate.common.logging import log_event
from geomigrate.common.models import GeocodeResult


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and the delay slept before every attempt, the first included."""

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    delay_seconds: float = DEFAULT_DELAY_SECONDS

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds must not be negative")


class NoResultsError(PipelineError):
    error_code = "NO_RESULTS"


class MalformedResultError(PipelineError):
    error_code = "MALFORMED_RESULT"


TRANSIENT_ERRORS = (HttpRequestError, NoResultsError, MalformedResultError)


def build_params(address_query: str, country_code: str, api_key: str) -> dict[str, str]:
    return {
        "address": address_query,
        "components": f"country:{country_code.lower()}",
        "key": api_key,
    }


def parse_first_result(payload: dict[str, Any]) -> GeocodeResult:
    results = payload.get("results")
    if not results:
        raise NoResultsError(f"No results found for location (status={payload.get('status')})")
    first = results[0]
    try:
        location = first["geometry"]["location"]
        return GeocodeResult(
            lat=float(location["lat"]),
            lng=float(location["lng"]),
            place_id=str(first["place_id"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedResultError(f"Unexpected geocoding result shape: {exc}") from exc


class GeocodingClient:
    def __init__(
        self,
        http_client: HttpClient,
        api_key: str,
        *,
        base_url: str = GEOCODE_BASE_URL,
        timeout: TimeoutConfig | None = None,
        retry_policy: RetryPolicy | None = None,
        logger: logging.Logger | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.http_client = http_client
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout or TimeoutConfig()
        self.retry_policy = retry_policy or RetryPolicy()
        self.logger = logger or logging.getLogger(__name__)
        self.sleep = sleep

    def _throttle(self, _retry_state: RetryCallState) -> None:
        self.sleep(self.retry_policy.delay_seconds)

    def _log_failed_attempt(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        log_event(
            self.logger,
            f"attempt {retry_state.attempt_number} failed for city: {retry_state.args[0]}: {exc}",
            level=logging.WARNING,
            stage="geocode",
            event="GEOCODE_ATTEMPT_FAIL",
            status="retry" if retry_state.attempt_number < self.retry_policy.max_attempts else "error",
            attempt=retry_state.attempt_number,
            error_code=getattr(exc, "error_code", None),
        )

    def _attempt(self, address_query: str, country_code: str) -> GeocodeResult:
        payload = self.http_client.get_json(
            self.base_url,
            params=build_params(address_query, country_code, self.api_key),
            timeout=self.timeout,
        )
        return parse_first_result(payload)

    def resolve(self, address_query: str, country_code: str) -> GeocodeResult:
        if not address_query:
            raise ValueError("address_query must not be empty")

        @retry(
            stop=stop_after_attempt(self.retry_policy.max_attempts),
            wait=wait_none(),
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            before=self._throttle,
            after=self._log_failed_attempt,
            reraise=True,
        )
        def _wrapped(query: str, country: str) -> GeocodeResult:
            return self._attempt(query, country)

        try:
            result = _wrapped(address_query, country_code or "")
        except TRANSIENT_ERRORS as exc:
            raise GeocodingFailed(address_query, self.retry_policy.max_attempts, exc) from exc

        log_event(
            self.logger,
            f"city:{address_query},place_id:{result.place_id}",
            stage="geocode",
            event="GEOCODE_OK",
            status="ok",
        )
        return result
