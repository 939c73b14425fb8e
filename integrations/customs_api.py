"""
Customs classification API client.

Submits item imports, polls the import status and fetches the assigned
customs codes.

    POST {base_url}/api/v1/items/imports   -> 201, Location: /...
    GET  {location}/status                 -> 200, {"status": "..."}
    GET  {location}                        -> 200, full import document
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional

import requests
import structlog
from pydantic import ValidationError as PydanticValidationError

from exceptions import (
    FetchFailedError,
    MalformedResponseError,
    ProcessingFailedError,
    ProcessingTimeoutError,
    StatusCheckFailedError,
    SubmissionFailedError,
    TransportError,
    ValidationError,
)
from models.customs_import import (
    ImportBatch,
    ImportJob,
    ImportJobStatus,
    ImportResponse,
    ImportStatusDocument,
)

logger = structlog.get_logger(__name__)

IMPORTS_PATH = "/api/v1/items/imports"
BEARER_PREFIX = "Bearer "


def prepare_api_key(api_key: str) -> str:
    """
    Authorization header value for an API key.

    Accepts the key with or without a leading "Bearer ".

    Raises:
        ValidationError: If nothing is left once the prefix is removed
    """
    key = api_key.lstrip()
    if key.startswith(BEARER_PREFIX):
        key = key[len(BEARER_PREFIX):]
    key = key.strip()
    if not key:
        raise ValidationError(message="Missing api-key", code="MISSING_API_KEY")
    return BEARER_PREFIX + key


@dataclass(frozen=True)
class PollPolicy:
    """Fixed-interval polling: max_ticks status checks, interval_seconds apart."""
    interval_seconds: float = 1.0
    max_ticks: int = 120

    def __post_init__(self):
        if self.max_ticks < 1:
            raise ValueError("max_ticks must be at least 1")
        if self.interval_seconds < 0:
            raise ValueError("interval_seconds must not be negative")


# Called after every non-terminal status check with (tick, status document)
TickCallback = Callable[[int, ImportStatusDocument], None]


class CustomsApiClient:
    """
    HTTP client for the item import API.

    Holds no state besides its configuration; one requests.Session is
    reused for every call.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        session: Optional[requests.Session] = None,
        request_timeout: float = 30.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.request_timeout = request_timeout
        self._authorization = prepare_api_key(api_key)
        self._session = session or requests.Session()
        self._sleep = sleep

    # ===================
    # HELPERS
    # ===================

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": self._authorization,
            "Accept": "application/json",
        }

    def resolve_location(self, location: str) -> str:
        """Absolute URL for a Location header value."""
        if location.startswith(("http://", "https://")):
            return location.rstrip("/")
        if not location.startswith("/"):
            location = "/" + location
        return f"{self.base_url}{location}".rstrip("/")

    def _request(self, operation: str, method: str, url: str, **kwargs) -> requests.Response:
        try:
            return self._session.request(
                method,
                url,
                headers=self.headers,
                timeout=self.request_timeout,
                **kwargs
            )
        except requests.exceptions.RequestException as e:
            logger.error("customs_api_request_failed", operation=operation, url=url, error=str(e))
            raise TransportError(operation, str(e))

    @staticmethod
    def _body_text(response: requests.Response) -> str:
        # Diagnostics only; the status code already carries the error.
        try:
            return response.text
        except Exception:
            return ""

    @staticmethod
    def _decode(operation: str, response: requests.Response, schema):
        try:
            return schema.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            logger.error("customs_api_decode_failed", operation=operation, error=str(e))
            raise MalformedResponseError(operation, str(e))

    # ===================
    # OPERATIONS
    # ===================

    def submit(self, batch: ImportBatch) -> ImportJob:
        """
        Submit all items as one import.

        Returns:
            ImportJob for the Location returned by the service

        Raises:
            SubmissionFailedError: Status other than 201, or no Location header
            TransportError: Network failure
        """
        url = f"{self.base_url}{IMPORTS_PATH}"
        logger.info("submitting_import", url=url, items=len(batch))

        response = self._request("submit", "POST", url, json=batch.to_wire())

        if response.status_code != 201:
            body = self._body_text(response)
            logger.error("import_submission_failed", status_code=response.status_code, body=body)
            raise SubmissionFailedError(response.status_code, body)

        location = response.headers.get("Location")
        if not location:
            logger.error("import_location_missing")
            raise SubmissionFailedError(response.status_code, "response has no Location header")

        job = ImportJob(
            location=location,
            url=self.resolve_location(location),
            status=ImportJobStatus.PENDING.value,
        )
        logger.info("import_submitted", location=location)
        return job

    def get_status(self, job: ImportJob) -> ImportStatusDocument:
        """
        One status check.

        Raises:
            StatusCheckFailedError: Status other than 200
            MalformedResponseError: Body is not a status document
            TransportError: Network failure
        """
        response = self._request("status", "GET", job.status_url)

        if response.status_code != 200:
            body = self._body_text(response)
            logger.error("import_status_failed", status_code=response.status_code, body=body)
            raise StatusCheckFailedError(response.status_code, body)

        return self._decode("status", response, ImportStatusDocument)

    def wait_for_processing(
        self,
        job: ImportJob,
        policy: PollPolicy = PollPolicy(),
        on_tick: Optional[TickCallback] = None,
    ) -> ImportStatusDocument:
        """
        Poll the status until the import is processed.

        Issues at most policy.max_ticks status checks, waiting
        policy.interval_seconds between them.

        Returns:
            The final 'processed' status document

        Raises:
            ProcessingFailedError: Service reported 'failed'
            ProcessingTimeoutError: No terminal status within max_ticks checks
        """
        logger.info(
            "waiting_for_import",
            location=job.location,
            max_ticks=policy.max_ticks,
            interval_seconds=policy.interval_seconds,
        )

        last_status: Optional[ImportStatusDocument] = None

        for tick in range(1, policy.max_ticks + 1):
            last_status = self.get_status(job)
            job.status = last_status.status
            logger.debug("import_status", tick=tick, status=last_status.status)

            if last_status.is_failed:
                logger.error("import_processing_failed", location=job.location, tick=tick)
                raise ProcessingFailedError(job.location, last_status.model_dump())

            if last_status.is_processed:
                logger.info("import_processed", location=job.location, ticks=tick)
                return last_status

            if on_tick is not None:
                on_tick(tick, last_status)

            if tick < policy.max_ticks:
                self._sleep(policy.interval_seconds)

        logger.error(
            "import_processing_timeout",
            location=job.location,
            ticks=policy.max_ticks,
            last_status=last_status.status,
        )
        raise ProcessingTimeoutError(job.location, policy.max_ticks, last_status.model_dump())

    def fetch(self, job: ImportJob) -> ImportResponse:
        """
        Fetch the processed import with per-item customs codes.

        Only valid once wait_for_processing has returned; the status is not
        re-checked here.

        Raises:
            FetchFailedError: Status other than 200
            MalformedResponseError: Body is not an import document
            TransportError: Network failure
        """
        logger.info("fetching_import", url=job.url)

        response = self._request("fetch", "GET", job.url)

        if response.status_code != 200:
            body = self._body_text(response)
            logger.error("import_fetch_failed", status_code=response.status_code, body=body)
            raise FetchFailedError(response.status_code, body)

        result = self._decode("fetch", response, ImportResponse)
        logger.info("import_fetched", import_id=result.id, items=len(result.items))
        return result

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "CustomsApiClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
