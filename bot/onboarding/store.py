"""Request store client — hands a finished onboarding request to the backend."""

import logging
from typing import Protocol

import httpx

from onboarding.errors import SubmissionError

logger = logging.getLogger(__name__)

ACCOUNT_REQUESTS_ENDPOINT = "/api/account-requests/"


class RequestStore(Protocol):
    async def create_onboarding_request(self, payload: dict) -> str:
        """Persist the payload atomically and return the new request id."""
        ...


class HttpRequestStore:
    """Writes account creation requests through the FastAPI backend. No retries."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def create_onboarding_request(self, payload: dict) -> str:
        url = f"{self.base_url}{ACCOUNT_REQUESTS_ENDPOINT}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(url, json=payload)
        except httpx.HTTPError as e:
            logger.error("Request store unreachable: %s", e)
            raise SubmissionError() from e

        if resp.status_code not in (200, 201):
            logger.warning(
                "Request store rejected payload: status=%s, body=%s",
                resp.status_code,
                resp.text[:200],
            )
            raise SubmissionError()

        try:
            request_id = resp.json().get("id")
        except ValueError as e:
            raise SubmissionError() from e
        if not request_id:
            raise SubmissionError()
        return str(request_id)
