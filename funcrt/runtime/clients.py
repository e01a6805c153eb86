"""
Where: funcrt/runtime/clients.py
What: HTTP clients for the platform's runtime endpoint (next event, result, error).
Why: Keep wire details out of the invocation loop.
"""

import json
import logging
import urllib.parse
from typing import Any

import httpx

from .core.exceptions import ProtocolError, TransportError
from .models.invocation import Invocation
from .models.result import InvocationError

logger = logging.getLogger("funcrt.clients")

HEADER_INVOCATION_ID = "invocation-id"
HEADER_DEADLINE_MS = "deadline-ms"
HEADER_TRACE_ID = "trace-id"


def _invocation_path(invocation_id: str, outcome: str) -> str:
    return f"/invocations/{urllib.parse.quote(invocation_id, safe='')}/{outcome}"


def _encode_error(error: InvocationError, include_stack_trace: bool) -> bytes:
    body = error.to_body(include_stack_trace)
    return json.dumps(body, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


class EventClient:
    """Wrapper for the next-invocation long poll."""

    def __init__(self, http_client: httpx.AsyncClient, base_url: str):
        self.client = http_client
        self.base_url = base_url.rstrip("/")

    async def next_invocation(self) -> Invocation:
        """
        Block until the platform hands out the next event.

        Raises:
            TransportError: The endpoint could not be reached
            ProtocolError: The response violates the runtime contract
        """
        url = f"{self.base_url}/next"
        try:
            response = await self.client.get(url)
        except httpx.RequestError as e:
            raise TransportError("next_invocation", e) from e

        if response.status_code != 200:
            raise ProtocolError(
                f"unexpected status from {url}: {response.text[:200]}",
                status_code=response.status_code,
            )

        return self._parse(response)

    @staticmethod
    def _parse(response: httpx.Response) -> Invocation:
        headers = response.headers

        invocation_id = (headers.get(HEADER_INVOCATION_ID) or "").strip()
        if not invocation_id:
            raise ProtocolError(f"missing {HEADER_INVOCATION_ID} header")

        raw_deadline = (headers.get(HEADER_DEADLINE_MS) or "").strip()
        if not raw_deadline:
            raise ProtocolError(f"missing {HEADER_DEADLINE_MS} header")
        try:
            deadline_ms = int(raw_deadline)
        except ValueError:
            raise ProtocolError(
                f"invalid {HEADER_DEADLINE_MS} header: {raw_deadline!r}"
            ) from None

        trace_id = headers.get(HEADER_TRACE_ID) or None

        return Invocation(
            invocation_id=invocation_id,
            deadline_ms=deadline_ms,
            trace_id=trace_id,
            payload=response.content,
        )


class ResponseReporter:
    """Wrapper for the result, error and init-error endpoints."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        timeout: float = 10.0,
        include_stack_trace: bool = False,
    ):
        self.client = http_client
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.include_stack_trace = include_stack_trace

    async def report_success(self, invocation_id: str, payload: bytes) -> None:
        """POST the handler's payload to /invocations/{id}/response."""
        await self._post(
            "report_success",
            _invocation_path(invocation_id, "response"),
            content=payload,
            headers={"Content-Type": "application/json"},
        )

    async def report_failure(self, invocation_id: str, error: InvocationError) -> None:
        """POST a structured error to /invocations/{id}/error."""
        await self._post(
            "report_failure",
            _invocation_path(invocation_id, "error"),
            content=_encode_error(error, self.include_stack_trace),
            headers={"Content-Type": "application/json", "error-type": error.error_type},
        )

    async def report_init_failure(self, error: InvocationError) -> None:
        """POST a cold-start failure to /init/error."""
        await self._post(
            "report_init_failure",
            "/init/error",
            content=_encode_error(error, self.include_stack_trace),
            headers={"Content-Type": "application/json", "error-type": error.error_type},
        )

    async def _post(self, operation: str, path: str, **kwargs: Any) -> None:
        url = f"{self.base_url}{path}"
        try:
            response = await self.client.post(url, timeout=self.timeout, **kwargs)
        except httpx.RequestError as e:
            raise TransportError(operation, e) from e

        if not response.is_success:
            raise ProtocolError(
                f"{operation} rejected by {url}: {response.text[:200]}",
                status_code=response.status_code,
            )
        logger.debug(
            "%s accepted",
            operation,
            extra={"target_url": url, "status_code": response.status_code},
        )
