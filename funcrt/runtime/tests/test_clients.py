import json

import httpx
import pytest
import respx

from funcrt.runtime.clients import EventClient, ResponseReporter
from funcrt.runtime.core.exceptions import ProtocolError, TransportError
from funcrt.runtime.models.result import InvocationError
from funcrt.runtime.tests.runtime_helpers import BASE_URL, next_response


# ---------------------------------------------------------------------------
# EventClient
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@respx.mock
async def test_next_invocation_parses_headers_and_body():
    respx.get(f"{BASE_URL}/next").mock(
        return_value=next_response(
            invocation_id="abc-123",
            payload=b'{"name":"world"}',
            deadline_ms=1700000000000,
            trace_id="Root=1-5759e988-bd862e3fe1be46a994272793",
        )
    )

    async with httpx.AsyncClient() as client:
        invocation = await EventClient(client, BASE_URL).next_invocation()

    assert invocation.invocation_id == "abc-123"
    assert invocation.deadline_ms == 1700000000000
    assert invocation.trace_id == "Root=1-5759e988-bd862e3fe1be46a994272793"
    assert invocation.payload == b'{"name":"world"}'


@pytest.mark.asyncio
@respx.mock
async def test_next_invocation_without_trace_header():
    respx.get(f"{BASE_URL}/next").mock(return_value=next_response())

    async with httpx.AsyncClient() as client:
        invocation = await EventClient(client, BASE_URL).next_invocation()

    assert invocation.trace_id is None


@pytest.mark.asyncio
@respx.mock
async def test_next_invocation_connection_error_raises_transport_error():
    respx.get(f"{BASE_URL}/next").mock(side_effect=httpx.ConnectError)

    async with httpx.AsyncClient() as client:
        with pytest.raises(TransportError) as exc:
            await EventClient(client, BASE_URL).next_invocation()

    assert exc.value.operation == "next_invocation"
    assert isinstance(exc.value.cause, httpx.ConnectError)


@pytest.mark.asyncio
@respx.mock
async def test_next_invocation_timeout_raises_transport_error():
    respx.get(f"{BASE_URL}/next").mock(side_effect=httpx.ReadTimeout)

    async with httpx.AsyncClient() as client:
        with pytest.raises(TransportError):
            await EventClient(client, BASE_URL).next_invocation()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "headers",
    [
        {"deadline-ms": "1700000000000"},
        {"invocation-id": "", "deadline-ms": "1700000000000"},
        {"invocation-id": "abc"},
        {"invocation-id": "abc", "deadline-ms": "soon"},
    ],
)
async def test_next_invocation_malformed_headers_raise_protocol_error(headers):
    with respx.mock:
        respx.get(f"{BASE_URL}/next").mock(return_value=httpx.Response(200, headers=headers))

        async with httpx.AsyncClient() as client:
            with pytest.raises(ProtocolError):
                await EventClient(client, BASE_URL).next_invocation()


@pytest.mark.asyncio
@respx.mock
async def test_next_invocation_unexpected_status_raises_protocol_error():
    respx.get(f"{BASE_URL}/next").mock(return_value=httpx.Response(500, text="boom"))

    async with httpx.AsyncClient() as client:
        with pytest.raises(ProtocolError) as exc:
            await EventClient(client, BASE_URL).next_invocation()

    assert exc.value.status_code == 500


# ---------------------------------------------------------------------------
# ResponseReporter
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@respx.mock
async def test_report_success_posts_payload_verbatim():
    route = respx.post(f"{BASE_URL}/invocations/abc-123/response").mock(
        return_value=httpx.Response(202)
    )

    async with httpx.AsyncClient() as client:
        await ResponseReporter(client, BASE_URL).report_success(
            "abc-123", b'{"message":"hello world"}'
        )

    assert route.call_count == 1
    assert route.calls.last.request.content == b'{"message":"hello world"}'


@pytest.mark.asyncio
@respx.mock
async def test_report_failure_posts_structured_error():
    route = respx.post(f"{BASE_URL}/invocations/abc-123/error").mock(
        return_value=httpx.Response(202)
    )
    error = InvocationError(
        error_type="HandlerError",
        error_message="bad input",
        exception_type="ValueError",
        stack_trace=["Traceback (most recent call last):", "ValueError: bad input"],
    )

    async with httpx.AsyncClient() as client:
        await ResponseReporter(client, BASE_URL).report_failure("abc-123", error)

    request = route.calls.last.request
    assert request.content == b'{"errorType":"HandlerError","errorMessage":"bad input"}'
    assert request.headers["error-type"] == "HandlerError"


@pytest.mark.asyncio
@respx.mock
async def test_report_failure_includes_stack_trace_when_enabled():
    route = respx.post(f"{BASE_URL}/invocations/abc-123/error").mock(
        return_value=httpx.Response(202)
    )
    error = InvocationError(
        error_type="HandlerError", error_message="bad input", stack_trace=["line 1", "line 2"]
    )

    async with httpx.AsyncClient() as client:
        reporter = ResponseReporter(client, BASE_URL, include_stack_trace=True)
        await reporter.report_failure("abc-123", error)

    body = json.loads(route.calls.last.request.content)
    assert body["stackTrace"] == ["line 1", "line 2"]


@pytest.mark.asyncio
@respx.mock
async def test_report_quotes_invocation_id():
    route = respx.post(url__startswith=f"{BASE_URL}/invocations/").mock(
        return_value=httpx.Response(202)
    )

    async with httpx.AsyncClient() as client:
        await ResponseReporter(client, BASE_URL).report_success("a/b c", b"null")

    assert route.calls.last.request.url.raw_path == b"/invocations/a%2Fb%20c/response"


@pytest.mark.asyncio
@respx.mock
async def test_report_network_failure_raises_transport_error():
    respx.post(f"{BASE_URL}/invocations/abc-123/response").mock(side_effect=httpx.ConnectError)

    async with httpx.AsyncClient() as client:
        with pytest.raises(TransportError) as exc:
            await ResponseReporter(client, BASE_URL).report_success("abc-123", b"{}")

    assert exc.value.operation == "report_success"


@pytest.mark.asyncio
@respx.mock
async def test_report_rejected_raises_protocol_error():
    respx.post(f"{BASE_URL}/invocations/abc-123/error").mock(
        return_value=httpx.Response(413, text="payload too large")
    )

    async with httpx.AsyncClient() as client:
        with pytest.raises(ProtocolError) as exc:
            await ResponseReporter(client, BASE_URL).report_failure(
                "abc-123", InvocationError(error_type="HandlerError", error_message="x")
            )

    assert exc.value.status_code == 413


@pytest.mark.asyncio
@respx.mock
async def test_report_init_failure_posts_to_init_error():
    route = respx.post(f"{BASE_URL}/init/error").mock(return_value=httpx.Response(202))

    async with httpx.AsyncClient() as client:
        await ResponseReporter(client, BASE_URL).report_init_failure(
            InvocationError(error_type="InitializationError", error_message="no bucket")
        )

    assert json.loads(route.calls.last.request.content) == {
        "errorType": "InitializationError",
        "errorMessage": "no bucket",
    }
