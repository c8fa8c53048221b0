"""
Unit tests for CallExecutor.
"""

import json

import httpx
import pytest

from openapi_tool_bridge.services.call_executor import CallExecutor
from openapi_tool_bridge.services.catalog_builder import ToolCatalogBuilder
from openapi_tool_bridge.services.credential_manager import CredentialManager
from openapi_tool_bridge.services.spec_parser import parse_spec_document

from tests.conftest import API_KEY, BASE_URL


def _ok(payload=None):
    def respond(request):
        return httpx.Response(200, json=payload if payload is not None else {"ok": True})
    return respond


def _status(status_code, text=""):
    def respond(request):
        return httpx.Response(status_code, text=text)
    return respond


@pytest.mark.asyncio
async def test_execute_query_parameter(recording_transport, catalog, credentials):
    """Test a single query argument is sent as an encoded query string."""
    # Given
    transport = recording_transport(_ok([{"nome": "abc"}]))
    executor = CallExecutor(credentials, client=transport.client())

    # When
    result = await executor.execute(catalog["get_servidores"], {"nome": "abc"}, BASE_URL)

    # Then
    assert result.success is True
    assert result.result == [{"nome": "abc"}]
    assert result.metadata.status_code == 200
    assert result.metadata.endpoint == "GET /servidores"
    assert result.metadata.category == "servidores"

    (request,) = transport.requests
    assert request.method == "GET"
    assert str(request.url) == "https://api.example.gov/servidores?nome=abc"
    assert "chave-api-dados" not in request.headers


@pytest.mark.asyncio
async def test_execute_sends_credential(recording_transport, catalog):
    """Test the stored credential goes out under the configured header."""
    transport = recording_transport(_ok())
    executor = CallExecutor(CredentialManager(api_key=API_KEY), client=transport.client())

    await executor.execute(catalog["get_servidores"], {}, BASE_URL)

    request = transport.requests[0]
    assert request.headers["chave-api-dados"] == API_KEY
    assert request.headers["accept"] == "application/json"
    assert str(request.url) == "https://api.example.gov/servidores"


@pytest.mark.asyncio
async def test_execute_drops_undeclared_arguments(recording_transport, catalog, credentials):
    """Test arguments absent from the schema never reach the request."""
    transport = recording_transport(_ok())
    executor = CallExecutor(credentials, client=transport.client())

    result = await executor.execute(
        catalog["get_servidores"],
        {"nome": "abc", "injected": "x", "pagina": 2},
        BASE_URL,
    )

    assert result.success is True
    request = transport.requests[0]
    assert dict(request.url.params) == {"nome": "abc"}
    assert "injected" not in request.headers


@pytest.mark.asyncio
async def test_execute_path_parameter_is_encoded(recording_transport, catalog, credentials):
    """Test path arguments are substituted percent-encoded."""
    transport = recording_transport(_ok())
    executor = CallExecutor(credentials, client=transport.client())

    await executor.execute(catalog["get_apidedados_contratos_id"], {"id": "12/34 5"}, BASE_URL)

    assert transport.requests[0].url.raw_path == b"/api-de-dados/contratos/12%2F34%205"


@pytest.mark.asyncio
async def test_execute_missing_path_parameter(recording_transport, catalog, credentials):
    """Test a missing path argument fails without any network call."""
    transport = recording_transport(_ok())
    executor = CallExecutor(credentials, client=transport.client())

    result = await executor.execute(catalog["get_apidedados_contratos_id"], {}, BASE_URL)

    assert result.success is False
    assert "Missing required path parameters: id" in result.error
    assert "Endpoint: GET /api-de-dados/contratos/{id}" in result.error
    assert transport.requests == []


@pytest.mark.asyncio
async def test_execute_without_base_url(recording_transport, catalog, credentials):
    transport = recording_transport(_ok())
    executor = CallExecutor(credentials, client=transport.client())

    result = await executor.execute(catalog["get_servidores"], {}, None)

    assert result.success is False
    assert "base URL" in result.error
    assert transport.requests == []


@pytest.mark.asyncio
async def test_execute_json_body_and_header_parameter(recording_transport, catalog, credentials):
    """Test body properties form a JSON body and header parameters become headers."""
    transport = recording_transport(_ok({"id": 7}))
    executor = CallExecutor(credentials, client=transport.client())

    result = await executor.execute(
        catalog["criar_licitacao"],
        {"numero": "2024/01", "valor": 1500.5, "X-Request-Id": "req-1", "sessao": "cookie"},
        BASE_URL,
    )

    assert result.success is True
    request = transport.requests[0]
    assert request.method == "POST"
    assert request.headers["x-request-id"] == "req-1"
    assert json.loads(request.content) == {"numero": "2024/01", "valor": 1500.5}
    assert "cookie" not in request.headers


@pytest.mark.asyncio
async def test_execute_boolean_and_list_query_values(recording_transport, credentials):
    """Test booleans render lowercase and lists repeat the parameter."""
    document = parse_spec_document({
        "info": {"version": "1"},
        "paths": {
            "/orgaos": {
                "get": {
                    "operationId": "getOrgaos",
                    "parameters": [
                        {"name": "ativo", "in": "query", "schema": {"type": "boolean"}},
                        {"name": "codigo", "in": "query", "schema": {"type": "array"}},
                    ],
                }
            }
        },
    })
    tool = ToolCatalogBuilder().build(document)["get_orgaos"]
    transport = recording_transport(_ok())
    executor = CallExecutor(credentials, client=transport.client())

    await executor.execute(tool, {"ativo": True, "codigo": ["1", "2"]}, BASE_URL)

    assert transport.requests[0].url.query == b"ativo=true&codigo=1&codigo=2"


@pytest.mark.asyncio
async def test_unauthorized_message_depends_on_credential(recording_transport, catalog):
    """Test 401 guidance differs for a missing versus a rejected credential."""
    transport = recording_transport(_status(401, "Unauthorized"))

    without_key = CallExecutor(CredentialManager(), client=transport.client())
    with_key = CallExecutor(CredentialManager(api_key=API_KEY), client=transport.client())

    missing = await without_key.execute(catalog["get_servidores"], {}, BASE_URL)
    rejected = await with_key.execute(catalog["get_servidores"], {}, BASE_URL)

    assert missing.success is False and rejected.success is False
    assert missing.metadata.status_code == 401
    assert "no API key is configured" in missing.error
    assert "was rejected" in rejected.error
    assert missing.error.split("\n\n")[0] != rejected.error.split("\n\n")[0]


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code,fragment", [
    (400, "HTTP 400"),
    (403, "HTTP 403"),
    (404, "not found"),
    (429, "Rate limit"),
    (502, "HTTP 502"),
    (418, "teapot"),
])
async def test_status_specific_messages(recording_transport, catalog, credentials, status_code, fragment):
    """Test each failure class gets its own remediation message."""
    transport = recording_transport(_status(status_code, "I'm a teapot"))
    executor = CallExecutor(credentials, client=transport.client())

    result = await executor.execute(catalog["get_servidores"], {}, BASE_URL)

    assert result.success is False
    assert fragment in result.error
    assert result.metadata.status_code == status_code


@pytest.mark.asyncio
async def test_network_failure_is_a_result(recording_transport, catalog, credentials):
    """Test transport errors come back as failure results, not exceptions."""
    def fail(request):
        raise httpx.ConnectError("connection refused", request=request)

    executor = CallExecutor(credentials, client=recording_transport(fail).client())

    result = await executor.execute(catalog["get_servidores"], {}, BASE_URL)

    assert result.success is False
    assert "Could not reach the API" in result.error
    assert "connection refused" in result.error
    assert result.metadata.status_code is None


@pytest.mark.asyncio
async def test_timeout_is_a_result(recording_transport, catalog, credentials):
    def slow(request):
        raise httpx.ReadTimeout("timed out", request=request)

    executor = CallExecutor(credentials, client=recording_transport(slow).client(), timeout=5)

    result = await executor.execute(catalog["get_servidores"], {}, BASE_URL)

    assert result.success is False
    assert "timed out after 5s" in result.error


@pytest.mark.asyncio
async def test_non_json_and_empty_bodies(recording_transport, catalog, credentials):
    """Test text bodies are returned as text and empty bodies as None."""
    bodies = iter([httpx.Response(200, text="plain"), httpx.Response(204)])
    executor = CallExecutor(credentials, client=recording_transport(lambda r: next(bodies)).client())

    text = await executor.execute(catalog["get_servidores"], {}, BASE_URL)
    empty = await executor.execute(catalog["get_servidores"], {}, BASE_URL)

    assert text.result == "plain"
    assert empty.success is True
    assert empty.result is None


@pytest.mark.asyncio
async def test_non_ascii_header_argument_is_a_result(recording_transport, catalog, credentials):
    """Test a header value httpx cannot encode fails cleanly without a request."""
    transport = recording_transport(_ok())
    executor = CallExecutor(credentials, client=transport.client())

    result = await executor.execute(
        catalog["criar_licitacao"],
        {"numero": "1", "X-Request-Id": "São Paulo"},
        BASE_URL,
    )

    assert result.success is False
    assert "cannot send: X-Request-Id" in result.error
    assert transport.requests == []


@pytest.mark.asyncio
async def test_non_ascii_stored_key_is_a_result(recording_transport, catalog):
    """Test an unsendable credential is reported by header name, never by value."""
    key = "chave-ção-123456"
    transport = recording_transport(_ok())
    executor = CallExecutor(CredentialManager(api_key=key), client=transport.client())

    result = await executor.execute(catalog["get_servidores"], {}, BASE_URL)

    assert result.success is False
    assert "chave-api-dados" in result.error
    assert key not in result.error
    assert transport.requests == []


@pytest.mark.asyncio
async def test_no_body_when_no_body_arguments(recording_transport, catalog, credentials):
    """Test an operation with body properties sends no body if none were given."""
    transport = recording_transport(_ok())
    executor = CallExecutor(credentials, client=transport.client())

    await executor.execute(catalog["criar_licitacao"], {"X-Request-Id": "req-2"}, BASE_URL)

    request = transport.requests[0]
    assert request.method == "POST"
    assert request.content == b""
