"""
Call executor: turns a ToolDescriptor plus caller arguments into one HTTP call
against the described API and normalizes the outcome.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote, urlencode

import httpx

from openapi_tool_bridge.constants import DEFAULT_REQUEST_HEADERS, ERROR_MESSAGES
from openapi_tool_bridge.exceptions import ExecutionError, NetworkError
from openapi_tool_bridge.models.execution import ExecutionMetadata, ExecutionResult
from openapi_tool_bridge.models.spec import ParameterLocation
from openapi_tool_bridge.models.tool import ToolDescriptor
from openapi_tool_bridge.services.credential_manager import CredentialManager

logger = logging.getLogger(__name__)

METHODS_WITH_BODY = {"POST", "PUT", "PATCH", "DELETE"}


def _render(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class PreparedRequest:
    """Resolved request for one invocation."""

    def __init__(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        json_body: Optional[Dict[str, Any]] = None,
    ):
        self.method = method
        self.url = url
        self.headers = headers
        self.json_body = json_body


class CallExecutor:
    """
    Executes one tool invocation at a time per call; invocations are
    independent and may run concurrently on the same event loop.

    Upstream and network failures never escape: every call returns an
    ExecutionResult tagged success or failure.
    """

    def __init__(
        self,
        credentials: CredentialManager,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        """
        Initialize call executor.

        Args:
            credentials: Source of authentication headers
            client: Shared HTTP client (a short-lived one is used when omitted)
            timeout: Per-call timeout in seconds
        """
        self.credentials = credentials
        self.timeout = timeout
        self._client = client

    async def execute(
        self,
        tool: ToolDescriptor,
        arguments: Optional[Dict[str, Any]],
        base_url: Optional[str],
    ) -> ExecutionResult:
        """
        Invoke ``tool`` with ``arguments`` against ``base_url``.

        Args:
            tool: Catalog entry to invoke
            arguments: Caller-supplied argument values
            base_url: Base URL of the described API

        Returns:
            ExecutionResult: Success with the parsed payload, or failure with a
            remediation message
        """
        started = time.monotonic()
        metadata = ExecutionMetadata(
            tool_name=tool.name,
            endpoint=tool.operation.endpoint,
            category=tool.category,
        )

        if not base_url:
            return self._failure(
                "No base URL available for the described API; set API_BASE_URL.",
                metadata, started,
            )

        path, missing = self.resolve_path(tool, arguments or {})
        if missing:
            return self._failure(
                ERROR_MESSAGES["missing_path_parameters"].format(names=", ".join(missing)),
                metadata, started,
            )

        request = self.prepare_request(tool, arguments or {}, base_url, path)
        unencodable = self.unencodable_headers(request.headers)
        if unencodable:
            logger.error(f"{tool.name} failed: non-ASCII header values in {unencodable}")
            return self._failure(
                ERROR_MESSAGES["invalid_header"].format(names=", ".join(unencodable)),
                metadata, started,
            )

        logger.info(f"Executing {tool.name}: {request.method} {request.url}")
        logger.debug(f"Request header names: {sorted(request.headers)}")

        try:
            response = await self._send(request)
            metadata.status_code = response.status_code
            if not response.is_success:
                raise ExecutionError(response.status_code, response.text)
            payload = self._parse_body(response)
        except ExecutionError as e:
            logger.error(f"{tool.name} failed: HTTP {e.status_code}")
            return self._failure(self.describe_http_error(e), metadata, started)
        except NetworkError as e:
            logger.error(f"{tool.name} failed: {e}")
            return self._failure(ERROR_MESSAGES["network"].format(detail=e), metadata, started)

        metadata.duration_ms = self._elapsed_ms(started)
        logger.info(f"{tool.name} succeeded: HTTP {response.status_code} in {metadata.duration_ms}ms")
        return ExecutionResult.ok(payload, metadata)

    @staticmethod
    def resolve_path(tool: ToolDescriptor, arguments: Dict[str, Any]) -> Tuple[str, List[str]]:
        """Substitute percent-encoded path arguments; return the path and missing names."""
        path = tool.operation.path
        missing = []
        for parameter in tool.operation.parameters_in(ParameterLocation.PATH):
            value = arguments.get(parameter.name)
            if value is None:
                missing.append(parameter.name)
                continue
            path = path.replace("{" + parameter.name + "}", quote(_render(value), safe=""))
        return path, missing

    def prepare_request(
        self,
        tool: ToolDescriptor,
        arguments: Dict[str, Any],
        base_url: str,
        path: str,
    ) -> PreparedRequest:
        """
        Build the outbound request. Arguments not declared by the operation are
        dropped; path arguments are expected to be substituted already.
        """
        operation = tool.operation
        declared = {p.name for p in operation.parameters} | set(operation.body_properties)
        dropped = sorted(name for name in arguments if name not in declared)
        if dropped:
            logger.debug(f"Dropping undeclared arguments for {tool.name}: {dropped}")

        query: List[Tuple[str, Any]] = []
        for parameter in operation.parameters_in(ParameterLocation.QUERY):
            value = arguments.get(parameter.name)
            if value is None:
                continue
            if isinstance(value, (list, tuple)):
                query.extend((parameter.name, _render(item)) for item in value)
            else:
                query.append((parameter.name, _render(value)))

        header_params = {
            parameter.name: _render(arguments[parameter.name])
            for parameter in operation.parameters_in(ParameterLocation.HEADER)
            if arguments.get(parameter.name) is not None
        }

        json_body = None
        if operation.method in METHODS_WITH_BODY and operation.body_properties:
            parameter_names = {p.name for p in operation.parameters}
            json_body = {
                name: arguments[name]
                for name in operation.body_properties
                if name in arguments and name not in parameter_names
            } or None

        headers = {**DEFAULT_REQUEST_HEADERS, **header_params, **self.credentials.get_auth_headers()}

        url = f"{base_url.rstrip('/')}{path}"
        if query:
            url = f"{url}?{urlencode(query)}"

        return PreparedRequest(operation.method, url, headers, json_body)

    @staticmethod
    def unencodable_headers(headers: Dict[str, str]) -> List[str]:
        """Headers whose name or value httpx cannot encode (ASCII only)."""
        names = []
        for name, value in headers.items():
            try:
                name.encode("ascii")
                value.encode("ascii")
            except UnicodeEncodeError:
                names.append(name)
        return names

    def describe_http_error(self, error: ExecutionError) -> str:
        """Status-specific remediation message for a non-2xx response."""
        status = error.status_code
        if status == 400:
            return ERROR_MESSAGES["bad_request"]
        if status in (401, 403):
            key = "rejected_credential" if self.credentials.has_key() else "missing_credential"
            return ERROR_MESSAGES[key].format(status=status)
        if status == 404:
            return ERROR_MESSAGES["not_found"]
        if status == 429:
            return ERROR_MESSAGES["rate_limited"]
        if 500 <= status < 600:
            return ERROR_MESSAGES["server_error"].format(status=status)
        return ERROR_MESSAGES["unexpected"].format(status=status, detail=error.body[:200] or "no details")

    async def _send(self, request: PreparedRequest) -> httpx.Response:
        try:
            if self._client is not None:
                return await self._client.request(
                    request.method,
                    request.url,
                    headers=request.headers,
                    json=request.json_body,
                    timeout=self.timeout,
                )
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                return await client.request(
                    request.method,
                    request.url,
                    headers=request.headers,
                    json=request.json_body,
                )
        except httpx.TimeoutException as e:
            raise NetworkError(f"request timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise NetworkError(str(e) or type(e).__name__) from e

    @staticmethod
    def _parse_body(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def _failure(self, message: str, metadata: ExecutionMetadata, started: float) -> ExecutionResult:
        metadata.duration_ms = self._elapsed_ms(started)
        text = (
            f"{message}\n\n"
            f"Endpoint: {metadata.endpoint}\n"
            f"Timestamp: {metadata.timestamp.isoformat()}"
        )
        return ExecutionResult.fail(text, metadata)

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return round((time.monotonic() - started) * 1000, 2)
