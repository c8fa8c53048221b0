"""
Tool server: the session object owning the document, the catalog, the
credential and the executor. Nothing here lives at module level.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from openapi_tool_bridge.config import Settings
from openapi_tool_bridge.constants import CREDENTIAL_STATUS_TOOL_NAME
from openapi_tool_bridge.exceptions import EmptyCredentialError, ToolNotFoundError
from openapi_tool_bridge.models.execution import ExecutionMetadata, ExecutionResult
from openapi_tool_bridge.models.spec import SpecDocument, SpecInfo
from openapi_tool_bridge.models.tool import ToolCatalog, ToolDescriptor
from openapi_tool_bridge.services.call_executor import CallExecutor
from openapi_tool_bridge.services.catalog_builder import ToolCatalogBuilder
from openapi_tool_bridge.services.credential_manager import CredentialManager
from openapi_tool_bridge.services.spec_loader import SpecLoader

logger = logging.getLogger(__name__)


def _is_true(value: Any) -> bool:
    """Accept a JSON boolean or its string spelling; anything else is false."""
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


CREDENTIAL_STATUS_TOOL = {
    "name": CREDENTIAL_STATUS_TOOL_NAME,
    "description": (
        "[CREDENTIALS] Check whether an API key is configured for the described API. "
        "Pass probe=true to also test the key against the API."
    ),
    "inputSchema": {
        "type": "object",
        "properties": {
            "probe": {
                "type": "boolean",
                "description": "Test the key online (one authenticated request)",
            },
        },
        "required": [],
    },
}


class _CatalogState:
    """Document and catalog published together so readers see a matching pair."""

    def __init__(self, document: Optional[SpecDocument], catalog: ToolCatalog):
        self.document = document
        self.catalog = catalog


class ToolServer:
    """
    Exposes the described API as a catalog of tools and executes them.

    The catalog is rebuilt in full and published with a single assignment,
    so a concurrent reader sees either the previous or the next catalog.
    """

    def __init__(
        self,
        settings: Settings,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize tool server.

        Args:
            settings: Application settings
            client: HTTP client shared by all components (created when omitted)
        """
        self.settings = settings
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=settings.request_timeout_seconds)

        self.credentials = CredentialManager(
            header_name=settings.auth_header_name,
            api_key=settings.api_key or None,
            test_endpoint=settings.probe_url,
            client=self.client,
            timeout=settings.credential_timeout_seconds,
        )
        self.loader = self._new_loader(settings.spec_url)
        self.builder = ToolCatalogBuilder(name_prefix=settings.tool_name_prefix)
        self.executor = CallExecutor(
            self.credentials,
            client=self.client,
            timeout=settings.request_timeout_seconds,
        )
        self._state = _CatalogState(None, ToolCatalog())
        self._initialized = False

    @property
    def catalog(self) -> ToolCatalog:
        return self._state.catalog

    @property
    def document(self) -> Optional[SpecDocument]:
        return self._state.document

    @property
    def base_url(self) -> Optional[str]:
        return self._base_url_for(self._state)

    def _base_url_for(self, state: _CatalogState) -> Optional[str]:
        if self.settings.api_base_url:
            return self.settings.api_base_url
        return state.document.base_url if state.document else None

    async def initialize(self) -> None:
        """
        Load the document and publish the first catalog. Idempotent.

        Raises:
            SpecFetchError: Document unreachable
            SpecValidationError: Document structurally invalid
        """
        if self._initialized:
            return

        logger.info("Initializing tool server...")
        self.loader.auth_headers = self.credentials.get_auth_headers()
        document = await self.loader.load_spec()
        self._publish(document)
        self._initialized = True

        if not self.base_url:
            logger.warning("No base URL configured or declared by the document; tool calls will fail")

        if self.settings.verify_credential_on_startup and self.credentials.has_key():
            result = await self.credentials.test_key()
            logger.info(f"Startup credential check: {result.status.value} ({result.message})")

        logger.info(f"Tool server initialized with {len(self.catalog)} tools")

    async def reload(self, spec_url: Optional[str] = None) -> SpecInfo:
        """
        Re-fetch the document and swap in a freshly built catalog.
        On failure the current catalog, loader URL and cached document all stay
        in place and the error propagates.
        """
        candidate = self._new_loader(spec_url or self.loader.spec_url)
        document = await candidate.load_spec()
        self._publish(document)
        self.loader = candidate
        self._initialized = True
        return document.info

    def _new_loader(self, spec_url: str) -> SpecLoader:
        return SpecLoader(
            spec_url,
            client=self.client,
            auth_headers=self.credentials.get_auth_headers(),
            timeout=self.settings.spec_timeout_seconds,
        )

    async def detect_changes(self, spec_url: Optional[str] = None) -> bool:
        return await self.loader.detect_spec_changes(spec_url)

    def get_spec_info(self) -> Optional[SpecInfo]:
        return self.loader.get_spec_info()

    def _publish(self, document: SpecDocument) -> None:
        catalog = self.builder.build(document, reserved_names={CREDENTIAL_STATUS_TOOL_NAME})
        self._state = _CatalogState(document, catalog)
        logger.info(f"Published catalog for '{document.title}' v{document.version}: {len(catalog)} tools")

    def list_tools(self) -> List[Dict[str, Any]]:
        """Credential-status action first, then every catalog entry."""
        catalog = self._state.catalog
        return [dict(CREDENTIAL_STATUS_TOOL)] + [tool.to_listing() for tool in catalog.values()]

    def get_tool(self, name: str) -> ToolDescriptor:
        try:
            return self._state.catalog[name]
        except KeyError:
            raise ToolNotFoundError(name) from None

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ExecutionResult:
        """
        Invoke a tool by name.

        Raises:
            ToolNotFoundError: If ``name`` is neither a catalog tool nor the
                credential-status action; raised before any network activity
        """
        if name == CREDENTIAL_STATUS_TOOL_NAME:
            return await self.check_credential(_is_true((arguments or {}).get("probe")))

        state = self._state
        tool = state.catalog.get(name)
        if tool is None:
            logger.warning(f"Tool not found: {name}")
            raise ToolNotFoundError(name)

        return await self.executor.execute(tool, arguments or {}, self._base_url_for(state))

    async def check_credential(self, probe: bool = False) -> ExecutionResult:
        """Report credential configuration and, optionally, probe it online."""
        metadata = ExecutionMetadata(
            tool_name=CREDENTIAL_STATUS_TOOL_NAME,
            endpoint=f"GET {self.credentials.test_endpoint or ''}".strip(),
            category="credentials",
        )
        configured = self.credentials.has_key()
        status: Dict[str, Any] = {
            "configured": configured,
            "header_name": self.credentials.header_name,
            "masked_key": self.credentials.mask_key(),
            "format_valid": self.credentials.validate_key_format() if configured else False,
        }

        if not configured:
            status["message"] = (
                "No API key configured. Obtain a key from the API provider, set API_KEY "
                "in the environment and restart the server."
            )
            return ExecutionResult.ok(status, metadata)

        status["message"] = "API key configured."
        if probe:
            try:
                test = await self.credentials.test_key()
            except EmptyCredentialError as e:
                return ExecutionResult.fail(str(e), metadata)
            metadata.status_code = test.status_code
            status["probe"] = test.model_dump(mode="json")
            status["message"] = f"API key configured; probe result: {test.status.value}."
        return ExecutionResult.ok(status, metadata)

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()
        logger.info("Tool server closed")
