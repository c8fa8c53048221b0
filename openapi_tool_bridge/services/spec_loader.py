"""
Spec loader: fetches, validates and caches the interface document.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin, urlparse

import httpx

from openapi_tool_bridge.exceptions import SpecFetchError, SpecValidationError
from openapi_tool_bridge.models.spec import SpecDocument, SpecInfo
from openapi_tool_bridge.services.spec_parser import parse_spec_document, raw_fingerprint

logger = logging.getLogger(__name__)


class SpecLoader:
    """
    Loads the OpenAPI/Swagger document the tool catalog is derived from.

    Network failures are reported, never retried; retry policy belongs to the
    caller.
    """

    def __init__(
        self,
        spec_url: str,
        client: Optional[httpx.AsyncClient] = None,
        auth_headers: Optional[Dict[str, str]] = None,
        timeout: float = 30.0,
    ):
        """
        Initialize spec loader.

        Args:
            spec_url: HTTP(S) URL, file:// URL or filesystem path of the document
            client: Shared HTTP client (a short-lived one is used when omitted)
            auth_headers: Headers sent with the document request
            timeout: Fetch timeout in seconds
        """
        self.spec_url = spec_url
        self.auth_headers = dict(auth_headers or {})
        self.timeout = timeout
        self._client = client
        self._cached_spec: Optional[SpecDocument] = None

    @property
    def cached_spec(self) -> Optional[SpecDocument]:
        return self._cached_spec

    async def load_spec(self) -> SpecDocument:
        """
        Fetch, validate and cache the document.

        Returns:
            SpecDocument: The validated document

        Raises:
            SpecFetchError: Transport failure or non-2xx response
            SpecValidationError: Document is not a structurally valid spec
        """
        logger.info(f"Loading interface document from {self.spec_url}")
        raw = await self._fetch(self.spec_url)

        problems = self._structure_problems(raw)
        if problems:
            raise SpecValidationError(
                "Invalid interface document:\n" + "\n".join(f"  - {p}" for p in problems)
            )

        document = parse_spec_document(raw)
        document = self._resolve_base_url(document, self.spec_url)

        self._cached_spec = document
        logger.info(
            f"Loaded '{document.title}' v{document.version} "
            f"({len(document.paths)} paths, {len(document.operations)} operations)"
        )
        return document

    async def get_spec(self) -> SpecDocument:
        """Return the cached document, loading it first if needed."""
        if self._cached_spec is not None:
            return self._cached_spec
        return await self.load_spec()

    async def detect_spec_changes(self, new_spec_url: Optional[str] = None) -> bool:
        """
        Check whether the document at ``new_spec_url`` (default: the configured
        URL) differs structurally from the cached one. The cache is left untouched.

        Returns:
            bool: True if the path set or version changed, or nothing is cached
        """
        url = new_spec_url or self.spec_url
        raw = await self._fetch(url)
        new_fingerprint = raw_fingerprint(raw)

        if self._cached_spec is None:
            logger.info("No cached document; treating fetched document as changed")
            return True

        changed = new_fingerprint != self._cached_spec.fingerprint
        logger.info(f"Document at {url} {'changed' if changed else 'unchanged'}")
        return changed

    def validate_spec_structure(self, raw: Any) -> bool:
        """Non-throwing structural check of a raw document."""
        problems = self._structure_problems(raw)
        for problem in problems:
            logger.debug(f"Spec structure problem: {problem}")
        return not problems

    def get_spec_info(self) -> Optional[SpecInfo]:
        """Basic information about the cached document, or None."""
        if self._cached_spec is None:
            return None
        return self._cached_spec.info

    def clear_cache(self) -> None:
        """Discard the cached document; the next access re-fetches."""
        self._cached_spec = None
        logger.debug("Spec cache cleared")

    @staticmethod
    def _structure_problems(raw: Any) -> List[str]:
        if not isinstance(raw, dict):
            return ["document is not a JSON object"]

        problems = []
        if "paths" not in raw:
            problems.append("missing 'paths' section")
        elif not isinstance(raw["paths"], dict):
            problems.append("'paths' section is not an object")

        info = raw.get("info")
        if info is None:
            problems.append("missing 'info' section")
        elif not isinstance(info, dict):
            problems.append("'info' section is not an object")
        elif not info.get("version"):
            problems.append("missing 'info.version'")

        return problems

    @staticmethod
    def _resolve_base_url(document: SpecDocument, spec_url: str) -> SpecDocument:
        """Resolve a missing or relative server URL against the document's own URL."""
        base_url = document.base_url
        if base_url and urlparse(base_url).scheme:
            return document
        if urlparse(spec_url).scheme not in ("http", "https"):
            return document

        resolved = urljoin(spec_url, base_url or "/").rstrip("/")
        logger.debug(f"Resolved base URL {base_url!r} to {resolved}")
        return document.model_copy(update={"base_url": resolved})

    async def _fetch(self, url: str) -> Dict[str, Any]:
        scheme = urlparse(url).scheme
        if scheme in ("http", "https"):
            text = await self._fetch_remote(url)
        else:
            text = self._read_local(url)

        try:
            data = json.loads(text)
        except ValueError as e:
            raise SpecValidationError(f"Document at {url} is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise SpecValidationError(f"Document at {url} is not a JSON object")
        return data

    async def _fetch_remote(self, url: str) -> str:
        try:
            if self._client is not None:
                response = await self._client.get(url, headers=self.auth_headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(url, headers=self.auth_headers)
        except httpx.HTTPError as e:
            raise SpecFetchError(f"Failed to fetch document from {url}: {e}", url=url) from e

        if not response.is_success:
            raise SpecFetchError(
                f"Failed to fetch document from {url}: HTTP {response.status_code}",
                url=url,
                status_code=response.status_code,
            )
        return response.text

    @staticmethod
    def _read_local(url: str) -> str:
        path = Path(urlparse(url).path if url.startswith("file://") else url)
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise SpecFetchError(f"Failed to read document from {path}: {e}", url=url) from e
