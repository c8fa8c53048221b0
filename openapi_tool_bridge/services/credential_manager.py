"""
Credential manager: holds the API key and produces authentication headers.
"""

import logging
import re
from typing import Dict, Optional

import httpx

from openapi_tool_bridge.exceptions import CredentialError, EmptyCredentialError
from openapi_tool_bridge.models.execution import CredentialStatus, CredentialTestResult

logger = logging.getLogger(__name__)

MIN_KEY_LENGTH = 10
KEY_PATTERN = re.compile(r"^[A-Za-z0-9_\-]+$")
SHORT_KEY_MASK = "****"
VISIBLE_CHARS = 4


class CredentialManager:
    """
    Owns zero or one credential for the described API.

    Mutation (set_key / clear_key) is not synchronized; callers serialize it
    against concurrent reads when that can happen.
    """

    def __init__(
        self,
        header_name: str = "chave-api-dados",
        api_key: Optional[str] = None,
        test_endpoint: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        """
        Initialize credential manager.

        Args:
            header_name: Header carrying the credential
            api_key: Initial credential (blank values are ignored)
            test_endpoint: Reference endpoint used by test_key
            client: Shared HTTP client (a short-lived one is used when omitted)
            timeout: Probe timeout in seconds
        """
        self._header_name = header_name
        self._api_key: Optional[str] = api_key.strip() if api_key and api_key.strip() else None
        self.test_endpoint = test_endpoint
        self.timeout = timeout
        self._client = client

        logger.info(
            f"Credential manager initialized (has_key={self.has_key()}, "
            f"header={self._header_name})"
        )

    @property
    def header_name(self) -> str:
        return self._header_name

    def set_header_name(self, header_name: str) -> None:
        if not header_name or not header_name.strip():
            raise EmptyCredentialError("Header name cannot be empty")
        self._header_name = header_name.strip()
        logger.info(f"Authentication header name updated to {self._header_name}")

    def set_key(self, api_key: str) -> None:
        """
        Store a new API key.

        Raises:
            EmptyCredentialError: If the key is blank or whitespace-only
        """
        if not api_key or not api_key.strip():
            raise EmptyCredentialError("API key cannot be empty")
        self._api_key = api_key.strip()
        logger.info(f"API key updated ({self.mask_key()})")

    def get_auth_headers(self, override: Optional[str] = None) -> Dict[str, str]:
        """
        Authentication headers for an outbound request.

        Returns an empty mapping when no key is available; the request is then
        sent unauthenticated and the upstream API decides.
        """
        key = override or self._api_key
        if not key:
            logger.debug("No API key available; sending request unauthenticated")
            return {}
        return {self._header_name: key}

    def has_key(self) -> bool:
        return bool(self._api_key)

    def clear_key(self) -> None:
        self._api_key = None
        logger.info("API key cleared")

    def validate_key_format(self, api_key: Optional[str] = None) -> bool:
        """Local format check: minimum length and restricted character set."""
        key = api_key or self._api_key
        if not key:
            logger.debug("API key validation failed: no key provided")
            return False
        if len(key) < MIN_KEY_LENGTH:
            logger.debug("API key validation failed: key too short")
            return False
        if not KEY_PATTERN.match(key):
            logger.debug("API key validation failed: invalid characters")
            return False
        return True

    async def test_key(self, api_key: Optional[str] = None) -> CredentialTestResult:
        """
        Probe the reference endpoint with the key and classify the outcome.

        Returns:
            CredentialTestResult: valid (2xx), invalid (401/403) or network_error

        Raises:
            EmptyCredentialError: If no key is given and none is stored
        """
        key = api_key or self._api_key
        if not key:
            raise EmptyCredentialError("Cannot test API key: no key provided")
        if not self.test_endpoint:
            return CredentialTestResult(
                status=CredentialStatus.NETWORK_ERROR,
                message="No reference endpoint configured for credential probes",
            )

        logger.info(f"Testing API key against {self.test_endpoint}")
        try:
            status_code = await self._probe(key)
        except CredentialError as e:
            logger.error(f"API key test failed: {e}")
            return CredentialTestResult(status=CredentialStatus.NETWORK_ERROR, message=str(e))

        if 200 <= status_code < 300:
            logger.info("API key test successful")
            return CredentialTestResult(
                status=CredentialStatus.VALID,
                status_code=status_code,
                message="API key accepted",
            )
        if status_code in (401, 403):
            logger.warning(f"API key test failed: authentication error (HTTP {status_code})")
            return CredentialTestResult(
                status=CredentialStatus.INVALID,
                status_code=status_code,
                message=f"API key rejected (HTTP {status_code})",
            )

        logger.warning(f"API key test inconclusive: HTTP {status_code}")
        return CredentialTestResult(
            status=CredentialStatus.NETWORK_ERROR,
            status_code=status_code,
            message=f"Unexpected response from reference endpoint (HTTP {status_code})",
        )

    async def _probe(self, key: str) -> int:
        headers = {self._header_name: key}
        try:
            self._header_name.encode("ascii")
            key.encode("ascii")
        except UnicodeEncodeError as e:
            raise CredentialError(
                "API key or header name contains non-ASCII characters and cannot be sent in a header"
            ) from e
        try:
            if self._client is not None:
                response = await self._client.get(self.test_endpoint, headers=headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(self.test_endpoint, headers=headers)
        except httpx.TimeoutException as e:
            raise CredentialError(f"Credential probe timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise CredentialError(f"Credential probe failed: {e}") from e
        return response.status_code

    def mask_key(self, api_key: Optional[str] = None) -> Optional[str]:
        """Redacted form of the key for display; None when there is no key."""
        key = api_key or self._api_key
        if not key:
            return None
        if len(key) <= 2 * VISIBLE_CHARS:
            return SHORT_KEY_MASK
        middle = "*" * (len(key) - 2 * VISIBLE_CHARS)
        return f"{key[:VISIBLE_CHARS]}{middle}{key[-VISIBLE_CHARS:]}"
