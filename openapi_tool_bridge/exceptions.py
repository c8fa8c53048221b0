"""
Error taxonomy for document loading, credentials and tool execution.
"""

from typing import Optional


class ToolBridgeError(Exception):
    """Base class for all tool bridge errors."""
    pass


class SpecFetchError(ToolBridgeError):
    """The interface document could not be fetched."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class SpecValidationError(ToolBridgeError):
    """The interface document is structurally invalid."""
    pass


class EmptyCredentialError(ToolBridgeError):
    """A blank credential (or header name) was supplied."""
    pass


class CredentialError(ToolBridgeError):
    """The credential probe failed for a reason other than rejection."""
    pass


class ToolNotFoundError(ToolBridgeError):
    """Invocation of a tool name absent from the catalog."""

    def __init__(self, name: str):
        super().__init__(f"Tool not found: {name}")
        self.name = name


class ExecutionError(ToolBridgeError):
    """The described API answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str = ""):
        super().__init__(f"HTTP {status_code}: {body[:500]}")
        self.status_code = status_code
        self.body = body


class NetworkError(ToolBridgeError):
    """Transport failure or timeout while talking to the described API."""
    pass
