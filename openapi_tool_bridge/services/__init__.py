"""Service layer for document loading, catalog building and call execution."""

from .spec_loader import SpecLoader
from .credential_manager import CredentialManager
from .catalog_builder import ToolCatalogBuilder
from .call_executor import CallExecutor
from .tool_server import ToolServer

__all__ = [
    "SpecLoader",
    "CredentialManager",
    "ToolCatalogBuilder",
    "CallExecutor",
    "ToolServer",
]
