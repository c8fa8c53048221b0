"""
Tool-related Pydantic models: catalog entries and the catalog itself.
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Optional

from pydantic import Field

from .base import FrozenModel
from .spec import Operation


class InputProperty(FrozenModel):
    """Caller-facing schema of one tool argument."""
    type: str = Field(description="One of string, number, boolean, array, object")
    description: Optional[str] = None
    enum: Optional[List[Any]] = None
    format: Optional[str] = None
    pattern: Optional[str] = None
    example: Optional[Any] = None


class ToolInputSchema(FrozenModel):
    """Input schema of a tool, serialized as a JSON Schema object."""
    properties: Dict[str, InputProperty] = Field(default_factory=dict)
    required: List[str] = Field(default_factory=list)

    def to_json_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                name: prop.model_dump(exclude_none=True)
                for name, prop in self.properties.items()
            },
            "required": list(self.required),
        }


class ToolDescriptor(FrozenModel):
    """
    Catalog entry derived from exactly one Operation.
    Never edited by hand; rebuilt from the document on every load.
    """
    name: str = Field(description="Tool name (unique within a catalog)")
    description: str = Field(description="Display description")
    category: str = Field(description="Tool category")
    input_schema: ToolInputSchema = Field(default_factory=ToolInputSchema)
    operation: Operation = Field(description="Originating operation")

    @property
    def method(self) -> str:
        return self.operation.method

    @property
    def path(self) -> str:
        return self.operation.path

    def to_listing(self) -> Dict[str, Any]:
        """Shape exposed by the list-actions call."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema.to_json_schema(),
        }


class ToolCatalog(Mapping):
    """Read-only mapping from tool name to ToolDescriptor."""

    def __init__(self, tools: Optional[Dict[str, ToolDescriptor]] = None):
        self._tools = MappingProxyType(dict(tools or {}))

    def __getitem__(self, name: str) -> ToolDescriptor:
        return self._tools[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __repr__(self) -> str:
        return f"ToolCatalog({len(self)} tools)"

    def categories(self) -> List[str]:
        """Distinct categories, in first-seen order."""
        return list(dict.fromkeys(tool.category for tool in self._tools.values()))
