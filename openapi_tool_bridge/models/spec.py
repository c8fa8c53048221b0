"""
Typed model of a loaded OpenAPI/Swagger interface document.

The raw JSON document is normalized into these models once, by
``services.spec_parser``; catalog derivation only ever reads them.
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import Field

from .base import FrozenModel


class ParameterLocation(str, Enum):
    """Where a parameter is carried in the request."""
    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


class SchemaProperty(FrozenModel):
    """One top-level property of an inline request-body schema."""
    type: Optional[str] = None
    description: Optional[str] = None
    enum: Optional[List[Any]] = None
    format: Optional[str] = None
    pattern: Optional[str] = None
    example: Optional[Any] = None


class Parameter(FrozenModel):
    """A declared operation parameter."""
    name: str
    location: ParameterLocation
    required: bool = False
    type: Optional[str] = Field(default=None, description="Primitive type as declared")
    description: Optional[str] = None
    enum: Optional[List[Any]] = None
    format: Optional[str] = None
    pattern: Optional[str] = None
    example: Optional[Any] = None


class InlineBodySchema(FrozenModel):
    """JSON request body whose schema is declared inline."""
    kind: Literal["inline"] = "inline"
    properties: Dict[str, SchemaProperty] = Field(default_factory=dict)
    required: List[str] = Field(default_factory=list)


class ReferenceBodySchema(FrozenModel):
    """JSON request body expressed only as a $ref; not resolved."""
    kind: Literal["reference"] = "reference"
    ref: str


RequestBody = Annotated[
    Union[InlineBodySchema, ReferenceBodySchema],
    Field(discriminator="kind"),
]


class Operation(FrozenModel):
    """Declared contract of one method + path pair."""
    method: str = Field(description="Upper-case HTTP method")
    path: str = Field(description="Path template, e.g. /contratos/{id}")
    operation_id: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    parameters: List[Parameter] = Field(default_factory=list)
    request_body: Optional[RequestBody] = None
    responses: Optional[Dict[str, Any]] = None
    tags: List[str] = Field(default_factory=list)
    deprecated: bool = False

    @property
    def endpoint(self) -> str:
        """``METHOD path`` label used in logs and results."""
        return f"{self.method} {self.path}"

    def parameters_in(self, location: ParameterLocation) -> List[Parameter]:
        """Declared parameters carried in ``location``, in declaration order."""
        return [p for p in self.parameters if p.location == location]

    @property
    def body_properties(self) -> Dict[str, SchemaProperty]:
        """Top-level properties of an inline body; empty otherwise."""
        if isinstance(self.request_body, InlineBodySchema):
            return self.request_body.properties
        return {}


class SpecInfo(FrozenModel):
    """Basic information about a loaded document."""
    title: str
    version: str
    path_count: int


class SpecDocument(FrozenModel):
    """A validated interface document. Replaced wholly on reload."""
    title: str = ""
    version: str = ""
    base_url: Optional[str] = None
    paths: List[str] = Field(default_factory=list)
    operations: List[Operation] = Field(default_factory=list)
    fingerprint: str = ""

    @property
    def info(self) -> SpecInfo:
        return SpecInfo(title=self.title, version=self.version, path_count=len(self.paths))
