"""
Tool catalog builder: derives one ToolDescriptor per Operation of a document.

Derivation is a pure function of the document. The only order-dependent step
is name disambiguation: operations are visited in document order (paths as
declared, then methods as declared) and a later operation whose derived name
is already taken receives the lowest free numeric suffix (``_2``, ``_3``, ...).
"""

import logging
import re
from typing import Dict, Iterable, Mapping, Optional, Sequence

from openapi_tool_bridge.constants import CATEGORY_KEYWORDS, DEFAULT_CATEGORY
from openapi_tool_bridge.models.spec import (
    Operation,
    ParameterLocation,
    ReferenceBodySchema,
    SpecDocument,
)
from openapi_tool_bridge.models.tool import (
    InputProperty,
    ToolCatalog,
    ToolDescriptor,
    ToolInputSchema,
)

logger = logging.getLogger(__name__)

# Springfox appends e.g. "UsingGET" or "UsingGET_1" to generated operation ids
_SPRINGFOX_SUFFIX = re.compile(r"Using(GET|POST|PUT|PATCH|DELETE|HEAD|OPTIONS|TRACE)(_?\d+)?$", re.IGNORECASE)
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_DISALLOWED = re.compile(r"[^a-z0-9_]")
_REPEATED_UNDERSCORES = re.compile(r"_+")

FALLBACK_TOOL_NAME = "operation"

_TYPE_MAP = {
    "integer": "number",
    "number": "number",
    "boolean": "boolean",
    "array": "array",
    "object": "object",
}


def map_schema_type(declared: Optional[str]) -> str:
    """Map a declared primitive type onto the caller-facing type set."""
    return _TYPE_MAP.get((declared or "").lower(), "string")


def _collapse(name: str) -> str:
    return _REPEATED_UNDERSCORES.sub("_", name).strip("_")


def sanitize_operation_id(operation_id: str) -> str:
    """``getServidoresUsingGET_1`` -> ``get_servidores``."""
    name = _SPRINGFOX_SUFFIX.sub("", operation_id.strip())
    name = _CAMEL_BOUNDARY.sub("_", name).lower()
    return _collapse(_DISALLOWED.sub("_", name))


def synthesize_name(method: str, path: str) -> str:
    """``GET /contratos/{id}`` -> ``get_contratos_id``."""
    folded = path.replace("{", "").replace("}", "").replace("/", "_").lower()
    folded = _DISALLOWED.sub("", folded)
    return _collapse(f"{method.lower()}_{folded}")


class ToolCatalogBuilder:
    """Builds a fresh ToolCatalog from a SpecDocument."""

    def __init__(
        self,
        name_prefix: str = "",
        category_keywords: Optional[Mapping[str, Sequence[str]]] = None,
        default_category: str = DEFAULT_CATEGORY,
    ):
        """
        Initialize catalog builder.

        Args:
            name_prefix: Prefix prepended to every derived tool name
            category_keywords: Category -> path keywords used when an operation has no tag
            default_category: Category used when nothing matches
        """
        self.name_prefix = _collapse(_DISALLOWED.sub("_", name_prefix.lower()))
        self.category_keywords = category_keywords if category_keywords is not None else CATEGORY_KEYWORDS
        self.default_category = default_category

    def build(self, document: SpecDocument, reserved_names: Iterable[str] = ()) -> ToolCatalog:
        """
        Derive the complete catalog for ``document``.

        Args:
            document: Validated interface document
            reserved_names: Names that must not be assigned to catalog tools

        Returns:
            ToolCatalog: A new read-only catalog; no existing catalog is modified
        """
        taken = set(reserved_names)
        tools: Dict[str, ToolDescriptor] = {}

        for operation in document.operations:
            try:
                base_name = self.derive_name(operation)
            except (TypeError, ValueError) as e:
                base_name = self._with_prefix(synthesize_name(operation.method, operation.path) or FALLBACK_TOOL_NAME)
                logger.warning(f"Name derivation failed for {operation.endpoint} ({e}); using '{base_name}'")
            name = base_name
            suffix = 2
            while name in taken:
                name = f"{base_name}_{suffix}"
                suffix += 1
            if name != base_name:
                logger.warning(
                    f"Tool name '{base_name}' already taken; "
                    f"{operation.endpoint} registered as '{name}'"
                )
            taken.add(name)
            try:
                tools[name] = self.build_descriptor(operation, name)
            except (TypeError, ValueError) as e:
                logger.warning(f"Tool derivation failed for {operation.endpoint} ({e}); using defaults")
                tools[name] = self.build_fallback_descriptor(operation, name)

        catalog = ToolCatalog(tools)
        logger.info(f"Built catalog with {len(catalog)} tools in {len(catalog.categories())} categories")
        return catalog

    def derive_name(self, operation: Operation) -> str:
        """Base tool name of an operation, before collision handling."""
        name = ""
        if operation.operation_id:
            name = sanitize_operation_id(operation.operation_id)
            if not name:
                logger.debug(
                    f"Operation id {operation.operation_id!r} of {operation.endpoint} "
                    "sanitizes to nothing; synthesizing name"
                )
        if not name:
            name = synthesize_name(operation.method, operation.path) or FALLBACK_TOOL_NAME
        return self._with_prefix(name)

    def _with_prefix(self, name: str) -> str:
        if self.name_prefix:
            return f"{self.name_prefix}_{name}"
        return name

    def infer_category(self, operation: Operation) -> str:
        """First tag, else a keyword match on path segments, else the default."""
        for tag in operation.tags:
            if tag.strip():
                return tag.strip().lower()

        segments = [
            segment.lower()
            for segment in operation.path.split("/")
            if segment and not segment.startswith("{")
        ]
        # Most specific segment first
        for segment in reversed(segments):
            for category, keywords in self.category_keywords.items():
                if any(keyword in segment for keyword in keywords):
                    return category

        return self.default_category

    def build_input_schema(self, operation: Operation) -> ToolInputSchema:
        """Caller-facing schema: declared parameters, then inline body properties."""
        properties: Dict[str, InputProperty] = {}
        required = []

        for parameter in operation.parameters:
            if parameter.location == ParameterLocation.COOKIE or parameter.name in properties:
                continue
            properties[parameter.name] = InputProperty(
                type=map_schema_type(parameter.type),
                description=parameter.description,
                enum=parameter.enum,
                format=parameter.format,
                pattern=parameter.pattern,
                example=parameter.example,
            )
            if parameter.required:
                required.append(parameter.name)

        if isinstance(operation.request_body, ReferenceBodySchema):
            logger.debug(
                f"Request body of {operation.endpoint} is a reference "
                f"({operation.request_body.ref}); not expanded"
            )

        body_required = operation.request_body.required if operation.body_properties else []
        for prop_name, prop in operation.body_properties.items():
            if prop_name in properties:
                continue
            properties[prop_name] = InputProperty(
                type=map_schema_type(prop.type),
                description=prop.description,
                enum=prop.enum,
                format=prop.format,
                pattern=prop.pattern,
                example=prop.example,
            )
            if prop_name in body_required:
                required.append(prop_name)

        return ToolInputSchema(properties=properties, required=required)

    @staticmethod
    def build_description(operation: Operation, category: str) -> str:
        text = operation.summary or operation.description or operation.endpoint
        description = f"[{category.upper()}] {text}"
        if operation.deprecated:
            description += " (deprecated)"
        return description

    def build_descriptor(self, operation: Operation, name: str) -> ToolDescriptor:
        category = self.infer_category(operation)
        return ToolDescriptor(
            name=name,
            description=self.build_description(operation, category),
            category=category,
            input_schema=self.build_input_schema(operation),
            operation=operation,
        )

    def build_fallback_descriptor(self, operation: Operation, name: str) -> ToolDescriptor:
        """Default category, plain description and an empty schema."""
        return ToolDescriptor(
            name=name,
            description=self.build_description(operation, self.default_category),
            category=self.default_category,
            operation=operation,
        )
