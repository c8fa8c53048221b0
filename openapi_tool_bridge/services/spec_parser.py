"""
Normalization of a raw OpenAPI 2.0/3.0 document into the typed SpecDocument model.

All duck-typed access into the raw JSON happens here. Anything the rest of the
code needs to know about a document is decided once, in this module.
"""

import hashlib
import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from openapi_tool_bridge.constants import HTTP_METHODS
from openapi_tool_bridge.models.spec import (
    InlineBodySchema,
    Operation,
    Parameter,
    ParameterLocation,
    ReferenceBodySchema,
    SchemaProperty,
    SpecDocument,
)

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"


def compute_fingerprint(paths: List[str], version: str) -> str:
    """Structural fingerprint over the path set and the declared version."""
    payload = json.dumps({"paths": sorted(paths), "version": version}, sort_keys=True)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def raw_fingerprint(raw: Dict[str, Any]) -> str:
    """Fingerprint a raw document without normalizing it."""
    paths = raw.get("paths")
    info = raw.get("info")
    version = str(info.get("version", "")) if isinstance(info, dict) else ""
    return compute_fingerprint(list(paths) if isinstance(paths, dict) else [], version)


def parse_spec_document(raw: Dict[str, Any]) -> SpecDocument:
    """
    Parse a structurally valid raw document into a SpecDocument.

    Malformed operations and parameters are skipped with a log entry; only
    the caller's structural check decides whether the document as a whole
    is usable.

    Args:
        raw: Decoded JSON document

    Returns:
        SpecDocument: Immutable typed document
    """
    info = raw.get("info") if isinstance(raw.get("info"), dict) else {}
    title = _text(info.get("title")) or ""
    version = str(info.get("version", ""))

    raw_paths = raw.get("paths") or {}
    paths = [path for path in raw_paths if isinstance(path, str)]
    operations: List[Operation] = []

    for path in paths:
        path_item = raw_paths[path]
        if not isinstance(path_item, dict):
            logger.warning(f"Skipping path {path}: path item is not an object")
            continue

        shared_parameters = path_item.get("parameters") or []

        for method, raw_operation in path_item.items():
            if not isinstance(method, str) or method.lower() not in HTTP_METHODS:
                continue
            if not isinstance(raw_operation, dict):
                logger.warning(f"Skipping {method.upper()} {path}: operation is not an object")
                continue

            operations.append(_parse_operation(method, path, raw_operation, shared_parameters))

    document = SpecDocument(
        title=title,
        version=version,
        base_url=_extract_base_url(raw),
        paths=paths,
        operations=operations,
        fingerprint=compute_fingerprint(paths, version),
    )
    logger.debug(f"Parsed document '{title}' v{version}: {len(paths)} paths, {len(operations)} operations")
    return document


def _parse_operation(
    method: str,
    path: str,
    raw: Dict[str, Any],
    shared_parameters: Any
) -> Operation:
    parameters, body_parameter = _merge_parameters(shared_parameters, raw.get("parameters"))

    request_body = _parse_request_body(raw.get("requestBody"))
    if request_body is None and body_parameter is not None:
        request_body = _parse_body_schema(body_parameter.get("schema"))

    tags = raw.get("tags") if isinstance(raw.get("tags"), list) else []
    responses = raw.get("responses") if isinstance(raw.get("responses"), dict) else None

    return Operation(
        method=method.upper(),
        path=path,
        operation_id=_text(raw.get("operationId")),
        summary=_text(raw.get("summary")),
        description=_text(raw.get("description")),
        parameters=parameters,
        request_body=request_body,
        responses=responses,
        tags=[tag for tag in tags if isinstance(tag, str)],
        deprecated=bool(raw.get("deprecated", False)),
    )


def _merge_parameters(
    shared: Any,
    own: Any
) -> Tuple[List[Parameter], Optional[Dict[str, Any]]]:
    """Merge path-item and operation parameters; the operation wins on (name, location)."""
    merged: Dict[Tuple[str, ParameterLocation], Parameter] = {}
    body_parameter: Optional[Dict[str, Any]] = None

    for raw_list in (shared, own):
        if not isinstance(raw_list, list):
            continue
        for raw_param in raw_list:
            if isinstance(raw_param, dict) and raw_param.get("in") == "body":
                # Swagger 2 request body
                body_parameter = raw_param
                continue
            parameter = _parse_parameter(raw_param)
            if parameter is not None:
                merged[(parameter.name, parameter.location)] = parameter

    return list(merged.values()), body_parameter


def _parse_parameter(raw: Any) -> Optional[Parameter]:
    if not isinstance(raw, dict):
        logger.debug(f"Skipping parameter declaration of type {type(raw).__name__}")
        return None
    if "$ref" in raw:
        logger.debug(f"Skipping unresolved parameter reference {raw['$ref']}")
        return None

    name = raw.get("name")
    if not isinstance(name, str) or not name:
        logger.debug("Skipping parameter without a name")
        return None

    try:
        location = ParameterLocation(raw.get("in"))
    except ValueError:
        logger.debug(f"Skipping parameter {name}: unsupported location {raw.get('in')!r}")
        return None

    schema = raw.get("schema") if isinstance(raw.get("schema"), dict) else {}

    return Parameter(
        name=name,
        location=location,
        required=bool(raw.get("required", False)) or location == ParameterLocation.PATH,
        type=_schema_type(schema) or _schema_type(raw),
        description=_text(raw.get("description")) or _text(schema.get("description")),
        enum=_first_list(raw.get("enum"), schema.get("enum")),
        format=_text(raw.get("format")) or _text(schema.get("format")),
        pattern=_text(raw.get("pattern")) or _text(schema.get("pattern")),
        example=raw["example"] if "example" in raw else schema.get("example"),
    )


def _parse_request_body(raw: Any):
    """OpenAPI 3 requestBody -> body variant (None when absent or not JSON)."""
    if not isinstance(raw, dict):
        return None
    if "$ref" in raw:
        return ReferenceBodySchema(ref=str(raw["$ref"]))

    content = raw.get("content")
    if not isinstance(content, dict):
        return None

    media = content.get(JSON_MEDIA_TYPE)
    if media is None:
        media = next(
            (value for key, value in content.items() if isinstance(key, str) and "json" in key),
            None,
        )
    if not isinstance(media, dict):
        return None
    return _parse_body_schema(media.get("schema"))


def _parse_body_schema(schema: Any):
    if not isinstance(schema, dict):
        return None
    if "$ref" in schema:
        return ReferenceBodySchema(ref=str(schema["$ref"]))

    properties: Dict[str, SchemaProperty] = {}
    raw_properties = schema.get("properties")
    if isinstance(raw_properties, dict):
        for prop_name, prop_schema in raw_properties.items():
            if not isinstance(prop_schema, dict):
                continue
            if "$ref" in prop_schema:
                properties[prop_name] = SchemaProperty(
                    type="object",
                    description=_text(prop_schema.get("description")),
                )
                continue
            properties[prop_name] = SchemaProperty(
                type=_schema_type(prop_schema),
                description=_text(prop_schema.get("description")),
                enum=_first_list(prop_schema.get("enum")),
                format=_text(prop_schema.get("format")),
                pattern=_text(prop_schema.get("pattern")),
                example=prop_schema.get("example"),
            )

    required = schema.get("required") if isinstance(schema.get("required"), list) else []
    return InlineBodySchema(
        properties=properties,
        required=[name for name in required if isinstance(name, str) and name in properties],
    )


def _extract_base_url(raw: Dict[str, Any]) -> Optional[str]:
    """Server URL from OpenAPI 3 ``servers`` or Swagger 2 ``host``/``basePath``."""
    servers = raw.get("servers")
    if isinstance(servers, list) and servers and isinstance(servers[0], dict):
        url = servers[0].get("url")
        if isinstance(url, str) and url:
            return url.rstrip("/") or "/"

    host = raw.get("host")
    if isinstance(host, str) and host:
        schemes = raw.get("schemes")
        scheme = schemes[0] if isinstance(schemes, list) and schemes else "https"
        base_path = raw.get("basePath") if isinstance(raw.get("basePath"), str) else ""
        return f"{scheme}://{host}{base_path}".rstrip("/")

    return None


def _schema_type(schema: Dict[str, Any]) -> Optional[str]:
    declared = schema.get("type")
    if isinstance(declared, list):
        # OpenAPI 3.1 style ["string", "null"]
        declared = next((t for t in declared if t != "null"), None)
    return declared if isinstance(declared, str) else None


def _first_list(*candidates: Any) -> Optional[List[Any]]:
    for candidate in candidates:
        if isinstance(candidate, list):
            return list(candidate)
    return None


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None
