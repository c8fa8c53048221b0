# Pydantic models for the OpenAPI tool bridge

from .base import BaseModelConfig, FrozenModel
from .spec import (
    ParameterLocation,
    Parameter,
    SchemaProperty,
    InlineBodySchema,
    ReferenceBodySchema,
    RequestBody,
    Operation,
    SpecInfo,
    SpecDocument,
)
from .tool import (
    InputProperty,
    ToolInputSchema,
    ToolDescriptor,
    ToolCatalog,
)
from .execution import (
    ExecutionMetadata,
    ExecutionResult,
    CredentialStatus,
    CredentialTestResult,
)

__all__ = [
    # Base models
    "BaseModelConfig",
    "FrozenModel",
    # Document models
    "ParameterLocation",
    "Parameter",
    "SchemaProperty",
    "InlineBodySchema",
    "ReferenceBodySchema",
    "RequestBody",
    "Operation",
    "SpecInfo",
    "SpecDocument",
    # Tool models
    "InputProperty",
    "ToolInputSchema",
    "ToolDescriptor",
    "ToolCatalog",
    # Execution models
    "ExecutionMetadata",
    "ExecutionResult",
    "CredentialStatus",
    "CredentialTestResult",
]
