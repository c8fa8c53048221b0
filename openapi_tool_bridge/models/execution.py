"""
Execution and credential-probe result models.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import Field

from .base import BaseModelConfig


class ExecutionMetadata(BaseModelConfig):
    """Metadata attached to every invocation outcome."""
    tool_name: str = Field(description="Invoked tool")
    endpoint: str = Field(description="METHOD path template")
    category: str = Field(description="Tool category")
    status_code: Optional[int] = Field(
        default=None,
        description="Upstream HTTP status (None when no response was received)"
    )
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    duration_ms: float = Field(default=0.0, description="Wall time of the call")


class ExecutionResult(BaseModelConfig):
    """
    Tagged success/failure outcome of one invocation.

    On success ``result`` carries the parsed response payload; on failure
    ``error`` carries a human-readable remediation message.
    """
    success: bool = Field(description="Whether the invocation succeeded")
    result: Optional[Any] = Field(default=None, description="Response payload")
    error: Optional[str] = Field(default=None, description="Failure message")
    metadata: ExecutionMetadata

    @classmethod
    def ok(cls, result: Any, metadata: ExecutionMetadata) -> "ExecutionResult":
        return cls(success=True, result=result, metadata=metadata)

    @classmethod
    def fail(cls, error: str, metadata: ExecutionMetadata) -> "ExecutionResult":
        return cls(success=False, error=error, metadata=metadata)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class CredentialStatus(str, Enum):
    """Outcome classes of a credential probe."""
    VALID = "valid"
    INVALID = "invalid"
    NETWORK_ERROR = "network_error"


class CredentialTestResult(BaseModelConfig):
    """Classified outcome of an online credential probe."""
    status: CredentialStatus
    status_code: Optional[int] = None
    message: str = ""

    @property
    def is_valid(self) -> bool:
        return self.status == CredentialStatus.VALID
