"""
Credential endpoints: status, update, removal and online test.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
import logging

from openapi_tool_bridge.dependencies import get_tool_server
from openapi_tool_bridge.exceptions import EmptyCredentialError
from openapi_tool_bridge.models.execution import CredentialTestResult
from openapi_tool_bridge.services.tool_server import ToolServer

logger = logging.getLogger(__name__)

router = APIRouter()


class CredentialUpdate(BaseModel):
    """New credential value (and optionally header name)."""
    api_key: str = Field(..., description="API key for the described API")
    header_name: Optional[str] = Field(default=None, description="Header carrying the key")


class CredentialTestRequest(BaseModel):
    """Key to probe; the stored key is used when omitted."""
    api_key: Optional[str] = Field(default=None, description="Key to test")


def _status(tool_server: ToolServer) -> Dict[str, Any]:
    credentials = tool_server.credentials
    return {
        "configured": credentials.has_key(),
        "header_name": credentials.header_name,
        "masked_key": credentials.mask_key(),
        "format_valid": credentials.validate_key_format(),
    }


@router.get("")
async def get_credential_status(
    tool_server: ToolServer = Depends(get_tool_server)
) -> Dict[str, Any]:
    """Credential configuration (never the raw key)."""
    return _status(tool_server)


@router.put("")
async def set_credential(
    update: CredentialUpdate,
    tool_server: ToolServer = Depends(get_tool_server)
) -> Dict[str, Any]:
    """Replace the stored credential."""
    try:
        if update.header_name is not None:
            tool_server.credentials.set_header_name(update.header_name)
        tool_server.credentials.set_key(update.api_key)
    except EmptyCredentialError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _status(tool_server)


@router.delete("")
async def clear_credential(
    tool_server: ToolServer = Depends(get_tool_server)
) -> Dict[str, Any]:
    """Discard the stored credential; later calls go out unauthenticated."""
    tool_server.credentials.clear_key()
    return _status(tool_server)


@router.post("/test", response_model=CredentialTestResult)
async def test_credential(
    request: Optional[CredentialTestRequest] = None,
    tool_server: ToolServer = Depends(get_tool_server)
) -> CredentialTestResult:
    """Probe the reference endpoint with the given or stored key."""
    api_key = request.api_key if request else None
    try:
        return await tool_server.credentials.test_key(api_key)
    except EmptyCredentialError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
