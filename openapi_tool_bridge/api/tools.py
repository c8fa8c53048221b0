"""
Tool API endpoints: list actions and invoke action.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
import logging

from openapi_tool_bridge.dependencies import get_tool_server
from openapi_tool_bridge.exceptions import ToolNotFoundError
from openapi_tool_bridge.models.execution import ExecutionResult
from openapi_tool_bridge.services.tool_server import ToolServer

logger = logging.getLogger(__name__)

router = APIRouter()


class ToolCallRequest(BaseModel):
    """Invocation of one tool."""
    name: str = Field(..., description="Tool name as listed")
    arguments: Dict[str, Any] = Field(default_factory=dict, description="Tool arguments")


@router.get("")
async def list_tools(
    tool_server: ToolServer = Depends(get_tool_server)
) -> Dict[str, Any]:
    """
    List every available tool.

    Returns:
        Dict with a ``tools`` list of {name, description, inputSchema}
    """
    tools = tool_server.list_tools()
    logger.debug(f"Listing {len(tools)} tools")
    return {"tools": tools}


@router.get("/{name}")
async def get_tool(
    name: str,
    tool_server: ToolServer = Depends(get_tool_server)
) -> Dict[str, Any]:
    """Describe a single catalog tool, including its originating endpoint."""
    try:
        tool = tool_server.get_tool(name)
    except ToolNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return {
        **tool.to_listing(),
        "category": tool.category,
        "method": tool.method,
        "path": tool.path,
    }


@router.post("/call", response_model=ExecutionResult)
async def call_tool(
    request: ToolCallRequest,
    tool_server: ToolServer = Depends(get_tool_server)
) -> ExecutionResult:
    """
    Invoke a tool.

    Upstream failures come back as a normal result with ``success`` false;
    only an unknown tool name is an HTTP error.
    """
    try:
        return await tool_server.call_tool(request.name, request.arguments)
    except ToolNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
