"""
Dependency injection for FastAPI.

The ToolServer is created once during application startup (see main.py) and
stored in ``app.state``; routers obtain it per request from there.
"""

from fastapi import HTTPException, Request, status

from openapi_tool_bridge.services.tool_server import ToolServer


def get_tool_server(request: Request) -> ToolServer:
    """Get the ToolServer from app state.

    Args:
        request: FastAPI request object

    Returns:
        ToolServer instance from app state
    """
    tool_server = getattr(request.app.state, "tool_server", None)
    if tool_server is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Tool server is not initialized"
        )
    return tool_server
