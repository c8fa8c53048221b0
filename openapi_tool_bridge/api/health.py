"""
Health check endpoint.
"""

from typing import Any, Dict

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health(request: Request) -> Dict[str, Any]:
    """Liveness plus a summary of the loaded catalog."""
    tool_server = getattr(request.app.state, "tool_server", None)
    if tool_server is None:
        return {"status": "starting", "tools": 0}

    info = tool_server.get_spec_info()
    return {
        "status": "ok",
        "tools": len(tool_server.catalog),
        "spec": info.model_dump() if info else None,
        "has_api_key": tool_server.credentials.has_key(),
    }
