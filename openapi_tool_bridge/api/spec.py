"""
Interface document endpoints: metadata, reload and change detection.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
import logging

from openapi_tool_bridge.dependencies import get_tool_server
from openapi_tool_bridge.exceptions import SpecFetchError, SpecValidationError
from openapi_tool_bridge.models.spec import SpecInfo
from openapi_tool_bridge.services.tool_server import ToolServer

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=SpecInfo)
async def get_spec_info(
    tool_server: ToolServer = Depends(get_tool_server)
) -> SpecInfo:
    """Title, version and path count of the loaded document."""
    info = tool_server.get_spec_info()
    if info is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No interface document loaded"
        )
    return info


@router.post("/reload")
async def reload_spec(
    url: Optional[str] = Query(default=None, description="Alternate document URL"),
    tool_server: ToolServer = Depends(get_tool_server)
) -> Dict[str, Any]:
    """
    Re-fetch the document and swap in a rebuilt catalog.
    The previous catalog stays in place if loading fails.
    """
    try:
        info = await tool_server.reload(url)
    except SpecFetchError as e:
        logger.error(f"Reload failed: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    except SpecValidationError as e:
        logger.error(f"Reload failed: {e}")
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    return {
        "spec": info.model_dump(),
        "tool_count": len(tool_server.catalog),
    }


@router.get("/changes")
async def detect_spec_changes(
    url: Optional[str] = Query(default=None, description="Alternate document URL"),
    tool_server: ToolServer = Depends(get_tool_server)
) -> Dict[str, Any]:
    """Compare the remote document's structure with the loaded one."""
    try:
        changed = await tool_server.detect_changes(url)
    except SpecFetchError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    except SpecValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    return {"changed": changed}
