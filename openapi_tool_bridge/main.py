"""
FastAPI application entry point for the OpenAPI tool bridge.
Exposes an HTTP API described by an OpenAPI document as invocable tools.
"""

from contextlib import asynccontextmanager
import logging
from typing import Dict, Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from openapi_tool_bridge.config import get_settings
from openapi_tool_bridge.api.health import router as health_router
from openapi_tool_bridge.api.tools import router as tools_router
from openapi_tool_bridge.api.spec import router as spec_router
from openapi_tool_bridge.api.credentials import router as credentials_router
from openapi_tool_bridge.middleware.logging import setup_logging_middleware
from openapi_tool_bridge.services.tool_server import ToolServer


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown."""
    # Startup
    settings = get_settings()
    logging.info("🚀 Starting OpenAPI tool bridge...")
    logging.info(f"📊 Environment: {settings.environment}")
    logging.info(f"📄 Interface document: {settings.spec_url}")

    tool_server = ToolServer(settings)
    try:
        # Unreachable or invalid document is fatal at startup
        await tool_server.initialize()
    except Exception:
        await tool_server.close()
        logging.exception("❌ Failed to initialize tool server")
        raise

    app.state.tool_server = tool_server
    if tool_server.credentials.has_key():
        logging.info(f"🔑 API key configured ({tool_server.credentials.mask_key()})")
    else:
        logging.warning("⚠️ No API key configured - calls are sent unauthenticated")
    logging.info(f"🔧 {len(tool_server.catalog)} tools available")
    yield

    # Shutdown
    logging.info("🛑 Shutting down OpenAPI tool bridge...")
    await tool_server.close()


# Create FastAPI application
app = FastAPI(
    title="OpenAPI Tool Bridge",
    description="Exposes an OpenAPI-described HTTP API as schema-typed tools",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Setup CORS middleware
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup logging middleware
setup_logging_middleware(app, settings)

# Include API routers
app.include_router(health_router, prefix="/api/v1", tags=["health"])
app.include_router(tools_router, prefix="/api/v1/tools", tags=["tools"])
app.include_router(spec_router, prefix="/api/v1/spec", tags=["spec"])
app.include_router(credentials_router, prefix="/api/v1/credentials", tags=["credentials"])


@app.get("/")
async def root() -> Dict[str, Any]:
    """Root endpoint with basic service information."""
    return {
        "service": "openapi-tool-bridge",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
        "tools": "/api/v1/tools",
    }


def run() -> None:
    """Console entry point."""
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "openapi_tool_bridge.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    run()
