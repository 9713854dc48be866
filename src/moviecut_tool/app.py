"""FastAPI application for moviecut-tool."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api import router as api_router
from .config import ensure_dirs, get_server_config
from .core import get_workflow
from .server import mcp

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan."""
    ensure_dirs()

    # Initialize MCP session manager (required for streamable HTTP)
    mcp.streamable_http_app()
    async with mcp.session_manager.run():
        yield

    # Stages cannot be cancelled; let running tools finish
    workflow = get_workflow()
    if workflow.status()["running"]:
        logger.info("Waiting for running stages to finish")
        await workflow.wait()


app = FastAPI(
    title="MovieCutTool",
    description="Download, transcribe and silence-cut videos with external tools",
    version="0.1.0",
    lifespan=lifespan,
)

# Include REST API routes
app.include_router(api_router, prefix="/api", tags=["API"])

# Mount MCP server routes (streamable HTTP only, provides /mcp endpoint)
app.mount("/", mcp.streamable_http_app())


def main():
    """Run the server."""
    import uvicorn

    config = get_server_config()
    uvicorn.run(
        "moviecut_tool.app:app",
        host=config["host"],
        port=config["port"],
        log_level=config["log_level"],
        reload=False,
    )


if __name__ == "__main__":
    main()
