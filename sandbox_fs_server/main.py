# sandbox_fs_server/main.py
from typing import Optional

from fastmcp import FastMCP
from sandbox_fs.config import Settings
from sandbox_fs.di import build_container
from sandbox_fs.logging import configure_logging
from sandbox_fs_server.tools.files import register_file_tools

def create_app(settings: Optional[Settings] = None) -> FastMCP:
    """
    Build DI container, create FastMCP host, and register tools.
    Keep the server (protocol) separate from tool/service logic.
    """
    container = build_container(settings)

    mcp = FastMCP(container.settings.MCP_SERVER_NAME, version=container.settings.MCP_SERVER_VERSION)

    # Register tools (thin adapters)
    register_file_tools(mcp, container.fs_service)

    return mcp


def main():
    settings = Settings()
    configure_logging(settings.LOG_LEVEL)
    app = create_app(settings)
    # stdio transport: client (agent/IDE) launches this process and speaks JSON-RPC on stdin/stdout
    app.run(transport="stdio")


if __name__ == "__main__":
    main()
