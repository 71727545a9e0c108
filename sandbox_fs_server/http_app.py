# sandbox_fs_server/http_app.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from sandbox_fs.config import Settings
from sandbox_fs.di import build_container
from sandbox_fs.result import SandboxError

from sandbox_fs_server.registry import build_tool_registry, list_tools_payload, dispatch_tool_call

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2025-03-26"  # aligns with current spec draft dates


def _jsonrpc_error(id_: Any, code: int, message: str, data: Any | None = None) -> JSONResponse:
    body: Dict[str, Any] = {"jsonrpc": "2.0", "id": id_, "error": {"code": code, "message": message}}
    if data is not None:
        body["error"]["data"] = data
    return JSONResponse(body)


def _jsonrpc_result(id_: Any, result: Any) -> JSONResponse:
    return JSONResponse({"jsonrpc": "2.0", "id": id_, "result": result})


def _tool_content(result: Any, is_error: bool = False) -> Dict[str, Any]:
    content_block = (
        {"type": "json", "json": result}
        if isinstance(result, (dict, list))
        else {"type": "text", "text": str(result)}
    )
    return {"content": [content_block], "isError": is_error}


def create_http_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    container = build_container(settings)
    registry = build_tool_registry(container)

    app = FastAPI(title="Sandbox FS MCP HTTP Server", version=settings.MCP_SERVER_VERSION)

    # ---------- Security: Origin validation & Bearer token ----------

    def _origin_allowed(req: Request) -> bool:
        origin = req.headers.get("origin")
        if not origin:
            return settings.MCP_HTTP_ALLOW_NO_ORIGIN
        return origin.lower() in settings.allowed_origins()

    def _require_auth(req: Request):
        auth = req.headers.get("authorization", "")
        if not auth.startswith("Bearer "):
            raise HTTPException(status_code=401, detail="Missing Bearer token")
        token = auth.split(" ", 1)[1]
        if token != settings.MCP_HTTP_BEARER_TOKEN:
            raise HTTPException(status_code=401, detail="Invalid Bearer token")

    @app.middleware("http")
    async def origin_validation_mw(request: Request, call_next):
        # MCP spec requires Origin validation to prevent DNS rebinding
        # If provided and not allowed → 403
        if not _origin_allowed(request):
            return JSONResponse({"error": {"code": 403, "message": "Forbidden origin"}}, status_code=403)
        return await call_next(request)

    # ---------- MCP JSON-RPC endpoint (Streamable HTTP) ----------

    @app.post(settings.MCP_HTTP_PATH)
    async def mcp_endpoint(request: Request):
        _require_auth(request)

        try:
            payload = await request.json()
        except ValueError:
            return _jsonrpc_error(None, -32700, "Parse error")
        if not isinstance(payload, dict):
            return _jsonrpc_error(None, -32600, "Invalid Request")

        id_ = payload.get("id")
        method = payload.get("method")
        params = payload.get("params") or {}

        if method == "initialize":
            return _jsonrpc_result(id_, {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {"tools": {"listChanged": False}},
                "serverInfo": {"name": settings.MCP_SERVER_NAME, "version": settings.MCP_SERVER_VERSION},
            })

        if method == "tools/list":
            return _jsonrpc_result(id_, list_tools_payload(registry))

        if method == "tools/call":
            name = params.get("name")
            args = params.get("arguments") or {}
            try:
                result = dispatch_tool_call(registry, name, args)
            except KeyError as ke:
                return _jsonrpc_error(id_, -32601, str(ke))
            except ValidationError as ve:
                return _jsonrpc_error(id_, -32602, "Invalid params", ve.errors(include_url=False, include_context=False))
            except SandboxError as se:
                # Tool-level failure: reported inside the result, not as a protocol error
                return _jsonrpc_result(id_, _tool_content(se.to_dict(), is_error=True))
            except Exception as e:
                logger.exception("tool %s failed", name)
                return _jsonrpc_error(id_, -32603, "Internal error", str(e))

            return _jsonrpc_result(id_, _tool_content(result))

        return _jsonrpc_error(id_, -32601, f"Method not found: {method}")

    return app


if __name__ == "__main__":
    import uvicorn
    from sandbox_fs.logging import configure_logging

    _settings = Settings()
    configure_logging(_settings.LOG_LEVEL)
    uvicorn.run(
        "sandbox_fs_server.http_app:create_http_app",
        factory=True,
        host=_settings.MCP_HTTP_HOST,
        port=_settings.MCP_HTTP_PORT,
        reload=False,
    )
