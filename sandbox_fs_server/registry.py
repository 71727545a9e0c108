# sandbox_fs_server/registry.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Type, Optional
from pydantic import BaseModel

from sandbox_fs.di import Container, build_container
from sandbox_fs.logging import log_tool_call

from sandbox_fs_server.tools.files import (
    FileTools,
    FsDirIn,
    FsPathIn,
    FsSetMtimeIn,
    FsWriteBytesIn,
    FsWriteIn,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    input_model: Type[BaseModel]
    handler: Callable[[BaseModel], Any]


def _schema_from_model(model: Type[BaseModel]) -> Dict[str, Any]:
    return model.model_json_schema()


def build_tool_registry(container: Optional[Container] = None) -> Dict[str, ToolSpec]:
    """
    Build a registry once at startup using DI.
    Transport layers (stdio/HTTP) read from this registry to expose tools.
    """
    container = container or build_container()
    tools = FileTools(container.fs_service)

    specs = [
        ToolSpec("fs_exists", "Check whether a path exists under sandbox root",
                 FsPathIn, tools.exists),
        ToolSpec("fs_read", "Read a text file under sandbox root",
                 FsPathIn, tools.read),
        ToolSpec("fs_read_bytes", "Read a file under sandbox root as base64",
                 FsPathIn, tools.read_bytes),
        ToolSpec("fs_write", "Write a text file under sandbox root",
                 FsWriteIn, tools.write),
        ToolSpec("fs_write_bytes", "Write base64 content to a file under sandbox root",
                 FsWriteBytesIn, tools.write_bytes),
        ToolSpec("fs_remove", "Remove a file or empty directory (no error if absent)",
                 FsPathIn, tools.remove),
        ToolSpec("fs_size", "Size of a file in bytes",
                 FsPathIn, tools.size),
        ToolSpec("fs_mtime", "Modification time (ms since epoch)",
                 FsPathIn, tools.mtime),
        ToolSpec("fs_set_mtime", "Set modification time (ms since epoch)",
                 FsSetMtimeIn, tools.set_mtime),
        ToolSpec("fs_list", "List immediate entries of a directory under sandbox root",
                 FsDirIn, tools.list),
        ToolSpec("fs_list_recursive", "List all files below a directory under sandbox root",
                 FsDirIn, tools.list_recursive),
        ToolSpec("fs_mkdir", "Create a directory (and parents) under sandbox root",
                 FsPathIn, tools.mkdir),
    ]
    return {spec.name: spec for spec in specs}


def list_tools_payload(registry: Dict[str, ToolSpec]) -> Dict[str, Any]:
    """
    Produce the `tools/list` payload body as per MCP Tools spec.
    """
    tools = []
    for spec in registry.values():
        tools.append({
            "name": spec.name,
            "description": spec.description,
            "inputSchema": _schema_from_model(spec.input_model),
        })
    return {"tools": tools}


def dispatch_tool_call(registry: Dict[str, ToolSpec], name: str, arguments: Dict[str, Any]) -> Any:
    """
    Validate args with the tool's Pydantic model, then invoke the named handler.
    """
    if name not in registry:
        raise KeyError(f"Tool not found: {name}")
    spec = registry[name]
    log_tool_call(logger, name, arguments)
    args_obj = spec.input_model(**arguments)
    return spec.handler(args_obj)
