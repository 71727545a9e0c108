# sandbox_fs_server/tools/files.py
import base64
import binascii
from typing import List

from pydantic import BaseModel, Field, field_validator
from fastmcp import FastMCP

from sandbox_fs.services.filesystem import FileSystemService


class FsPathIn(BaseModel):
    path: str = Field(..., description="Relative path under sandbox root")


class FsDirIn(BaseModel):
    path: str = Field("", description="Relative directory under sandbox root ('' for the root)")


class FsWriteIn(BaseModel):
    path: str = Field(..., description="Relative path under sandbox root")
    content: str = Field(..., description="UTF-8 text content to write")


class FsWriteBytesIn(BaseModel):
    path: str = Field(..., description="Relative path under sandbox root")
    content_b64: str = Field(..., description="Base64-encoded file content")

    @field_validator("content_b64")
    @classmethod
    def check_b64(cls, v: str) -> str:
        try:
            base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"content_b64 is not valid base64: {e}") from e
        return v


class FsSetMtimeIn(BaseModel):
    path: str = Field(..., description="Relative path under sandbox root")
    mtime_ms: int = Field(..., description="Modification time, milliseconds since the Unix epoch")


class FileTools:
    """
    Tool bodies shared by every transport. Each one calls the service and
    unwraps its Result, so failures surface as SandboxError exceptions.
    """

    def __init__(self, fs_service: FileSystemService):
        self.fs = fs_service

    def exists(self, args: FsPathIn) -> bool:
        return self.fs.exists(args.path)

    def read(self, args: FsPathIn) -> str:
        return self.fs.read_string(args.path).unwrap()

    def read_bytes(self, args: FsPathIn) -> str:
        data = self.fs.read(args.path).unwrap()
        return base64.b64encode(data).decode("ascii")

    def write(self, args: FsWriteIn) -> str:
        self.fs.write(args.path, args.content).unwrap()
        return "OK"

    def write_bytes(self, args: FsWriteBytesIn) -> str:
        data = base64.b64decode(args.content_b64, validate=True)
        self.fs.write(args.path, data).unwrap()
        return "OK"

    def remove(self, args: FsPathIn) -> str:
        self.fs.remove(args.path).unwrap()
        return "OK"

    def size(self, args: FsPathIn) -> int:
        return self.fs.size(args.path).unwrap()

    def mtime(self, args: FsPathIn) -> int:
        return self.fs.mtime(args.path).unwrap()

    def set_mtime(self, args: FsSetMtimeIn) -> str:
        self.fs.set_mtime(args.path, args.mtime_ms).unwrap()
        return "OK"

    def list(self, args: FsDirIn) -> List[str]:
        return self.fs.list(args.path).unwrap()

    def list_recursive(self, args: FsDirIn) -> List[str]:
        return self.fs.list_recursive(args.path).unwrap()

    def mkdir(self, args: FsPathIn) -> str:
        self.fs.mkdir(args.path).unwrap()
        return "OK"


def register_file_tools(mcp: FastMCP, fs_service: FileSystemService):
    """
    Very thin tool adapters:
    - validate/deserialize inputs (Pydantic)
    - call the service (business logic + security)
    - return the result
    """
    tools = FileTools(fs_service)

    @mcp.tool(name="fs_exists", description="Check whether a path exists under sandbox root")
    def fs_exists(input: FsPathIn) -> bool:
        return tools.exists(input)

    @mcp.tool(name="fs_read", description="Read a text file under sandbox root")
    def fs_read(input: FsPathIn) -> str:
        return tools.read(input)

    @mcp.tool(name="fs_read_bytes", description="Read a file under sandbox root as base64")
    def fs_read_bytes(input: FsPathIn) -> str:
        return tools.read_bytes(input)

    @mcp.tool(name="fs_write", description="Write a text file under sandbox root")
    def fs_write(input: FsWriteIn) -> str:
        return tools.write(input)

    @mcp.tool(name="fs_write_bytes", description="Write base64 content to a file under sandbox root")
    def fs_write_bytes(input: FsWriteBytesIn) -> str:
        return tools.write_bytes(input)

    @mcp.tool(name="fs_remove", description="Remove a file or empty directory (no error if absent)")
    def fs_remove(input: FsPathIn) -> str:
        return tools.remove(input)

    @mcp.tool(name="fs_size", description="Size of a file in bytes")
    def fs_size(input: FsPathIn) -> int:
        return tools.size(input)

    @mcp.tool(name="fs_mtime", description="Modification time (ms since epoch)")
    def fs_mtime(input: FsPathIn) -> int:
        return tools.mtime(input)

    @mcp.tool(name="fs_set_mtime", description="Set modification time (ms since epoch)")
    def fs_set_mtime(input: FsSetMtimeIn) -> str:
        return tools.set_mtime(input)

    @mcp.tool(name="fs_list", description="List immediate entries of a directory under sandbox root")
    def fs_list(input: FsDirIn) -> List[str]:
        return tools.list(input)

    @mcp.tool(name="fs_list_recursive", description="List all files below a directory under sandbox root")
    def fs_list_recursive(input: FsDirIn) -> List[str]:
        return tools.list_recursive(input)

    @mcp.tool(name="fs_mkdir", description="Create a directory (and parents) under sandbox root")
    def fs_mkdir(input: FsPathIn) -> str:
        return tools.mkdir(input)
