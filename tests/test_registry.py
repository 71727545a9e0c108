# tests/test_registry.py
import base64
from pathlib import Path

import pytest
from pydantic import ValidationError

from sandbox_fs.config import Settings
from sandbox_fs.di import build_container
from sandbox_fs.logging import redact_args
from sandbox_fs.result import NotADirectory, PathEscapesRoot
from sandbox_fs_server.registry import build_tool_registry, dispatch_tool_call, list_tools_payload


@pytest.fixture
def registry(tmp_path: Path):
    container = build_container(Settings(SANDBOX_ROOT=tmp_path))
    return build_tool_registry(container)


def test_list_tools_payload(registry):
    payload = list_tools_payload(registry)
    names = {t["name"] for t in payload["tools"]}
    assert names == {
        "fs_exists", "fs_read", "fs_read_bytes", "fs_write", "fs_write_bytes", "fs_remove",
        "fs_size", "fs_mtime", "fs_set_mtime", "fs_list", "fs_list_recursive", "fs_mkdir",
    }
    for tool in payload["tools"]:
        assert "path" in tool["inputSchema"]["properties"]


def test_text_write_read(registry):
    assert dispatch_tool_call(registry, "fs_write", {"path": "notes/a.txt", "content": "hi"}) == "OK"
    assert dispatch_tool_call(registry, "fs_read", {"path": "notes/a.txt"}) == "hi"
    assert dispatch_tool_call(registry, "fs_exists", {"path": "notes/a.txt"}) is True
    assert dispatch_tool_call(registry, "fs_size", {"path": "notes/a.txt"}) == 2


def test_bytes_write_read(registry):
    raw = b"\x00\xffbinary\x00"
    b64 = base64.b64encode(raw).decode("ascii")
    dispatch_tool_call(registry, "fs_write_bytes", {"path": "b.bin", "content_b64": b64})
    assert dispatch_tool_call(registry, "fs_read_bytes", {"path": "b.bin"}) == b64


def test_listing_and_mkdir(registry):
    dispatch_tool_call(registry, "fs_mkdir", {"path": "d/e"})
    dispatch_tool_call(registry, "fs_write", {"path": "d/f.txt", "content": "x"})
    assert set(dispatch_tool_call(registry, "fs_list", {"path": "d"})) == {"d/e", "d/f.txt"}
    assert dispatch_tool_call(registry, "fs_list_recursive", {}) == ["d/f.txt"]
    with pytest.raises(NotADirectory):
        dispatch_tool_call(registry, "fs_list", {"path": "d/f.txt"})


def test_mtime_roundtrip(registry):
    dispatch_tool_call(registry, "fs_write", {"path": "m.txt", "content": "x"})
    dispatch_tool_call(registry, "fs_set_mtime", {"path": "m.txt", "mtime_ms": 1_500_000_000_000})
    assert abs(dispatch_tool_call(registry, "fs_mtime", {"path": "m.txt"}) - 1_500_000_000_000) <= 1000


def test_remove_missing_is_ok(registry):
    assert dispatch_tool_call(registry, "fs_remove", {"path": "ghost.txt"}) == "OK"


def test_escape_raises(registry):
    with pytest.raises(PathEscapesRoot):
        dispatch_tool_call(registry, "fs_read", {"path": "../../etc/passwd"})
    assert dispatch_tool_call(registry, "fs_exists", {"path": "../../etc/passwd"}) is False


def test_unknown_tool(registry):
    with pytest.raises(KeyError):
        dispatch_tool_call(registry, "fs_chmod", {"path": "x"})


def test_bad_arguments(registry):
    with pytest.raises(ValidationError):
        dispatch_tool_call(registry, "fs_write", {"path": "x"})
    with pytest.raises(ValidationError):
        dispatch_tool_call(registry, "fs_write_bytes", {"path": "x", "content_b64": "not base64!"})


def test_redact_args_hides_content():
    out = redact_args({"path": "mail/john.doe@example.com.txt", "content": "secret body"})
    assert out["content"] == "<11 chars>"
    assert "john.doe@example.com" not in out["path"]
