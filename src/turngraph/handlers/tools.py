from __future__ import annotations

from typing import Any

TOOL_TYPES: dict[str, str] = {
    "Read": "file_read",
    "Write": "file_write",
    "Edit": "file_edit",
    "Bash": "bash_exec",
    "Glob": "file_glob",
    "Grep": "file_grep",
}

MCP_PREFIX = "mcp__"
GENERIC = "generic"

# tool type -> file action recorded on the touch
FILE_ACTIONS: dict[str, str] = {
    "file_read": "read",
    "file_write": "write",
    "file_edit": "edit",
}


def infer_tool_type(name: str | None) -> str:
    if not name:
        return GENERIC
    if name in TOOL_TYPES:
        return TOOL_TYPES[name]
    if name.startswith(MCP_PREFIX):
        return "mcp"
    return GENERIC


def file_path_from_args(args: Any) -> str | None:
    if isinstance(args, dict):
        path = args.get("file_path")
        if isinstance(path, str) and path:
            return path
    return None
