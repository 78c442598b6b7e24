"""MCP server exposing My Desk records as tools."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .config import load_server_settings
from .models import RegisterKind, TaskStatus
from .remote_store import RemoteStore

mcp = FastMCP("my-desk")

_store: Optional[RemoteStore] = None


def get_store() -> RemoteStore:
    global _store
    if _store is None:
        settings = load_server_settings()
        _store = RemoteStore(settings.data_dir, settings.inward_dir, settings.outward_dir)
    return _store


def _ensure_date(day_str: Optional[str] = None) -> str:
    if not day_str:
        return datetime.now(timezone.utc).date().isoformat()
    try:
        return datetime.strptime(day_str, "%Y-%m-%d").date().isoformat()
    except ValueError as exc:
        raise ValueError("Invalid date format. Use YYYY-MM-DD.") from exc


@mcp.tool()
async def list_tasks(status: Optional[str] = None) -> dict:
    """Return tasks, optionally filtered by status (Pending, In-Progress, Done)."""

    tasks = get_store().list_tasks()
    if status:
        wanted = TaskStatus(status).value
        tasks = [task for task in tasks if task.get("status") == wanted]
    return {"tasks": tasks}


@mcp.tool()
async def get_attendance(date: Optional[str] = None) -> dict:
    """Return the attendance record for a date (defaults to today)."""

    day = _ensure_date(date)
    return {"date": day, "record": get_store().get_attendance().get(day)}


@mcp.tool()
async def find_register_entry(register: str, file_no: str) -> dict:
    """Look up an inward or outward entry by file number (case-insensitive)."""

    kind = RegisterKind(register.lower())
    return {"register": kind.value, "entry": get_store().find_by_file_no(kind, file_no)}


@mcp.tool()
async def list_offices() -> dict:
    """Return the known office names."""

    return {"offices": get_store().get_offices()}


def serve() -> None:
    mcp.run()


__all__ = [
    "mcp",
    "serve",
    "get_store",
    "list_tasks",
    "get_attendance",
    "find_register_entry",
    "list_offices",
]


if __name__ == "__main__":  # pragma: no cover
    serve()
