"""Dataclasses representing My Desk domain records."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List

DEFAULT_OFFICES = [
    "General Administration",
    "Accounts Section",
    "HR Department",
]


class RegisterKind(str, Enum):
    INWARD = "inward"
    OUTWARD = "outward"

    @property
    def office_field(self) -> str:
        return "fromOffice" if self is RegisterKind.INWARD else "toOffice"

    @property
    def legacy_office_field(self) -> str:
        return "from" if self is RegisterKind.INWARD else "to"

    def office_of(self, entry: Dict[str, Any]) -> str:
        """Counterpart office of a wire record, accepting the legacy key."""

        return str(entry.get(self.office_field) or entry.get(self.legacy_office_field) or "")


class TaskPriority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class TaskStatus(str, Enum):
    PENDING = "Pending"
    IN_PROGRESS = "In-Progress"
    DONE = "Done"


@dataclass(slots=True)
class DocumentInfo:
    name: str
    type: str = ""
    size: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type, "size": self.size}


@dataclass(slots=True)
class RegisterEntry:
    id: str
    kind: RegisterKind
    file_no: str
    office: str
    document: DocumentInfo
    file_url: str
    date: str
    subject: str = ""
    note: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "fileNo": self.file_no,
            self.kind.office_field: self.office,
            "subject": self.subject,
            "note": self.note,
            "document": self.document.to_dict(),
            "fileUrl": self.file_url,
        }


@dataclass(slots=True)
class Task:
    id: str
    title: str
    due_date: str
    description: str = ""
    priority: str = TaskPriority.MEDIUM.value
    status: str = TaskStatus.PENDING.value
    related_doc_id: str = ""
    created_at: str = field(default_factory=lambda: utc_now_iso())
    updated_at: str = field(default_factory=lambda: utc_now_iso())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "priority": self.priority,
            "status": self.status,
            "description": self.description,
            "relatedDocId": self.related_doc_id,
            "title": self.title,
            "dueDate": self.due_date,
        }


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: Any) -> float:
    """Epoch seconds for an ISO timestamp; missing or invalid values are 0."""

    text = str(value or "").strip()
    if not text:
        return 0.0
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return 0.0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def normalize_offices(values: Iterable[Any]) -> List[str]:
    """Trim, drop empties, dedupe case-insensitively and sort office names."""

    seen: set[str] = set()
    merged: List[str] = []
    for value in values:
        name = str(value if value is not None else "").strip()
        if not name:
            continue
        key = name.casefold()
        if key in seen:
            continue
        seen.add(key)
        merged.append(name)
    return sorted(merged, key=lambda name: (name.casefold(), name))


def coerce_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def coerce_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


__all__ = [
    "DEFAULT_OFFICES",
    "RegisterKind",
    "TaskPriority",
    "TaskStatus",
    "DocumentInfo",
    "RegisterEntry",
    "Task",
    "utc_now_iso",
    "parse_timestamp",
    "normalize_offices",
    "coerce_list",
    "coerce_dict",
]
