"""JSON-file persistence layer behind the My Desk API."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from .attachments import remove_attachment, store_attachment
from .exceptions import DuplicateFileNumberError, NotFoundError, ValidationError
from .models import (
    DEFAULT_OFFICES,
    DocumentInfo,
    RegisterEntry,
    RegisterKind,
    Task,
    TaskPriority,
    TaskStatus,
    coerce_dict,
    normalize_offices,
    utc_now_iso,
)

logger = logging.getLogger(__name__)

ATTENDANCE = "attendance"
TASKS = "tasks"
PROFILE = "profile"
OFFICES = "offices"

_PRIORITIES = {priority.value for priority in TaskPriority}
_STATUSES = {status.value for status in TaskStatus}


class RemoteStore:
    """Server-side collections persisted as one JSON file each.

    Register indexes live next to their attachments (``inward/inward.json``);
    the remaining collections sit in the data directory.
    """

    def __init__(
        self,
        data_dir: Path,
        inward_dir: Optional[Path] = None,
        outward_dir: Optional[Path] = None,
    ) -> None:
        self._data_dir = data_dir
        self._register_dirs = {
            RegisterKind.INWARD: inward_dir or data_dir / "inward",
            RegisterKind.OUTWARD: outward_dir or data_dir / "outward",
        }
        self._files: Dict[str, Path] = {
            RegisterKind.INWARD.value: self._register_dirs[RegisterKind.INWARD] / "inward.json",
            RegisterKind.OUTWARD.value: self._register_dirs[RegisterKind.OUTWARD] / "outward.json",
            ATTENDANCE: data_dir / "attendance.json",
            TASKS: data_dir / "tasks.json",
            PROFILE: data_dir / "profile.json",
            OFFICES: data_dir / "offices.json",
        }
        self._initialize()

    def _initialize(self) -> None:
        self._data_dir.mkdir(parents=True, exist_ok=True)
        for kind, directory in self._register_dirs.items():
            directory.mkdir(parents=True, exist_ok=True)
            if not self._files[kind.value].exists():
                self.write(kind.value, [])
        if not self._files[OFFICES].exists():
            self.write(OFFICES, list(DEFAULT_OFFICES))

    def _default(self, collection: str) -> Any:
        return {} if collection in (ATTENDANCE, PROFILE) else []

    def read(self, collection: str) -> Any:
        path = self._files[collection]
        if not path.exists():
            return self._default(collection)
        try:
            raw = path.read_text(encoding="utf-8")
            data = json.loads(raw or "null")
        except (OSError, ValueError) as exc:
            logger.error("Failed to load %s: %s", path, exc)
            return self._default(collection)
        expected = type(self._default(collection))
        return data if isinstance(data, expected) else self._default(collection)

    def write(self, collection: str, data: Any) -> None:
        path = self._files[collection]
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def register_dir(self, kind: RegisterKind) -> Path:
        return self._register_dirs[kind]

    def _reserved(self, kind: RegisterKind) -> tuple[str, ...]:
        return (self._files[kind.value].name,)

    def save_attachment(
        self, kind: RegisterKind, name: Optional[str], data_url: Optional[str]
    ) -> tuple[str, int]:
        """Store a register attachment next to, but never over, its index."""

        return store_attachment(
            self._register_dirs[kind], name, data_url, reserved=self._reserved(kind)
        )

    def _remove_attachment(self, kind: RegisterKind, name: Optional[str]) -> None:
        remove_attachment(self._register_dirs[kind], name, reserved=self._reserved(kind))

    def attachment_path(self, kind: RegisterKind, name: str) -> Optional[Path]:
        path = self._register_dirs[kind] / Path(name).name
        if path.name == self._files[kind.value].name or not path.is_file():
            return None
        return path

    # region Registers
    def list_register(self, kind: RegisterKind) -> List[Dict[str, Any]]:
        return self.read(kind.value)

    def find_by_file_no(self, kind: RegisterKind, file_no: str) -> Optional[Dict[str, Any]]:
        wanted = file_no.strip().lower()
        for entry in self.list_register(kind):
            if str(entry.get("fileNo") or "").strip().lower() == wanted:
                return entry
        return None

    def create_register_entry(self, kind: RegisterKind, payload: Any) -> Dict[str, Any]:
        payload = coerce_dict(payload)
        file_no = str(payload.get("fileNo") or "").strip()
        office = kind.office_of(payload).strip()
        document = coerce_dict(payload.get("document"))
        if not file_no or not office or not document.get("data") or not document.get("name"):
            raise ValidationError("Missing required fields")

        entries = self.list_register(kind)
        if _has_file_no(entries, file_no):
            raise DuplicateFileNumberError(file_no)

        filename, size = self.save_attachment(kind, document.get("name"), document.get("data"))
        entry = RegisterEntry(
            id=str(uuid.uuid4()),
            kind=kind,
            file_no=file_no,
            office=office,
            subject=str(payload.get("subject") or "").strip(),
            note=str(payload.get("note") or "").strip(),
            document=DocumentInfo(name=filename, type=str(document.get("type") or ""), size=size),
            file_url=file_url(kind, filename),
            date=utc_now_iso(),
        )
        item = entry.to_dict()
        entries.insert(0, item)
        self.write(kind.value, entries)
        logger.info("Created %s entry %s", kind.value, file_no)
        return item

    def update_register_entry(
        self, kind: RegisterKind, entry_id: str, patch: Any
    ) -> Dict[str, Any]:
        patch = coerce_dict(patch)
        entries = self.list_register(kind)
        idx = _index_of(entries, entry_id)
        current = entries[idx]

        next_file_no = (
            str(patch["fileNo"]).strip()
            if patch.get("fileNo") is not None
            else str(current.get("fileNo") or "")
        )
        if not next_file_no:
            raise ValidationError("fileNo required")
        others = entries[:idx] + entries[idx + 1:]
        if _has_file_no(others, next_file_no):
            raise DuplicateFileNumberError(next_file_no)

        updated = {**current, "fileNo": next_file_no}
        if patch.get(kind.office_field) is not None:
            updated[kind.office_field] = str(patch[kind.office_field]).strip()
        for key in ("subject", "note"):
            if patch.get(key) is not None:
                updated[key] = str(patch[key] or "").strip()

        document = coerce_dict(patch.get("document"))
        if document.get("data") and document.get("name"):
            previous = coerce_dict(current.get("document")).get("name")
            filename, size = self.save_attachment(kind, document["name"], document["data"])
            updated["document"] = DocumentInfo(
                name=filename, type=str(document.get("type") or ""), size=size
            ).to_dict()
            updated["fileUrl"] = file_url(kind, filename)
            if previous and previous != filename:
                self._remove_attachment(kind, previous)

        updated["date"] = updated.get("date") or utc_now_iso()
        entries[idx] = updated
        self.write(kind.value, entries)
        return updated

    def delete_register_entry(self, kind: RegisterKind, entry_id: str) -> None:
        entries = self.list_register(kind)
        idx = _index_of(entries, entry_id)
        removed = entries.pop(idx)
        self.write(kind.value, entries)
        self._remove_attachment(kind, coerce_dict(removed.get("document")).get("name"))

    # endregion

    # region Attendance
    def get_attendance(self) -> Dict[str, Any]:
        return self.read(ATTENDANCE)

    def upsert_attendance(self, day: Any, record: Any) -> Dict[str, Any]:
        if not day or record is None:
            raise ValidationError("Missing date/record")
        try:
            datetime.strptime(str(day), "%Y-%m-%d")
        except ValueError as exc:
            raise ValidationError("Invalid date format. Use YYYY-MM-DD") from exc
        attendance = self.get_attendance()
        attendance[str(day)] = record
        self.write(ATTENDANCE, attendance)
        return attendance

    # endregion

    # region Tasks
    def list_tasks(self) -> List[Dict[str, Any]]:
        return self.read(TASKS)

    def create_task(self, payload: Any) -> Dict[str, Any]:
        payload = coerce_dict(payload)
        if not payload.get("title") or not payload.get("dueDate"):
            raise ValidationError("Missing title/dueDate")
        _check_task_enums(payload)
        task = Task(
            id=str(uuid.uuid4()),
            title=str(payload["title"]),
            due_date=str(payload["dueDate"]),
            description=str(payload.get("description") or ""),
            priority=payload.get("priority") or TaskPriority.MEDIUM.value,
            status=payload.get("status") or TaskStatus.PENDING.value,
            related_doc_id=str(payload.get("relatedDocId") or ""),
        )
        item = task.to_dict()
        tasks = self.list_tasks()
        tasks.append(item)
        self.write(TASKS, tasks)
        return item

    def update_task(self, task_id: str, patch: Any) -> Dict[str, Any]:
        patch = coerce_dict(patch)
        _check_task_enums(patch)
        tasks = self.list_tasks()
        idx = _index_of(tasks, task_id)
        updated = {**tasks[idx], **patch, "id": tasks[idx]["id"], "updatedAt": utc_now_iso()}
        tasks[idx] = updated
        self.write(TASKS, tasks)
        return updated

    def delete_task(self, task_id: str) -> None:
        tasks = self.list_tasks()
        tasks.pop(_index_of(tasks, task_id))
        self.write(TASKS, tasks)

    # endregion

    # region Profile
    def get_profile(self) -> Dict[str, Any]:
        return self.read(PROFILE)

    def save_profile(self, profile: Any) -> Dict[str, Any]:
        if not isinstance(profile, dict):
            raise ValidationError("Expected object")
        self.write(PROFILE, profile)
        return profile

    # endregion

    # region Offices
    def get_offices(self) -> List[str]:
        return self.read(OFFICES)

    def save_offices(self, offices: Any) -> List[str]:
        if not isinstance(offices, list):
            raise ValidationError("Expected array")
        merged = normalize_offices(offices)
        self.write(OFFICES, merged)
        return merged

    # endregion


def file_url(kind: RegisterKind, filename: str) -> str:
    return f"/files/{kind.value}/{quote(filename)}"


def _has_file_no(entries: List[Dict[str, Any]], file_no: str) -> bool:
    wanted = file_no.strip().lower()
    return any(str(entry.get("fileNo") or "").strip().lower() == wanted for entry in entries)


def _index_of(items: List[Dict[str, Any]], item_id: str) -> int:
    for idx, item in enumerate(items):
        if str(item.get("id")) == str(item_id):
            return idx
    raise NotFoundError("Not found")


def _check_task_enums(payload: Dict[str, Any]) -> None:
    priority = payload.get("priority")
    if priority and priority not in _PRIORITIES:
        raise ValidationError(f"Invalid priority: {priority}")
    status = payload.get("status")
    if status and status not in _STATUSES:
        raise ValidationError(f"Invalid status: {status}")


__all__ = ["RemoteStore", "file_url", "ATTENDANCE", "TASKS", "PROFILE", "OFFICES"]
