"""Offline import of a Local Store export straight into the server's files."""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List

from .attachments import decode_data_url, safe_filename
from .models import (
    RegisterKind,
    TaskPriority,
    TaskStatus,
    coerce_dict,
    coerce_list,
    normalize_offices,
    utc_now_iso,
)
from .remote_store import ATTENDANCE, OFFICES, PROFILE, TASKS, RemoteStore, file_url

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ImportReport:
    inward_added: int = 0
    outward_added: int = 0
    tasks_added: int = 0
    attendance_keys: int = 0
    profile_updated: bool = False
    offices_added: int = 0

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_snapshot(path: Path) -> Dict[str, Any]:
    with path.open(encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain an export object")
    return data


def _import_register(
    store: RemoteStore, kind: RegisterKind, items: List[Any]
) -> int:
    entries = store.list_register(kind)
    known = {str(entry.get("fileNo") or "").lower() for entry in entries}
    added = 0
    for raw in items:
        item = coerce_dict(raw)
        file_no = str(item.get("fileNo") or "").strip()
        office = kind.office_of(item)
        if not file_no or not office or file_no.lower() in known:
            continue

        document = coerce_dict(item.get("document"))
        name = document.get("name") or f"{file_no}.bin"
        if decode_data_url(document.get("data")) is not None:
            filename, size = store.save_attachment(kind, name, document.get("data"))
        else:
            filename, size = safe_filename(name), int(document.get("size") or 0)

        entries.insert(
            0,
            {
                "id": item.get("id") or str(uuid.uuid4()),
                "date": item.get("date") or utc_now_iso(),
                "fileNo": file_no,
                kind.office_field: office,
                "subject": item.get("subject") or "",
                "note": item.get("note") or "",
                "document": {"name": filename, "type": document.get("type") or "", "size": size},
                "fileUrl": file_url(kind, filename),
            },
        )
        known.add(file_no.lower())
        added += 1
    store.write(kind.value, entries)
    return added


def _import_tasks(store: RemoteStore, items: List[Any]) -> int:
    tasks = store.list_tasks()
    added = 0
    for raw in items:
        task = coerce_dict(raw)
        exists = any(
            (task.get("id") and existing.get("id") == task.get("id"))
            or (
                existing.get("title") == task.get("title")
                and existing.get("dueDate") == task.get("dueDate")
            )
            for existing in tasks
        )
        if exists:
            continue
        now = utc_now_iso()
        tasks.append(
            {
                "id": task.get("id") or str(uuid.uuid4()),
                "title": task.get("title"),
                "description": task.get("description") or "",
                "priority": task.get("priority") or TaskPriority.MEDIUM.value,
                "status": task.get("status") or TaskStatus.PENDING.value,
                "dueDate": task.get("dueDate"),
                "createdAt": task.get("createdAt") or now,
                "updatedAt": task.get("updatedAt") or now,
                "relatedDocId": task.get("relatedDocId") or "",
            }
        )
        added += 1
    store.write(TASKS, tasks)
    return added


def import_snapshot(snapshot: Dict[str, Any], store: RemoteStore) -> ImportReport:
    """Merge an export snapshot into ``store`` and report what changed."""

    report = ImportReport()
    report.inward_added = _import_register(
        store, RegisterKind.INWARD, coerce_list(snapshot.get("inward"))
    )
    report.outward_added = _import_register(
        store, RegisterKind.OUTWARD, coerce_list(snapshot.get("outward"))
    )

    incoming = coerce_dict(snapshot.get("attendance"))
    attendance = store.get_attendance()
    attendance.update(incoming)
    store.write(ATTENDANCE, attendance)
    report.attendance_keys = len(incoming)

    report.tasks_added = _import_tasks(store, coerce_list(snapshot.get("tasks")))

    profile = coerce_dict(snapshot.get("profile"))
    if profile:
        store.write(PROFILE, dict(profile))
        report.profile_updated = True

    offices = store.get_offices()
    merged = normalize_offices([*offices, *coerce_list(snapshot.get("offices"))])
    report.offices_added = max(0, len(merged) - len(offices))
    store.write(OFFICES, merged)

    logger.info("Imported snapshot: %s", report.as_dict())
    return report


__all__ = ["ImportReport", "import_snapshot", "load_snapshot"]
