"""One-shot migration of client-local records into the Remote Store."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol

from .local_store import LocalKeys
from .models import (
    RegisterKind,
    TaskPriority,
    TaskStatus,
    coerce_dict,
    coerce_list,
    normalize_offices,
    parse_timestamp,
)

logger = logging.getLogger(__name__)


class LocalSource(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...


class MigrationFlag(Protocol):
    def is_migrated(self) -> bool: ...

    def mark_migrated(self) -> bool: ...


class RemoteApi(Protocol):
    async def get_inward(self) -> List[Dict[str, Any]]: ...

    async def add_inward(self, payload: Dict[str, Any]) -> Dict[str, Any]: ...

    async def get_outward(self) -> List[Dict[str, Any]]: ...

    async def add_outward(self, payload: Dict[str, Any]) -> Dict[str, Any]: ...

    async def get_attendance(self) -> Dict[str, Any]: ...

    async def upsert_attendance(self, day: str, record: Dict[str, Any]) -> Dict[str, Any]: ...

    async def get_tasks(self) -> List[Dict[str, Any]]: ...

    async def add_task(self, task: Dict[str, Any]) -> Dict[str, Any]: ...

    async def get_profile(self) -> Dict[str, Any]: ...

    async def save_profile(self, profile: Dict[str, Any]) -> Dict[str, Any]: ...

    async def get_offices(self) -> List[str]: ...

    async def save_offices(self, offices: List[str]) -> List[str]: ...


class ItemResult(str, Enum):
    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(slots=True)
class CollectionOutcome:
    """Per-collection tally; ``created`` counts every write issued successfully."""

    name: str
    created: int = 0
    skipped: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)
    fetch_error: Optional[str] = None

    def record(self, result: ItemResult, error: Optional[str] = None) -> ItemResult:
        if result is ItemResult.CREATED:
            self.created += 1
        elif result is ItemResult.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1
            if error:
                self.errors.append(error)
        return result

    @property
    def ok(self) -> bool:
        return self.fetch_error is None and self.failed == 0


@dataclass(slots=True)
class MigrationReport:
    ran: bool
    migrated: bool
    outcomes: Dict[str, CollectionOutcome] = field(default_factory=dict)

    @property
    def created(self) -> int:
        return sum(outcome.created for outcome in self.outcomes.values())

    @property
    def failed(self) -> int:
        return sum(outcome.failed for outcome in self.outcomes.values())


INWARD = RegisterKind.INWARD.value
OUTWARD = RegisterKind.OUTWARD.value
ATTENDANCE = "attendance"
TASKS = "tasks"
PROFILE = "profile"
OFFICES = "offices"


def task_signature(task: Dict[str, Any]) -> tuple[str, str]:
    return str(task.get("title") or "").lower(), str(task.get("dueDate") or "")


class Reconciler:
    """Pushes local-only records to the Remote Store without duplicating it.

    Each collection is reconciled independently; a failure in one never
    aborts the others. Item failures are logged and counted, never raised.
    The Local Store is only read.
    """

    def __init__(
        self,
        local: LocalSource,
        remote: RemoteApi,
        on_busy: Optional[Callable[[bool], None]] = None,
    ) -> None:
        self.local = local
        self.remote = remote
        self.on_busy = on_busy

    async def run(self, already_migrated: bool) -> MigrationReport:
        if already_migrated:
            logger.debug("Local data already migrated; skipping")
            return MigrationReport(ran=False, migrated=True)

        self._signal_busy(True)
        try:
            outcomes = await asyncio.gather(
                self._guard(INWARD, lambda o: self.reconcile_register(RegisterKind.INWARD, o)),
                self._guard(OUTWARD, lambda o: self.reconcile_register(RegisterKind.OUTWARD, o)),
                self._guard(ATTENDANCE, self.reconcile_attendance),
                self._guard(TASKS, self.reconcile_tasks),
                self._guard(PROFILE, self.reconcile_profile),
                self._guard(OFFICES, self.reconcile_offices),
            )
        finally:
            self._signal_busy(False)

        report = MigrationReport(
            ran=True, migrated=True, outcomes={outcome.name: outcome for outcome in outcomes}
        )
        logger.info("Migration finished: %s written, %s failed", report.created, report.failed)
        return report

    def _signal_busy(self, active: bool) -> None:
        if self.on_busy is None:
            return
        try:
            self.on_busy(active)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Busy callback failed: %s", exc)

    async def _guard(
        self, name: str, step: Callable[[CollectionOutcome], Awaitable[None]]
    ) -> CollectionOutcome:
        outcome = CollectionOutcome(name=name)
        try:
            await step(outcome)
        except Exception as exc:  # noqa: BLE001
            outcome.fetch_error = str(exc)
            logger.warning("Migration of %s aborted: %s", name, exc)
        logger.info(
            "Migrated %s: %s written, %s skipped, %s failed",
            name,
            outcome.created,
            outcome.skipped,
            outcome.failed,
        )
        return outcome

    async def _push(self, outcome: CollectionOutcome, call: Awaitable[Any]) -> ItemResult:
        try:
            await call
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to push %s item: %s", outcome.name, exc)
            return outcome.record(ItemResult.FAILED, str(exc))
        return outcome.record(ItemResult.CREATED)

    # region Collections
    async def reconcile_register(self, kind: RegisterKind, outcome: CollectionOutcome) -> None:
        if kind is RegisterKind.INWARD:
            fetch, add, key = self.remote.get_inward, self.remote.add_inward, LocalKeys.INWARD
        else:
            fetch, add, key = self.remote.get_outward, self.remote.add_outward, LocalKeys.OUTWARD

        remote_nos = {
            str(coerce_dict(entry).get("fileNo") or "").lower()
            for entry in coerce_list(await fetch())
        }
        for entry in coerce_list(self.local.get(key, [])):
            entry = coerce_dict(entry)
            file_no = str(entry.get("fileNo") or "")
            document = coerce_dict(entry.get("document"))
            if not file_no or file_no.lower() in remote_nos or not document.get("data"):
                outcome.record(ItemResult.SKIPPED)
                continue
            payload = {
                "fileNo": file_no,
                kind.office_field: kind.office_of(entry),
                "subject": entry.get("subject") or "",
                "note": entry.get("note") or "",
                "document": document,
            }
            await self._push(outcome, add(payload))

    async def reconcile_attendance(self, outcome: CollectionOutcome) -> None:
        remote = coerce_dict(await self.remote.get_attendance())
        for day, record in coerce_dict(self.local.get(LocalKeys.ATTENDANCE, {})).items():
            if day in remote and remote[day] == record:
                outcome.record(ItemResult.SKIPPED)
                continue
            await self._push(outcome, self.remote.upsert_attendance(day, record))

    async def reconcile_tasks(self, outcome: CollectionOutcome) -> None:
        remote_tasks = [coerce_dict(task) for task in coerce_list(await self.remote.get_tasks())]
        remote_ids = {str(task["id"]) for task in remote_tasks if task.get("id")}
        remote_sigs = {task_signature(task) for task in remote_tasks}

        for task in coerce_list(self.local.get(LocalKeys.TASKS, [])):
            task = coerce_dict(task)
            task_id = str(task.get("id") or "")
            if (task_id and task_id in remote_ids) or task_signature(task) in remote_sigs:
                outcome.record(ItemResult.SKIPPED)
                continue
            payload = {
                "title": task.get("title"),
                "description": task.get("description") or "",
                "priority": task.get("priority") or TaskPriority.MEDIUM.value,
                "status": task.get("status") or TaskStatus.PENDING.value,
                "dueDate": task.get("dueDate"),
                "relatedDocId": task.get("relatedDocId") or "",
            }
            await self._push(outcome, self.remote.add_task(payload))

    async def reconcile_profile(self, outcome: CollectionOutcome) -> None:
        remote = coerce_dict(await self.remote.get_profile())
        local = self.local.get(LocalKeys.PROFILE, None)
        if not isinstance(local, dict):
            return
        if parse_timestamp(local.get("updatedAt")) > parse_timestamp(remote.get("updatedAt")):
            await self._push(outcome, self.remote.save_profile(local))
        else:
            outcome.record(ItemResult.SKIPPED)

    async def reconcile_offices(self, outcome: CollectionOutcome) -> None:
        remote = coerce_list(await self.remote.get_offices())
        local = coerce_list(self.local.get(LocalKeys.OFFICES, []))
        merged = normalize_offices([*remote, *local])
        # Length-only change detection.
        if len(merged) != len(remote):
            await self._push(outcome, self.remote.save_offices(merged))
        else:
            outcome.record(ItemResult.SKIPPED)

    # endregion


async def run_startup_migration(
    store: MigrationFlag, reconciler: Reconciler
) -> MigrationReport:
    """Run the reconciler once per installation, guarded by the migrated flag.

    The flag is set even when the run fails part-way, so a partial migration
    is never retried automatically.
    """

    already = store.is_migrated()
    try:
        return await reconciler.run(already)
    finally:
        if not already:
            store.mark_migrated()


__all__ = [
    "Reconciler",
    "ItemResult",
    "CollectionOutcome",
    "MigrationReport",
    "task_signature",
    "run_startup_migration",
]
