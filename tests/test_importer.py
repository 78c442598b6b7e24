from __future__ import annotations

import json

import pytest

from my_desk.importer import import_snapshot, load_snapshot
from my_desk.models import DEFAULT_OFFICES, RegisterKind
from my_desk.remote_store import RemoteStore

PDF = "data:application/pdf;base64,SGVsbG8="


@pytest.fixture
def store(tmp_path):
    return RemoteStore(tmp_path / "server")


def _snapshot():
    return {
        "inward": [
            {
                "id": "in-1",
                "date": "2025-01-02T10:00:00Z",
                "fileNo": "101/GA/2025",
                "from": "HR Department",
                "document": {"data": PDF, "name": "scan.pdf", "type": "application/pdf"},
            },
            {"fileNo": "102/GA/2025", "fromOffice": "Accounts Section",
             "document": {"name": "gone.pdf", "size": 12}},
            {"fileNo": "", "fromOffice": "HR Department"},
            {"fileNo": "103/GA/2025"},
        ],
        "outward": [],
        "attendance": {"2025-01-05": {"type": "present"}},
        "tasks": [
            {"id": "t-1", "title": "Audit", "dueDate": "2025-02-01",
             "createdAt": "2025-01-01T00:00:00Z"},
            {"title": "Audit", "dueDate": "2025-02-01"},
        ],
        "profile": {"name": "A. Clerk"},
        "offices": ["Registry", "hr department"],
    }


def test_import_snapshot_merges_everything(store):
    report = import_snapshot(_snapshot(), store)

    assert report.as_dict() == {
        "inward_added": 2,
        "outward_added": 0,
        "tasks_added": 1,
        "attendance_keys": 1,
        "profile_updated": True,
        "offices_added": 1,
    }
    inward = {entry["fileNo"]: entry for entry in store.list_register(RegisterKind.INWARD)}
    assert inward["101/GA/2025"]["id"] == "in-1"
    assert inward["101/GA/2025"]["date"] == "2025-01-02T10:00:00Z"
    assert inward["101/GA/2025"]["fromOffice"] == "HR Department"
    assert (store.register_dir(RegisterKind.INWARD) / "scan.pdf").read_bytes() == b"Hello"
    assert inward["102/GA/2025"]["document"] == {"name": "gone.pdf", "type": "", "size": 12}

    tasks = store.list_tasks()
    assert len(tasks) == 1
    assert tasks[0]["id"] == "t-1"
    assert tasks[0]["createdAt"] == "2025-01-01T00:00:00Z"

    assert store.get_profile() == {"name": "A. Clerk"}
    assert store.get_offices() == sorted([*DEFAULT_OFFICES, "Registry"], key=str.casefold)


def test_reimport_adds_nothing(store):
    import_snapshot(_snapshot(), store)
    report = import_snapshot(_snapshot(), store)

    assert report.inward_added == 0
    assert report.tasks_added == 0
    assert report.offices_added == 0
    assert len(store.list_register(RegisterKind.INWARD)) == 2


def test_load_snapshot(tmp_path):
    path = tmp_path / "export.json"
    path.write_text(json.dumps({"tasks": []}), encoding="utf-8")
    assert load_snapshot(path) == {"tasks": []}

    path.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_snapshot(path)


def test_import_command(tmp_path, capsys):
    from my_desk.main import import_local

    path = tmp_path / "export.json"
    path.write_text(json.dumps(_snapshot()), encoding="utf-8")

    import_local([str(path), "--data-dir", str(tmp_path / "data")])

    out = capsys.readouterr().out
    assert "inward_added: 2" in out
    assert "profile_updated: True" in out
    assert (tmp_path / "data" / "inward" / "scan.pdf").exists()
