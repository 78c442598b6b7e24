from __future__ import annotations

from my_desk.local_store import LocalKeys, LocalStore


def test_get_returns_default_for_missing_key(tmp_path):
    store = LocalStore(tmp_path / "local.db")
    assert store.get(LocalKeys.TASKS, []) == []
    assert store.get(LocalKeys.PROFILE) is None


def test_set_then_get_round_trips_json(tmp_path):
    store = LocalStore(tmp_path / "local.db")
    attendance = {"2025-01-05": {"type": "present", "reason": ""}}

    assert store.set(LocalKeys.ATTENDANCE, attendance) is True
    assert store.get(LocalKeys.ATTENDANCE, {}) == attendance

    assert store.set(LocalKeys.ATTENDANCE, {}) is True
    assert store.get(LocalKeys.ATTENDANCE, {"x": 1}) == {}


def test_unserialisable_value_is_rejected_without_raising(tmp_path):
    store = LocalStore(tmp_path / "local.db")
    assert store.set(LocalKeys.PROFILE, {"bad": object()}) is False
    assert store.get(LocalKeys.PROFILE, "fallback") == "fallback"


def test_corrupt_value_falls_back_to_default(tmp_path):
    store = LocalStore(tmp_path / "local.db")
    with store.connect() as conn:
        conn.execute(
            "INSERT INTO local_state (key, value) VALUES (?, ?)", (LocalKeys.TASKS, "{broken")
        )
        conn.commit()
    assert store.get(LocalKeys.TASKS, []) == []


def test_migrated_flag_persists(tmp_path):
    path = tmp_path / "local.db"
    store = LocalStore(path)
    assert store.is_migrated() is False
    store.mark_migrated()
    assert LocalStore(path).is_migrated() is True


def test_export_snapshot(tmp_path):
    store = LocalStore(tmp_path / "local.db")
    store.set(LocalKeys.OFFICES, ["Registry"])

    snapshot = store.export_snapshot()

    assert snapshot == {
        "inward": [],
        "outward": [],
        "attendance": {},
        "tasks": [],
        "profile": {},
        "offices": ["Registry"],
    }
