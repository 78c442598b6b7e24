from __future__ import annotations

from datetime import datetime, timezone

import pytest

from my_desk.models import RegisterKind, normalize_offices, parse_timestamp

JAN_1 = datetime(2025, 1, 1, tzinfo=timezone.utc).timestamp()


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2025-01-01T00:00:00Z", JAN_1),
        ("2025-01-01T00:00:00.000Z", JAN_1),
        ("2025-01-01T00:00:00", JAN_1),
        ("2025-01-01T05:30:00+05:30", JAN_1),
        ("2025-01-01T00:00:00.250Z", JAN_1 + 0.25),
        ("", 0.0),
        (None, 0.0),
        ("yesterday", 0.0),
    ],
)
def test_parse_timestamp(value, expected):
    assert parse_timestamp(value) == expected


def test_normalize_offices():
    assert normalize_offices([" Registry ", None, "", "registry", "accounts", "HR"]) == [
        "accounts",
        "HR",
        "Registry",
    ]


def test_office_of_accepts_legacy_keys():
    assert RegisterKind.INWARD.office_of({"from": "HR"}) == "HR"
    assert RegisterKind.OUTWARD.office_of({"toOffice": "Audit", "to": "Old"}) == "Audit"
    assert RegisterKind.OUTWARD.office_of({}) == ""
