from __future__ import annotations

import pytest

from governance.errors import (AlreadyRegistered, ApplicationCapReached,
                               ApplicationNotFound, IndexOccupied, InvalidInput,
                               NotRegistered, ScanBoundExceeded, Unauthorized)
from governance.events import EventLog, EventType
from governance.registry.applications import ApplicationRegistry


def _mk_registry(max_applications: int = 0) -> ApplicationRegistry:
    return ApplicationRegistry(events=EventLog(), max_applications=max_applications)


def test_submit_and_query():
    reg = _mk_registry()
    app = reg.submit("alice", 3, "ipfs://alice", now=42)

    assert app.applicant == "alice"
    assert app.index == 3
    assert app.exists is True
    assert app.submitted_at == 42
    assert reg.count == 1
    assert reg.get(3) == app
    assert reg.is_registered("alice")
    assert reg.index_of("alice") == 3
    assert reg.list_indices() == [3]

    ev = reg._events.last(EventType.APPLICATION_SUBMITTED)
    assert (ev.applicant, ev.index, ev.uri) == ("alice", 3, "ipfs://alice")


def test_one_application_per_identity():
    reg = _mk_registry()
    reg.submit("alice", 0, "ipfs://a")
    with pytest.raises(AlreadyRegistered):
        reg.submit("alice", 1, "ipfs://a2")
    assert reg.count == 1


def test_index_must_be_free():
    reg = _mk_registry()
    reg.submit("alice", 0, "ipfs://a")
    with pytest.raises(IndexOccupied):
        reg.submit("bob", 0, "ipfs://b")
    assert not reg.is_registered("bob")


@pytest.mark.parametrize("index", [-1, "1", 1.0, True])
def test_index_must_be_non_negative_int(index):
    reg = _mk_registry()
    with pytest.raises(InvalidInput):
        reg.submit("alice", index, "ipfs://a")
    assert reg.count == 0


@pytest.mark.parametrize("uri", ["", "   "])
def test_uri_must_be_non_empty(uri):
    reg = _mk_registry()
    with pytest.raises(InvalidInput):
        reg.submit("alice", 0, uri)


def test_application_cap():
    reg = _mk_registry(max_applications=2)
    reg.submit("a", 0, "u")
    reg.submit("b", 1, "u")
    with pytest.raises(ApplicationCapReached):
        reg.submit("c", 2, "u")


def test_owner_removes_and_index_is_reusable():
    reg = _mk_registry()
    reg.submit("alice", 0, "ipfs://a")
    removed = reg.remove("alice", 0)
    assert removed.applicant == "alice"
    assert reg.count == 0
    assert not reg.is_registered("alice")
    with pytest.raises(ApplicationNotFound):
        reg.get(0)

    ev = reg._events.last(EventType.APPLICATION_REMOVED)
    assert (ev.applicant, ev.removed_by) == ("alice", "alice")

    # both the identity and the index are free again
    reg.submit("alice", 0, "ipfs://a-v2")
    assert reg.get(0).uri == "ipfs://a-v2"


def test_non_owner_cannot_remove():
    reg = _mk_registry()
    reg.submit("alice", 0, "ipfs://a")
    events_before = len(reg._events)
    with pytest.raises(Unauthorized):
        reg.remove("mallory", 0)
    assert reg.exists(0)
    assert len(reg._events) == events_before


def test_admin_can_remove_foreign_application():
    reg = _mk_registry()
    reg.submit("alice", 0, "ipfs://a")
    reg.remove("root", 0, is_admin=True)
    assert reg.count == 0
    assert reg._events.last(EventType.APPLICATION_REMOVED).removed_by == "root"


def test_remove_missing_index():
    reg = _mk_registry()
    with pytest.raises(NotRegistered):
        reg.remove("alice", 7)


def test_scan_collects_in_ascending_index_order():
    reg = _mk_registry()
    reg.submit("c", 5, "u")
    reg.submit("a", 0, "u")
    reg.submit("b", 2, "u")
    assert [a.index for a in reg.scan_candidates(safety_margin=100)] == [0, 2, 5]


def test_scan_respects_safety_margin():
    reg = _mk_registry()
    reg.submit("a", 0, "u")
    reg.submit("b", 4, "u")
    # two applications, slots 0..4 must be visited: 5 <= 2 + 3
    assert len(reg.scan_candidates(safety_margin=3)) == 2
    with pytest.raises(ScanBoundExceeded) as ei:
        reg.scan_candidates(safety_margin=2)
    assert ei.value.details["expected"] == 2
    assert ei.value.details["found"] == 1


def test_dump_restore():
    reg = _mk_registry()
    reg.submit("a", 0, "u0")
    reg.submit("b", 1, "u1")
    other = _mk_registry()
    other.restore(reg.dump())
    assert other.list_applications() == reg.list_applications()
    assert other.is_registered("b")
