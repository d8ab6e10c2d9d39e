import pytest

from app.errors import NotFound
from app.incident_store import IncidentStore
from app.models import Incident, IncidentStatus, Worker


def test_seed_is_loaded_in_order(store):
    assert [i.id for i in store.snapshot()] == [101, 102, 103, 104, 105, 106]
    assert [w.id for w in store.workers()] == [1, 2, 3, 4]
    assert store.supervisor().position == "Supervisor de Operaciones"


def test_find_by_id_unknown_raises(store):
    with pytest.raises(NotFound):
        store.find_by_id(999)


def test_partial_update_keeps_omitted_fields(store):
    before = store.find_by_id(103)

    after = store.apply_partial_update(103, {"comment": "revisado"})

    assert after.comment == "revisado"
    assert after.case_title == before.case_title
    assert after.status == before.status
    assert after.worker_id == before.worker_id
    assert after.created_at == before.created_at
    assert after.updated_at > before.updated_at


def test_partial_update_unknown_raises(store):
    with pytest.raises(NotFound):
        store.apply_partial_update(999, {"comment": "x"})


def test_updated_at_strictly_increases(store):
    first = store.apply_partial_update(101, {"comment": "a"})
    second = store.apply_partial_update(101, {"comment": "a"})
    assert second.updated_at > first.updated_at


def test_returned_records_are_copies(store):
    inc = store.find_by_id(101)
    inc.comment = "tampered"
    inc.status = IncidentStatus.REJECTED

    fresh = store.find_by_id(101)
    assert fresh.comment == "trabajador no aparece en nómina"
    assert fresh.status == IncidentStatus.PENDING

    snap = store.snapshot()
    snap[0].comment = "tampered"
    assert store.find_by_id(snap[0].id).comment != "tampered"


def test_store_without_supervisor():
    s = IncidentStore(
        [Incident(id=1, case_title="t", status=1, worker_id=1,
                  created_at="2024-01-01T00:00:00Z", updated_at="2024-01-01T00:00:00Z")],
        [Worker(id=1, national_id=1, first_name="A", last_name1="B")],
    )
    assert s.supervisor() is None
    assert s.find_by_id(1).case_title == "t"
