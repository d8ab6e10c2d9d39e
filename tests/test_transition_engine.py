from concurrent.futures import ThreadPoolExecutor

import pytest

from app import query_engine, transition_engine
from app.errors import InvalidArgument, InvalidState, NotFound
from app.models import IncidentStatus


def test_resolve_pending_with_comment(store):
    before = store.find_by_id(101)

    result = transition_engine.apply_change(store, 101, {"status": 2, "comment": "fixed"})

    assert result.data.status == IncidentStatus.APPROVED
    assert result.data.comment == "fixed"
    assert result.data.updated_at > before.updated_at
    assert result.data.created_at == before.created_at
    assert result.data.worker.first_name == "Juan"
    assert result.summary.previous_status == 1
    assert result.summary.new_status == 2
    assert result.summary.comment_required is True
    assert result.applied_changes == {"status": 2, "comment": "fixed"}
    assert store.find_by_id(101).status == IncidentStatus.APPROVED


@pytest.mark.parametrize("comment", [None, "", "   "])
@pytest.mark.parametrize("status", [2, 3])
def test_resolve_without_comment_is_rejected(store, status, comment):
    before = store.find_by_id(101)
    payload = {"status": status}
    if comment is not None:
        payload["comment"] = comment

    with pytest.raises(InvalidArgument) as exc:
        transition_engine.apply_change(store, 101, payload)

    assert transition_engine.COMMENT_REQUIRED_ERROR in exc.value.details
    assert store.find_by_id(101) == before


@pytest.mark.parametrize("status", [0, 4, "2", 2.0, True, None])
def test_invalid_status_value(store, status):
    with pytest.raises(InvalidArgument) as exc:
        transition_engine.apply_change(store, 103, {"status": status, "comment": "ok"})
    assert exc.value.details == [transition_engine.STATUS_ERROR]


def test_all_field_errors_reported_together(store):
    before = store.find_by_id(103)

    with pytest.raises(InvalidArgument) as exc:
        transition_engine.apply_change(store, 103, {"status": "2", "comment": "x" * 201})

    assert exc.value.details == [
        transition_engine.STATUS_ERROR,
        transition_engine.COMMENT_TOO_LONG_ERROR,
    ]
    assert store.find_by_id(103) == before


def test_comment_length_boundary(store):
    result = transition_engine.apply_change(store, 103, {"status": 3, "comment": "x" * 200})
    assert result.data.status == IncidentStatus.REJECTED

    with pytest.raises(InvalidArgument):
        transition_engine.apply_change(store, 101, {"status": 3, "comment": "x" * 201})


@pytest.mark.parametrize("payload", [{}, {"case_title": "nuevo"}, {"estado": 2}])
def test_empty_change_set_is_rejected(store, payload):
    with pytest.raises(InvalidArgument) as exc:
        transition_engine.apply_change(store, 101, payload)
    assert "No valid fields" in exc.value.message


def test_unknown_incident(store):
    with pytest.raises(NotFound):
        transition_engine.apply_change(store, 999, {"comment": "x"})
    with pytest.raises(NotFound):
        transition_engine.set_comment(store, 999, "x")
    with pytest.raises(NotFound):
        transition_engine.reopen(store, 999)


def test_not_found_wins_over_empty_change_set(store):
    with pytest.raises(NotFound):
        transition_engine.apply_change(store, 999, {})


def test_comment_only_update_twice_advances_updated_at(store):
    first = transition_engine.apply_change(store, 103, {"comment": "en revisión"})
    second = transition_engine.apply_change(store, 103, {"comment": "en revisión"})

    assert first.data.comment == second.data.comment == "en revisión"
    assert second.data.updated_at > first.data.updated_at
    assert second.data.status == IncidentStatus.PENDING
    assert second.summary.previous_status == second.summary.new_status == 1
    assert second.summary.comment_required is False


def test_comment_can_be_cleared_when_not_resolving(store):
    result = transition_engine.apply_change(store, 102, {"comment": ""})
    assert result.data.comment == ""
    assert result.data.status == IncidentStatus.APPROVED
    # history loses the resolution entry once the comment is gone
    assert len(query_engine.get_history(store, 102)) == 1


def test_non_string_comment_rejected(store):
    with pytest.raises(InvalidArgument) as exc:
        transition_engine.apply_change(store, 103, {"comment": 5})
    assert exc.value.details == [transition_engine.COMMENT_TYPE_ERROR]


def test_switching_between_resolved_states_requires_reopen(store):
    before = store.find_by_id(102)

    with pytest.raises(InvalidState):
        transition_engine.apply_change(store, 102, {"status": 3, "comment": "cambio"})

    assert store.find_by_id(102) == before


@pytest.mark.parametrize("payload", [{"status": 1}, {"status": 1, "comment": "sigue abierta"}])
def test_setting_pending_on_pending_incident_is_rejected(store, payload):
    before = store.find_by_id(101)

    with pytest.raises(InvalidState):
        transition_engine.apply_change(store, 101, payload)

    assert store.find_by_id(101) == before


def test_status_pending_reopens_resolved_incident(store):
    result = transition_engine.apply_change(store, 104, {"status": 1})
    assert result.data.status == IncidentStatus.PENDING
    assert result.summary.previous_status == IncidentStatus.REJECTED


def test_resolved_incident_can_keep_status_with_new_comment(store):
    result = transition_engine.apply_change(store, 102, {"status": 2, "comment": "nota"})
    assert result.data.comment == "nota"
    assert result.summary.previous_status == result.summary.new_status == 2


def test_set_comment(store):
    before = store.find_by_id(104)

    result = transition_engine.set_comment(store, 104, "Revisado otra vez")

    assert result.data.comment == "Revisado otra vez"
    assert result.data.status == before.status
    assert result.data.updated_at > before.updated_at
    assert result.applied_changes == {"comment": True}
    assert result.summary is None


@pytest.mark.parametrize("comment", [None, "", "  ", 7, "x" * 201])
def test_set_comment_is_strict(store, comment):
    before = store.find_by_id(104)
    with pytest.raises(InvalidArgument):
        transition_engine.set_comment(store, 104, comment)
    assert store.find_by_id(104) == before


def test_reopen_rejected_incident(store):
    before = store.find_by_id(104)

    result = transition_engine.reopen(store, 104)

    assert result.data.status == IncidentStatus.PENDING
    assert result.data.comment == before.comment
    assert result.data.updated_at > before.updated_at
    assert result.summary.previous_status == IncidentStatus.REJECTED
    assert result.summary.new_status == IncidentStatus.PENDING
    assert result.applied_changes == {"status": 1}

    with pytest.raises(InvalidState):
        transition_engine.reopen(store, 104)


def test_reopen_pending_fails(store):
    before = store.find_by_id(101)
    with pytest.raises(InvalidState):
        transition_engine.reopen(store, 101)
    assert store.find_by_id(101) == before


def test_reopened_incident_moves_to_top_of_query(store):
    transition_engine.reopen(store, 106)

    page = query_engine.query(store, status=1)
    assert [i.id for i in page.data] == [106, 105, 103, 101]


def test_full_cycle_then_resolve_again(store):
    transition_engine.apply_change(store, 105, {"status": 2, "comment": "QR regenerado"})
    transition_engine.reopen(store, 105)
    result = transition_engine.apply_change(store, 105, {"status": 3, "comment": "QR duplicado"})

    assert result.summary.previous_status == IncidentStatus.PENDING
    assert result.data.status == IncidentStatus.REJECTED
    assert query_engine.statistics(store).rejected == 2


def test_concurrent_comment_updates_are_serialized(store):
    comments = [f"nota {n}" for n in range(20)]

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda c: transition_engine.set_comment(store, 103, c), comments))

    stamps = sorted(r.data.updated_at for r in results)
    assert len(set(stamps)) == len(comments)
    final = store.find_by_id(103)
    assert final.updated_at == stamps[-1]
    assert final.comment in comments
