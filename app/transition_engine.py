from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from app.config import MAX_COMMENT_LENGTH
from app.errors import InvalidArgument, InvalidState
from app.incident_logic import enrich
from app.incident_store import IncidentStore
from app.models import ChangeSummary, Incident, IncidentStatus, MutationResult

logger = logging.getLogger(__name__)

STATUS_ERROR = "Invalid status. Must be 1 (pending), 2 (approved) or 3 (rejected)"
COMMENT_REQUIRED_ERROR = "A comment is required to approve or reject an incident"
COMMENT_TOO_LONG_ERROR = f"Comment cannot exceed {MAX_COMMENT_LENGTH} characters"
COMMENT_TYPE_ERROR = "Comment must be a string"


def _coerce_status(value: Any) -> IncidentStatus:
    # bool is an int subclass; "2" is not a status
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(value)
    return IncidentStatus(value)


def _is_blank(comment: Any) -> bool:
    return not isinstance(comment, str) or not comment.strip()


def _validate_change(current: Incident, payload: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Check a partial change set against the transition rules.

    Returns the fields to merge. Every field-level violation is collected
    before raising so the caller can show them all at once.
    """
    changes: Dict[str, Any] = {}
    errors: List[str] = []
    comment = payload.get("comment")

    if "status" in payload:
        try:
            status = _coerce_status(payload["status"])
        except ValueError:
            errors.append(STATUS_ERROR)
        else:
            changes["status"] = status
            if status.is_resolved and _is_blank(comment):
                errors.append(COMMENT_REQUIRED_ERROR)

    if "comment" in payload:
        if not isinstance(comment, str):
            errors.append(COMMENT_TYPE_ERROR)
        elif len(comment) > MAX_COMMENT_LENGTH:
            errors.append(COMMENT_TOO_LONG_ERROR)
        else:
            changes["comment"] = comment

    if errors:
        raise InvalidArgument("Validation errors", details=errors)

    new_status = changes.get("status")
    if new_status is IncidentStatus.PENDING and current.status is IncidentStatus.PENDING:
        raise InvalidState(f"Incident {current.id} is already pending")
    if (
        new_status is not None
        and new_status.is_resolved
        and current.status.is_resolved
        and new_status != current.status
    ):
        raise InvalidState(
            f"Incident {current.id} is already {current.status.name.lower()}; reopen it before "
            f"marking it {new_status.name.lower()}"
        )

    return changes


def apply_change(store: IncidentStore, incident_id: int, payload: Mapping[str, Any]) -> MutationResult:
    """Validate and merge ``{status?, comment?}`` into an incident."""
    with store.locked():
        current = store.find_by_id(incident_id)

        if "status" not in payload and "comment" not in payload:
            raise InvalidArgument("No valid fields were provided to update")

        try:
            changes = _validate_change(current, payload)
        except (InvalidArgument, InvalidState) as e:
            logger.warning("Rejected change for incident %s: %s %s", incident_id, e.message, e.details)
            raise

        updated = store.apply_partial_update(incident_id, changes)

    new_status = changes.get("status", current.status)
    logger.info(
        "Incident %s updated: fields=%s status %s -> %s",
        incident_id, sorted(changes), int(current.status), int(new_status),
    )

    return MutationResult(
        message="Incident partially updated",
        data=enrich(updated, store.workers_by_id()),
        applied_changes={k: (int(v) if k == "status" else v) for k, v in changes.items()},
        summary=ChangeSummary(
            previous_status=current.status,
            new_status=new_status,
            comment_required=new_status.is_resolved and "status" in changes,
        ),
    )


def set_comment(store: IncidentStore, incident_id: int, comment: Any) -> MutationResult:
    """Replace only the comment; unlike ``apply_change`` it must be non-empty."""
    with store.locked():
        store.find_by_id(incident_id)

        if _is_blank(comment):
            raise InvalidArgument("Comment is required")
        if len(comment) > MAX_COMMENT_LENGTH:
            raise InvalidArgument(COMMENT_TOO_LONG_ERROR)

        updated = store.apply_partial_update(incident_id, {"comment": comment})

    logger.info("Incident %s comment updated", incident_id)
    return MutationResult(
        message="Comment updated",
        data=enrich(updated, store.workers_by_id()),
        applied_changes={"comment": True},
    )


def reopen(store: IncidentStore, incident_id: int) -> MutationResult:
    with store.locked():
        current = store.find_by_id(incident_id)
        if current.status == IncidentStatus.PENDING:
            raise InvalidState(f"Incident {incident_id} is already pending")

        updated = store.apply_partial_update(incident_id, {"status": IncidentStatus.PENDING})

    logger.info("Incident %s reopened (was %s)", incident_id, current.status.name.lower())
    return MutationResult(
        message="Incident reopened",
        data=enrich(updated, store.workers_by_id()),
        applied_changes={"status": int(IncidentStatus.PENDING)},
        summary=ChangeSummary(
            previous_status=current.status,
            new_status=IncidentStatus.PENDING,
        ),
    )
