from __future__ import annotations

from typing import Dict, List, Optional

from app.models import (
    EnrichedIncident,
    HistoryEntry,
    Incident,
    IncidentStatus,
    Worker,
    WorkerSummary,
)

CREATED_COMMENT = "Incident created"


def worker_summary(worker: Optional[Worker]) -> WorkerSummary:
    if worker is None:
        return WorkerSummary()
    return WorkerSummary(
        id=worker.id,
        national_id=worker.national_id,
        first_name=worker.first_name,
        last_name1=worker.last_name1,
        last_name2=worker.last_name2,
    )


def enrich(incident: Incident, workers: Dict[int, Worker]) -> EnrichedIncident:
    """Join an incident with its worker; unknown workers yield an empty summary."""
    return EnrichedIncident(
        **incident.model_dump(),
        worker=worker_summary(workers.get(incident.worker_id)),
    )


def display_name(worker: Optional[Worker]) -> Optional[str]:
    if worker is None:
        return None
    return f"{worker.first_name} {worker.last_name1}"


def matches_incident_text(incident: Incident, term: str) -> bool:
    """``term`` must already be trimmed and lower-cased."""
    if term in incident.case_title.lower():
        return True
    if incident.comment and term in incident.comment.lower():
        return True
    return term in str(incident.id)


def matches_worker_text(worker: Optional[Worker], term: str) -> bool:
    if worker is None:
        return False
    names = (worker.first_name, worker.last_name1, worker.last_name2)
    if any(term in n.lower() for n in names if n):
        return True
    return term in str(worker.national_id)


def build_history(incident: Incident) -> List[HistoryEntry]:
    """
    Synthesize the change log of an incident.

    There is no stored log: the creation entry is always present and a
    resolution entry is added when the incident is resolved with a comment.
    A second resolve/reopen cycle cannot be represented.
    """
    history = [
        HistoryEntry(
            change_id=1,
            incident_id=incident.id,
            previous_status=None,
            new_status=IncidentStatus.PENDING,
            comment=CREATED_COMMENT,
            changed_at=incident.created_at,
            change_type="created",
        )
    ]

    if incident.status.is_resolved and incident.comment.strip():
        history.append(
            HistoryEntry(
                change_id=2,
                incident_id=incident.id,
                previous_status=IncidentStatus.PENDING,
                new_status=incident.status,
                comment=incident.comment,
                changed_at=incident.updated_at,
                change_type="resolved",
            )
        )

    return history
