from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from app import query_engine, transition_engine
from app.db import get_store
from app.incident_store import IncidentStore
from app.models import EnrichedIncident, HistoryEntry, MutationResult, QueryPage

router = APIRouter(prefix="/api/incidents", tags=["Incidents"])


@router.get("", response_model=QueryPage)
def list_incidents(
    status: Optional[str] = Query(None, description="0 or empty for all, 1 pending, 2 approved, 3 rejected"),
    search: Optional[str] = Query(None, description="Free text over case, comment, id and worker"),
    limit: Optional[str] = Query(None),
    offset: Optional[str] = Query(None),
    store: IncidentStore = Depends(get_store),
) -> QueryPage:
    # limit/offset arrive as raw strings so malformed values are reported as 400
    return query_engine.query(store, status=status, search_text=search, limit=limit, offset=offset)


@router.get("/{incident_id}", response_model=EnrichedIncident)
def get_incident(incident_id: int, store: IncidentStore = Depends(get_store)) -> EnrichedIncident:
    return query_engine.get_by_id(store, incident_id)


@router.get("/{incident_id}/history", response_model=List[HistoryEntry])
def get_history(incident_id: int, store: IncidentStore = Depends(get_store)) -> List[HistoryEntry]:
    return query_engine.get_history(store, incident_id)


@router.patch("/{incident_id}", response_model=MutationResult)
def patch_incident(
    incident_id: int,
    payload: dict = Body(...),
    store: IncidentStore = Depends(get_store),
) -> MutationResult:
    return transition_engine.apply_change(store, incident_id, payload)


@router.patch("/{incident_id}/comment", response_model=MutationResult)
def patch_comment(
    incident_id: int,
    payload: dict = Body(...),
    store: IncidentStore = Depends(get_store),
) -> MutationResult:
    return transition_engine.set_comment(store, incident_id, payload.get("comment"))


@router.patch("/{incident_id}/reopen", response_model=MutationResult)
def reopen_incident(incident_id: int, store: IncidentStore = Depends(get_store)) -> MutationResult:
    return transition_engine.reopen(store, incident_id)
