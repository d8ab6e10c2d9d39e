from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app import query_engine
from app.db import get_store
from app.incident_store import IncidentStore
from app.models import DashboardSummary, SearchResult, Statistics, Supervisor, Worker

router = APIRouter(prefix="/api", tags=["Supervisor"])


@router.get("/supervisor", response_model=Supervisor)
def get_supervisor(store: IncidentStore = Depends(get_store)) -> Supervisor:
    return query_engine.supervisor_profile(store)


@router.get("/supervisor/statistics", response_model=Statistics)
def get_statistics(store: IncidentStore = Depends(get_store)) -> Statistics:
    return query_engine.statistics(store)


@router.get("/workers", response_model=List[Worker])
def list_workers(store: IncidentStore = Depends(get_store)) -> List[Worker]:
    return query_engine.list_workers(store)


@router.get("/dashboard", response_model=DashboardSummary)
def get_dashboard(store: IncidentStore = Depends(get_store)) -> DashboardSummary:
    return query_engine.dashboard_summary(store)


@router.get("/search", response_model=SearchResult)
def search_incidents(
    q: Optional[str] = Query(None, description="Text to look for in case, comment or id"),
    store: IncidentStore = Depends(get_store),
) -> SearchResult:
    return query_engine.search(store, q)
