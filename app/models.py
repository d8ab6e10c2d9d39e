from __future__ import annotations

from datetime import datetime
from enum import IntEnum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class IncidentStatus(IntEnum):
    PENDING = 1
    APPROVED = 2
    REJECTED = 3

    @property
    def is_resolved(self) -> bool:
        return self is not IncidentStatus.PENDING


class Incident(BaseModel):
    id: int
    case_title: str
    status: IncidentStatus
    worker_id: int
    comment: str = ""  # resolution rationale; seed rows may predate validation
    created_at: datetime
    updated_at: datetime


class Worker(BaseModel):
    id: int
    national_id: int
    first_name: str
    last_name1: str
    last_name2: str = ""


class WorkerSummary(BaseModel):
    # all optional: an incident may point at a worker missing from the roster
    id: Optional[int] = None
    national_id: Optional[int] = None
    first_name: Optional[str] = None
    last_name1: Optional[str] = None
    last_name2: Optional[str] = None


class EnrichedIncident(Incident):
    worker: WorkerSummary


class HistoryEntry(BaseModel):
    change_id: int
    incident_id: int
    previous_status: Optional[IncidentStatus] = None
    new_status: IncidentStatus
    comment: str
    changed_at: datetime
    change_type: Literal["created", "resolved"]


class Supervisor(BaseModel):
    id: int
    name: str
    position: str
    email: str


# ----------------------------
# Read results
# ----------------------------

class QueryFilters(BaseModel):
    status: Union[int, str] = "all"
    search: str = ""


class QueryPage(BaseModel):
    data: List[EnrichedIncident]
    total: int
    limit: int
    offset: int
    filters: QueryFilters


class SearchResult(BaseModel):
    query: str
    results: int
    data: List[EnrichedIncident]


class StatusCounts(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int


class Statistics(StatusCounts):
    resolved_percentage: float


class RecentIncident(Incident):
    worker_name: Optional[str] = None


class WorkerLoad(BaseModel):
    worker_id: int
    name: str
    total: int
    pending: int
    resolved: int


class Trends(BaseModel):
    last_7_days: List[int]
    by_status: Dict[str, int]


class DashboardSummary(BaseModel):
    statistics: StatusCounts
    recent_incidents: List[RecentIncident]
    top_workers: List[WorkerLoad]
    trends: Trends


# ----------------------------
# Mutation results
# ----------------------------

class ChangeSummary(BaseModel):
    previous_status: IncidentStatus
    new_status: IncidentStatus
    comment_required: bool = False


class MutationResult(BaseModel):
    success: bool = True
    message: str
    data: EnrichedIncident
    applied_changes: Dict[str, Any] = Field(default_factory=dict)
    summary: Optional[ChangeSummary] = None
