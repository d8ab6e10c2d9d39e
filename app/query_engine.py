from __future__ import annotations

import logging
from collections import Counter
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, List, Optional

from app.config import DASHBOARD_RECENT, DASHBOARD_TOP_WORKERS, DEFAULT_LIMIT
from app.errors import InvalidArgument, NotFound
from app.incident_logic import (
    build_history,
    display_name,
    enrich,
    matches_incident_text,
    matches_worker_text,
)
from app.incident_store import IncidentStore
from app.models import (
    DashboardSummary,
    EnrichedIncident,
    HistoryEntry,
    Incident,
    IncidentStatus,
    QueryFilters,
    QueryPage,
    RecentIncident,
    SearchResult,
    Statistics,
    StatusCounts,
    Supervisor,
    Trends,
    Worker,
    WorkerLoad,
)

logger = logging.getLogger(__name__)

TREND_DAYS = 7


# ----------------------------
# Parameter parsing
# ----------------------------

STATUS_FILTER_ERROR = "'status' must be 0 (all), 1 (pending), 2 (approved) or 3 (rejected)"


def _parse_int(value: Any) -> int:
    """Whole numbers only: booleans, fractions, inf and nan raise ValueError."""
    if isinstance(value, bool):
        raise ValueError(value)
    if isinstance(value, str):
        return int(value.strip())
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(value)
    return int(value)


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_non_negative(name: str, value: Any, default: int) -> int:
    if _is_missing(value):
        return default
    try:
        parsed = _parse_int(value)
    except (TypeError, ValueError, OverflowError):
        raise InvalidArgument(f"'{name}' must be a non-negative integer")
    if parsed < 0:
        raise InvalidArgument(f"'{name}' must be a non-negative integer")
    return parsed


def _parse_status_filter(value: Any) -> Optional[IncidentStatus]:
    """0, empty or missing means no filter."""
    if _is_missing(value):
        return None
    try:
        code = _parse_int(value)
    except (TypeError, ValueError, OverflowError):
        raise InvalidArgument(STATUS_FILTER_ERROR)
    if code == 0:
        return None
    try:
        return IncidentStatus(code)
    except ValueError:
        raise InvalidArgument(STATUS_FILTER_ERROR)

def _normalize_term(text: Optional[str]) -> str:
    return (text or "").strip().lower()


def sort_by_recent(incidents: List[Incident]) -> List[Incident]:
    # sorted() is stable, so equal timestamps keep collection order
    return sorted(incidents, key=lambda i: i.updated_at, reverse=True)


def _count_status(incidents: List[Incident]) -> StatusCounts:
    counts = Counter(i.status for i in incidents)
    return StatusCounts(
        total=len(incidents),
        pending=counts[IncidentStatus.PENDING],
        approved=counts[IncidentStatus.APPROVED],
        rejected=counts[IncidentStatus.REJECTED],
    )


# ----------------------------
# Operations
# ----------------------------

def query(
    store: IncidentStore,
    status: Any = None,
    search_text: Optional[str] = None,
    limit: Any = None,
    offset: Any = None,
) -> QueryPage:
    """
    Filter, sort and paginate the incident collection.

    The whole filtered set is sorted by ``updated_at`` descending before the
    ``[offset, offset + limit)`` slice is taken; ``total`` is the size of the
    filtered set before slicing.
    """
    status_filter = _parse_status_filter(status)
    page_limit = _parse_non_negative("limit", limit, DEFAULT_LIMIT)
    page_offset = _parse_non_negative("offset", offset, 0)
    term = _normalize_term(search_text)

    workers = store.workers_by_id()
    results = store.snapshot()

    if status_filter is not None:
        results = [i for i in results if i.status == status_filter]

    if term:
        results = [
            i for i in results
            if matches_incident_text(i, term) or matches_worker_text(workers.get(i.worker_id), term)
        ]

    results = sort_by_recent(results)
    logger.debug("query status=%s search=%r matched %d incidents", status_filter, term, len(results))
    page = results[page_offset:page_offset + page_limit]

    return QueryPage(
        data=[enrich(i, workers) for i in page],
        total=len(results),
        limit=page_limit,
        offset=page_offset,
        filters=QueryFilters(
            status=int(status_filter) if status_filter is not None else "all",
            search=search_text or "",
        ),
    )


def search(store: IncidentStore, q: Optional[str]) -> SearchResult:
    """Unpaginated text search over case title, comment and id."""
    term = _normalize_term(q)
    if not term:
        raise InvalidArgument("Search term is required")

    workers = store.workers_by_id()
    matches = [i for i in store.snapshot() if matches_incident_text(i, term)]
    data = [enrich(i, workers) for i in matches]
    return SearchResult(query=q, results=len(data), data=data)


def get_by_id(store: IncidentStore, incident_id: int) -> EnrichedIncident:
    return enrich(store.find_by_id(incident_id), store.workers_by_id())


def get_history(store: IncidentStore, incident_id: int) -> List[HistoryEntry]:
    return build_history(store.find_by_id(incident_id))


def list_workers(store: IncidentStore) -> List[Worker]:
    return store.workers()


def supervisor_profile(store: IncidentStore) -> Supervisor:
    profile = store.supervisor()
    if profile is None:
        raise NotFound("No supervisor profile configured")
    return profile


def statistics(store: IncidentStore) -> Statistics:
    counts = _count_status(store.snapshot())
    if counts.total:
        # half-up, so 6.25 reports as 6.3 rather than round()'s 6.2
        ratio = Decimal(100 * (counts.approved + counts.rejected)) / Decimal(counts.total)
        resolved = float(ratio.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))
    else:
        resolved = 0.0
    return Statistics(**counts.model_dump(), resolved_percentage=resolved)


def _worker_ranking(incidents: List[Incident], workers: List[Worker]) -> List[WorkerLoad]:
    rows = []
    for w in workers:
        assigned = [i for i in incidents if i.worker_id == w.id]
        if not assigned:
            continue
        pending = sum(1 for i in assigned if i.status == IncidentStatus.PENDING)
        rows.append(
            WorkerLoad(
                worker_id=w.id,
                name=display_name(w),
                total=len(assigned),
                pending=pending,
                resolved=len(assigned) - pending,
            )
        )
    return sorted(rows, key=lambda r: r.total, reverse=True)


def _daily_created(incidents: List[Incident]) -> List[int]:
    """Incidents created per day over the window ending on the latest update, oldest first."""
    if not incidents:
        return [0] * TREND_DAYS
    last_day = max(i.updated_at for i in incidents).date()
    first_day = last_day - timedelta(days=TREND_DAYS - 1)
    buckets = [0] * TREND_DAYS
    for i in incidents:
        day = i.created_at.date()
        if first_day <= day <= last_day:
            buckets[(day - first_day).days] += 1
    return buckets


def dashboard_summary(store: IncidentStore) -> DashboardSummary:
    incidents = store.snapshot()
    workers = store.workers_by_id()
    counts = _count_status(incidents)

    recent = [
        RecentIncident(**i.model_dump(), worker_name=display_name(workers.get(i.worker_id)))
        for i in sort_by_recent(incidents)[:DASHBOARD_RECENT]
    ]

    return DashboardSummary(
        statistics=counts,
        recent_incidents=recent,
        top_workers=_worker_ranking(incidents, store.workers())[:DASHBOARD_TOP_WORKERS],
        trends=Trends(
            last_7_days=_daily_created(incidents),
            by_status={
                "pending": counts.pending,
                "approved": counts.approved,
                "rejected": counts.rejected,
            },
        ),
    )
