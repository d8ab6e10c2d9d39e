from __future__ import annotations

import json
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from app.config import FIXTURES_DIR
from app.errors import NotFound
from app.models import Incident, Supervisor, Worker

logger = logging.getLogger(__name__)


def load_fixture(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"Missing fixture: {path}")
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class IncidentStore:
    """
    In-memory owner of the incident collection and the worker roster.

    Everything handed out is a copy, so callers never hold a reference into
    the collection. No validation happens here: the transition engine decides
    what may change, the store just merges it.
    """

    def __init__(
        self,
        incidents: List[Incident],
        workers: List[Worker],
        supervisor: Optional[Supervisor] = None,
    ) -> None:
        self._lock = threading.RLock()
        # dicts keep insertion order, which is the tie-break for every sort
        self._incidents: Dict[int, Incident] = {i.id: i for i in incidents}
        self._workers: Dict[int, Worker] = {w.id: w for w in workers}
        self._supervisor = supervisor

    @classmethod
    def from_fixtures(cls, fixtures_dir: Path = FIXTURES_DIR) -> "IncidentStore":
        incidents = [Incident(**row) for row in load_fixture(fixtures_dir / "incidents.json")]
        workers = [Worker(**row) for row in load_fixture(fixtures_dir / "workers.json")]
        supervisor = Supervisor(**load_fixture(fixtures_dir / "supervisor.json"))
        logger.info(
            "Loaded %d incidents and %d workers from %s",
            len(incidents), len(workers), fixtures_dir,
        )
        return cls(incidents, workers, supervisor)

    @contextmanager
    def locked(self) -> Iterator["IncidentStore"]:
        """Hold the store lock across a read-validate-write sequence."""
        with self._lock:
            yield self

    # ----------------------------
    # Reads
    # ----------------------------

    def snapshot(self) -> List[Incident]:
        with self._lock:
            return [i.model_copy() for i in self._incidents.values()]

    def find_by_id(self, incident_id: int) -> Incident:
        with self._lock:
            inc = self._incidents.get(incident_id)
            if inc is None:
                raise NotFound.incident(incident_id)
            return inc.model_copy()

    def workers(self) -> List[Worker]:
        return list(self._workers.values())

    def workers_by_id(self) -> Dict[int, Worker]:
        return dict(self._workers)

    def supervisor(self) -> Optional[Supervisor]:
        return self._supervisor

    # ----------------------------
    # Writes
    # ----------------------------

    def apply_partial_update(self, incident_id: int, changes: Dict[str, Any]) -> Incident:
        """Shallow-merge ``changes`` into the record and stamp ``updated_at``."""
        with self._lock:
            current = self._incidents.get(incident_id)
            if current is None:
                raise NotFound.incident(incident_id)

            # strictly increasing even when two writes share a clock tick
            stamp = max(_now(), current.updated_at + timedelta(microseconds=1))
            updated = current.model_copy(update={**changes, "updated_at": stamp})
            self._incidents[incident_id] = updated
            return updated.model_copy()
