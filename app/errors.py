from __future__ import annotations

from typing import List, Optional


class IncidentError(Exception):
    """Base for every error the engines report back to the caller."""

    status_code = 400

    def __init__(self, message: str, details: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = list(details or [])

    def to_dict(self) -> dict:
        body = {"error": True, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class NotFound(IncidentError):
    status_code = 404

    @classmethod
    def incident(cls, incident_id: int) -> "NotFound":
        return cls(f"Incident {incident_id} not found")


class InvalidArgument(IncidentError):
    status_code = 400


class InvalidState(IncidentError):
    status_code = 400
