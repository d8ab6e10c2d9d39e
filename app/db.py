from fastapi import Request

from app.incident_store import IncidentStore


def get_store(request: Request) -> IncidentStore:
    return request.app.state.store
