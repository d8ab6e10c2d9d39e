from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import CORS_ORIGINS, FIXTURES_DIR, LOG_LEVEL
from app.errors import IncidentError
from app.incident_api import router as incident_router
from app.incident_store import IncidentStore
from app.supervisor_api import router as supervisor_router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ----------------------------
# App + store init
# ----------------------------

app = FastAPI(
    title="Incidencias Service",
    version="0.3.0",
    description="Supervisor incident tracking: filter, search and resolve worker incidents.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(incident_router)
app.include_router(supervisor_router)


@app.on_event("startup")
def on_startup() -> None:
    # seed once; the collection lives in memory for the process lifetime
    if getattr(app.state, "store", None) is None:
        app.state.store = IncidentStore.from_fixtures(FIXTURES_DIR)


# ----------------------------
# Error handlers
# ----------------------------

@app.exception_handler(IncidentError)
async def incident_error_handler(request: Request, exc: IncidentError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()]
    return JSONResponse(
        status_code=400,
        content={"error": True, "message": "Invalid request", "details": details},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": True, "message": "Internal server error"},
    )


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
