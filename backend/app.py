# backend/app.py
import os
import time
from typing import Optional

# Load .env BEFORE any backend imports (they read env vars at import time)
from dotenv import load_dotenv
load_dotenv(override=True)

from fastapi import FastAPI, Request, Path, Query
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.service import EntryService, ServiceError, E_NOT_FOUND, E_INVALID_INPUT
from backend.schemas import EntryCreate
from backend.store import make_store
from backend import monitoring

app = FastAPI(title="Operations Tracker API")

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# instantiate service once; the store is picked from ENTRY_STORE
service = EntryService(make_store())


def _error(status_code: int, error_code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "error_code": error_code, "message": message},
    )


def _service_error(e: ServiceError) -> JSONResponse:
    status_code = 404 if e.error_code == E_NOT_FOUND else 400
    return _error(status_code, e.error_code, e.message)


# ---------------------------------------------------------------------------
# Metrics middleware
# ---------------------------------------------------------------------------
@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start = time.time()
    endpoint = request.url.path
    method = request.method
    status = "500"
    try:
        response = await call_next(request)
        status = str(response.status_code)
        return response
    except Exception:
        monitoring.logger.exception("Unhandled exception in request", extra={"path": endpoint})
        raise
    finally:
        monitoring.observe_request(start, endpoint, method, status)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return _error(404, "E_ROUTE_NOT_FOUND", "Route not found")
    return _error(exc.status_code, "E_HTTP", str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # missing or non-object JSON bodies get the same answer as a blank raw_text
    monitoring.inc_rejected(E_INVALID_INPUT)
    return _error(400, E_INVALID_INPUT, "raw_text is required and must be a non-empty string")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    monitoring.logger.exception("Unexpected error", extra={"path": request.url.path})
    return _error(500, "E_INTERNAL", "Internal server error")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@app.get("/api/health")
def api_health():
    return {"status": "ok", "entries": service.count()}


@app.get("/api/entries")
def list_entries(
    category: Optional[str] = Query(None, description="Category filter, 'all' disables it"),
    severity: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Substring over raw text and entities"),
):
    entries = service.list_entries(category=category, severity=severity, search=search)
    return [e.model_dump(mode="json") for e in entries]


@app.post("/api/entries")
def create_entry(req: EntryCreate):
    """
    POST /api/entries
    Body: { "raw_text": "Motor overheating after 3 hours" }
    """
    preview = req.raw_text[:200] if isinstance(req.raw_text, str) else ""
    monitoring.logger.info("Received /api/entries request", extra={"text_preview": preview})
    try:
        entry = service.create_entry(req.raw_text)
    except ServiceError as e:
        return _service_error(e)
    return JSONResponse(status_code=201, content=entry.model_dump(mode="json"))


@app.get("/api/entries/{entry_id}")
def get_entry(entry_id: str = Path(..., description="Entry ID to fetch")):
    try:
        entry = service.get_entry(entry_id)
    except ServiceError as e:
        return _service_error(e)
    return entry.model_dump(mode="json")


@app.delete("/api/entries/{entry_id}")
def delete_entry(entry_id: str = Path(..., description="Entry ID to delete")):
    try:
        service.delete_entry(entry_id)
    except ServiceError as e:
        return _service_error(e)
    return {"status": "success", "message": "Entry deleted"}


@app.get("/api/analytics")
def analytics():
    return service.analytics().model_dump(mode="json")


@app.get("/api/trends")
def trends(days: Optional[str] = Query(None, description="Window size in days (default 30)")):
    return service.trends(days).model_dump(mode="json")


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/metrics")
async def metrics():
    if not monitoring.PROMETHEUS_ENABLED:
        return PlainTextResponse("Prometheus disabled", status_code=404)
    payload, content_type = monitoring.prometheus_metrics_response()
    return Response(content=payload, media_type=content_type)
