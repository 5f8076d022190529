# Load .env file BEFORE other imports (so env vars are available)
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from feedsweep.config import load_settings
from feedsweep.error_codes import NOT_FOUND, SOURCES_UNAVAILABLE, STORE_UNAVAILABLE
from feedsweep.errors import StoreUnavailable, problem
from feedsweep.logging_utils import log_event
from feedsweep.middleware import request_id_middleware
from feedsweep.run import build_orchestrator
from feedsweep.schemas import RunType
from feedsweep.store import SqliteArticleStore


app = FastAPI(title="feedsweep")

# Register middleware
app.middleware("http")(request_id_middleware)


def get_store() -> SqliteArticleStore:
    """A store per request; the db path is re-read so tests can point it at a tmp file."""
    return SqliteArticleStore(load_settings(dotenv=False).db_path)


def _problem_response(request: Request, *, status: int, code: str, message: str) -> JSONResponse:
    rid = request.state.request_id
    run_id = getattr(request.state, "run_id", None)
    payload = problem(status=status, code=code, message=message, request_id=rid, run_id=run_id)
    resp = JSONResponse(status_code=status, content=payload.model_dump(exclude_none=True))
    resp.headers["X-Request-ID"] = rid
    return resp


@app.get("/health")
def health(request: Request):
    request_id = request.state.request_id
    log_event("health_check", request_id=request_id)
    return {"status": "ok"}


@app.post("/sweeps")
def trigger_sweep(request: Request, run_type: RunType = RunType.MANUAL):
    """
    Run one sweep now and return its totals.

    Same code path as the scheduled job; only the recorded run_type differs.
    """
    request_id = request.state.request_id
    log_event("sweep_triggered", request_id=request_id, run_type=run_type.value)

    settings = load_settings(dotenv=False)
    try:
        result = build_orchestrator(settings).run_sweep(run_type)
    except StoreUnavailable as exc:
        return _problem_response(request, status=503, code=SOURCES_UNAVAILABLE, message=str(exc))

    return result.model_dump(mode="json")


@app.get("/runs/latest")
def latest_run():
    latest = get_store().latest_run()
    if latest is None:
        raise HTTPException(status_code=404, detail="No runs found")
    return latest.model_dump(mode="json")


@app.get("/runs/report")
def runs_report(limit: int = 7):
    return {"days": get_store().report_runs_by_day(limit=limit)}


@app.get("/runs/{run_id}")
def get_run(run_id: str, request: Request):
    request.state.run_id = run_id
    run = get_store().get_run(run_id)
    if run is None:
        raise HTTPException(status_code=404, detail=f"Run not found: {run_id}")
    return run.model_dump(mode="json")


@app.get("/runs")
def list_runs(source_id: str | None = None, limit: int = 50):
    runs = get_store().list_runs(source_id=source_id, limit=max(1, min(limit, 500)))
    return {"runs": [r.model_dump(mode="json") for r in runs]}


@app.get("/sources")
def list_sources(active_only: bool = False):
    store = get_store()
    sources = store.list_active_sources() if active_only else store.list_sources()
    return {"sources": [s.model_dump(mode="json") for s in sources]}


@app.get("/articles/{article_id}")
def get_article(article_id: str):
    article = get_store().get_article(article_id)
    if article is None:
        raise HTTPException(status_code=404, detail=f"Article not found: {article_id}")
    return article.model_dump(mode="json")


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    log_event("store_unavailable", request_id=request.state.request_id, error=str(exc))
    return _problem_response(request, status=503, code=STORE_UNAVAILABLE, message="Store unavailable")


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    code = NOT_FOUND if exc.status_code == 404 else "http_error"
    log_event("http_error", request_id=request.state.request_id, status=exc.status_code, message=str(exc.detail))
    return _problem_response(request, status=exc.status_code, code=code, message=str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return ProblemDetails for validation errors (e.g. an unknown run_type)."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        loc = ".".join(str(x) for x in first.get("loc", []))  # e.g. "query.run_type"
        message = f"{loc}: {first.get('msg', 'Validation error')}"
    else:
        message = "Validation error"

    log_event("validation_error", request_id=request.state.request_id, message=message)
    return _problem_response(request, status=422, code="validation_error", message=message)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    # Don't leak details to the client, but do log them
    log_event("internal_error", request_id=request.state.request_id, error_type=type(exc).__name__)
    return _problem_response(request, status=500, code="internal_error", message="Internal server error")
