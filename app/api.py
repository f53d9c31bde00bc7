"""
FastAPI app for the effort engine.

Endpoints:
- POST /explain/china
- POST /explain/{model}
- POST /estimate/{model}
- POST /tasks/reorder
- PUT  /tasks/{task_id}/attributes
- GET  /projects/{project_id}/insights
- GET  /health
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

# --- Make src/ importable ----------------------------------------------------

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from effort_engine.cocomo_model import validate_size
from effort_engine.config import get_config
from effort_engine.errors import StoreError, TaskNotFoundError, ValidationError
from effort_engine.estimators import get_estimator
from effort_engine.insights import evaluate_estimates, project_insights
from effort_engine.lifecycle import refresh_estimate, reorder_tasks, utcnow
from effort_engine.store import TaskStore, build_store

config = get_config()
logging.basicConfig(
    level=config.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Effort Estimation API")
app.state.store = build_store(config)


def get_store(request: Request) -> TaskStore:
    return request.app.state.store


async def _read_json(request: Request):
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError("Invalid request body") from e


# --- Error handlers ------------------------------------------------------------


def _explain_failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.info("Rejected request body on %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": exc.message})


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error("Store error on %s: %s", request.url.path, exc.message)
    status_code = 404 if isinstance(exc, TaskNotFoundError) else 500
    return JSONResponse(status_code=status_code, content={"error": exc.message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unexpected error on %s", request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# --- Request / Response schemas ----------------------------------------------


class ReorderPayload(BaseModel):
    taskIds: List[str]
    swimlaneId: str = Field(min_length=1)
    targetSwimlaneName: Optional[str] = None
    sourceSwimlaneName: Optional[str] = None


class AttributesPayload(BaseModel):
    """
    Partial update of a task's cost drivers. Omitted fields keep their
    stored value; sizeKLOC defaults to the configured size.
    """

    rely: Optional[float] = None
    cplx: Optional[float] = None
    acap: Optional[float] = None
    pcap: Optional[float] = None
    tool: Optional[float] = None
    sced: Optional[float] = None
    sizeKLOC: Optional[float] = None


class HealthResponse(BaseModel):
    status: str


# --- Endpoints ---------------------------------------------------------------


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok")


@app.post("/explain/china")
async def explain_china(request: Request) -> JSONResponse:
    """
    Function-point model prediction with per-attribute contributions.

    Body example:
    {
      "AFP": 200, "Input": 30, "Output": 40, "Enquiry": 20,
      "File": 15, "Interface": 10, "Resource": 5, "Duration": 12
    }
    """
    try:
        body = await _read_json(request)
        explanation = get_estimator("china").explain(body)
    except ValidationError as e:
        return _explain_failure(400, e.message)
    except Exception as e:
        logger.exception("Error in china explain API")
        return _explain_failure(400, str(e) or "Invalid request body")

    return JSONResponse({"success": True, "explanation": explanation})


@app.post("/explain/{model}")
async def explain_model(model: str, request: Request) -> JSONResponse:
    """
    COCOMO-style prediction (person-hours, 152 h/PM) with sensitivity
    analysis of the six cost drivers.

    All fields optional; attributes default to 1.0, sizeKLOC to 10:
    {
      "rely": 1.0, "cplx": 1.0, "acap": 1.0,
      "pcap": 1.0, "tool": 1.0, "sced": 1.0,
      "sizeKLOC": 10
    }
    """
    try:
        body = await _read_json(request)
        if not isinstance(body, dict):
            raise ValidationError("Invalid request body")
        explanation = get_estimator(model).explain(body)
    except ValidationError as e:
        return _explain_failure(400, e.message)
    except Exception as e:
        logger.exception("Error in explain API (model=%s)", model)
        return _explain_failure(500, str(e) or "Internal server error")

    return JSONResponse({"success": True, "explanation": explanation})


@app.post("/estimate/{model}")
async def estimate(model: str, request: Request) -> JSONResponse:
    """Plain estimate without explanation, in the model's native units."""
    body = await _read_json(request)
    if not isinstance(body, dict):
        raise ValidationError("Invalid request body")
    estimator = get_estimator(model)
    result = estimator.estimate(body)
    return JSONResponse({"model": estimator.name, "unit": estimator.unit, **result})


@app.post("/tasks/reorder")
async def reorder(
    payload: ReorderPayload,
    store: TaskStore = Depends(get_store),
) -> JSONResponse:
    """
    Move tasks into a swimlane in the given order.

    Lifecycle dates and actual effort are updated for tasks that change
    lane. Any failed task fails the request; the others stay moved.
    """
    tasks = await reorder_tasks(
        store,
        payload.taskIds,
        payload.swimlaneId,
        target_name=payload.targetSwimlaneName,
        source_name=payload.sourceSwimlaneName,
    )
    return JSONResponse({"tasks": [t.as_dict() for t in tasks]})


@app.put("/tasks/{task_id}/attributes")
async def update_attributes(
    task_id: str,
    payload: AttributesPayload,
    store: TaskStore = Depends(get_store),
) -> JSONResponse:
    """Edit cost drivers and store a fresh estimated_effort_pm snapshot."""
    task = await store.get_task(task_id)

    changes = {
        f"attr_{name}": value
        for name, value in payload.model_dump(exclude={"sizeKLOC"}).items()
        if value is not None
    }
    size_kloc = payload.sizeKLOC if payload.sizeKLOC is not None else config.default_size_kloc

    validate_size(size_kloc)
    updated = refresh_estimate(task.copy(**changes, updated_at=utcnow()), size_kloc)
    saved = await store.save_task(updated)
    return JSONResponse(saved.as_dict())


@app.get("/projects/{project_id}/insights")
async def insights(
    project_id: str,
    store: TaskStore = Depends(get_store),
) -> JSONResponse:
    tasks = await store.list_tasks(project_id)
    try:
        accuracy = evaluate_estimates(tasks)
    except ValueError:
        accuracy = None
    return JSONResponse(
        {
            "project_id": project_id,
            "insights": project_insights(tasks),
            "accuracy": accuracy,
        }
    )


# Convenience for local dev:
# uvicorn app.api:app --reload
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.api:app", host="0.0.0.0", port=8000, reload=True)
