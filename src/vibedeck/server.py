import dataclasses
import logging
import threading
import time
from contextlib import asynccontextmanager
from typing import Any, Literal

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from vibedeck.application.factory import Services, build_services
from vibedeck.consts import VERSION
from vibedeck.domain.errors import SessionEmptyError, WrongItemKindError
from vibedeck.domain.session.models import LearningItem

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("vibedeck.server")

_services: Services | None = None
_services_lock = threading.Lock()


def get_services() -> Services:
    """One set of services per process; built on first use."""
    global _services
    with _services_lock:
        if _services is None:
            from vibedeck.application.config import resolve_config

            _services = build_services(resolve_config())
    return _services


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"vibedeck server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("vibedeck server shutting down...")


app = FastAPI(
    title="vibedeck",
    description="Study session and spaced-repetition API.",
    version=VERSION,
    lifespan=lifespan,
)


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


start_time = time.time()


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class SessionView(BaseModel):
    filters: dict[str, Any]
    queue_ids: list[str]
    current_index: int
    current_item: dict[str, Any] | None
    progress: float
    empty: bool


def _item_dict(item: LearningItem | None) -> dict[str, Any] | None:
    if item is None:
        return None
    data = dataclasses.asdict(item)
    data["kind"] = item.kind
    return data


def _session_view(services: Services) -> SessionView:
    session = services.session
    return SessionView(
        filters=session.filters.to_dict(),
        queue_ids=session.queue_ids,
        current_index=session.current_index,
        current_item=_item_dict(session.current_item),
        progress=session.progress,
        empty=session.is_empty,
    )


@app.get("/session", response_model=SessionView)
def get_session(services: Services = Depends(get_services)):
    return _session_view(services)


@app.post("/session/advance", response_model=SessionView)
def advance(services: Services = Depends(get_services)):
    services.session.advance()
    return _session_view(services)


@app.post("/session/back", response_model=SessionView)
def go_back(services: Services = Depends(get_services)):
    services.session.go_back()
    return _session_view(services)


@app.post("/session/reshuffle", response_model=SessionView)
def reshuffle(services: Services = Depends(get_services)):
    services.session.reshuffle()
    return _session_view(services)


@app.post("/session/reset", response_model=SessionView)
def reset(services: Services = Depends(get_services)):
    services.session.reset()
    return _session_view(services)


class FiltersRequest(BaseModel):
    # Only fields that are set get applied.
    kinds: list[str] | None = None
    categories: list[str] | None = None
    pattern: str | None = None
    difficulty: str | None = None
    due_only: bool | None = Field(default=None, alias="dueOnly")
    quality: Literal["high", "all"] | None = None

    model_config = {"populate_by_name": True}


@app.put("/session/filters", response_model=SessionView)
def update_filters(req: FiltersRequest, services: Services = Depends(get_services)):
    changes = {k: v for k, v in req.model_dump().items() if v is not None}
    services.session.update_filters(**changes)
    return _session_view(services)


class GradeRequest(BaseModel):
    quality: int


class AnswerRequest(BaseModel):
    option_index: int


class SolveRequest(BaseModel):
    knows_it: bool


def _conflict(e: Exception) -> HTTPException:
    logger.info(f"Rejected session action: {e}")
    return HTTPException(status_code=409, detail=str(e))


@app.post("/session/grade", response_model=SessionView)
def grade_current(req: GradeRequest, services: Services = Depends(get_services)):
    """Grade the current flashcard and advance."""
    try:
        services.session.review_flashcard(req.quality)
    except (SessionEmptyError, WrongItemKindError) as e:
        raise _conflict(e) from e
    return _session_view(services)


@app.post("/session/answer")
def answer_current(req: AnswerRequest, services: Services = Depends(get_services)):
    """Answer the current MCQ and advance."""
    try:
        correct = services.session.answer_mcq(req.option_index)
    except (SessionEmptyError, WrongItemKindError) as e:
        raise _conflict(e) from e
    return {"correct": correct, "session": _session_view(services)}


@app.post("/session/solve")
def solve_current(req: SolveRequest, services: Services = Depends(get_services)):
    """Record solve feedback for the current prompt and advance."""
    try:
        status = services.session.solve_feedback(req.knows_it)
    except (SessionEmptyError, WrongItemKindError) as e:
        raise _conflict(e) from e
    return {"status": status, "session": _session_view(services)}


# ---------------------------------------------------------------------------
# Review
# ---------------------------------------------------------------------------


class CardGradeRequest(BaseModel):
    card_id: str
    quality: int


@app.post("/review/grade")
def grade_card(req: CardGradeRequest, services: Services = Depends(get_services)):
    """Grade a flashcard directly, outside the session queue."""
    state = services.scheduler.grade(req.card_id, req.quality)
    return state.to_dict()


@app.get("/review/due")
def due_cards(limit: int | None = None, services: Services = Depends(get_services)):
    due = services.scheduler.due_items(services.catalog.flashcards, limit=limit)
    return {"card_ids": [card.card_id for card in due], "count": len(due)}


@app.get("/review/stats")
def review_stats(services: Services = Depends(get_services)):
    stats = services.scheduler.review_stats()
    return {
        "total_reviews": stats.total_reviews,
        "streak": stats.streak,
        "last_review_date": stats.last_review_date.isoformat() if stats.last_review_date else None,
        "problems": services.progress.get_stats(),
    }
