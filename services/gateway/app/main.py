from __future__ import annotations

import asyncio
import json
import logging
import os
from datetime import datetime, timezone
from time import perf_counter
from typing import Any, AsyncIterator

from fastapi import FastAPI, HTTPException, Request, Response, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from services.agents.text.worker import LLMEngineError, answer_question, llm_capabilities
from services.config.runtime_config import current_state, load_env_file
from services.gateway.app.metrics import metrics_response, record_answer, record_http, route_label
from services.history.store import QuestionStore
from services.protocol import VISUALIZATION_ANSWER_SCHEMA, ProtocolValidationError, ProtocolValidator
from services.versioning import project_revision, project_version
from services.visualization import draw_commands, evaluate, extract, sanitize_answer
from services.visualization.evaluate import clamp_time

load_env_file()

logger = logging.getLogger("chatvis.gateway")

SSE_KEEPALIVE_S = 15.0
protocol_validator = ProtocolValidator()


class QuestionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(default="u1", alias="userId")
    question: str | None = None


class SanitizeRequest(BaseModel):
    raw: str | None = None
    value: Any = None


class EventHub:
    """Fans gateway events out to WebSocket connections and SSE subscribers."""

    def __init__(self) -> None:
        self.connections: set[WebSocket] = set()
        self.subscribers: set[asyncio.Queue[dict]] = set()

    async def connect(self, websocket: WebSocket) -> None:
        self.connections.add(websocket)
        await websocket.accept()

    def disconnect(self, websocket: WebSocket) -> None:
        self.connections.discard(websocket)

    def subscribe(self) -> asyncio.Queue[dict]:
        queue: asyncio.Queue[dict] = asyncio.Queue()
        self.subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[dict]) -> None:
        self.subscribers.discard(queue)

    async def broadcast(self, event_type: str, payload: dict) -> None:
        wrapped = _wrap_event(event_type, payload)
        for queue in list(self.subscribers):
            queue.put_nowait(wrapped)
        if not self.connections:
            return
        await asyncio.gather(*(ws.send_json(wrapped) for ws in list(self.connections)), return_exceptions=True)


def _wrap_event(event_type: str, payload: dict) -> dict:
    return {
        "event_type": event_type,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "payload": payload,
    }


def _sse_frame(data: dict, event: str | None = None) -> str:
    prefix = f"event: {event}\n" if event else ""
    return f"{prefix}data: {json.dumps(data)}\n\n"


def _cors_origins() -> list[str]:
    raw = os.getenv("CHATVIS_CORS_ORIGINS", "*").strip()
    return [origin.strip() for origin in raw.split(",") if origin.strip()] or ["*"]


store = QuestionStore()
events = EventHub()

app = FastAPI(title="chatvis gateway", version=project_version())
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):  # type: ignore[override]
    started = perf_counter()
    response = await call_next(request)
    record_http(request.method, route_label(request.scope), response.status_code, perf_counter() - started)
    return response


@app.get("/health")
def health() -> dict:
    return {
        "status": "ok",
        "service": "gateway",
        "version": project_version(),
        "revision": project_revision(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/metrics")
def metrics() -> Response:
    payload, content_type = metrics_response()
    return Response(content=payload, media_type=content_type)


@app.get("/api/llm/capabilities")
def runtime_llm_capabilities(probe: bool = False) -> dict:
    return llm_capabilities(probe=probe)


@app.get("/api/config")
def runtime_config() -> dict:
    return {"values": current_state()}


@app.get("/api/stream")
async def stream(request: Request) -> StreamingResponse:
    queue = events.subscribe()

    async def frames() -> AsyncIterator[str]:
        try:
            yield _sse_frame({"status": "connected"})
            while not await request.is_disconnected():
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=SSE_KEEPALIVE_S)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                yield _sse_frame(event["payload"], event=event["event_type"])
        finally:
            events.unsubscribe(queue)

    return StreamingResponse(
        frames(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@app.websocket("/api/events/ws")
async def events_ws(websocket: WebSocket) -> None:
    await events.connect(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        events.disconnect(websocket)


@app.post("/api/questions")
async def create_question(req: QuestionRequest) -> Any:
    question = (req.question or "").strip()
    if not question:
        return JSONResponse(status_code=400, content={"error": "question is required"})

    record = store.add_question(question, user_id=req.user_id)
    await events.broadcast("question_created", record.to_dict())

    started = perf_counter()
    outcome = "ok"
    try:
        answer = await asyncio.to_thread(answer_question, question)
    except LLMEngineError as exc:
        logger.warning("answer generation failed for %s via %s: %s", record.id, exc.provider, exc)
        answer = sanitize_answer(None)
        outcome = "fallback"
    record_answer(outcome, perf_counter() - started)

    stored = store.add_answer(record.id, answer)
    payload = stored.to_dict()
    try:
        protocol_validator.validate(VISUALIZATION_ANSWER_SCHEMA, payload)
    except ProtocolValidationError as exc:
        raise HTTPException(
            status_code=500,
            detail={"error": "invalid_generated_answer", "issues": exc.issues},
        ) from exc

    await events.broadcast("answer_created", payload)
    logger.info("answered %s as %s outcome=%s", record.id, stored.id, outcome)
    return {"questionId": record.id, "answerId": stored.id}


@app.get("/api/questions")
def list_questions() -> list[dict]:
    return [row.to_dict() for row in store.questions()]


@app.get("/api/answers/{answer_id}")
def get_answer(answer_id: str) -> Any:
    record = store.get_answer(answer_id)
    if record is None:
        return JSONResponse(status_code=404, content={"error": "not found"})
    return record.to_dict()


@app.get("/api/answers/{answer_id}/frame")
def answer_frame(answer_id: str, t: float = 0.0) -> Any:
    record = store.get_answer(answer_id)
    if record is None:
        return JSONResponse(status_code=404, content={"error": "not found"})
    spec = record.answer.visualization
    states = evaluate(spec, t)
    return {
        "answerId": record.id,
        "visualizationId": spec.id,
        "t": clamp_time(spec, t),
        "states": [state.to_dict() for state in states],
        "commands": draw_commands(states),
    }


@app.post("/api/visualizations/sanitize")
def sanitize_visualization(req: SanitizeRequest) -> dict:
    candidate = extract(req.raw) if req.raw is not None else req.value
    return sanitize_answer(candidate).to_dict()
