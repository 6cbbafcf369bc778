"""FastAPI web server for coopbrain.

Serves two groups of routes:

- ``/api/threads/...``, ``/api/messages`` and ``/api/runs``: a thin proxy
  to the assistant gateway that adds the API credentials and passes the
  upstream status code through.
- ``/api/chat/...``: server-side chat surfaces, each one a ``ChatSession``
  whose turns are driven by a ``TurnExecutor``.
"""

import logging
from collections import OrderedDict
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import BaseModel

from .backends import get_gateway
from .core import Failure, Outcome, Success
from .errors import ConfigurationError, GatewayError
from .executor import TurnExecutor
from .export import session_to_json, session_to_markdown, turn_to_dict
from .gateway import AssistantGateway
from .personas import DEFAULT_USER_NAME, get_persona, get_personas
from .session import ChatSession

logger = logging.getLogger(__name__)

# Gateway cache (populated on first request)
_gateway: AssistantGateway | None = None

# Open chat surfaces by session id, least recently used first
_sessions: "OrderedDict[str, ChatSession]" = OrderedDict()
MAX_SESSIONS = 200


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    global _gateway
    if _gateway is not None:
        await _gateway.aclose()
        _gateway = None


app = FastAPI(title="coopbrain", version="0.1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "OPTIONS", "PATCH", "DELETE", "POST", "PUT"],
    allow_headers=["*"],
)


class MessageIn(BaseModel):
    content: str


class RunIn(BaseModel):
    assistant_id: str


class OpenSessionIn(BaseModel):
    user_name: str | None = None


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error("Configuration error: %s", exc)
    return JSONResponse(status_code=500, content={"error": str(exc)})


def _get_gateway() -> AssistantGateway:
    """Lazily initialize and cache the gateway."""
    global _gateway
    if _gateway is None:
        _gateway = get_gateway()
        logger.info("Using %s gateway", _gateway.name)
    return _gateway


def _find_session(session_id: str) -> ChatSession:
    session = _sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    _sessions.move_to_end(session_id)
    return session


def _store_session(session: ChatSession) -> None:
    """Register a session, evicting the least recently used idle ones over the cap."""
    _sessions[session.id] = session
    idle = [sid for sid, s in _sessions.items() if not s.in_flight and sid != session.id]
    for sid in idle[: max(0, len(_sessions) - MAX_SESSIONS)]:
        del _sessions[sid]
        logger.info("Evicted idle session %s", sid)


def _session_to_dict(session: ChatSession) -> dict:
    """Convert a ChatSession to a JSON-serializable dict."""
    return {
        "id": session.id,
        "persona": session.persona.name,
        "title": session.persona.title,
        "thread_id": session.thread_id,
        "connected": session.connected,
        "typing": session.in_flight,
        "quick_actions": list(session.persona.quick_actions),
        "messages": [turn_to_dict(t) for t in session.log],
    }


def _outcome_to_dict(outcome: Outcome | None) -> dict | None:
    if isinstance(outcome, Success):
        return {"ok": True, "text": outcome.text}
    if isinstance(outcome, Failure):
        return {"ok": False}
    return None


async def _send(session: ChatSession, text: str) -> dict:
    if session.in_flight:
        raise HTTPException(status_code=409, detail="Assistant is still responding")

    executor = TurnExecutor(_get_gateway(), session.persona)
    outcome = await executor.execute(session, text)
    return {
        "outcome": _outcome_to_dict(outcome),
        "session": _session_to_dict(session),
    }


# ── Routes ───────────────────────────────────────────────────────


@app.get("/")
async def index():
    """Serve the frontend."""
    html_path = Path(__file__).parent / "static" / "index.html"
    if not html_path.exists():
        raise HTTPException(status_code=404, detail="Frontend not found")
    return HTMLResponse(html_path.read_text(encoding="utf-8"))


@app.get("/api/health")
async def health():
    return {"status": "ok", "message": "Backend está funcionando!"}


@app.options("/api/{path:path}")
async def preflight(path: str):
    """Answer CORS pre-flight requests that carry no Origin header."""
    return Response(status_code=200)


# ── Gateway proxy: path style ────────────────────────────────────


@app.post("/api/threads")
async def create_thread():
    return await _get_gateway().create_thread()


@app.post("/api/threads/{thread_id}/messages")
async def add_message(thread_id: str, body: MessageIn):
    return await _get_gateway().add_message(thread_id, body.content)


@app.get("/api/threads/{thread_id}/messages")
async def list_messages(thread_id: str):
    return await _get_gateway().list_messages(thread_id)


@app.post("/api/threads/{thread_id}/runs")
async def create_run(thread_id: str, body: RunIn):
    return await _get_gateway().create_run(thread_id, body.assistant_id)


@app.get("/api/threads/{thread_id}/runs/{run_id}")
async def get_run(thread_id: str, run_id: str):
    return await _get_gateway().get_run(thread_id, run_id)


# ── Gateway proxy: query style ───────────────────────────────────


@app.post("/api/messages")
async def add_message_query(body: MessageIn, thread_id: str = Query(..., alias="threadId")):
    return await _get_gateway().add_message(thread_id, body.content)


@app.get("/api/messages")
async def list_messages_query(thread_id: str = Query(..., alias="threadId")):
    return await _get_gateway().list_messages(thread_id)


@app.post("/api/runs")
async def create_run_query(body: RunIn, thread_id: str = Query(..., alias="threadId")):
    return await _get_gateway().create_run(thread_id, body.assistant_id)


@app.get("/api/runs")
async def get_run_query(
    thread_id: str = Query(..., alias="threadId"),
    run_id: str = Query(..., alias="runId"),
):
    return await _get_gateway().get_run(thread_id, run_id)


# ── Chat surfaces ────────────────────────────────────────────────


@app.get("/api/personas")
async def list_personas():
    """Return the chat surfaces that can be opened."""
    return [
        {"name": p.name, "title": p.title, "quick_actions": list(p.quick_actions)}
        for p in get_personas()
    ]


@app.post("/api/chat/{persona_name}")
async def open_session(persona_name: str, body: OpenSessionIn | None = None):
    """Open a chat surface: greet the user and create its thread."""
    persona = get_persona(persona_name)
    if persona is None:
        raise HTTPException(status_code=404, detail=f"Unknown persona: {persona_name}")

    user_name = (body.user_name if body else None) or DEFAULT_USER_NAME
    session = await ChatSession.open(persona, _get_gateway(), user_name=user_name)
    _store_session(session)
    return _session_to_dict(session)


@app.get("/api/chat/sessions/{session_id}")
async def get_session(session_id: str):
    return _session_to_dict(_find_session(session_id))


@app.delete("/api/chat/sessions/{session_id}")
async def close_session(session_id: str):
    """Forget a chat surface. Its thread is left on the gateway."""
    if _sessions.pop(session_id, None) is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return {"closed": session_id}


@app.post("/api/chat/sessions/{session_id}/messages")
async def send_message(session_id: str, body: MessageIn):
    """Run one turn. Blank input or a session without thread is a no-op."""
    return await _send(_find_session(session_id), body.content)


@app.post("/api/chat/sessions/{session_id}/quick/{label}")
async def send_quick_action(session_id: str, label: str):
    """Send one of the persona's preset prompts."""
    session = _find_session(session_id)
    prompt = session.persona.quick_actions.get(label)
    if prompt is None:
        raise HTTPException(status_code=404, detail=f"Unknown quick action: {label}")
    return await _send(session, prompt)


@app.get("/api/chat/sessions/{session_id}/export")
async def export_session(
    session_id: str,
    format: str = Query("md", description="Export format: md or json"),
):
    """Export a session as Markdown or JSON."""
    session = _find_session(session_id)
    filename = f"{session.persona.name}-{session.id[:8]}"

    if format == "json":
        return Response(
            content=session_to_json(session),
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="{filename}.json"'},
        )
    else:
        return Response(
            content=session_to_markdown(session),
            media_type="text/markdown",
            headers={"Content-Disposition": f'attachment; filename="{filename}.md"'},
        )
