"""
FastAPI web server — command endpoint that drives the placement engine.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from musicarch.engine import (
    Command, PlacementEngine, PlacementRecord, SelectionError,
    UnknownCommandError, dispatch,
)
from musicarch.hosts import InMemoryScene, SessionGroupStore
from musicarch.session import create_session, list_sessions, load_session


log = logging.getLogger(__name__)

# ── App ────────────────────────────────────────────────────────────

app = FastAPI(title="Music Architecture")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Session state (persists across requests) ───────────────────────

class PanelState:
    """Presentation host: keeps the last snapshot pushed by the engine."""

    def __init__(self) -> None:
        self.snapshot: dict = {}

    def push(self, snapshot: dict) -> None:
        self.snapshot = snapshot


_engine: PlacementEngine | None = None
_scene: InMemoryScene | None = None
_panel = PanelState()
_session_id: str | None = None


def _new_engine(session_id: str | None = None) -> PlacementEngine:
    global _engine, _scene, _panel, _session_id
    session = load_session(session_id) if session_id else None
    if session is None:
        session = create_session("music architecture panel")
    _scene = InMemoryScene()
    _panel = PanelState()
    _session_id = session.id
    _engine = PlacementEngine(
        geometry=_scene,
        persistence=SessionGroupStore(session),
        selection=_scene,
        presentation=_panel,
    )
    _panel.push(_engine.snapshot())
    log.info("Started engine for session %s", session.id)
    return _engine


def get_engine() -> PlacementEngine:
    if _engine is None:
        return _new_engine()
    return _engine


# ── Models ─────────────────────────────────────────────────────────

class CommandRequest(BaseModel):
    args: list[Any] = []
    kwargs: dict[str, Any] = {}


class ResetRequest(BaseModel):
    session_id: str | None = None


def _jsonable(result: Any) -> Any:
    if isinstance(result, PlacementRecord):
        return {
            "handle": result.handle,
            "duration": result.duration.code,
            "group_id": result.group_id,
        }
    return result


def _state_payload(engine: PlacementEngine) -> dict:
    line = engine.guide_line()
    return {
        "session_id": _session_id,
        "panel": _panel.snapshot,
        "note_duration": engine.current_duration.code,
        "group_count": len(engine.groups),
        "history": len(engine.state.history),
        "guide_line": [list(line[0]), list(line[1])] if line else None,
    }


# ── Routes ─────────────────────────────────────────────────────────

@app.post("/api/reset")
def reset_session(req: ResetRequest | None = None):
    """Start a fresh engine, optionally re-opening a stored session."""
    engine = _new_engine(req.session_id if req else None)
    if req and req.session_id:
        try:
            engine.load_groups()
        except (KeyError, ValueError) as exc:
            log.warning("Unreadable group record in session %s: %s", req.session_id, exc)
            raise HTTPException(400, f"Unreadable group record: {exc}")
    return {"status": "ok", **_state_payload(engine)}


@app.get("/api/sessions")
def get_sessions():
    return {"sessions": list_sessions()}


@app.get("/api/state")
def get_state():
    return _state_payload(get_engine())


@app.get("/api/commands")
def list_commands():
    return {"commands": [c.value for c in Command]}


@app.post("/api/command/{name}")
def run_command(name: str, req: CommandRequest | None = None):
    """Run one named engine operation and return the refreshed state."""
    engine = get_engine()
    req = req or CommandRequest()
    try:
        result = dispatch(engine, name, req.args, req.kwargs)
    except UnknownCommandError as exc:
        raise HTTPException(404, str(exc))
    except SelectionError as exc:
        raise HTTPException(400, str(exc))
    except (KeyError, TypeError, ValueError) as exc:
        log.warning("Bad arguments for %s: %s", name, exc)
        raise HTTPException(400, f"Bad arguments for {name}: {exc}")
    return {"status": "ok", "result": _jsonable(result), **_state_payload(engine)}


# ── Entry point ────────────────────────────────────────────────────

def main(host: str = "127.0.0.1", port: int = 8000):
    import uvicorn
    uvicorn.run("musicarch.web.server:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
