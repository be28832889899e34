"""
Session management — each session is a folder on disk holding the group
records of one placement session.

Sessions are identified by a short ID (timestamp-based) and stored under
  outputs/sessions/<session_id>/
or under $MUSICARCH_SESSIONS_DIR when that variable is set.

A session folder contains:
  session.json          — metadata (created, last_modified, description)
  groups/GroupData_N.json — one record per note group

This module manages creation, loading, listing, and updating of sessions.
"""

from __future__ import annotations

import json
import os
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path


ROOT = Path(__file__).resolve().parent.parent
SESSIONS_DIR = Path(os.environ.get("MUSICARCH_SESSIONS_DIR", ROOT / "outputs" / "sessions"))


@dataclass
class Session:
    id: str
    path: Path
    created: str                         # ISO 8601
    last_modified: str                   # ISO 8601
    description: str = ""

    def save(self) -> None:
        """Persist session metadata to session.json."""
        self.last_modified = datetime.now(timezone.utc).isoformat()
        self.path.mkdir(parents=True, exist_ok=True)
        meta = {
            "id": self.id,
            "created": self.created,
            "last_modified": self.last_modified,
            "description": self.description,
        }
        (self.path / "session.json").write_text(
            json.dumps(meta, indent=2), encoding="utf-8")

    def write_text(self, filename: str, text: str) -> Path:
        """Write a raw text artifact to the session folder."""
        p = self.path / filename
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8")
        self.save()  # update last_modified
        return p

    def read_text(self, filename: str) -> str | None:
        p = self.path / filename
        if not p.exists():
            return None
        return p.read_text(encoding="utf-8")

    def list_artifacts(self, pattern: str) -> list[str]:
        """Relative names of artifacts matching a glob pattern, sorted."""
        return sorted(
            str(p.relative_to(self.path).as_posix())
            for p in self.path.glob(pattern)
            if p.is_file()
        )

    def delete_artifact(self, filename: str) -> bool:
        """Delete an artifact. Returns True if it existed."""
        p = self.path / filename
        if p.exists():
            p.unlink()
            return True
        return False


def _generate_session_id() -> str:
    """Generate a short, unique, human-readable session ID."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def create_session(description: str = "", base_dir: Path | None = None) -> Session:
    """Create a new session with a fresh folder on disk."""
    base = Path(base_dir) if base_dir is not None else SESSIONS_DIR
    sid = _generate_session_id()
    path = base / sid

    # Avoid collision (rare but possible if called twice in same second)
    while path.exists():
        time.sleep(0.1)
        sid = _generate_session_id()
        path = base / sid

    now = datetime.now(timezone.utc).isoformat()
    session = Session(
        id=sid,
        path=path,
        created=now,
        last_modified=now,
        description=description,
    )
    session.save()
    return session


def load_session(session_id: str, base_dir: Path | None = None) -> Session | None:
    """Load an existing session by ID. Returns None if not found."""
    base = Path(base_dir) if base_dir is not None else SESSIONS_DIR
    path = base / session_id
    meta_path = path / "session.json"
    if not meta_path.exists():
        return None
    try:
        meta = json.loads(meta_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        return None
    return Session(
        id=meta["id"],
        path=path,
        created=meta["created"],
        last_modified=meta["last_modified"],
        description=meta.get("description", ""),
    )


def list_sessions(base_dir: Path | None = None) -> list[dict]:
    """List all sessions, newest first. Returns lightweight metadata dicts."""
    base = Path(base_dir) if base_dir is not None else SESSIONS_DIR
    sessions = []
    if not base.exists():
        return sessions
    for d in sorted(base.iterdir(), reverse=True):
        if not d.is_dir():
            continue
        meta_path = d / "session.json"
        if not meta_path.exists():
            continue
        try:
            meta = json.loads(meta_path.read_text(encoding="utf-8"))
            sessions.append({
                "id": meta["id"],
                "created": meta["created"],
                "last_modified": meta["last_modified"],
                "description": meta.get("description", ""),
            })
        except (json.JSONDecodeError, OSError):
            continue
    return sessions
