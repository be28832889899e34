"""Session-backed persistence host: one JSON file per group."""

from __future__ import annotations

import json
import logging

from musicarch.engine.models import record_name
from musicarch.session import Session


log = logging.getLogger(__name__)

GROUPS_DIR = "groups"


class SessionGroupStore:
    """Stores ``GroupData_{id}.json`` records inside a Session folder."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def _filename(self, group_id: int) -> str:
        return f"{GROUPS_DIR}/{record_name(group_id)}.json"

    def save_group_record(self, group_id: int, data: str) -> None:
        self.session.write_text(self._filename(group_id), data)

    def load_all_group_records(self) -> list[str]:
        records = []
        for name in self.session.list_artifacts(f"{GROUPS_DIR}/GroupData_*.json"):
            text = self.session.read_text(name)
            if text is None:
                continue
            try:
                json.loads(text)
            except json.JSONDecodeError:
                log.warning("Skipping unreadable group record %s", name)
                continue
            records.append(text)
        return records

    def delete_group_record(self, group_id: int) -> None:
        self.session.delete_artifact(self._filename(group_id))
