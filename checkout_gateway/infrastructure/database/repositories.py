"""Data access layer for session storage entries"""

from typing import Dict, Optional
from sqlalchemy.orm import Session
from checkout_gateway.infrastructure.database.models import SessionEntry


class SessionEntryRepository:
    """Repository for per-session key/value entries"""

    def __init__(self, db: Session):
        self.db = db

    def get_entry(self, session_id: str, key: str) -> Optional[SessionEntry]:
        return (
            self.db.query(SessionEntry)
            .filter(SessionEntry.session_id == session_id, SessionEntry.key == key)
            .first()
        )

    def upsert_entry(self, session_id: str, key: str, value: str) -> SessionEntry:
        """Insert or overwrite a key for the session"""
        entry = self.get_entry(session_id, key)
        if entry is None:
            entry = SessionEntry(session_id=session_id, key=key, value=value)
            self.db.add(entry)
        else:
            entry.value = value
        self.db.flush()
        return entry

    def delete_entry(self, session_id: str, key: str) -> bool:
        entry = self.get_entry(session_id, key)
        if entry is None:
            return False
        self.db.delete(entry)
        self.db.flush()
        return True

    def get_entries_by_session(self, session_id: str) -> Dict[str, str]:
        """All keys stored for a session"""
        entries = (
            self.db.query(SessionEntry)
            .filter(SessionEntry.session_id == session_id)
            .order_by(SessionEntry.key)
            .all()
        )
        return {entry.key: entry.value for entry in entries}
