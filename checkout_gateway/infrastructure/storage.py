"""Session-scoped storage read by the external payment reconciliation page"""

import json
from typing import Any, Dict, Protocol

from sqlalchemy.orm import Session

from checkout_gateway.infrastructure.database.repositories import SessionEntryRepository

PAYMENT_DETAILS_KEY = "payu_payment_details"
PAYMENT_ERROR_KEY = "payu_payment_error"
MANUAL_PAYMENT_KEY = "manual_payment_details"


class SessionStorage(Protocol):
    """String key/value store scoped to one checkout session"""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class InMemorySessionStorage:
    """Process-local storage, used by tests and programmatic callers"""

    def __init__(self) -> None:
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class SqlSessionStorage:
    """Storage backed by the session_entry table; every write is committed immediately"""

    def __init__(self, db: Session, session_id: str):
        self.db = db
        self.session_id = session_id
        self.repo = SessionEntryRepository(db)

    def get_item(self, key: str) -> str | None:
        entry = self.repo.get_entry(self.session_id, key)
        return entry.value if entry is not None else None

    def set_item(self, key: str, value: str) -> None:
        self.repo.upsert_entry(self.session_id, key, value)
        self.db.commit()

    def remove_item(self, key: str) -> None:
        if self.repo.delete_entry(self.session_id, key):
            self.db.commit()


def write_json(storage: SessionStorage, key: str, data: Dict[str, Any]) -> None:
    storage.set_item(key, json.dumps(data))


def read_json(storage: SessionStorage, key: str) -> Dict[str, Any] | None:
    raw = storage.get_item(key)
    if raw is None:
        return None
    return json.loads(raw)
