"""Client-side session state: identity, selected plant and the read cache.

Every change of identity or selected plant notifies listeners; the QueryCache
listens and drops all cached reads so no data from a previous user or plant
is served.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from dotenv import load_dotenv

from dms.models.constants import SELECTED_PLANT_STORAGE_KEY

load_dotenv()

logger = logging.getLogger(__name__)

DMS_CLIENT_STATE_FILE = os.getenv("DMS_CLIENT_STATE_FILE", str(Path.home() / ".dms_client_state.json"))

Listener = Callable[["SessionContext"], None]


class SelectedPlantStore:
    """Persists the selected plant id in a small JSON key-value file."""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or DMS_CLIENT_STATE_FILE)

    def _read(self) -> Dict[str, Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable client state file {self.path}: {type(e).__name__}: {str(e)}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f)

    def load(self) -> Optional[str]:
        value = self._read().get(SELECTED_PLANT_STORAGE_KEY)
        return value if isinstance(value, str) and value else None

    def save(self, plant_id: Optional[str]) -> None:
        data = self._read()
        if plant_id:
            data[SELECTED_PLANT_STORAGE_KEY] = plant_id
        else:
            data.pop(SELECTED_PLANT_STORAGE_KEY, None)
        self._write(data)

    def clear(self) -> None:
        self.save(None)


class SessionContext:
    """Active identity (user id + bearer token) and the selected plant."""

    def __init__(self, plant_store: Optional[SelectedPlantStore] = None):
        self.user_id: Optional[str] = None
        self.token: Optional[str] = None
        self.selected_plant_id: Optional[str] = None
        self.plant_store = plant_store
        self._listeners: List[Listener] = []

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def sign_in(self, user_id: str, token: str) -> None:
        """Set the identity. Switching to a different user forgets the selected plant."""
        if self.user_id is not None and self.user_id != user_id:
            self._forget_plant()
        self.user_id = user_id
        self.token = token
        self._notify()

    def sign_out(self) -> None:
        self.user_id = None
        self.token = None
        self._forget_plant()
        self._notify()

    def select_plant(self, plant_id: Optional[str]) -> None:
        if plant_id == self.selected_plant_id:
            return
        self.selected_plant_id = plant_id
        if self.plant_store is not None:
            self.plant_store.save(plant_id)
        self._notify()

    def restore_selected_plant(self, active_plant_ids: Iterable[str]) -> Optional[str]:
        """Restore the persisted plant if it still names an active plant; otherwise clear it."""
        if self.plant_store is None:
            return None
        stored = self.plant_store.load()
        if stored is None:
            return None
        if stored in set(active_plant_ids):
            self.selected_plant_id = stored
            self._notify()
            return stored
        logger.info(f"Discarding stored plant {stored}: no longer active")
        self.plant_store.clear()
        return None

    def _forget_plant(self) -> None:
        self.selected_plant_id = None
        if self.plant_store is not None:
            self.plant_store.clear()


class QueryCache:
    """Cache of read results keyed by (path, params)."""

    def __init__(self, session: Optional[SessionContext] = None):
        self._entries: Dict[str, Any] = {}
        self._unsubscribe = session.subscribe(lambda _session: self.clear()) if session else None

    @staticmethod
    def key(path: str, params: Optional[Dict[str, Any]] = None) -> str:
        items = sorted((k, str(v)) for k, v in (params or {}).items() if v is not None)
        return path + "?" + "&".join(f"{k}={v}" for k, v in items)

    def get(self, key: str) -> Any:
        return self._entries.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = value

    def invalidate(self, prefix: str) -> int:
        """Drop every entry whose key starts with prefix; returns how many were dropped."""
        stale = [k for k in self._entries if k.startswith(prefix)]
        for k in stale:
            del self._entries[k]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def close(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None
