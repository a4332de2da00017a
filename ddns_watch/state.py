"""JSON file key-value state: last known address, daily history, rollover markers."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ddns_watch.history import Observation
from ddns_watch.rollover import RolloverState

KEY_LAST_IP = "last_ip"
KEY_HISTORY = "daily_history"
KEY_DAY = "daily_date"
KEY_SENT = "daily_sent"

logger = logging.getLogger(__name__)


class JsonStateStore:
    """Single JSON object on disk, rewritten on every put."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("ignoring unreadable state file %s: %s", self.path, exc)
            return {}
        if not isinstance(payload, dict):
            logger.warning("ignoring state file %s: root is not an object", self.path)
            return {}
        return payload

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def put(self, key: str, value: Any) -> None:
        payload = self._load()
        if value is None:
            payload.pop(key, None)
        else:
            payload[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")


class AddressStore:
    def __init__(self, store: JsonStateStore) -> None:
        self.store = store

    def load(self) -> Optional[str]:
        value = self.store.get(KEY_LAST_IP)
        return value if isinstance(value, str) and value else None

    def save(self, address: str) -> None:
        self.store.put(KEY_LAST_IP, address)


class HistoryStore:
    def __init__(self, store: JsonStateStore) -> None:
        self.store = store

    def load(self) -> List[Observation]:
        raw = self.store.get(KEY_HISTORY, [])
        if not isinstance(raw, list):
            return []
        observations: List[Observation] = []
        for item in raw:
            observation = Observation.from_dict(item)
            if observation is None:
                logger.warning("skipping malformed history entry: %r", item)
                continue
            observations.append(observation)
        return observations

    def save(self, observations: List[Observation]) -> None:
        self.store.put(KEY_HISTORY, [item.as_dict() for item in observations])

    def append(self, observation: Observation) -> List[Observation]:
        history = self.load()
        history.append(observation)
        self.save(history)
        return history


class RolloverStore:
    def __init__(self, store: JsonStateStore) -> None:
        self.store = store

    def load(self) -> RolloverState:
        current_day = self.store.get(KEY_DAY)
        sent = self.store.get(KEY_SENT)
        return RolloverState(
            current_day=current_day if isinstance(current_day, str) else None,
            report_sent_for_day=sent if isinstance(sent, str) else None,
        )

    def save(self, state: RolloverState) -> None:
        self.store.put(KEY_DAY, state.current_day)
        self.store.put(KEY_SENT, state.report_sent_for_day)
