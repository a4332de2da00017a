from __future__ import annotations

import json
from pathlib import Path

from ddns_watch.clock import parse_timestamp
from ddns_watch.history import Observation
from ddns_watch.state import AddressStore, HistoryStore, JsonStateStore


def test_missing_and_corrupt_state_load_empty(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    store = JsonStateStore(path)
    assert store.get("last_ip") is None

    path.write_text("{ not json", encoding="utf-8")
    assert AddressStore(store).load() is None

    path.write_text(json.dumps(["last_ip"]), encoding="utf-8")
    assert HistoryStore(store).load() == []


def test_history_append_persists_each_mutation(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "state.json"
    history = HistoryStore(JsonStateStore(path))

    history.append(Observation("1.1.1.1", parse_timestamp("2024-01-01T00:05:00+08:00")))
    history.append(Observation("2.2.2.2", parse_timestamp("2024-01-01T00:10:00+08:00")))

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["daily_history"] == [
        {"ip": "1.1.1.1", "time": "2024-01-01T00:05:00+08:00"},
        {"ip": "2.2.2.2", "time": "2024-01-01T00:10:00+08:00"},
    ]


def test_history_skips_malformed_entries(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text(
        json.dumps(
            {
                "daily_history": [
                    {"ip": "1.1.1.1", "time": "2024-01-01 00:05:00"},
                    {"ip": "2.2.2.2"},
                    "3.3.3.3",
                ]
            }
        ),
        encoding="utf-8",
    )

    loaded = HistoryStore(JsonStateStore(path)).load()

    assert [o.address for o in loaded] == ["1.1.1.1"]


def test_address_store_keeps_other_keys(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    store = JsonStateStore(path)
    store.put("daily_date", "2024-01-01")

    AddressStore(store).save("203.0.113.9")

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload == {"daily_date": "2024-01-01", "last_ip": "203.0.113.9"}
    assert AddressStore(store).load() == "203.0.113.9"
