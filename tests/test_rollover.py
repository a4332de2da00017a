from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import List

from ddns_watch.clock import REFERENCE_TZ, FixedClock, parse_timestamp
from ddns_watch.history import Observation
from ddns_watch.report import Report
from ddns_watch.rollover import RolloverController, RolloverState
from ddns_watch.state import HistoryStore, JsonStateStore, RolloverStore


def _at(text: str) -> datetime:
    return datetime.fromisoformat(text).replace(tzinfo=REFERENCE_TZ)


def _setup(tmp_path: Path, start: str):
    store = JsonStateStore(tmp_path / "state.json")
    history = HistoryStore(store)
    rollover = RolloverStore(store)
    clock = FixedClock(_at(start))
    return clock, history, rollover, RolloverController(clock, history, rollover)


def _obs(address: str, time_text: str) -> Observation:
    return Observation(address=address, timestamp=parse_timestamp(time_text))


def test_history_cleared_once_at_day_boundary(tmp_path: Path) -> None:
    clock, history, rollover, controller = _setup(tmp_path, "2024-01-01T12:00:00")
    rollover.save(RolloverState(current_day="2024-01-01"))
    history.save([_obs("10.0.0.1", "2024-01-01T10:00:00+08:00")])
    delivered: List[Report] = []

    result = controller.tick(delivered.append)
    assert result.rolled_over is False
    assert len(history.load()) == 1

    clock.current = _at("2024-01-02T09:00:00")
    result = controller.tick(delivered.append)
    assert result.rolled_over is True
    assert history.load() == []
    assert rollover.load().current_day == "2024-01-02"

    history.append(_obs("10.0.0.2", "2024-01-02T09:10:00+08:00"))
    clock.current = _at("2024-01-02T09:30:00")
    result = controller.tick(delivered.append)
    assert result.rolled_over is False
    assert [o.address for o in history.load()] == ["10.0.0.2"]

    clock.current = _at("2024-01-02T23:59:00")
    assert controller.tick(delivered.append).rolled_over is False
    assert delivered == []


def test_daily_report_sent_once_and_covers_previous_day(tmp_path: Path) -> None:
    clock, history, rollover, controller = _setup(tmp_path, "2024-01-02T00:00:00")
    rollover.save(RolloverState(current_day="2024-01-01"))
    history.save(
        [
            _obs("1.1.1.1", "2024-01-01T00:05:00+08:00"),
            _obs("2.2.2.2", "2024-01-01T00:10:00+08:00"),
            _obs("1.1.1.1", "2024-01-01T00:15:00+08:00"),
        ]
    )
    delivered: List[Report] = []

    first = controller.tick(delivered.append)
    for minute in (10, 20, 59):
        clock.current = _at(f"2024-01-02T00:{minute:02d}:00")
        controller.tick(delivered.append)

    assert len(delivered) == 1
    report = delivered[0]
    assert first.report is report
    assert report.day == "2024-01-01"
    assert report.distinct_address_count == 2
    assert report.most_frequent is not None and report.most_frequent.address == "1.1.1.1"
    assert history.load() == []
    assert rollover.load() == RolloverState(current_day="2024-01-02", report_sent_for_day="2024-01-02")


def test_report_only_during_hour_zero(tmp_path: Path) -> None:
    clock, history, rollover, controller = _setup(tmp_path, "2024-01-02T01:00:00")
    rollover.save(RolloverState(current_day="2024-01-01"))
    delivered: List[Report] = []

    controller.tick(delivered.append)

    assert delivered == []
    assert rollover.load() == RolloverState(current_day="2024-01-02", report_sent_for_day=None)


def test_report_sent_again_next_day(tmp_path: Path) -> None:
    clock, history, rollover, controller = _setup(tmp_path, "2024-01-02T00:00:00")
    rollover.save(RolloverState(current_day="2024-01-01"))
    delivered: List[Report] = []

    controller.tick(delivered.append)
    clock.current = _at("2024-01-02T13:00:00")
    history.append(_obs("10.0.0.5", "2024-01-02T13:00:00+08:00"))
    controller.tick(delivered.append)
    clock.current = _at("2024-01-03T00:01:00")
    controller.tick(delivered.append)
    clock.current = _at("2024-01-03T00:30:00")
    controller.tick(delivered.append)

    assert [r.day for r in delivered] == ["2024-01-01", "2024-01-02"]
    assert delivered[0].distinct_address_count == 0
    assert delivered[1].distinct_address_count == 1
    sent = rollover.load().report_sent_for_day
    assert sent is not None and sent <= rollover.load().current_day


def test_first_tick_initialises_state(tmp_path: Path) -> None:
    clock, history, rollover, controller = _setup(tmp_path, "2024-03-05T07:45:00")
    delivered: List[Report] = []

    result = controller.tick(delivered.append)

    assert result.today == "2024-03-05"
    assert result.rolled_over is True
    assert delivered == []
    payload = json.loads((tmp_path / "state.json").read_text(encoding="utf-8"))
    assert payload["daily_date"] == "2024-03-05"
    assert payload["daily_history"] == []
    assert "daily_sent" not in payload


def test_day_uses_reference_offset_not_utc(tmp_path: Path) -> None:
    clock, history, rollover, controller = _setup(tmp_path, "2024-01-01T12:00:00")
    rollover.save(RolloverState(current_day="2024-01-01"))
    # 16:30 UTC on Jan 1 is 00:30 on Jan 2 at UTC+8
    clock.current = datetime.fromisoformat("2024-01-01T16:30:00+00:00")
    delivered: List[Report] = []

    result = controller.tick(delivered.append)

    assert result.today == "2024-01-02"
    assert result.rolled_over is True
    assert len(delivered) == 1
