"""Daily rollover of the address history and the once-a-day report."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Protocol

from ddns_watch.clock import reference_day, reference_hour
from ddns_watch.history import Observation, aggregate
from ddns_watch.report import Report, render

REPORT_HOUR = 0

logger = logging.getLogger(__name__)


@dataclass
class RolloverState:
    current_day: Optional[str] = None
    report_sent_for_day: Optional[str] = None


class ClockLike(Protocol):
    def now(self) -> datetime: ...


class HistoryStoreLike(Protocol):
    def load(self) -> List[Observation]: ...

    def save(self, observations: List[Observation]) -> None: ...


class RolloverStoreLike(Protocol):
    def load(self) -> RolloverState: ...

    def save(self, state: RolloverState) -> None: ...


@dataclass
class TickResult:
    today: str
    report: Optional[Report]
    rolled_over: bool


class RolloverController:
    """Runs the report-due check, then the day rollover, once per invocation.

    The report is rendered before the reset, so the report sent during hour 0
    describes the day that just ended.
    """

    def __init__(self, clock: ClockLike, history_store: HistoryStoreLike, rollover_store: RolloverStoreLike) -> None:
        self.clock = clock
        self.history_store = history_store
        self.rollover_store = rollover_store

    def report_due(self, state: RolloverState, today: str, hour: int) -> bool:
        return hour == REPORT_HOUR and state.report_sent_for_day != today

    def tick(self, deliver: Callable[[Report], object]) -> TickResult:
        now = self.clock.now()
        today = reference_day(now)
        state = self.rollover_store.load()
        changed = False

        report: Optional[Report] = None
        if self.report_due(state, today, reference_hour(now)):
            history = self.history_store.load()
            report = render(aggregate(history), day=state.current_day or today)
            logger.info(
                "daily report due for %s: %d changes, %d addresses",
                report.day,
                len(history),
                report.distinct_address_count,
            )
            deliver(report)
            state.report_sent_for_day = today
            changed = True

        rolled_over = False
        if state.current_day != today:
            logger.info("day rollover %s -> %s; clearing history", state.current_day, today)
            self.history_store.save([])
            state.current_day = today
            if state.report_sent_for_day != today:
                state.report_sent_for_day = None
            rolled_over = True
            changed = True

        if changed:
            self.rollover_store.save(state)
        return TickResult(today=today, report=report, rolled_over=rolled_over)
