"""Human-readable rendering of an aggregated daily history."""

from __future__ import annotations

import html
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ddns_watch.clock import to_reference
from ddns_watch.history import AggregatedRecord

NO_CHANGES_PLACEHOLDER = "<i>无 IP 变化</i>"
CIRCLED_NUMERALS = (
    "①②③④⑤⑥⑦⑧⑨⑩"
    "⑪⑫⑬⑭⑮⑯⑰⑱⑲⑳"
    "㉑㉒㉓㉔㉕㉖㉗㉘㉙㉚"
    "㉛㉜㉝㉞㉟㊱㊲㊳㊴㊵"
    "㊶㊷㊸㊹㊺㊻㊼㊽㊾㊿"
)
CAUTION_COUNT = 2
SEVERE_COUNT = 3


@dataclass(frozen=True)
class Report:
    distinct_address_count: int
    most_frequent: Optional[AggregatedRecord]
    detail_lines: List[str] = field(default_factory=list)
    day: Optional[str] = None

    def summary_lines(self) -> List[str]:
        if self.distinct_address_count == 0:
            return []
        lines = [f"（今日共更换 {self.distinct_address_count} 个 IP）"]
        if self.most_frequent is not None:
            lines.append(
                f"最频繁：<code>{html.escape(self.most_frequent.address)}</code>"
                f"（{self.most_frequent.occurrence_count} 次）"
            )
        return lines

    def as_text(self) -> str:
        summary = self.summary_lines()
        body = "\n\n".join(self.detail_lines)
        if not summary:
            return body
        return "\n".join(summary) + "\n\n" + body


def sequence_marker(index: int) -> str:
    """1-based marker: circled numerals up to 50, then ``N.``."""

    if 1 <= index <= len(CIRCLED_NUMERALS):
        return CIRCLED_NUMERALS[index - 1]
    return f"{index}."


def frequency_annotation(count: int) -> str:
    if count >= SEVERE_COUNT:
        return f"🚨 {count} 次"
    if count == CAUTION_COUNT:
        return f"⚠️ {count} 次"
    return ""


def _most_frequent(records: Sequence[AggregatedRecord]) -> Optional[AggregatedRecord]:
    best: Optional[AggregatedRecord] = None
    for record in records:
        if record.occurrence_count <= 1:
            continue
        # strict comparison keeps the first record on ties
        if best is None or record.occurrence_count > best.occurrence_count:
            best = record
    return best


def _detail_line(index: int, record: AggregatedRecord) -> str:
    time_points = " / ".join(to_reference(ts).strftime("%H:%M") for ts in record.timestamps)
    annotation = frequency_annotation(record.occurrence_count)
    suffix = f"   {annotation}" if annotation else ""
    return (
        f"{sequence_marker(index)} <code>{html.escape(record.address)}</code>\n"
        f"   🕒 <i>{time_points}</i>{suffix}"
    )


def render(records: Sequence[AggregatedRecord], day: Optional[str] = None) -> Report:
    """Compose a report from aggregated records, keeping their order."""

    if not records:
        return Report(
            distinct_address_count=0,
            most_frequent=None,
            detail_lines=[NO_CHANGES_PLACEHOLDER],
            day=day,
        )
    return Report(
        distinct_address_count=len(records),
        most_frequent=_most_frequent(records),
        detail_lines=[_detail_line(index, record) for index, record in enumerate(records, start=1)],
        day=day,
    )
