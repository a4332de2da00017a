"""Daily address history and its per-address aggregation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from ddns_watch.clock import parse_timestamp, to_reference


@dataclass(frozen=True)
class Observation:
    """One detected address change."""

    address: str
    timestamp: datetime

    def as_dict(self) -> Dict[str, str]:
        return {
            "ip": self.address,
            "time": to_reference(self.timestamp).isoformat(timespec="seconds"),
        }

    @classmethod
    def from_dict(cls, payload: Any) -> Optional["Observation"]:
        if not isinstance(payload, dict):
            return None
        address = payload.get("ip")
        raw_time = payload.get("time")
        if not isinstance(address, str) or not isinstance(raw_time, str):
            return None
        try:
            timestamp = parse_timestamp(raw_time)
        except ValueError:
            return None
        return cls(address=address, timestamp=timestamp)


@dataclass
class AggregatedRecord:
    address: str
    timestamps: List[datetime] = field(default_factory=list)

    @property
    def occurrence_count(self) -> int:
        return len(self.timestamps)


def aggregate(history: Iterable[Observation]) -> List[AggregatedRecord]:
    """Group observations by address.

    Addresses keep the order of their first appearance and each group keeps
    its timestamps in input order. Addresses are compared literally.
    """

    groups: Dict[str, AggregatedRecord] = {}
    for observation in history:
        record = groups.get(observation.address)
        if record is None:
            record = AggregatedRecord(address=observation.address)
            groups[observation.address] = record
        record.timestamps.append(observation.timestamp)
    return list(groups.values())
