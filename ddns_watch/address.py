"""IPv4 dotted-quad validation."""

from __future__ import annotations

import re
from typing import List, Optional

CANDIDATE_PATTERN = re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b")


def validate(candidate: str) -> Optional[str]:
    """Return ``candidate`` unchanged if it is a well-formed IPv4 address, else None.

    Each of the four groups must be ASCII digits only and lie in [0, 255].
    Leading zeros are a plain numeric parse, so ``01.2.3.4`` is accepted.
    """

    if not isinstance(candidate, str):
        return None
    groups = candidate.split(".")
    if len(groups) != 4:
        return None
    for group in groups:
        if not group or not (group.isascii() and group.isdigit()):
            return None
        if int(group, 10) > 255:
            return None
    return candidate


def extract_candidates(text: str) -> List[str]:
    """Valid dotted-quads found in ``text``, in order of appearance."""

    found: List[str] = []
    for match in CANDIDATE_PATTERN.finditer(text or ""):
        address = validate(match.group(0))
        if address is not None:
            found.append(address)
    return found
