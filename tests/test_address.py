from __future__ import annotations

import pytest

from ddns_watch.address import extract_candidates, validate


@pytest.mark.parametrize(
    "candidate",
    ["1.2.3.4", "0.0.0.0", "255.255.255.255", "01.2.3.4", "192.168.001.010"],
)
def test_validate_accepts_dotted_quads(candidate: str) -> None:
    assert validate(candidate) == candidate


@pytest.mark.parametrize(
    "candidate",
    [
        "999.1.1.1",
        "1.2.3.256",
        "1.2.3",
        "1.2.3.4.5",
        "",
        "1..2.3",
        "+1.2.3.4",
        "-1.2.3.4",
        " 1.2.3.4",
        "a.b.c.d",
        "١.٢.٣.٤",
    ],
)
def test_validate_rejects_malformed(candidate: str) -> None:
    assert validate(candidate) is None


def test_validate_returns_leading_zero_form_unchanged() -> None:
    assert validate("01.2.3.4") == "01.2.3.4"


def test_extract_candidates_keeps_order_and_drops_out_of_range() -> None:
    text = "<td>999.1.1.1</td><td>203.0.113.7</td> version 1.2.3 <b>198.51.100.20</b>"

    assert extract_candidates(text) == ["203.0.113.7", "198.51.100.20"]


def test_extract_candidates_empty_text() -> None:
    assert extract_candidates("") == []
