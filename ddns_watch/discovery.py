"""Public IPv4 discovery by scraping the configured lookup pages."""

from __future__ import annotations

import http.client
import logging
import random
from typing import Callable, List, Optional, Sequence, Union
from urllib.error import URLError
from urllib.request import Request, urlopen

from ddns_watch.address import extract_candidates
from ddns_watch.errors import ConfigError, DiscoveryError

USER_AGENT = "ddns-watch/1.0"

SelectionPolicy = Callable[[Sequence[str]], str]

logger = logging.getLogger(__name__)


def select_first(candidates: Sequence[str]) -> str:
    return candidates[0]


def make_random_selection(rng: Optional[random.Random] = None) -> SelectionPolicy:
    chooser = rng or random.Random()

    def _select(candidates: Sequence[str]) -> str:
        return chooser.choice(list(candidates))

    return _select


def selection_policy(name: Union[str, SelectionPolicy]) -> SelectionPolicy:
    if callable(name):
        return name
    if name == "first":
        return select_first
    if name == "random":
        return make_random_selection()
    raise ConfigError(f"unknown selection policy {name!r}")


def fetch_text(url: str, timeout_s: float) -> str:
    request = Request(url, headers={"User-Agent": USER_AGENT})
    with urlopen(request, timeout=timeout_s) as response:  # nosec - fixed lookup pages
        charset = response.headers.get_content_charset() or "utf-8"
        return response.read().decode(charset, errors="replace")


def discover(
    urls: Sequence[str],
    policy: Union[str, SelectionPolicy] = "first",
    timeout_s: float = 15.0,
) -> str:
    """Return the public IPv4 address from the first source that yields one."""

    select = selection_policy(policy)
    last_error = "no discovery sources configured"
    for url in urls:
        try:
            text = fetch_text(url, timeout_s)
        except (URLError, http.client.HTTPException, TimeoutError, OSError, ValueError) as exc:
            last_error = f"{url}: {exc}"
            logger.warning("discovery source failed: %s", last_error)
            continue
        candidates: List[str] = extract_candidates(text)
        if not candidates:
            last_error = f"{url}: 未解析到 IPv4"
            logger.warning("no IPv4 candidates in %s", url)
            continue
        address = select(candidates)
        logger.info("discovered %s via %s (%d candidates)", address, url, len(candidates))
        return address
    raise DiscoveryError(last_error)
