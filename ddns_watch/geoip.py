"""ISP / region lookup through an ordered list of providers."""

from __future__ import annotations

import http.client
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence
from urllib.error import URLError
from urllib.parse import quote
from urllib.request import urlopen

UNKNOWN = "未知"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeoInfo:
    isp: Optional[str] = None
    region: Optional[str] = None

    @property
    def isp_text(self) -> str:
        return self.isp or UNKNOWN

    @property
    def region_text(self) -> str:
        return self.region or UNKNOWN


Provider = Callable[[str, float], Optional[GeoInfo]]


def _get_json(url: str, timeout_s: float) -> Optional[Dict[str, Any]]:
    try:
        with urlopen(url, timeout=timeout_s) as response:  # nosec - public lookup API
            payload = json.loads(response.read().decode("utf-8"))
    except (URLError, http.client.HTTPException, TimeoutError, OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("geo lookup %s failed: %s", url, exc)
        return None
    return payload if isinstance(payload, dict) else None


def _join_region(*parts: Any) -> Optional[str]:
    text = " ".join(str(part).strip() for part in parts if part and str(part).strip())
    return text or None


def vore(address: str, timeout_s: float) -> Optional[GeoInfo]:
    payload = _get_json(f"https://api.vore.top/api/IPdata?ip={quote(address)}", timeout_s)
    if not payload or payload.get("code") != 200:
        return None
    data = payload.get("ipdata")
    if not isinstance(data, dict):
        return None
    return GeoInfo(
        isp=data.get("isp") or None,
        region=_join_region(data.get("info1"), data.get("info2"), data.get("info3")),
    )


def ip_api(address: str, timeout_s: float) -> Optional[GeoInfo]:
    payload = _get_json(f"http://ip-api.com/json/{quote(address)}?lang=zh-CN", timeout_s)
    if not payload or payload.get("status") != "success":
        return None
    return GeoInfo(
        isp=payload.get("isp") or None,
        region=_join_region(payload.get("country"), payload.get("regionName"), payload.get("city")),
    )


PROVIDERS: Dict[str, Provider] = {
    "vore": vore,
    "ip-api": ip_api,
}


def resolve_providers(names: Sequence[str]) -> List[Provider]:
    providers: List[Provider] = []
    for name in names:
        provider = PROVIDERS.get(name)
        if provider is None:
            logger.warning("unknown geo provider %r ignored", name)
            continue
        providers.append(provider)
    return providers


def lookup(address: str, providers: Sequence[Provider], timeout_s: float = 10.0) -> GeoInfo:
    """First non-empty answer from ``providers``, tried in order."""

    for provider in providers:
        info = provider(address, timeout_s)
        if info is not None:
            return info
    return GeoInfo()
