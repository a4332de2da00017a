"""Minimal Cloudflare v4 client for a single A record."""

from __future__ import annotations

import http.client
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode
from urllib.request import Request, urlopen

from ddns_watch.errors import UpdateError

API_BASE = "https://api.cloudflare.com/client/v4"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DnsRecord:
    record_id: str
    name: str
    content: str
    ttl: int


class CloudflareClient:
    def __init__(self, zone_id: str, api_token: str, timeout_s: float = 15.0) -> None:
        self.zone_id = zone_id
        self.api_token = api_token
        self.timeout_s = timeout_s

    def _request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {self.api_token}"}
        data = None
        if body is not None:
            headers["Content-Type"] = "application/json"
            data = json.dumps(body).encode("utf-8")
        request = Request(f"{API_BASE}{path}", data=data, headers=headers, method=method)
        try:
            with urlopen(request, timeout=self.timeout_s) as response:  # nosec - fixed API host
                raw = response.read()
        except HTTPError as exc:
            # Cloudflare reports rejected calls as JSON bodies on 4xx responses
            try:
                raw = exc.read()
            except (http.client.HTTPException, OSError) as read_exc:
                raise UpdateError(f"{method} {path}: HTTP {exc.code}: {read_exc}") from read_exc
        except (URLError, http.client.HTTPException, TimeoutError, OSError) as exc:
            raise UpdateError(f"{method} {path}: {exc}") from exc
        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise UpdateError(f"{method} {path}: invalid JSON response: {exc}") from exc
        if not isinstance(payload, dict):
            raise UpdateError(f"{method} {path}: JSON root is not an object")
        return payload

    def find_record(self, domain: str) -> DnsRecord:
        query = urlencode({"type": "A", "name": domain})
        payload = self._request("GET", f"/zones/{quote(self.zone_id)}/dns_records?{query}")
        if payload.get("success") is False:
            raise UpdateError(json.dumps(payload.get("errors", []), ensure_ascii=False))
        results = payload.get("result")
        if not isinstance(results, list) or not results or not isinstance(results[0], dict):
            raise UpdateError("未找到 A 记录")
        record = results[0]
        return DnsRecord(
            record_id=str(record.get("id", "")),
            name=str(record.get("name", domain)),
            content=str(record.get("content", "")),
            ttl=int(record.get("ttl") or 1),
        )

    def update_record(self, record: DnsRecord, domain: str, address: str, ttl: int) -> None:
        payload = self._request(
            "PUT",
            f"/zones/{quote(self.zone_id)}/dns_records/{quote(record.record_id)}",
            {"type": "A", "name": domain, "content": address, "ttl": ttl},
        )
        if not payload.get("success"):
            raise UpdateError(json.dumps(payload.get("errors", []), ensure_ascii=False))
        logger.info("updated A record %s: %s -> %s", domain, record.content or "<none>", address)

    def sync(self, domain: str, address: str, ttl: int) -> DnsRecord:
        record = self.find_record(domain)
        self.update_record(record, domain, address, ttl)
        return record
