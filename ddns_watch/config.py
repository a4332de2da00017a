"""Runtime configuration: optional config.json plus environment overrides."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from ddns_watch.errors import ConfigError

REPO_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_CONFIG_PATH = REPO_ROOT / "config.json"
DEFAULT_STATE_DIR = REPO_ROOT / "state" / "ddns"
DEFAULT_DISCOVERY_URLS = ["https://ip.164746.xyz/ipTop.html"]
DEFAULT_GEO_PROVIDERS = ["vore", "ip-api"]
SELECTION_POLICIES = ("first", "random")
TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class Config:
    domain: str = ""
    zone_id: str = ""
    api_token: str = ""
    tg_bot_token: str = ""
    tg_chat_id: str = ""
    discovery_urls: List[str] = field(default_factory=lambda: list(DEFAULT_DISCOVERY_URLS))
    selection: str = "first"
    geo_providers: List[str] = field(default_factory=lambda: list(DEFAULT_GEO_PROVIDERS))
    record_ttl: int = 120
    request_timeout_s: float = 15.0
    state_dir: Path = DEFAULT_STATE_DIR
    nameservers: List[str] = field(default_factory=list)
    notify_on_change: bool = False
    http_host: str = "127.0.0.1"
    http_port: int = 8787

    @property
    def state_path(self) -> Path:
        return self.state_dir / "state.json"

    @property
    def lock_path(self) -> Path:
        return self.state_dir / "run.lock"

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.tg_bot_token and self.tg_chat_id)

    def require_dns(self) -> None:
        missing = [
            name
            for name, value in (("DOMAIN", self.domain), ("ZONE_ID", self.zone_id), ("CF_API", self.api_token))
            if not value
        ]
        if missing:
            raise ConfigError(f"missing DNS settings: {', '.join(missing)}")


def _load_json(path: Path) -> Dict[str, Any]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return {}
    if not isinstance(payload, dict):
        return {}
    return payload


def _str_list(value: Any, default: List[str]) -> List[str]:
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, list):
        return list(default)
    items = [str(item).strip() for item in value if str(item).strip()]
    return items or list(default)


def load_config(path: Optional[Path] = None, env: Optional[Mapping[str, str]] = None) -> Config:
    """Build a Config from the JSON file (if any), then apply environment overrides."""

    env = os.environ if env is None else env
    if path is None:
        path = Path(env.get("DDNS_CONFIG_PATH", "").strip() or DEFAULT_CONFIG_PATH)
    payload = _load_json(path)
    cloudflare = payload.get("cloudflare", {}) if isinstance(payload.get("cloudflare"), dict) else {}
    telegram = payload.get("telegram", {}) if isinstance(payload.get("telegram"), dict) else {}
    http = payload.get("http", {}) if isinstance(payload.get("http"), dict) else {}

    try:
        config = Config(
            domain=str(env.get("DOMAIN") or cloudflare.get("domain", "")).strip(),
            zone_id=str(env.get("ZONE_ID") or cloudflare.get("zone_id", "")).strip(),
            api_token=str(env.get("CF_API") or cloudflare.get("api_token", "")).strip(),
            tg_bot_token=str(env.get("TG_BOT_TOKEN") or telegram.get("bot_token", "")).strip(),
            tg_chat_id=str(env.get("TG_CHAT_ID") or telegram.get("chat_id", "")).strip(),
            discovery_urls=_str_list(payload.get("discovery_urls"), DEFAULT_DISCOVERY_URLS),
            selection=str(env.get("DDNS_SELECTION") or payload.get("selection", "first")).strip().lower(),
            geo_providers=_str_list(payload.get("geo_providers"), DEFAULT_GEO_PROVIDERS),
            record_ttl=int(cloudflare.get("ttl", 120)),
            request_timeout_s=max(1.0, float(payload.get("request_timeout_s", 15))),
            state_dir=Path(env.get("DDNS_STATE_DIR") or payload.get("state_dir") or DEFAULT_STATE_DIR),
            nameservers=_str_list(payload.get("nameservers"), []),
            notify_on_change=str(
                env.get("DDNS_NOTIFY_ON_CHANGE", payload.get("notify_on_change", False))
            ).strip().lower() in TRUTHY,
            http_host=str(http.get("host", "127.0.0.1")),
            http_port=int(http.get("port", 8787)),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid configuration in {path}: {exc}") from exc

    if config.selection not in SELECTION_POLICIES:
        raise ConfigError(
            f"unknown selection policy {config.selection!r}; expected one of {', '.join(SELECTION_POLICIES)}"
        )
    return config
