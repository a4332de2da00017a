"""One DDNS invocation: daily report, discovery, compare, update, notify."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Tuple

from ddns_watch.address import validate
from ddns_watch.clock import SystemClock, format_reference_time, reference_day
from ddns_watch.cloudflare import CloudflareClient
from ddns_watch.config import Config
from ddns_watch.discovery import discover, selection_policy
from ddns_watch.errors import ConfigError, DiscoveryError, UpdateError
from ddns_watch.geoip import GeoInfo, Provider, lookup, resolve_providers
from ddns_watch.history import Observation, aggregate
from ddns_watch.notify import TelegramNotifier
from ddns_watch.report import Report
from ddns_watch.resolver import published_address
from ddns_watch.rollover import ClockLike, RolloverController
from ddns_watch.state import AddressStore, HistoryStore, JsonStateStore, RolloverStore

MODES = ("scheduled", "update", "notify")

OUTCOME_IP_FAILED = "IP 获取失败"
OUTCOME_IP_INVALID = "IP 无效"
OUTCOME_UNCHANGED = "IP 未变化"
OUTCOME_UPDATE_FAILED = "DNS 更新失败"
OUTCOME_UPDATED = "更新完成"
OUTCOME_FAULT = "异常"

logger = logging.getLogger(__name__)


class Pipeline:
    def __init__(
        self,
        config: Config,
        clock: ClockLike,
        store: JsonStateStore,
        dns_client: CloudflareClient,
        notifier: TelegramNotifier,
        discover_fn: Callable[[], str],
        resolve_fn: Callable[[str], Optional[str]],
        geo_providers: Optional[List[Provider]] = None,
    ) -> None:
        self.config = config
        self.clock = clock
        self.addresses = AddressStore(store)
        self.history = HistoryStore(store)
        self.rollover = RolloverController(clock, self.history, RolloverStore(store))
        self.dns_client = dns_client
        self.notifier = notifier
        self.discover_fn = discover_fn
        self.resolve_fn = resolve_fn
        self.geo_providers = geo_providers or []

    @classmethod
    def from_config(cls, config: Config, clock: Optional[ClockLike] = None) -> "Pipeline":
        clock = clock or SystemClock()
        policy = selection_policy(config.selection)
        return cls(
            config=config,
            clock=clock,
            store=JsonStateStore(config.state_path),
            dns_client=CloudflareClient(config.zone_id, config.api_token, config.request_timeout_s),
            notifier=TelegramNotifier(
                config.tg_bot_token, config.tg_chat_id, config.domain, clock, config.request_timeout_s
            ),
            discover_fn=lambda: discover(config.discovery_urls, policy, config.request_timeout_s),
            resolve_fn=lambda domain: published_address(domain, config.nameservers),
            geo_providers=resolve_providers(config.geo_providers),
        )

    def _geo(self, address: Optional[str]) -> GeoInfo:
        if not address or not self.notifier.enabled:
            return GeoInfo()
        return lookup(address, self.geo_providers, self.config.request_timeout_s)

    def _deliver_daily(self, report: Report) -> None:
        current = self.addresses.load()
        self.notifier.daily(report, current, self._geo(current))

    def _known_address(self, address: str) -> Optional[str]:
        last = self.addresses.load()
        if last is not None:
            return last
        published = self.resolve_fn(self.config.domain)
        if published == address:
            logger.info("no stored address; published A record already %s", address)
            self.addresses.save(address)
            return address
        return None

    def _sync(self, mode: str) -> Tuple[bool, str, Optional[str]]:
        self.rollover.tick(self._deliver_daily)

        try:
            candidate = self.discover_fn()
        except DiscoveryError as exc:
            logger.error("discovery failed: %s", exc)
            self.notifier.ip_error(str(exc))
            return False, OUTCOME_IP_FAILED, None

        address = validate(candidate)
        if address is None:
            logger.error("discovered value is not a valid IPv4 address: %r", candidate)
            self.notifier.ip_error(f"无效 IPv4：{candidate}")
            return False, OUTCOME_IP_INVALID, None

        last = self._known_address(address)
        if address == last:
            logger.info("address unchanged: %s", address)
            return True, OUTCOME_UNCHANGED, address

        try:
            self.config.require_dns()
            self.dns_client.sync(self.config.domain, address, self.config.record_ttl)
        except (ConfigError, UpdateError) as exc:
            logger.error("dns update failed: %s", exc)
            self.notifier.error(str(exc))
            return False, OUTCOME_UPDATE_FAILED, address

        self.addresses.save(address)
        self.history.append(Observation(address=address, timestamp=self.clock.now()))
        logger.info("address changed: %s -> %s", last or "<none>", address)

        if mode == "scheduled" and self.config.notify_on_change:
            self.notifier.change(last, address, self._geo(address))
        return True, OUTCOME_UPDATED, address

    def run(self, mode: str = "scheduled") -> Tuple[bool, str]:
        """Run one invocation and return (ok, outcome text).

        Failures are reported as outcome text and notifications, not raised.
        """

        if mode not in MODES:
            raise ValueError(f"unknown mode {mode!r}")
        try:
            ok, outcome, address = self._sync(mode)
            if mode == "notify":
                self.notifier.status(outcome, address, self._geo(address))
        except Exception as exc:  # noqa: BLE001
            logger.exception("ddns run failed: %s", exc)
            self.notifier.error(str(exc))
            return False, OUTCOME_FAULT
        return ok, outcome

    def status(self) -> str:
        now = self.clock.now()
        state = self.rollover.rollover_store.load()
        # stored history belongs to state.current_day until the next tick rolls it over
        history = self.history.load() if state.current_day == reference_day(now) else []
        records = aggregate(history)
        published = self.resolve_fn(self.config.domain) if self.config.domain else None
        if state.report_sent_for_day:
            report_text = f"已发送 ({state.report_sent_for_day})"
        else:
            report_text = "未发送"
        lines = [
            "Cloudflare DDNS 运行中",
            f"域名：{self.config.domain or '未配置'}",
            f"最近 IP：{self.addresses.load() or '未知'}",
            f"解析记录：{published or '未知'}",
            f"今日变化：{len(history)} 次，{len(records)} 个 IP",
            f"日报：{report_text}",
            f"时间：{format_reference_time(now)}",
        ]
        return "\n".join(lines) + "\n"
