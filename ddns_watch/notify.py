"""Telegram notifications (HTML parse mode)."""

from __future__ import annotations

import html
import http.client
import json
import logging
from typing import Optional
from urllib.error import URLError
from urllib.request import Request, urlopen

from ddns_watch.clock import format_reference_time
from ddns_watch.errors import DeliveryError
from ddns_watch.geoip import GeoInfo
from ddns_watch.report import Report
from ddns_watch.rollover import ClockLike

TELEGRAM_API = "https://api.telegram.org"

logger = logging.getLogger(__name__)


def _e(value: object) -> str:
    return html.escape(str(value))


def daily_message(domain: str, report: Report, current_ip: Optional[str], geo: GeoInfo, time_text: str) -> str:
    day_line = f"<b>📆 日期：</b><i>{_e(report.day)}</i>\n" if report.day else ""
    return (
        "<b>📅 Cloudflare DDNS 每日提醒</b>\n\n"
        f"<b>🌐 域名：</b><b>{_e(domain)}</b>\n"
        f"{day_line}\n"
        "<b>📜 IP 变化历史：</b>\n"
        f"{report.as_text()}\n\n"
        f"<b>📍 当前 IP：</b><code>{_e(current_ip or '未知')}</code>\n"
        f"<b>📡 运营商：</b><i>{_e(geo.isp_text)}</i>\n"
        f"<b>🕒 时间：</b><i>{_e(time_text)}</i>\n\n"
        "✅ 今日 DDNS 状态正常"
    )


def change_message(domain: str, old_ip: Optional[str], new_ip: str, geo: GeoInfo, time_text: str) -> str:
    return (
        "<b>🔄 Cloudflare DDNS IP 已更新</b>\n\n"
        f"<b>🌐 域名：</b><b>{_e(domain)}</b>\n"
        f"<b>⬅️ 原 IP：</b><code>{_e(old_ip or '无')}</code>\n"
        f"<b>➡️ 新 IP：</b><code>{_e(new_ip)}</code>\n"
        f"<b>📡 运营商：</b><i>{_e(geo.isp_text)}</i>\n"
        f"<b>📍 地区：</b><i>{_e(geo.region_text)}</i>\n"
        f"<b>🕒 时间：</b><i>{_e(time_text)}</i>"
    )


def status_message(domain: str, outcome: str, current_ip: Optional[str], geo: GeoInfo, time_text: str) -> str:
    return (
        "<b>📣 Cloudflare DDNS 状态</b>\n\n"
        f"<b>🌐 域名：</b><b>{_e(domain)}</b>\n"
        f"<b>📝 结果：</b>{_e(outcome)}\n"
        f"<b>📍 当前 IP：</b><code>{_e(current_ip or '未知')}</code>\n"
        f"<b>📡 运营商：</b><i>{_e(geo.isp_text)}</i>\n"
        f"<b>🕒 时间：</b><i>{_e(time_text)}</i>"
    )


def ip_error_message(domain: str, error: str, time_text: str) -> str:
    return (
        "<b>🚨 DDNS IP 获取失败</b>\n\n"
        f"<b>{_e(domain)}</b>\n"
        f"错误信息：<i>{_e(error)}</i>\n"
        f"<b>时间：</b><i>{_e(time_text)}</i>"
    )


def error_message(domain: str, error: str, time_text: str) -> str:
    return (
        "<b>❌ Cloudflare DDNS 错误</b>\n\n"
        f"<b>{_e(domain)}</b>\n"
        f"错误信息：<i>{_e(error)}</i>\n"
        f"<b>时间：</b><i>{_e(time_text)}</i>"
    )


class TelegramNotifier:
    """Best-effort sender: failures are logged and reported as False."""

    def __init__(self, bot_token: str, chat_id: str, domain: str, clock: ClockLike, timeout_s: float = 15.0) -> None:
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.domain = domain
        self.clock = clock
        self.timeout_s = timeout_s

    @property
    def enabled(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    def _now_text(self) -> str:
        return format_reference_time(self.clock.now())

    def _post(self, text: str) -> None:
        body = json.dumps({"chat_id": self.chat_id, "text": text, "parse_mode": "HTML"}).encode("utf-8")
        request = Request(
            f"{TELEGRAM_API}/bot{self.bot_token}/sendMessage",
            data=body,
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with urlopen(request, timeout=self.timeout_s) as response:  # nosec - fixed API host
                payload = json.loads(response.read().decode("utf-8"))
        except (URLError, http.client.HTTPException, TimeoutError, OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise DeliveryError(f"telegram send failed: {exc}") from exc
        if not isinstance(payload, dict) or not payload.get("ok"):
            description = payload.get("description") if isinstance(payload, dict) else payload
            raise DeliveryError(f"telegram rejected message: {description}")

    def send(self, text: str) -> bool:
        if not self.enabled:
            logger.debug("telegram credentials absent; notification skipped")
            return False
        try:
            self._post(text)
        except DeliveryError as exc:
            logger.error("%s", exc)
            return False
        return True

    def daily(self, report: Report, current_ip: Optional[str], geo: GeoInfo) -> bool:
        return self.send(daily_message(self.domain, report, current_ip, geo, self._now_text()))

    def change(self, old_ip: Optional[str], new_ip: str, geo: GeoInfo) -> bool:
        return self.send(change_message(self.domain, old_ip, new_ip, geo, self._now_text()))

    def status(self, outcome: str, current_ip: Optional[str], geo: GeoInfo) -> bool:
        return self.send(status_message(self.domain, outcome, current_ip, geo, self._now_text()))

    def ip_error(self, error: str) -> bool:
        return self.send(ip_error_message(self.domain, error, self._now_text()))

    def error(self, error: str) -> bool:
        return self.send(error_message(self.domain, error, self._now_text()))
