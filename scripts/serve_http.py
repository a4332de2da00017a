#!/usr/bin/env python3
"""HTTP trigger for the DDNS run.

Paths:
    /update   run without the change notification
    /notify   run and always send a status notification
    other     status text
"""

from __future__ import annotations

import argparse
import logging
import sys
from http.server import BaseHTTPRequestHandler, HTTPServer
from pathlib import Path
from typing import Optional, Sequence, Tuple
from urllib.parse import urlsplit

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from ddns_watch.config import load_config
from ddns_watch.pipeline import Pipeline
from ddns_watch.runtime import configure_logging, lock_execution

LOG_FILE = REPO_ROOT / "logs" / "ddns-http.log"
ROUTES = {
    "/update": "update",
    "/notify": "notify",
}

logger = logging.getLogger("ddns_watch.http")


def handle_path(pipeline: Pipeline, lock_path: Path, raw_path: str) -> Tuple[int, str]:
    """Dispatch one request path; returns (HTTP status, plain-text body)."""

    mode = ROUTES.get(urlsplit(raw_path).path.rstrip("/") or "/")
    if mode is None:
        return 200, pipeline.status()
    with lock_execution(lock_path, blocking=True):
        ok, outcome = pipeline.run(mode)
    logger.info("http %s -> %s", mode, outcome)
    return (200 if ok else 500), outcome + "\n"


def make_handler(pipeline: Pipeline, lock_path: Path):
    class DdnsHandler(BaseHTTPRequestHandler):
        server_version = "ddns-watch/1.0"

        def do_GET(self) -> None:  # noqa: N802
            try:
                status, body = handle_path(pipeline, lock_path, self.path)
            except Exception as exc:  # noqa: BLE001
                logger.exception("request %s failed: %s", self.path, exc)
                status, body = 500, "异常\n"
            payload = body.encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "text/plain; charset=utf-8")
            self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            self.wfile.write(payload)

        do_POST = do_GET

        def log_message(self, format: str, *args) -> None:  # noqa: A002
            logger.info("%s %s", self.address_string(), format % args)

    return DdnsHandler


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve the DDNS trigger over HTTP")
    parser.add_argument("--config", type=Path, help="Path to config.json")
    parser.add_argument("--host", help="Bind address (default from config)")
    parser.add_argument("--port", type=int, help="Bind port (default from config)")
    parser.add_argument("--log-file", type=Path, default=LOG_FILE, help="Rotating log file")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    root_logger = configure_logging(args.log_file)
    try:
        config = load_config(args.config)
        pipeline = Pipeline.from_config(config)
        address = (args.host or config.http_host, args.port or config.http_port)
        server = HTTPServer(address, make_handler(pipeline, config.lock_path))
    except Exception as exc:  # noqa: BLE001
        root_logger.exception("http server failed to start: %s", exc)
        return 1

    root_logger.info("serving ddns trigger on http://%s:%d", *address)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        root_logger.info("shutting down")
    finally:
        server.server_close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
