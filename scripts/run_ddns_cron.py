#!/usr/bin/env python3
"""Cron-safe DDNS runner.

Cron example (every 5 minutes; the daily report goes out during hour 0, UTC+8):
    */5 * * * * cd /opt/ddns-watch && /usr/bin/env python3 scripts/run_ddns_cron.py
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from ddns_watch.config import load_config
from ddns_watch.errors import ConfigError
from ddns_watch.pipeline import MODES, Pipeline
from ddns_watch.runtime import LockHeld, configure_logging, lock_execution

LOG_FILE = REPO_ROOT / "logs" / "ddns.log"


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sync the Cloudflare A record with the current public IPv4")
    parser.add_argument(
        "--mode",
        choices=(*MODES, "status"),
        default="scheduled",
        help="scheduled (default), update (no change notification), notify (always notify) or status",
    )
    parser.add_argument("--config", type=Path, help="Path to config.json")
    parser.add_argument("--log-file", type=Path, default=LOG_FILE, help="Rotating log file")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    logger = configure_logging(args.log_file)

    try:
        config = load_config(args.config)
        pipeline = Pipeline.from_config(config)
        if args.mode == "status":
            print(pipeline.status(), end="")
            return 0
        with lock_execution(config.lock_path):
            logger.info("starting ddns run (mode=%s, domain=%s)", args.mode, config.domain or "<unset>")
            ok, outcome = pipeline.run(args.mode)
            logger.info("ddns run finished: %s", outcome)
    except LockHeld as exc:
        logger.warning("%s; skipping", exc)
        return 1
    except ConfigError as exc:
        logger.error("configuration error: %s", exc)
        return 1
    except Exception as exc:  # noqa: BLE001
        logger.exception("ddns run failed: %s", exc)
        return 1

    print(outcome)
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
