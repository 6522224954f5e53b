from __future__ import annotations

import argparse
import asyncio
import os
import sys
from pathlib import Path

import structlog
import uvicorn

from platform_monitor.config import ConfigError, load_config
from platform_monitor.logging_setup import configure_logging
from platform_monitor.orchestrator import run_monitor

logger = structlog.get_logger(__name__)


def _cmd_run(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    configure_logging(args.log_level or config.log_level)

    run = asyncio.run(run_monitor(config))

    if args.output:
        out = Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(run.html, encoding="utf-8")
        logger.info("report written", path=str(out))
    else:
        sys.stdout.write(run.html)
    return 0 if run.summary.all_passed else 1


def _cmd_serve(args: argparse.Namespace) -> int:
    from platform_monitor.app import create_app

    config = load_config(args.config)
    configure_logging(args.log_level or config.log_level)
    uvicorn.run(create_app(config), host=args.host, port=int(args.port), log_level="info")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="platform-monitor", description="External platform monitor")
    parser.add_argument("--config", default=None, help="Path to YAML config (default: $MONITOR_CONFIG)")
    parser.add_argument("--log-level", default=os.getenv("LOG_LEVEL"), help="Logging level (INFO, WARNING, ...)")
    sub = parser.add_subparsers(dest="command", required=True)

    run_p = sub.add_parser("run", help="Run every check once and write the HTML report")
    run_p.add_argument("--output", "-o", default=None, help="Report file (default: stdout)")
    run_p.set_defaults(func=_cmd_run)

    serve_p = sub.add_parser("serve", help="Serve /api/test over HTTP")
    serve_p.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
    serve_p.add_argument("--port", default=os.getenv("PORT", "8000"))
    serve_p.set_defaults(func=_cmd_serve)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return int(args.func(args))
    except ConfigError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
