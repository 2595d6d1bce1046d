# src/tasktracker/cli/main.py

"""
CLI entrypoint.

Loads settings once, initializes logging, builds AppState, then serves the
HTTP API with uvicorn until SIGINT/SIGTERM (uvicorn handles graceful shutdown).
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

import uvicorn

from ..cli.bootstrap import create_initial_state
from ..config import BACKENDS, ConfigError, Settings, load_settings
from ..logging_setup import setup_logging
from ..tasks.errors import TaskStoreError
from ..web.app import create_app

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="tasktracker",
        description="Task-tracking HTTP service.",
    )
    p.add_argument("--config", type=Path, help="Optional YAML config file (http_server / storage sections).")
    p.add_argument("--backend", choices=BACKENDS, help="Storage backend (overrides config/env).")
    p.add_argument("--host", help="Listen address (overrides config/env).")
    p.add_argument("--port", type=int, help="Listen port (overrides config/env).")
    return p


def _apply_overrides(settings: Settings, ns: argparse.Namespace) -> Settings:
    changes: dict[str, object] = {}
    if ns.backend:
        changes["backend"] = ns.backend
    if ns.host:
        changes["listen_address"] = ns.host
    if ns.port is not None:
        changes["port"] = ns.port
    if not changes:
        return settings
    return dataclasses.replace(settings, **changes).validate()


def main(argv: list[str] | None = None) -> int:
    ns = build_parser().parse_args(argv)

    try:
        settings = _apply_overrides(load_settings(ns.config), ns)
    except ConfigError as e:
        print(f"failed to load config: {e}", file=sys.stderr)
        return 2

    console_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    setup_logging(log_dir=settings.log_dir if settings.log_to_file else None, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    try:
        state = create_initial_state(settings)
    except TaskStoreError:
        logger.exception("Failed to open task store.")
        return 1

    app = create_app(state)
    config = uvicorn.Config(
        app,
        host=settings.listen_address,
        port=settings.port,
        timeout_keep_alive=max(1, int(settings.read_timeout_s)),
        log_config=None,  # keep our handlers
    )
    logger.info("server started on %s:%s", settings.listen_address, settings.port)
    uvicorn.Server(config).run()
    logger.info("Bye.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
