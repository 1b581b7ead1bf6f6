"""Monitor settings from command-line flags and ``SERIALMON_*`` environment."""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from serialmon.log_utils import parse_bool, parse_int
from serialmon.paths import history_path
from serialmon.ui.app import DEFAULT_TICK_RATE


@dataclass
class MonitorConfig:
    port: str | None = None
    auto: bool = True
    color: bool = True
    welcome: bool = True
    tui: bool = True
    tick_rate: float = DEFAULT_TICK_RATE
    history_file: Path | None = None
    driver: bool = False


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="serialmon", description="Interactive serial monitor.")
    parser.add_argument(
        "-d", "--driver", action="store_true", help="Show where to get the USB serial drivers and exit."
    )
    parser.add_argument("-p", "--port", help="Serial port to open (skips port discovery).")
    parser.add_argument(
        "-a", "--no-auto", dest="no_auto", action="store_true", help="Disable automatic port connection."
    )
    parser.add_argument("-c", "--no-color", dest="no_color", action="store_true", help="Disable colored output.")
    parser.add_argument(
        "-w", "--no-welcome", dest="no_welcome", action="store_true", help="Don't send the welcome command."
    )
    parser.add_argument("--plain", action="store_true", help="Line mode instead of the full-screen view.")
    parser.add_argument("--tick-ms", type=int, help="Full-screen refresh period in milliseconds.")
    return parser


def load_config(args: argparse.Namespace, *, dotenv: bool = True) -> MonitorConfig:
    """Merge parsed flags with environment fallbacks (``.env`` files included)."""
    if dotenv:
        load_dotenv(override=False)

    tick_ms = args.tick_ms if args.tick_ms is not None else parse_int(os.getenv("SERIALMON_TICK_MS"), 0)
    return MonitorConfig(
        port=args.port or os.getenv("SERIALMON_PORT") or None,
        auto=not args.no_auto,
        color=not (args.no_color or parse_bool(os.getenv("SERIALMON_NO_COLOR"), False)),
        welcome=not (args.no_welcome or parse_bool(os.getenv("SERIALMON_NO_WELCOME"), False)),
        tui=not args.plain,
        tick_rate=tick_ms / 1000 if tick_ms > 0 else DEFAULT_TICK_RATE,
        history_file=history_path(),
        driver=args.driver,
    )
