"""Module entrypoint for `python -m serialmon`."""

from __future__ import annotations

from serialmon.cli import main_entry

if __name__ == "__main__":
    raise SystemExit(main_entry())
