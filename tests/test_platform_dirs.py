from __future__ import annotations

import os
from pathlib import Path

from serialmon import paths
from serialmon.log_utils import LOG_FILE_NAME, build_log_config


def test_platform_dirs_use_xdg_homes() -> None:
    expected_state = Path(os.environ["XDG_STATE_HOME"]) / "serialmon"

    assert paths.state_dir() == expected_state
    assert paths.log_dir().is_relative_to(expected_state)
    assert paths.history_path() == expected_state / "history"


def test_log_file_lands_in_test_state_home() -> None:
    state_home = os.environ.get("XDG_STATE_HOME", "")
    assert state_home, "XDG_STATE_HOME must be set in tests"
    config = build_log_config()
    assert str(config.log_file).startswith(state_home)
    assert config.log_file.name == LOG_FILE_NAME
