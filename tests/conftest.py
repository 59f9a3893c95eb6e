import sys
from pathlib import Path

# Ensure package import for tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from Algo_Trace.config import Config


DIAMOND = {"A": ["B", "C"], "B": ["D"], "C": ["D"], "D": []}


@pytest.fixture(autouse=True)
def _restore_config():
    """Keep global ``Config`` changes local to each test."""

    saved = {
        "logging_mode": list(Config.logging_mode),
        "log_files": {k: dict(v) for k, v in Config.log_files.items()},
        "output_dir": Config.output_dir,
        "max_run_steps": Config.max_run_steps,
        "default_duration": Config.default_duration,
        "config_file": Config.config_file,
    }
    yield
    for key, value in saved.items():
        setattr(Config, key, value)


@pytest.fixture
def diamond():
    return {k: list(v) for k, v in DIAMOND.items()}
