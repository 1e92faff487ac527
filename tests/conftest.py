"""Pytest fixtures shared by the runnerkit tests."""

import pytest

from runnerkit.config import get_settings
from runnerkit.runners import cleanup

_ENV_VARS = (
    "RUNNERKIT_TMPDIR",
    "RUNNERKIT_RUNNERS_DIR",
    "RUNNERKIT_CPU_CAPABILITY",
    "RUNNERKIT_CUDA_MINIMUM_MEMORY",
    "RUNNERKIT_ROCM_MINIMUM_MEMORY",
)


@pytest.fixture(autouse=True)
def isolated_runner_state(monkeypatch):
    """Start every test with a clean environment, settings cache and runner cache."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    cleanup()
    yield
    cleanup()
    get_settings.cache_clear()


@pytest.fixture
def runner_tmpdir(tmp_path, monkeypatch):
    """Temp root for runner caches, wired in through RUNNERKIT_TMPDIR."""
    root = tmp_path / "tmproot"
    root.mkdir()
    monkeypatch.setenv("RUNNERKIT_TMPDIR", str(root))
    return root
