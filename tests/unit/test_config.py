from pathlib import Path

from runnerkit.config import DEFAULT_GPU_MINIMUM_MEMORY, RunnerKitSettings, get_settings


def test_defaults() -> None:
    settings = RunnerKitSettings()
    assert settings.tmpdir is None
    assert settings.runners_dir is None
    assert settings.cpu_capability is None
    assert settings.minimum_memory("cuda") == DEFAULT_GPU_MINIMUM_MEMORY
    assert settings.minimum_memory("rocm") == DEFAULT_GPU_MINIMUM_MEMORY
    assert settings.minimum_memory("cpu") == 0


def test_environment_overrides(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("RUNNERKIT_TMPDIR", str(tmp_path))
    monkeypatch.setenv("RUNNERKIT_ROCM_MINIMUM_MEMORY", "2048")
    settings = RunnerKitSettings()
    assert settings.tmpdir == Path(tmp_path)
    assert settings.minimum_memory("rocm") == 2048


def test_empty_paths_are_unset(monkeypatch) -> None:
    monkeypatch.setenv("RUNNERKIT_TMPDIR", "")
    monkeypatch.setenv("RUNNERKIT_RUNNERS_DIR", "  ")
    settings = RunnerKitSettings()
    assert settings.tmpdir is None
    assert settings.runners_dir is None


def test_get_settings_is_cached(monkeypatch) -> None:
    first = get_settings()
    monkeypatch.setenv("RUNNERKIT_CPU_CAPABILITY", "avx")
    assert get_settings() is first
    get_settings.cache_clear()
    assert get_settings().cpu_capability == "avx"
