"""
Runnerkit Configuration

Settings are read from the environment (prefix ``RUNNERKIT_``) or a local
``.env`` file using Pydantic BaseSettings.

Usage:
    from runnerkit.config import get_settings

    settings = get_settings()
    print(settings.tmpdir)
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# 457 MiB, the floor a CUDA/ROCm context needs before any model weights load
DEFAULT_GPU_MINIMUM_MEMORY = 457 * 1024 * 1024


class RunnerKitSettings(BaseSettings):
    """
    Environment-driven settings for runner provisioning.

    Example: RUNNERKIT_TMPDIR=/var/tmp/runnerkit
    """

    model_config = SettingsConfigDict(
        env_prefix="RUNNERKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    tmpdir: Optional[Path] = Field(
        default=None,
        description="Temp root for the runner cache (system temp dir when unset)"
    )

    runners_dir: Optional[Path] = Field(
        default=None,
        description="Pre-extracted runner cache; extraction is skipped when set"
    )

    cpu_capability: Optional[str] = Field(
        default=None,
        description="Override for the CPU tier this build targets ('', 'avx', 'avx2')"
    )

    cuda_minimum_memory: int = Field(
        default=DEFAULT_GPU_MINIMUM_MEMORY,
        ge=0,
        description="Minimum bytes required to use a CUDA device"
    )

    rocm_minimum_memory: int = Field(
        default=DEFAULT_GPU_MINIMUM_MEMORY,
        ge=0,
        description="Minimum bytes required to use a ROCm device"
    )

    @field_validator("tmpdir", "runners_dir", mode="before")
    @classmethod
    def empty_path_is_unset(cls, v):
        """Treat an empty environment value as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def minimum_memory(self, library: str) -> int:
        """Minimum memory for a compute library; 0 for libraries without a floor."""
        return {
            "cuda": self.cuda_minimum_memory,
            "rocm": self.rocm_minimum_memory,
        }.get(library, 0)


@lru_cache()
def get_settings() -> RunnerKitSettings:
    """Get the process-wide settings instance."""
    return RunnerKitSettings()
