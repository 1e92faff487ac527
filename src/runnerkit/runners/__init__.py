"""
Runner provisioning.

Extracts runner builds from a payload tree into a per-process cache and ranks
the cached variants for the detected compute devices.
"""

from .payload import (
    PayloadFile,
    PayloadSource,
    MemoryPayload,
    DirectoryPayload,
    current_platform,
)
from .extractor import (
    RunnerCache,
    refresh,
    runners_dir,
    extract_runners,
    cleanup,
    cleanup_tmp_dirs,
)
from .selector import (
    FallbackPolicy,
    FALLBACK_POLICIES,
    RUNNER_EXECUTABLE,
    fallback_policy,
    runner_executable,
    alpha_variant_key,
    available_variants,
    servers_for_gpu,
    server_for_cpu,
)

__all__ = [
    # Payload sources
    "PayloadFile",
    "PayloadSource",
    "MemoryPayload",
    "DirectoryPayload",
    "current_platform",

    # Cache extraction
    "RunnerCache",
    "refresh",
    "runners_dir",
    "extract_runners",
    "cleanup",
    "cleanup_tmp_dirs",

    # Selection
    "FallbackPolicy",
    "FALLBACK_POLICIES",
    "RUNNER_EXECUTABLE",
    "fallback_policy",
    "runner_executable",
    "alpha_variant_key",
    "available_variants",
    "servers_for_gpu",
    "server_for_cpu",
]
