#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Runner Selection

Ranks the runner variants in the cache for a set of detected compute devices.
Callers try the returned variants strictly in order and keep the first one
that launches.

Ranking:
1. Exact matches: each descriptor's ``<library>[_<variant>]``, in input order.
2. Alternates: the other cached variants of each non-CPU library, so a driver
   or toolkit mismatch does not rule out an otherwise usable backend.
3. CPU fallback: the best CPU build for the target tier, then bare ``cpu``,
   unless the platform's fallback policy suppresses it.

Only variants actually present in the cache are ranked. An empty result is
valid; the caller decides whether that is fatal.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set, Tuple

from .extractor import runners_dir as cached_runners_dir
from .payload import current_platform
from ..hardware.capability import CPUCapability, compiled_cpu_capability
from ..hardware.compute import ComputeDescriptor

logger = logging.getLogger(__name__)

RUNNER_EXECUTABLE = "ollama_llama_server"


class FallbackPolicy(Enum):
    """Whether CPU runners are appended after GPU candidates."""

    APPEND_CPU = "append_cpu"
    NONE = "none"


# (os, arch) -> policy; unlisted platforms use DEFAULT_FALLBACK_POLICY
FALLBACK_POLICIES: Dict[Tuple[str, str], FallbackPolicy] = {
    # Apple Silicon ships a single metal runner that also covers CPU inference
    ("darwin", "arm64"): FallbackPolicy.NONE,
}
DEFAULT_FALLBACK_POLICY = FallbackPolicy.APPEND_CPU


def fallback_policy(platform: Optional[Tuple[str, str]] = None) -> FallbackPolicy:
    if platform is None:
        platform = current_platform()
    return FALLBACK_POLICIES.get(tuple(platform), DEFAULT_FALLBACK_POLICY)


def runner_executable(platform: Optional[Tuple[str, str]] = None) -> str:
    """Runner executable file name for a platform."""
    os_name = (platform or current_platform())[0]
    if os_name == "windows":
        return RUNNER_EXECUTABLE + ".exe"
    return RUNNER_EXECUTABLE


def alpha_variant_key(name: str) -> str:
    # TODO replace alphabetical order with a capability-aware ranking
    return name


def available_variants(runners_dir, platform: Optional[Tuple[str, str]] = None) -> Set[str]:
    """
    Runner variants present in the cache directory.

    A variant counts only if its runner executable sits directly inside it.

    Args:
        runners_dir: Cache directory returned by refresh()
        platform: (os, arch) deciding the executable name; defaults to the host

    Returns:
        Set[str]: Variant directory names, e.g. {"cpu", "cpu_avx2", "cuda_v12"}
    """
    if runners_dir is None:
        return set()
    root = Path(runners_dir)
    exe = runner_executable(platform)
    try:
        entries = list(root.iterdir())
    except OSError as e:
        logger.debug(f"Unable to list runner dir {root}: {e}")
        return set()

    servers = set()
    for entry in entries:
        if entry.is_dir() and (entry / exe).is_file():
            servers.add(entry.name)
        else:
            logger.debug(f"Ignoring {entry}, no {exe} found")
    return servers


def _library_of(variant_name: str) -> str:
    return variant_name.split("_", 1)[0]


def servers_for_gpu(
    descriptors: List[ComputeDescriptor],
    runners_dir=None,
    *,
    platform: Optional[Tuple[str, str]] = None,
    cpu_capability: Optional[CPUCapability] = None,
    sort_key: Callable[[str], object] = alpha_variant_key,
) -> List[str]:
    """
    Rank cached runner variants for a set of compute descriptors.

    Args:
        descriptors: Detected devices, in preference order
        runners_dir: Cache directory; defaults to the one memoized by refresh()
        platform: (os, arch) used for the fallback policy; defaults to the host
        cpu_capability: CPU tier for the CPU fallback; defaults to compiled_cpu_capability()
        sort_key: Orders alternates within a library; must be deterministic

    Returns:
        List[str]: Duplicate-free variant names, most preferred first

    Example:
        >>> servers_for_gpu([ComputeDescriptor(library="cuda", variant="v11")], rdir)
        ['cuda_v11', 'cuda_v12', 'cpu']
    """
    if runners_dir is None:
        runners_dir = cached_runners_dir()
    if platform is None:
        platform = current_platform()
    available = available_variants(runners_dir, platform)
    servers: List[str] = []

    def add(name: str) -> None:
        if name in available and name not in servers:
            servers.append(name)

    # Exact matches first
    for d in descriptors:
        if d.runner_name == "metal" and "metal" in available:
            return ["metal"]
        add(d.runner_name)

    # Then the other variants of each GPU library, in a consistent order
    requested = {d.runner_name for d in descriptors}
    libraries = []
    for d in descriptors:
        if d.library != "cpu" and d.library not in libraries:
            libraries.append(d.library)
    for library in libraries:
        alternates = [
            a for a in available
            if _library_of(a) == library and a not in requested
        ]
        for a in sorted(alternates, key=sort_key):
            add(a)

    if fallback_policy(platform) is FallbackPolicy.APPEND_CPU:
        if not descriptors or any(d.library != "cpu" for d in descriptors):
            if cpu_capability is None:
                cpu_capability = compiled_cpu_capability()
            # Running a CPU build with unsupported instructions crashes the
            # runner, so only the exact tier is considered
            if cpu_capability != CPUCapability.NONE:
                add(f"cpu_{cpu_capability.variant}")
            add("cpu")
        if not servers:
            add("cpu")

    logger.debug(f"Runner candidates for {[d.runner_name for d in descriptors]}: {servers}")
    return servers


def server_for_cpu(
    runners_dir=None,
    *,
    platform: Optional[Tuple[str, str]] = None,
    cpu_capability: Optional[CPUCapability] = None,
) -> str:
    """
    Best single CPU runner for this host.

    Returns ``metal`` on Apple Silicon, ``cpu_<tier>`` when the cache has a
    build for the tier, and ``cpu`` otherwise.
    """
    if platform is None:
        platform = current_platform()
    if tuple(platform) == ("darwin", "arm64"):
        return "metal"
    if runners_dir is None:
        runners_dir = cached_runners_dir()
    if cpu_capability is None:
        cpu_capability = compiled_cpu_capability()
    if cpu_capability != CPUCapability.NONE:
        candidate = f"cpu_{cpu_capability.variant}"
        if candidate in available_variants(runners_dir, platform):
            return candidate
    return "cpu"
