#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
CPU Capability Classification

Classifies the vector instruction-set tier of a CPU into the tiers runner
builds are compiled for: no vector extensions, AVX, or AVX2.

Two sources are supported:
- detect_cpu_capability() probes the host CPU flags through py-cpuinfo.
- compiled_cpu_capability() returns the tier this build targets, a constant
  that can be overridden through RUNNERKIT_CPU_CAPABILITY.

Neither raises: unknown or unsupported hardware degrades to NONE.
"""

import logging
from enum import IntEnum

from ..config import get_settings
from ..utils import safe_import

logger = logging.getLogger(__name__)


class CPUCapability(IntEnum):
    """Vector instruction-set tier, ordered NONE < AVX < AVX2."""

    NONE = 0
    AVX = 1
    AVX2 = 2
    # TODO AVX512 once runner builds for it are published

    @property
    def variant(self) -> str:
        """Runner variant suffix for this tier ('' for NONE)."""
        return _VARIANTS[self]

    def __str__(self):
        return self.variant or "no vector extensions"


_VARIANTS = {
    CPUCapability.NONE: "",
    CPUCapability.AVX: "avx",
    CPUCapability.AVX2: "avx2",
}

# Tier of a plain host build; runner builds bake in their own tier
BUILD_CPU_CAPABILITY = CPUCapability.NONE

# GPU runners are compiled with AVX enabled
GPU_RUNNER_CPU_CAPABILITY = CPUCapability.AVX


def parse_cpu_capability(text: str) -> CPUCapability:
    """
    Parse a tier name ('', 'avx', 'avx2'), case-insensitively.

    Unknown names degrade to NONE.
    """
    name = (text or "").strip().lower()
    for capability, variant in _VARIANTS.items():
        if variant == name:
            return capability
    logger.debug(f"Unknown CPU capability {text!r}, using {CPUCapability.NONE}")
    return CPUCapability.NONE


def capability_from_flags(flags) -> CPUCapability:
    """Highest tier present in a collection of CPU flag names."""
    flags = {f.lower() for f in (flags or [])}
    if "avx2" in flags:
        return CPUCapability.AVX2
    if "avx" in flags:
        return CPUCapability.AVX
    return CPUCapability.NONE


def detect_cpu_capability() -> CPUCapability:
    """Probe the host CPU for its vector instruction-set tier."""
    cpuinfo = safe_import("cpuinfo", "py-cpuinfo")
    if not cpuinfo:
        return CPUCapability.NONE
    try:
        info = cpuinfo.get_cpu_info()
    except Exception as e:
        logger.debug(f"CPU flag detection failed: {e}")
        return CPUCapability.NONE
    return capability_from_flags(info.get("flags"))


def compiled_cpu_capability() -> CPUCapability:
    """Tier this build targets, honouring the RUNNERKIT_CPU_CAPABILITY override."""
    override = get_settings().cpu_capability
    if override is not None:
        return parse_cpu_capability(override)
    return BUILD_CPU_CAPABILITY
