"""
Compute descriptors and hardware classification.

Describes detected compute devices and the CPU vector tier runner builds
are selected by.
"""

from .compute import (
    ComputeDescriptor,
    by_library,
    sort_by_free_memory,
    sort_by_variant,
    log_details,
)
from .capability import (
    CPUCapability,
    BUILD_CPU_CAPABILITY,
    GPU_RUNNER_CPU_CAPABILITY,
    detect_cpu_capability,
    compiled_cpu_capability,
    parse_cpu_capability,
)
from .discovery import ComputeInspector, discover_compute

__all__ = [
    # Schemas
    "ComputeDescriptor",
    "CPUCapability",

    # Descriptor list helpers
    "by_library",
    "sort_by_free_memory",
    "sort_by_variant",
    "log_details",

    # Capability classification
    "BUILD_CPU_CAPABILITY",
    "GPU_RUNNER_CPU_CAPABILITY",
    "detect_cpu_capability",
    "compiled_cpu_capability",
    "parse_cpu_capability",

    # Discovery
    "ComputeInspector",
    "discover_compute",
]
