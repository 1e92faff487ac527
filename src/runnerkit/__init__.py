"""
runnerkit - Runner provisioning and stop-sequence handling for local LLM inference.

Submodules:
    - runnerkit.hardware: Compute descriptors and CPU capability tiers
    - runnerkit.runners: Runner payload extraction and variant selection
    - runnerkit.generation: Stop phrase detection for streamed output
"""

# Import submodules for namespace access (rk.runners.refresh(...))
from . import hardware
from . import runners
from . import generation

# Top-level convenience exports (most common operations)
from .hardware import ComputeDescriptor, CPUCapability, discover_compute
from .runners import refresh, cleanup, servers_for_gpu, available_variants
from .generation import StopSequenceDetector, truncate_stop
from .exceptions import RunnerKitError, ExtractionError

__version__ = "0.1.0"

__all__ = [
    # Submodules
    "hardware",
    "runners",
    "generation",

    # Primary API
    "ComputeDescriptor",
    "CPUCapability",
    "discover_compute",
    "refresh",
    "cleanup",
    "servers_for_gpu",
    "available_variants",
    "StopSequenceDetector",
    "truncate_stop",

    # Exceptions
    "RunnerKitError",
    "ExtractionError",
]
