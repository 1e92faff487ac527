#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Compute discovery for runner selection.

Builds the ComputeDescriptor list the runner selector consumes: the host CPU
first, followed by any NVIDIA GPUs reachable through NVML.

Information is gathered through Python libraries (py-cpuinfo, psutil,
nvidia-ml-py) and /proc, never by parsing the output of external commands.
Detection failures only shrink the result; nothing here raises.
"""

import logging
import os
import platform
from typing import List

from .capability import (
    CPUCapability,
    GPU_RUNNER_CPU_CAPABILITY,
    detect_cpu_capability,
)
from .compute import ComputeDescriptor
from .linux_memory import get_linux_memory_stats
from ..config import get_settings
from ..utils import safe_import

logger = logging.getLogger(__name__)


def _decode(value) -> str:
    """NVML returns bytes on older bindings and str on newer ones."""
    if isinstance(value, bytes):
        return value.decode('utf-8')
    return value


class ComputeInspector:
    """
    Collects compute descriptors from the host system.
    """

    def __init__(self):
        """Initializes the ComputeInspector."""
        self.cpu_capability = CPUCapability.NONE
        self.descriptors: List[ComputeDescriptor] = []

    def _get_cpu_memory(self) -> dict:
        """System memory in bytes; /proc/meminfo on Linux, psutil elsewhere."""
        if platform.system() == "Linux":
            try:
                return get_linux_memory_stats()
            except (FileNotFoundError, PermissionError):
                pass

        psutil = safe_import("psutil")
        if psutil:
            try:
                mem = psutil.virtual_memory()
                swap = psutil.swap_memory()
                return {
                    "total_memory": mem.total,
                    "free_memory": mem.available,
                    "free_swap": swap.free,
                }
            except Exception as e:
                logger.debug(f"psutil memory query failed: {e}")
        return {"total_memory": 0, "free_memory": 0, "free_swap": 0}

    def _get_cpu_details(self):
        """Adds the CPU descriptor, tagged with the detected vector tier."""
        self.cpu_capability = detect_cpu_capability()
        cpuinfo = safe_import("cpuinfo", "py-cpuinfo")
        name = platform.processor()
        if cpuinfo:
            try:
                name = cpuinfo.get_cpu_info().get("brand_raw") or name
            except Exception:
                pass

        self.descriptors.append(ComputeDescriptor(
            id="0",
            library="cpu",
            variant=self.cpu_capability.variant,
            name=name or "",
            **self._get_cpu_memory(),
        ))

    def _get_nvidia_gpus(self):
        """Adds NVIDIA GPU descriptors using pynvml."""
        pynvml = safe_import("pynvml", "nvidia-ml-py")
        if not pynvml:
            return
        if self.cpu_capability < GPU_RUNNER_CPU_CAPABILITY:
            logger.warning(
                f"CPU does not have minimum vector extensions ({GPU_RUNNER_CPU_CAPABILITY}), "
                f"GPU inference disabled"
            )
            return

        settings = get_settings()
        gpus = []
        try:
            pynvml.nvmlInit()
        except pynvml.NVMLError as e:
            logger.debug(f"NVML unavailable: {e}")
            return
        try:
            cuda_version = pynvml.nvmlSystemGetCudaDriverVersion()
            driver_major = cuda_version // 1000
            driver_minor = (cuda_version % 1000) // 10

            for i in range(pynvml.nvmlDeviceGetCount()):
                try:
                    handle = pynvml.nvmlDeviceGetHandleByIndex(i)
                    mem_info = pynvml.nvmlDeviceGetMemoryInfo(handle)
                    major, minor = pynvml.nvmlDeviceGetCudaComputeCapability(handle)
                    gpus.append(ComputeDescriptor(
                        id=_decode(pynvml.nvmlDeviceGetUUID(handle)),
                        library="cuda",
                        variant=f"v{driver_major}",
                        name=_decode(pynvml.nvmlDeviceGetName(handle)),
                        compute=f"{major}.{minor}",
                        driver_major=driver_major,
                        driver_minor=driver_minor,
                        total_memory=mem_info.total,
                        free_memory=mem_info.free,
                        minimum_memory=settings.minimum_memory("cuda"),
                    ))
                except pynvml.NVMLError as e:
                    logger.debug(f"Skipping NVIDIA device {i}: {e}")
                    continue
        except pynvml.NVMLError as e:
            logger.debug(f"NVIDIA discovery failed: {e}")
        finally:
            try:
                pynvml.nvmlShutdown()
            except pynvml.NVMLError:
                pass

        self.descriptors.extend(gpus)

    def inspect_all(self) -> List[ComputeDescriptor]:
        """Runs all inspection methods; the CPU descriptor always comes first."""
        # CPU tier gates GPU discovery
        self._get_cpu_details()
        if os.environ.get("CUDA_VISIBLE_DEVICES") != "-1":
            self._get_nvidia_gpus()
        return self.descriptors


def discover_compute() -> List[ComputeDescriptor]:
    """
    Detect the compute devices of this host.

    Returns:
        List[ComputeDescriptor]: CPU descriptor followed by detected GPUs

    Example:
        >>> devices = discover_compute()
        >>> print([d.runner_name for d in devices])
        ['cpu_avx2', 'cuda_v12']
    """
    return ComputeInspector().inspect_all()
