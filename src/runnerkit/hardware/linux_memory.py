#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Linux-specific memory detection via /proc/meminfo.

Reports system memory in bytes for the CPU compute descriptor. MemAvailable
is the kernel's estimate of memory available to new processes without
swapping (page cache and reclaimable slab included).
"""

from typing import Dict


def _parse_meminfo_value(value_str: str) -> int:
    """
    Parse a value from /proc/meminfo and convert to bytes.

    Args:
        value_str: Value string like "16384 kB" or "16384"

    Returns:
        Value in bytes (0 if unparseable)
    """
    value_str = value_str.strip().replace('kB', '').replace('KB', '').strip()
    try:
        return int(value_str) * 1024
    except ValueError:
        return 0


def get_linux_memory_stats(path: str = '/proc/meminfo') -> Dict[str, int]:
    """
    Get system memory statistics in bytes by parsing /proc/meminfo.

    Returns:
        Dict with keys total_memory, free_memory and free_swap

    Raises:
        FileNotFoundError: If /proc/meminfo doesn't exist (non-Linux system)
        PermissionError: If /proc/meminfo is not readable
    """
    meminfo: Dict[str, int] = {}

    with open(path, 'r') as f:
        for line in f:
            if ':' not in line:
                continue
            key, value = line.split(':', 1)
            meminfo[key.strip()] = _parse_meminfo_value(value)

    available = meminfo.get('MemAvailable', 0)

    # Kernels before 3.14 lack MemAvailable
    if available == 0:
        available = (
            meminfo.get('MemFree', 0)
            + meminfo.get('Buffers', 0)
            + meminfo.get('Cached', 0)
            + meminfo.get('SReclaimable', 0)
        )

    return {
        "total_memory": meminfo.get('MemTotal', 0),
        "free_memory": available,
        "free_swap": meminfo.get('SwapFree', 0),
    }
