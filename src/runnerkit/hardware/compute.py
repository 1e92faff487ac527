#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Compute Descriptor Schema

Pydantic BaseModel describing one detected compute device (GPU or CPU),
plus the list helpers used to group, sort and report descriptors.

Only `library` and `variant` take part in runner selection; the remaining
fields are informational or feed memory reporting.
"""

import logging
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils import human_bytes

logger = logging.getLogger(__name__)


class ComputeDescriptor(BaseModel):
    """One compute device and the runner library/variant it maps to."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field("", description="Opaque device id, unique among discovered devices")
    library: str = Field(..., description="Compute backend family ('cuda', 'rocm', 'cpu', ...)")
    variant: str = Field("", description="Build flavor within the library; '' means no variant")

    name: str = Field("", description="User friendly device name")
    compute: str = Field("", description="Compute capability or gfx target")
    driver_major: int = Field(0, description="Driver major version")
    driver_minor: int = Field(0, description="Driver minor version")

    total_memory: int = Field(0, ge=0, description="Total memory in bytes")
    free_memory: int = Field(0, ge=0, description="Free memory in bytes")
    free_swap: int = Field(0, ge=0, description="Free swap in bytes (CPU only)")
    unreliable_free_memory: bool = Field(
        False,
        description="True when free_memory is best effort and may over or under report",
    )
    minimum_memory: int = Field(
        0, ge=0, exclude=True,
        description="Minimum bytes required to use this device (from configuration)",
    )

    dependency_path: str = Field("", description="Extra library search path the backend needs")
    env_workarounds: List[Tuple[str, str]] = Field(
        default_factory=list,
        description="Extra environment variables to set when launching a runner for this device",
    )

    @field_validator("library")
    @classmethod
    def library_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("library must not be empty")
        return v

    @property
    def runner_name(self) -> str:
        """Runner variant directory requested by this device."""
        if self.variant:
            return f"{self.library}_{self.variant}"
        return self.library


def by_library(descriptors: List[ComputeDescriptor]) -> List[List[ComputeDescriptor]]:
    """
    Split descriptors into groups sharing a library.

    Groups appear in the order their library is first seen, and members keep
    their input order. This assumes the oldest variant in a group works with
    the newest card, which may not hold for very mixed GPU generations.
    """
    groups: dict = {}
    for d in descriptors:
        groups.setdefault(d.library, []).append(d)
    return list(groups.values())


def sort_by_free_memory(descriptors: List[ComputeDescriptor]) -> List[ComputeDescriptor]:
    return sorted(descriptors, key=lambda d: d.free_memory)


def sort_by_variant(descriptors: List[ComputeDescriptor]) -> List[ComputeDescriptor]:
    # Alphabetical placeholder; not a capability ranking
    return sorted(descriptors, key=lambda d: d.variant)


def log_details(descriptors: List[ComputeDescriptor]) -> None:
    """Report each descriptor at INFO level."""
    for d in descriptors:
        available = human_bytes(d.free_memory)
        if d.unreliable_free_memory:
            available += " (best effort)"
        logger.info(
            f"inference compute | id={d.id} library={d.library} variant={d.variant} "
            f"compute={d.compute} driver={d.driver_major}.{d.driver_minor} name={d.name} "
            f"total={human_bytes(d.total_memory)} available={available}"
        )
