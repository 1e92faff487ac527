import logging

import pytest
from pydantic import ValidationError

from runnerkit.hardware import (
    ComputeDescriptor,
    by_library,
    log_details,
    sort_by_free_memory,
    sort_by_variant,
)
from runnerkit.utils import human_bytes


def test_runner_name() -> None:
    assert ComputeDescriptor(library="cpu").runner_name == "cpu"
    assert ComputeDescriptor(library="cpu", variant="avx2").runner_name == "cpu_avx2"
    assert ComputeDescriptor(library="cuda", variant="v12").runner_name == "cuda_v12"


def test_library_is_required() -> None:
    with pytest.raises(ValidationError):
        ComputeDescriptor(library="")
    with pytest.raises(ValidationError):
        ComputeDescriptor()


def test_minimum_memory_not_serialized() -> None:
    d = ComputeDescriptor(id="GPU-1", library="cuda", minimum_memory=1024, unreliable_free_memory=True)
    dumped = d.model_dump()
    assert "minimum_memory" not in dumped
    assert dumped["unreliable_free_memory"] is True
    assert d.minimum_memory == 1024


def test_by_library_keeps_first_seen_order() -> None:
    devices = [
        ComputeDescriptor(id="0", library="cuda", variant="v11"),
        ComputeDescriptor(id="1", library="rocm"),
        ComputeDescriptor(id="2", library="cuda", variant="v12"),
    ]
    groups = by_library(devices)
    assert [[d.id for d in g] for g in groups] == [["0", "2"], ["1"]]
    assert by_library([]) == []


def test_sorts() -> None:
    devices = [
        ComputeDescriptor(id="a", library="cuda", variant="v12", free_memory=300),
        ComputeDescriptor(id="b", library="cuda", variant="v11", free_memory=100),
        ComputeDescriptor(id="c", library="cuda", variant="v11", free_memory=200),
    ]
    assert [d.id for d in sort_by_free_memory(devices)] == ["b", "c", "a"]
    assert [d.id for d in sort_by_variant(devices)] == ["b", "c", "a"]
    assert [d.id for d in devices] == ["a", "b", "c"]


def test_log_details(caplog) -> None:
    devices = [
        ComputeDescriptor(
            id="GPU-1", library="cuda", variant="v12", name="RTX 4090", compute="8.9",
            driver_major=12, driver_minor=4, total_memory=24 * 1024**3, free_memory=20 * 1024**3,
        ),
        ComputeDescriptor(id="0", library="cpu", free_memory=1024, unreliable_free_memory=True),
    ]
    with caplog.at_level(logging.INFO, logger="runnerkit.hardware.compute"):
        log_details(devices)
    assert len(caplog.records) == 2
    assert "library=cuda variant=v12" in caplog.records[0].getMessage()
    assert "driver=12.4" in caplog.records[0].getMessage()
    assert "total=24.0 GiB available=20.0 GiB" in caplog.records[0].getMessage()
    assert "(best effort)" in caplog.records[1].getMessage()


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, "0 B"),
        (1023, "1023 B"),
        (1024, "1.0 KiB"),
        (457 * 1024**2, "457.0 MiB"),
        (1536 * 1024**3, "1.5 TiB"),
    ],
)
def test_human_bytes(value, expected) -> None:
    assert human_bytes(value) == expected
