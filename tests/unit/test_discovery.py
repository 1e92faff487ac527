from types import SimpleNamespace

import pytest

from runnerkit.hardware import CPUCapability, discover_compute
from runnerkit.hardware import discovery


class FakeNVMLError(Exception):
    pass


def fake_pynvml(devices, cuda_version=12040, fail_index=None):
    def handle(i):
        if i == fail_index:
            raise FakeNVMLError("device lost")
        return i

    return SimpleNamespace(
        NVMLError=FakeNVMLError,
        nvmlInit=lambda: None,
        nvmlShutdown=lambda: None,
        nvmlSystemGetCudaDriverVersion=lambda: cuda_version,
        nvmlDeviceGetCount=lambda: len(devices),
        nvmlDeviceGetHandleByIndex=handle,
        nvmlDeviceGetMemoryInfo=lambda h: SimpleNamespace(total=devices[h]["total"], free=devices[h]["free"]),
        nvmlDeviceGetCudaComputeCapability=lambda h: devices[h]["cc"],
        nvmlDeviceGetUUID=lambda h: f"GPU-{h}".encode(),
        nvmlDeviceGetName=lambda h: devices[h]["name"],
    )


@pytest.fixture
def host(monkeypatch):
    """Stub out host probing; returns a dict the test fills with fake modules."""
    modules = {"psutil": None, "cpuinfo": None, "pynvml": None}
    monkeypatch.setattr(discovery, "safe_import", lambda name, *a: modules.get(name))
    monkeypatch.setattr(discovery, "detect_cpu_capability", lambda: CPUCapability.AVX2)
    monkeypatch.setattr(
        discovery, "get_linux_memory_stats",
        lambda: {"total_memory": 64 * 1024**3, "free_memory": 32 * 1024**3, "free_swap": 1024},
    )
    monkeypatch.setattr(discovery.platform, "system", lambda: "Linux")
    monkeypatch.delenv("CUDA_VISIBLE_DEVICES", raising=False)
    return modules


def test_cpu_descriptor_only(host) -> None:
    devices = discover_compute()
    assert len(devices) == 1
    cpu = devices[0]
    assert cpu.library == "cpu"
    assert cpu.variant == "avx2"
    assert cpu.runner_name == "cpu_avx2"
    assert cpu.total_memory == 64 * 1024**3
    assert cpu.free_memory == 32 * 1024**3
    assert cpu.free_swap == 1024


def test_cpu_name_from_cpuinfo(host) -> None:
    host["cpuinfo"] = SimpleNamespace(get_cpu_info=lambda: {"brand_raw": "AMD Ryzen 9 7950X"})
    assert discover_compute()[0].name == "AMD Ryzen 9 7950X"


def test_psutil_memory_when_proc_unavailable(host, monkeypatch) -> None:
    def missing():
        raise FileNotFoundError("/proc/meminfo")

    monkeypatch.setattr(discovery, "get_linux_memory_stats", missing)
    host["psutil"] = SimpleNamespace(
        virtual_memory=lambda: SimpleNamespace(total=8000, available=4000),
        swap_memory=lambda: SimpleNamespace(free=500),
    )
    cpu = discover_compute()[0]
    assert (cpu.total_memory, cpu.free_memory, cpu.free_swap) == (8000, 4000, 500)


def test_nvidia_gpus(host, monkeypatch) -> None:
    monkeypatch.setenv("RUNNERKIT_CUDA_MINIMUM_MEMORY", "1000")
    host["pynvml"] = fake_pynvml([
        {"name": "NVIDIA GeForce RTX 4090", "total": 24 * 1024**3, "free": 20 * 1024**3, "cc": (8, 9)},
        {"name": b"NVIDIA L4", "total": 24 * 1024**3, "free": 23 * 1024**3, "cc": (8, 9)},
    ])
    devices = discover_compute()
    assert [d.runner_name for d in devices] == ["cpu_avx2", "cuda_v12", "cuda_v12"]
    gpu = devices[1]
    assert gpu.id == "GPU-0"
    assert gpu.name == "NVIDIA GeForce RTX 4090"
    assert gpu.compute == "8.9"
    assert (gpu.driver_major, gpu.driver_minor) == (12, 4)
    assert gpu.minimum_memory == 1000
    assert devices[2].name == "NVIDIA L4"


def test_nvidia_device_failure_skips_device(host) -> None:
    host["pynvml"] = fake_pynvml(
        [{"name": "A", "total": 1, "free": 1, "cc": (7, 5)}, {"name": "B", "total": 1, "free": 1, "cc": (7, 5)}],
        cuda_version=11080,
        fail_index=0,
    )
    devices = discover_compute()
    assert [d.name for d in devices[1:]] == ["B"]
    assert devices[1].variant == "v11"


def test_gpus_dropped_without_avx(host, monkeypatch, caplog) -> None:
    monkeypatch.setattr(discovery, "detect_cpu_capability", lambda: CPUCapability.NONE)
    host["pynvml"] = fake_pynvml([{"name": "A", "total": 1, "free": 1, "cc": (8, 0)}])
    devices = discover_compute()
    assert [d.runner_name for d in devices] == ["cpu"]
    assert "GPU inference disabled" in caplog.text


def test_nvml_init_failure(host) -> None:
    nvml = fake_pynvml([])

    def fail():
        raise FakeNVMLError("driver not loaded")

    nvml.nvmlInit = fail
    host["pynvml"] = nvml
    assert [d.library for d in discover_compute()] == ["cpu"]


def test_cuda_hidden(host, monkeypatch) -> None:
    monkeypatch.setenv("CUDA_VISIBLE_DEVICES", "-1")
    host["pynvml"] = fake_pynvml([{"name": "A", "total": 1, "free": 1, "cc": (8, 0)}])
    assert len(discover_compute()) == 1
