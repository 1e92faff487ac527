"""
Runner payload sources.

A payload is a read-only tree of runner builds laid out as
``<os>/<arch>/<variant>/<files>``. Extraction only ever reads from it.
"""

import os
import platform
import stat
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, Iterator, Mapping, Tuple, Union

# platform.system() / platform.machine() values to payload directory names
_OS_NAMES = {
    "linux": "linux",
    "darwin": "darwin",
    "windows": "windows",
}
_ARCH_NAMES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
}


def current_platform() -> Tuple[str, str]:
    """Host (os, arch) in payload naming, e.g. ('linux', 'amd64')."""
    system = platform.system().lower()
    machine = platform.machine().lower()
    return _OS_NAMES.get(system, system), _ARCH_NAMES.get(machine, machine)


@dataclass(frozen=True)
class PayloadFile:
    """One file of a payload tree."""

    path: str        # POSIX relative path, e.g. "linux/amd64/cpu/ollama_llama_server"
    data: bytes
    mode: int = 0o755

    @property
    def executable(self) -> bool:
        return bool(self.mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH))


class PayloadSource:
    """Base class for read-only payload trees."""

    def files(self) -> Iterator[PayloadFile]:
        raise NotImplementedError

    def files_under(self, prefix: str) -> Iterator[PayloadFile]:
        """Files below ``prefix``; entries for other subtrees are skipped."""
        prefix = prefix.strip("/") + "/"
        for f in self.files():
            if f.path.startswith(prefix):
                yield f


class MemoryPayload(PayloadSource):
    """
    In-memory payload tree.

    Values are raw bytes (treated as executables) or PayloadFile instances.

    Example:
        >>> payload = MemoryPayload({"linux/amd64/cpu/ollama_llama_server": b"..."})
    """

    def __init__(self, entries: Mapping[str, Union[bytes, PayloadFile]]):
        self._files: Dict[str, PayloadFile] = {}
        for path, entry in entries.items():
            path = str(PurePosixPath(path))
            if isinstance(entry, PayloadFile):
                entry = PayloadFile(path, entry.data, entry.mode)
            else:
                entry = PayloadFile(path, bytes(entry))
            self._files[path] = entry

    def files(self) -> Iterator[PayloadFile]:
        for path in sorted(self._files):
            yield self._files[path]


class DirectoryPayload(PayloadSource):
    """Payload tree rooted at a directory on disk, e.g. installed package data."""

    def __init__(self, root: Union[str, os.PathLike]):
        self.root = Path(root)

    def files(self) -> Iterator[PayloadFile]:
        return self._walk(self.root)

    def files_under(self, prefix: str) -> Iterator[PayloadFile]:
        # Only the matching subtree is read
        return self._walk(self.root.joinpath(*PurePosixPath(prefix.strip("/")).parts))

    def _walk(self, base: Path) -> Iterator[PayloadFile]:
        if not base.is_dir():
            return
        for p in sorted(base.rglob("*")):
            if not p.is_file():
                continue
            yield PayloadFile(
                path=p.relative_to(self.root).as_posix(),
                data=p.read_bytes(),
                mode=stat.S_IMODE(p.stat().st_mode),
            )
