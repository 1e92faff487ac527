#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Runner Cache Extraction

Materializes the current platform's runner builds from a payload tree into a
private cache directory, exactly once per process.

On-disk layout:
    <tmp-root>/runnerkit<random>/runnerkit.pid
    <tmp-root>/runnerkit<random>/runners/<variant>/<files>

The pid file lets later processes sweep cache generations whose owner has
exited. Files are written to a temporary sibling and renamed into place, so a
concurrent reader never observes a partially written runner.
"""

import logging
import os
import shutil
import tempfile
import threading
from pathlib import Path, PurePosixPath
from typing import Callable, Optional

import psutil

from .payload import PayloadFile, PayloadSource, current_platform
from ..config import RunnerKitSettings, get_settings
from ..exceptions import ExtractionError

logger = logging.getLogger(__name__)

TMP_DIR_PREFIX = "runnerkit"
PID_FILE_NAME = "runnerkit.pid"
RUNNERS_DIR_NAME = "runners"


class RunnerCache:
    """
    Compute-once cell holding the process-wide runner cache directory.

    The first caller of get() runs the extraction while holding the lock;
    concurrent callers block until it finishes and then observe the same
    directory, or the same error. Nothing is retried until reset().
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._done = False
        self._value: Optional[Path] = None
        self._error: Optional[Exception] = None

    def get(self, compute: Callable[[], Path]) -> Path:
        with self._lock:
            if not self._done:
                try:
                    self._value = compute()
                except Exception as e:
                    self._error = e
                self._done = True
        if self._error is not None:
            raise self._error
        return self._value

    def current(self) -> Optional[Path]:
        """The cache directory if extraction already succeeded, else None."""
        with self._lock:
            return self._value

    def reset(self) -> Optional[Path]:
        """Forget the memoized result, returning the directory it held."""
        with self._lock:
            value = self._value
            self._done = False
            self._value = None
            self._error = None
            return value


_runner_cache = RunnerCache()


def _tmp_root(settings: RunnerKitSettings) -> Path:
    if settings.tmpdir:
        return Path(settings.tmpdir)
    return Path(tempfile.gettempdir())


def refresh(payloads: PayloadSource) -> Path:
    """
    Ensure the runners for this platform are on disk and return their directory.

    Extraction runs once per process; later calls return the memoized
    directory without touching the file system. When RUNNERKIT_RUNNERS_DIR is
    set, that directory is used as-is and nothing is extracted.

    Args:
        payloads: Payload tree holding runner builds for one or more platforms

    Returns:
        Path: Directory containing one subdirectory per runner variant

    Raises:
        ExtractionError: If the cache cannot be created or a file cannot be written
    """
    def compute() -> Path:
        settings = get_settings()
        if settings.runners_dir:
            logger.debug(f"Using pre-extracted runners from {settings.runners_dir}")
            return Path(settings.runners_dir)
        return extract_runners(payloads)

    return _runner_cache.get(compute)


def runners_dir() -> Optional[Path]:
    """The memoized runner cache directory, or None before refresh() succeeds."""
    return _runner_cache.current()


def extract_runners(payloads: PayloadSource) -> Path:
    """
    Extract the runners into a new cache generation, bypassing memoization.

    Stale generations left by exited processes are swept first.

    Raises:
        ExtractionError: If the cache cannot be created or a file cannot be written
    """
    tmp_root = _tmp_root(get_settings())
    cleanup_tmp_dirs(tmp_root)

    try:
        tmp_root.mkdir(parents=True, exist_ok=True)
        tmp_dir = Path(tempfile.mkdtemp(prefix=TMP_DIR_PREFIX, dir=tmp_root))
    except OSError as e:
        raise ExtractionError(f"failed to create temp dir: {e}", str(tmp_root)) from e

    # Track our pid so orphaned generations can be cleaned up later
    pid_file = tmp_dir / PID_FILE_NAME
    rdir = tmp_dir / RUNNERS_DIR_NAME
    try:
        try:
            pid_file.write_text(str(os.getpid()))
        except OSError as e:
            raise ExtractionError(f"failed to write pid file: {e}", str(pid_file)) from e
        _extract_files(payloads, rdir)
    except ExtractionError:
        # A failed generation is never memoized, so nothing else would remove it
        shutil.rmtree(tmp_dir, ignore_errors=True)
        raise
    return rdir


def _extract_files(payloads: PayloadSource, work_dir: Path) -> None:
    os_name, arch = current_platform()
    prefix = f"{os_name}/{arch}/"
    count = 0
    try:
        work_dir.mkdir(mode=0o755, parents=True, exist_ok=True)
        for f in payloads.files_under(prefix):
            parts = PurePosixPath(f.path[len(prefix):]).parts
            if len(parts) < 2:
                logger.debug(f"Skipping payload entry outside a variant dir: {f.path}")
                continue
            if any(p in ("..", ".") for p in parts):
                raise ExtractionError("payload path escapes the cache dir", f.path)
            _write_file(work_dir.joinpath(*parts), f)
            count += 1
    except ExtractionError:
        raise
    except OSError as e:
        raise ExtractionError(str(e), getattr(e, "filename", None) or str(work_dir)) from e

    if count == 0:
        logger.debug(f"No runner payloads for {os_name}/{arch}")
    else:
        logger.debug(f"Extracted {count} runner files to {work_dir}")


def _write_file(dest: Path, f: PayloadFile) -> None:
    dest.parent.mkdir(mode=0o755, parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{dest.name}.", dir=dest.parent)
    try:
        with os.fdopen(fd, "wb") as out:
            out.write(f.data)
        os.chmod(tmp_name, 0o755 if f.executable else 0o644)
        os.replace(tmp_name, dest)
    except OSError:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def cleanup() -> None:
    """
    Remove this process's cache generation and reset memoization.

    Settings are re-read from the environment by the next refresh().

    Best effort: failures are logged and never raised. A directory supplied
    through RUNNERKIT_RUNNERS_DIR is not ours and is left alone.
    """
    rdir = _runner_cache.reset()
    get_settings.cache_clear()
    if rdir is None:
        return
    tmp_dir = rdir.parent
    if not (tmp_dir / PID_FILE_NAME).exists():
        logger.debug(f"Not removing {rdir}, it was not extracted by runnerkit")
        return
    logger.debug(f"Cleaning up {tmp_dir}")
    try:
        shutil.rmtree(tmp_dir)
    except OSError as e:
        logger.warning(f"Failed to clean up {tmp_dir}: {e}")


def cleanup_tmp_dirs(tmp_root: Optional[Path] = None) -> None:
    """
    Remove cache generations left behind by processes that are no longer running.

    Best effort: failures are logged and never raised.
    """
    if tmp_root is None:
        tmp_root = _tmp_root(get_settings())
    tmp_root = Path(tmp_root)
    if not tmp_root.is_dir():
        return
    for pid_file in tmp_root.glob(f"{TMP_DIR_PREFIX}*/{PID_FILE_NAME}"):
        try:
            pid = int(pid_file.read_text().strip())
        except FileNotFoundError:
            continue
        except (OSError, ValueError) as e:
            logger.warning(f"Unable to read {pid_file}: {e}")
            continue

        if pid == os.getpid() or psutil.pid_exists(pid):
            # Another live process owns this generation
            continue

        stale = pid_file.parent
        logger.debug(f"Removing stale runner dir {stale} (pid {pid})")
        try:
            shutil.rmtree(stale)
        except OSError as e:
            logger.warning(f"Failed to remove stale runner dir {stale}: {e}")
