"""Build coordination lock — at-most-once generation across worker processes.

A build tool may import the generation entry point from several worker
processes at once. Each of them calls :meth:`BuildLock.try_acquire` with
the same scope key; exactly one gets ``True``. The marker is a plain file
created with ``O_CREAT | O_EXCL``, which only one process can win.

Markers older than the TTL are leftovers from a previous build. Replacing
one is itself guarded by a second create-exclusive file, and staleness is
re-checked under that guard, so a slow process can never remove a marker
that a faster one has just recreated. Every process that loses either
race gets ``False``.
"""

from __future__ import annotations

import hashlib
import os
import tempfile
import time
from collections.abc import Callable
from pathlib import Path

import structlog

log = structlog.get_logger("depsentinel.build")

DEFAULT_LOCK_TTL = 30.0


def scope_key_for(output_path: Path) -> str:
    """Stable key for *output_path*: same file, same lock; other files never contend."""
    resolved = str(Path(output_path).resolve())
    return hashlib.sha256(resolved.encode()).hexdigest()[:16]


class BuildLock:
    """TTL-bounded, create-exclusive marker files under *lock_dir*."""

    def __init__(
        self,
        lock_dir: Path | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._lock_dir = lock_dir or Path(tempfile.gettempdir()) / "depsentinel-locks"
        self._clock = clock

    def marker_path(self, scope_key: str) -> Path:
        return self._lock_dir / f"{scope_key}.lock"

    def try_acquire(self, scope_key: str, ttl: float = DEFAULT_LOCK_TTL) -> bool:
        """Return True if the caller now owns *scope_key* for *ttl* seconds."""
        self._lock_dir.mkdir(parents=True, exist_ok=True)
        marker = self.marker_path(scope_key)

        if self._create(marker):
            return True
        if not self._is_stale(marker, ttl):
            log.debug("lock.held", scope_key=scope_key)
            return False
        return self._reclaim(scope_key, marker, ttl)

    def release(self, scope_key: str) -> None:
        """Drop the marker early. Not required: the TTL expires it anyway."""
        _unlink(self.marker_path(scope_key))

    def _reclaim(self, scope_key: str, marker: Path, ttl: float) -> bool:
        guard = marker.with_name(marker.name + ".reclaim")
        if not self._create(guard):
            # A guard only outlives its owner if that process died mid-reclaim.
            if not self._is_stale(guard, ttl):
                return False
            log.debug("lock.stale_guard", scope_key=scope_key, ttl=ttl)
            _unlink(guard)
            if not self._create(guard):
                return False
        try:
            if not self._is_stale(marker, ttl):
                return False
            log.debug("lock.stale", scope_key=scope_key, ttl=ttl)
            _unlink(marker)
            return self._create(marker)
        finally:
            _unlink(guard)

    def _create(self, path: Path) -> bool:
        try:
            fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return False
        try:
            os.write(fd, str(os.getpid()).encode())
        finally:
            os.close(fd)
        # Stamp with our clock so age checks agree with it.
        now = self._clock()
        os.utime(path, (now, now))
        return True

    def _is_stale(self, path: Path, ttl: float) -> bool:
        """True if *path* is older than *ttl*, or vanished since we last looked."""
        try:
            mtime = path.stat().st_mtime
        except FileNotFoundError:
            return True
        return self._clock() - mtime > ttl


def _unlink(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
