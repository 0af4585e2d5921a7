"""Filesystem facade whose mutating calls are reported to a WriteMonitor"""

import os
import shutil
import logging
from typing import IO, Any, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .write_monitor import WriteMonitor

logger = logging.getLogger(__name__)

WRITE_MODE_CHARS = ('w', 'a', 'x')


def is_write_mode(mode: str) -> bool:
    """True if an open() mode creates or writes the file"""
    return any(c in mode for c in WRITE_MODE_CHARS)


class TrackedFileSystem:
    """
    Wrappers around the filesystem calls that create paths.

    Each wrapper performs the real operation first. If it succeeds and the
    monitor is capturing, the resulting path is reported. The capture flag
    is checked per call and is not held while the operation runs.
    """

    def __init__(self, monitor: 'WriteMonitor'):
        self._monitor = monitor

    def _record(self, path: Any, resolve_leaf: bool = True) -> None:
        if self._monitor.capturing:
            self._monitor.add_path(os.fspath(path), resolve_leaf=resolve_leaf)

    def open(self, path, mode: str = 'r', *args, **kwargs) -> IO:
        """open() that records files opened for writing or appending"""
        handle = open(path, mode, *args, **kwargs)
        if is_write_mode(mode):
            try:
                self._record(path)
            except Exception:
                handle.close()
                raise
        return handle

    def mkdir(self, path, mode: int = 0o777) -> None:
        """os.mkdir() recording the new directory"""
        os.mkdir(path, mode)
        self._record(path)

    def makedirs(self, path, mode: int = 0o777, exist_ok: bool = False) -> None:
        """
        os.makedirs() recording the topmost directory it created.

        Nothing is recorded when the directory already existed.
        """
        topmost = self._topmost_missing(path)
        os.makedirs(path, mode, exist_ok=exist_ok)
        if topmost is not None:
            self._record(topmost)

    def rename(self, src, dst) -> None:
        """os.rename() recording the new path"""
        os.rename(src, dst)
        self._record(dst)

    def replace(self, src, dst) -> None:
        """os.replace() recording the new path"""
        os.replace(src, dst)
        self._record(dst)

    def symlink(self, src, dst, target_is_directory: bool = False) -> None:
        """os.symlink() recording the link itself, not its target"""
        os.symlink(src, dst, target_is_directory)
        self._record(dst, resolve_leaf=False)

    def link(self, src, dst) -> None:
        """os.link() recording the new hard link"""
        os.link(src, dst)
        self._record(dst)

    def copy(self, src, dst) -> str:
        """shutil.copy2() recording the file written"""
        written = shutil.copy2(src, dst)
        self._record(written)
        return written

    def copytree(self, src, dst, **kwargs) -> str:
        """shutil.copytree() recording the destination tree"""
        written = shutil.copytree(src, dst, **kwargs)
        self._record(written)
        return written

    @staticmethod
    def _topmost_missing(path) -> Optional[str]:
        """First component of ``path`` that does not exist yet"""
        current = os.path.abspath(os.fspath(path))
        topmost = None
        while not os.path.exists(current):
            topmost = current
            parent = os.path.dirname(current)
            if parent == current:
                break
            current = parent
        return topmost
