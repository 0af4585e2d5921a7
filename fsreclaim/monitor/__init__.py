"""Write capture and ownership correction for privileged sessions"""

from .filter import PathFilter
from .observer import SessionObserver, PrivilegedSessionObserver
from .tracked_fs import TrackedFileSystem
from .write_monitor import (
    WriteMonitor,
    WriteMonitorError,
    NoObserversError,
    SessionAlreadyOpenError,
)

__all__ = [
    'PathFilter',
    'SessionObserver',
    'PrivilegedSessionObserver',
    'TrackedFileSystem',
    'WriteMonitor',
    'WriteMonitorError',
    'NoObserversError',
    'SessionAlreadyOpenError',
]
