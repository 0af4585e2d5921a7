"""Capture of filesystem writes made during a privileged session"""

import os
import threading
import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator, List, Optional, Tuple

from ..concurrent.atomic import AtomicFlag
from ..models import AddPath, StopCapture, Event
from .observer import SessionObserver
from .tracked_fs import TrackedFileSystem

logger = logging.getLogger(__name__)


class WriteMonitorError(Exception):
    """Base exception for WriteMonitor errors"""
    pass


class NoObserversError(WriteMonitorError):
    """A path was reported but no observer is registered"""
    pass


class SessionAlreadyOpenError(WriteMonitorError):
    """A capture session was opened while another one is active"""
    pass


class WriteMonitor:
    """
    Records paths written through its tracked filesystem while capturing.

    One monitor is created per process and passed to whatever performs
    privileged work. Writes made through ``monitor.fs`` between
    ``capture`` and ``stop`` are canonicalized and delivered to every
    registered observer, in registration order.

    Two locks are used. The session lock serializes capture, stop and
    reset. The delivery lock serializes event delivery so observers never
    see interleaved events. Neither is held while the underlying I/O runs.

    Writes made by subprocesses, or by code that bypasses ``monitor.fs``,
    are not seen.
    """

    def __init__(self):
        self._capturing = AtomicFlag(False)
        self._session_lock = threading.Lock()
        self._delivery_lock = threading.Lock()
        self._observers: List[SessionObserver] = []
        self.fs = TrackedFileSystem(self)

    @property
    def capturing(self) -> bool:
        """True while a capture session is open"""
        return self._capturing.get()

    @property
    def observers(self) -> Tuple[SessionObserver, ...]:
        with self._session_lock:
            return tuple(self._observers)

    def count_observers(self) -> int:
        with self._session_lock:
            return len(self._observers)

    def capture(self, observers: Iterable[SessionObserver], work: Optional[Callable[[], Any]] = None) -> Any:
        """
        Start capturing paths of writes made through ``fs``.

        When ``work`` is given it is run and the session is stopped
        afterwards, whether ``work`` returns or raises.

        Args:
            observers: Observers to register for this session
            work: Optional callable performing the privileged work

        Returns:
            The return value of ``work``, or None

        Raises:
            SessionAlreadyOpenError: If a session is already open
        """
        with self._session_lock:
            if self._capturing.get():
                raise SessionAlreadyOpenError("A capture session is already open")

            self._add_observers(observers)
            self._capturing.set(True)
            logger.info(f"Capture session opened with {len(self._observers)} observer(s)")

        if work is None:
            return None

        try:
            return work()
        finally:
            self.stop()

    @contextmanager
    def session(self, *observers: SessionObserver) -> Iterator[TrackedFileSystem]:
        """
        Scoped capture session.

        Yields the tracked filesystem and stops the session on exit,
        including when the block raises.
        """
        self.capture(observers)
        try:
            yield self.fs
        finally:
            self.stop()

    def stop(self) -> bool:
        """
        Stop capturing, notify observers and release them.

        Stopping when no session is open does nothing. Every observer
        receives StopCapture even if an earlier one raises; the first such
        error is re-raised afterwards.

        Returns:
            True if a session was closed, False otherwise
        """
        with self._session_lock:
            if not self._capturing.swap(False):
                logger.debug("stop() called with no open capture session")
                return False

            logger.info("Capture session closed")

            # StopCapture reaches every observer before another session opens
            try:
                self._deliver(StopCapture(), list(self._observers))
            finally:
                with self._delivery_lock:
                    self._observers.clear()
        return True

    def reset(self) -> None:
        """
        Abort any open session and forget all observers.

        Observers are not notified, so no ownership correction or privilege
        drop takes place.
        """
        with self._session_lock, self._delivery_lock:
            if self._capturing.swap(False):
                logger.warning("Capture session aborted by reset")
            self._observers.clear()

    def add_path(self, path: str, resolve_leaf: bool = True) -> None:
        """
        Report a path written during the session.

        Called by the tracked filesystem after each mutating operation.

        Args:
            path: Path that was created or written
            resolve_leaf: Whether a symlink at the final component is followed

        Raises:
            NoObserversError: If a session is open with no observer registered
        """
        with self._delivery_lock:
            # Lost the race against stop() or reset()
            if not self._capturing.get():
                logger.debug(f"Session closed, not recording: {path}")
                return

            observers = tuple(self._observers)
            if not observers:
                raise NoObserversError("No observers set!")

            event = AddPath(self.realpath(path, resolve_leaf=resolve_leaf))
            self._fan_out(event, observers)

    def _deliver(self, event: Event, observers: List[SessionObserver]) -> None:
        with self._delivery_lock:
            self._fan_out(event, observers)

    @staticmethod
    def _fan_out(event: Event, observers: Iterable[SessionObserver]) -> None:
        first_error = None
        for observer in observers:
            try:
                observer.receive(event)
            except Exception as e:
                logger.error(f"Observer {observer!r} failed on {event!r}: {e}")
                if first_error is None:
                    first_error = e

        if first_error is not None:
            raise first_error

    def _add_observers(self, observers: Iterable[SessionObserver]) -> None:
        for observer in observers:
            if not hasattr(observer, 'receive'):
                raise TypeError(f"Observer does not implement receive(): {observer!r}")
            if observer not in self._observers:
                self._observers.append(observer)

    @staticmethod
    def realpath(path: str, resolve_leaf: bool = True) -> str:
        """
        Canonicalize a path.

        Args:
            path: Absolute or relative path
            resolve_leaf: If False, a symlink at the final component is kept
                rather than replaced by its target

        Returns:
            Absolute path with relative segments and symlinks resolved
        """
        path = os.fspath(path)
        if resolve_leaf:
            return os.path.realpath(path)
        head, tail = os.path.split(os.path.abspath(path))
        return os.path.join(os.path.realpath(head), tail)
