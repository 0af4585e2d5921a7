"""Observers receiving capture events from the WriteMonitor"""

import os
import logging
from abc import ABC, abstractmethod
from typing import Iterable, Optional, Set, Union, Pattern

from ..models import AddPath, StopCapture, Event, CorrectionReport
from .. import privileges
from .filter import PathFilter

logger = logging.getLogger(__name__)


class SessionObserver(ABC):
    """Abstract base class for components wired into a capture session"""

    @abstractmethod
    def receive(self, event: Event) -> None:
        """
        Handle an event delivered by the WriteMonitor.

        Implementations must accept StopCapture even if nothing was captured.

        Args:
            event: AddPath or StopCapture
        """
        pass


class PrivilegedSessionObserver(SessionObserver):
    """
    Collects paths written as root and hands them back at session end.

    On AddPath the path is recorded unless it is filtered, and everything
    beneath it becomes filtered. On StopCapture every recorded path that
    still exists is recursively chowned to the target identity, then the
    process permanently drops to that identity.

    State is only touched from inside the monitor's delivery lock, so the
    observer does no locking of its own.
    """

    def __init__(
        self,
        uid: int,
        gid: int,
        paths: Optional[Union[str, Iterable[str]]] = None,
        extra_filters: Optional[Iterable[str]] = None,
        drop_privileges: bool = True
    ):
        """
        Initialize the observer.

        Args:
            uid: User id to hand ownership back to and switch to
            gid: Group id to hand ownership back to and switch to
            paths: Extra path or paths to correct regardless of capture,
                canonicalized like captured paths
            extra_filters: Additional prefixes that are never corrected
            drop_privileges: Whether to switch identity after correction
        """
        self.uid = uid
        self.gid = gid
        self.drop_enabled = drop_privileges
        self.path_set: Set[str] = set()
        self.filter = PathFilter(extra_prefixes=extra_filters)
        self.last_report: Optional[CorrectionReport] = None

        if isinstance(paths, str):
            paths = [paths]
        for path in paths or []:
            self._record(os.path.realpath(path))

    @property
    def filter_set(self) -> Set[Pattern]:
        """Compiled patterns currently excluding paths"""
        return self.filter.patterns

    def receive(self, event: Event) -> None:
        """
        Receive updates from WriteMonitor.

        Args:
            event: AddPath carrying a canonical path, or StopCapture
        """
        if isinstance(event, AddPath):
            self._record(event.path)
        elif isinstance(event, StopCapture):
            self.last_report = self.correct_ownership()
            if self.drop_enabled:
                self.last_report.drop_method = self.drop_privileges()
        else:
            raise TypeError(f"Unknown capture event: {event!r}")

    def _record(self, path: str) -> bool:
        if path in self.path_set or self.filter.matches(path):
            logger.debug(f"Ignoring filtered path: {path}")
            return False

        self.path_set.add(path)
        self.filter.add_descendants(path)
        logger.debug(f"Tracking path: {path}")
        return True

    def correct_ownership(self) -> CorrectionReport:
        """
        Recursively chown every recorded path that still exists.

        Paths removed since they were recorded are skipped. Failures on
        individual entries are logged and reported, not raised.

        Returns:
            CorrectionReport describing the outcome
        """
        report = CorrectionReport()

        for path in sorted(self.path_set):
            if not os.path.lexists(path):
                report.skipped.append(path)
                continue

            failures = privileges.chown_recursive(path, self.uid, self.gid)
            if failures:
                report.failed.update(failures)
            else:
                report.corrected.append(path)

        if report.failed:
            logger.warning(
                f"Could not restore ownership of {len(report.failed)} path(s): "
                f"{', '.join(sorted(report.failed))}"
            )
        logger.info(f"Ownership correction to {self.uid}:{self.gid}: {report.summary()}")
        return report

    def drop_privileges(self) -> str:
        """Permanently switch to the target identity"""
        return privileges.drop_privileges(self.uid, self.gid)
