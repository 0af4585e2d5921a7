"""Scoped privileged session built from configuration"""

import logging
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional, Union

from .models import Config, Identity
from .monitor.observer import PrivilegedSessionObserver
from .monitor.write_monitor import WriteMonitor

logger = logging.getLogger(__name__)


def build_observer(
    target: Union[Config, Identity],
    paths: Optional[Iterable[str]] = None
) -> PrivilegedSessionObserver:
    """
    Create an observer for a configuration or a bare identity.

    Args:
        target: Config (identity resolved from it) or Identity
        paths: Additional paths to correct at session end

    Returns:
        PrivilegedSessionObserver
    """
    if isinstance(target, Config):
        identity = target.identity()
        extra_paths = list(target.extra_paths) + list(paths or [])
        return PrivilegedSessionObserver(
            identity.uid,
            identity.gid,
            paths=extra_paths,
            extra_filters=target.extra_filters,
            drop_privileges=target.drop_privileges,
        )

    return PrivilegedSessionObserver(target.uid, target.gid, paths=list(paths or []))


@contextmanager
def privileged_session(
    monitor: WriteMonitor,
    target: Union[Config, Identity],
    paths: Optional[Iterable[str]] = None
) -> Iterator[PrivilegedSessionObserver]:
    """
    Run a block of privileged work with ownership handed back afterwards.

    Writes must go through ``monitor.fs`` to be captured. On exit, normal
    or not, captured paths are chowned and privilege is dropped. The
    yielded observer carries the CorrectionReport afterwards.

    Args:
        monitor: WriteMonitor to open the session on
        target: Config or Identity to hand ownership back to
        paths: Additional paths to correct at session end

    Yields:
        The session's PrivilegedSessionObserver
    """
    observer = build_observer(target, paths)
    logger.info(f"Starting privileged session for {observer.uid}:{observer.gid}")
    with monitor.session(observer):
        yield observer
