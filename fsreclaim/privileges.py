"""
Ownership correction and privilege dropping.

Ownership changes never follow symbolic links: a link created during a
privileged session is handed back, its target is left alone.
"""

import errno
import os
import logging
from typing import Dict, Optional, Tuple

import psutil

logger = logging.getLogger(__name__)

DROP_SAVED = 'setresuid'
DROP_REAL_EFFECTIVE = 'setreuid'
DROP_UNSUPPORTED = 'unsupported'


class PrivilegeDropError(Exception):
    """Raised when the platform refuses to switch to the target identity"""
    pass


def chown_recursive(path: str, uid: int, gid: int) -> Dict[str, str]:
    """
    Recursively change owner and group of a path without following links.

    Entries that disappear while walking are ignored. Any other failure is
    logged and collected so the rest of the tree is still processed.

    Args:
        path: Root of the tree to hand back
        uid: Target user id
        gid: Target group id

    Returns:
        Mapping of paths that could not be changed to the error text
    """
    failures: Dict[str, str] = {}

    def _lchown(target: str) -> None:
        try:
            os.lchown(target, uid, gid)
        except FileNotFoundError:
            logger.debug(f"Vanished before chown: {target}")
        except OSError as e:
            logger.warning(f"Failed to chown {target}: {e}")
            failures[target] = str(e)

    _lchown(path)

    if os.path.isdir(path) and not os.path.islink(path):
        for root, dirs, files in os.walk(path, followlinks=False):
            for name in dirs + files:
                _lchown(os.path.join(root, name))

    return failures


def _unsupported(e: OSError) -> bool:
    return e.errno == errno.ENOSYS


def _clear_supplementary_groups(gid: int) -> None:
    """Reduce supplementary groups to the target gid, where permitted"""
    if not hasattr(os, 'setgroups'):
        return
    try:
        os.setgroups([gid])
    except PermissionError:
        # Only root may change supplementary groups
        logger.debug("Not permitted to reset supplementary groups")


def drop_privileges(uid: int, gid: int) -> str:
    """
    Permanently switch the process to an unprivileged identity.

    Tries to set real, effective and saved ids together so root cannot be
    regained. Falls back to real and effective ids only. On platforms with
    neither, logs a warning and keeps running with the current identity.
    The group is always changed before the user.

    Args:
        uid: Target user id
        gid: Target group id

    Returns:
        The method that was used (DROP_SAVED, DROP_REAL_EFFECTIVE or DROP_UNSUPPORTED)

    Raises:
        PrivilegeDropError: If the platform refuses the identity change
    """
    _clear_supplementary_groups(gid)

    if hasattr(os, 'setresgid') and hasattr(os, 'setresuid'):
        try:
            os.setresgid(gid, gid, gid)
            os.setresuid(uid, uid, uid)
            logger.info(f"Dropped privileges to UID={uid}, GID={gid} (real, effective, saved)")
            _log_current_identity()
            return DROP_SAVED
        except OSError as e:
            if not _unsupported(e):
                raise PrivilegeDropError(f"Failed to drop privileges to {uid}:{gid}: {e}") from e
            logger.debug("setresuid not implemented, falling back to setreuid")

    if hasattr(os, 'setregid') and hasattr(os, 'setreuid'):
        try:
            os.setregid(gid, gid)
            os.setreuid(uid, uid)
            logger.info(f"Dropped privileges to UID={uid}, GID={gid} (real, effective)")
            _log_current_identity()
            return DROP_REAL_EFFECTIVE
        except OSError as e:
            if not _unsupported(e):
                raise PrivilegeDropError(f"Failed to drop privileges to {uid}:{gid}: {e}") from e

    logger.warning(
        f"Privilege dropping not supported on this platform. "
        f"Continuing with current privileges instead of UID={uid}, GID={gid}"
    )
    return DROP_UNSUPPORTED


def current_identity() -> Optional[Tuple[Tuple[int, int, int], Tuple[int, int, int]]]:
    """
    Get the (real, effective, saved) uids and gids of this process.

    Returns:
        Tuple of (uids, gids), or None if unavailable
    """
    try:
        proc = psutil.Process()
        return tuple(proc.uids()), tuple(proc.gids())
    except (psutil.Error, AttributeError) as e:
        logger.debug(f"Failed to read process identity: {e}")
        return None


def _log_current_identity() -> None:
    identity = current_identity()
    if identity is not None:
        uids, gids = identity
        logger.debug(f"Process identity now uids={uids} gids={gids}")
