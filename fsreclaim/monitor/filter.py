"""Prefix filtering for captured paths"""

import re
from typing import Iterable, List, Optional, Pattern, Set
import logging

logger = logging.getLogger(__name__)


class PathFilter:
    """
    Set of path-prefix patterns excluding paths from ownership correction.

    Starts with a blacklist of system directories. Each path accepted by an
    observer adds a pattern for everything beneath it, so contents of a
    tracked directory are covered by the directory itself.
    """

    DEFAULT_SYSTEM_PREFIXES = [
        '/etc',
        '/dev',
        '/sys',
        '/bin',
        '/sbin',
        '/lib',
        '/lib64',
        '/boot',
        '/run',
        '/proc',
        '/selinux',
    ]

    # Never hand back the whole filesystem
    ROOT_PATTERN = re.compile(r'^/$')

    def __init__(self, extra_prefixes: Optional[Iterable[str]] = None, use_defaults: bool = True):
        """
        Initialize PathFilter.

        Args:
            extra_prefixes: Additional prefixes to exclude, with their contents
            use_defaults: Whether to include the system directory blacklist
        """
        self.patterns: Set[Pattern] = set()

        if use_defaults:
            self.patterns.add(self.ROOT_PATTERN)
            self.patterns.add(self.system_pattern(self.DEFAULT_SYSTEM_PREFIXES))
            logger.debug(f"Loaded {len(self.DEFAULT_SYSTEM_PREFIXES)} system prefixes")

        for prefix in extra_prefixes or []:
            self.add_prefix(prefix)

    @staticmethod
    def system_pattern(prefixes: Iterable[str]) -> Pattern:
        """Pattern matching each prefix directory and anything beneath it"""
        names = '|'.join(re.escape(p.strip('/')) for p in prefixes)
        return re.compile(rf'^/({names})(/|$)')

    @staticmethod
    def descendant_pattern(path: str) -> Pattern:
        """Pattern matching strict descendants of ``path``"""
        return re.compile('^' + re.escape(path.rstrip('/')) + '/')

    def add_prefix(self, prefix: str) -> Pattern:
        """
        Exclude a directory and everything beneath it.

        Args:
            prefix: Absolute directory path

        Returns:
            The compiled pattern that was added
        """
        pattern = re.compile('^' + re.escape(prefix.rstrip('/')) + '(/|$)')
        self.patterns.add(pattern)
        logger.debug(f"Added filter prefix: {prefix}")
        return pattern

    def add_descendants(self, path: str) -> Pattern:
        """
        Exclude everything beneath ``path`` but not the path itself.

        Args:
            path: Absolute path that is now tracked

        Returns:
            The compiled pattern that was added
        """
        pattern = self.descendant_pattern(path)
        self.patterns.add(pattern)
        logger.debug(f"Filtering descendants of {path}")
        return pattern

    def matches(self, path: str) -> bool:
        """
        Check if a path is excluded.

        Args:
            path: Absolute path to check

        Returns:
            True if any pattern matches, False otherwise
        """
        return any(pattern.search(path) for pattern in self.patterns)

    def get_patterns(self) -> List[str]:
        """Sorted pattern sources, for display"""
        return sorted(p.pattern for p in self.patterns)

    def __len__(self) -> int:
        return len(self.patterns)
