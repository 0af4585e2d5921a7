"""Data models for privileged-session capture"""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union


@dataclass(frozen=True)
class AddPath:
    """A path mutated while a capture session was open"""
    path: str

    def __post_init__(self):
        """Validate the recorded path"""
        if not self.path:
            raise ValueError("Recorded path cannot be empty")
        if not os.path.isabs(self.path):
            raise ValueError(f"Recorded path must be absolute: {self.path}")


@dataclass(frozen=True)
class StopCapture:
    """Terminal event of a capture session"""


Event = Union[AddPath, StopCapture]


@dataclass(frozen=True)
class Identity:
    """Unprivileged uid/gid that ownership is handed back to"""
    uid: int
    gid: int

    def __post_init__(self):
        """Validate identity"""
        if self.uid < 0:
            raise ValueError(f"Invalid uid: {self.uid}")
        if self.gid < 0:
            raise ValueError(f"Invalid gid: {self.gid}")


@dataclass
class CorrectionReport:
    """Outcome of ownership correction at the end of a session"""
    corrected: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    drop_method: Optional[str] = None

    @property
    def ok(self) -> bool:
        """True when every existing path was corrected"""
        return not self.failed

    def summary(self) -> str:
        """One-line human readable summary"""
        text = (
            f"{len(self.corrected)} corrected, {len(self.skipped)} skipped, "
            f"{len(self.failed)} failed"
        )
        if self.drop_method:
            text += f", privilege drop: {self.drop_method}"
        return text


@dataclass
class Config:
    """Configuration for ownership correction"""
    user: Optional[Union[str, int]] = None
    group: Optional[Union[str, int]] = None
    extra_paths: List[str] = field(default_factory=list)
    extra_filters: List[str] = field(default_factory=list)
    drop_privileges: bool = True
    log_level: str = 'INFO'
    log_file: Optional[str] = None

    def __post_init__(self):
        """Validate configuration"""
        if not isinstance(self.extra_paths, list):
            raise ValueError("Extra paths must be a list")
        if not isinstance(self.extra_filters, list):
            raise ValueError("Extra filters must be a list")
        for prefix in self.extra_filters:
            if not os.path.isabs(prefix):
                raise ValueError(f"Filter prefix must be absolute: {prefix}")
        if self.log_level.upper() not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f"Invalid log level: {self.log_level}")

    def identity(self, environ: Optional[Dict[str, str]] = None) -> Identity:
        """
        Resolve the target identity for this configuration.

        Args:
            environ: Environment to read SUDO_UID/SUDO_GID from (default: os.environ)

        Returns:
            Identity object
        """
        from .config import ConfigManager
        return ConfigManager.resolve_identity(self, environ=environ)

    @classmethod
    def from_yaml(cls, config_file: str) -> 'Config':
        """
        Load configuration from YAML file.

        Args:
            config_file: Path to YAML configuration file

        Returns:
            Config object
        """
        from .config import ConfigManager
        return ConfigManager.load_config(config_file=config_file)
