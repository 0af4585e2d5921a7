"""Configuration management for ownership correction"""

import os
import yaml
from pathlib import Path
from typing import Optional, Dict, Any, Union
from .models import Config, Identity

try:
    import pwd
    import grp
    HAS_PWD = True
except ImportError:
    HAS_PWD = False


class ConfigManager:
    """Manages configuration loading and merging from files and CLI arguments"""

    DEFAULT_CONFIG = {
        'identity': {
            'user': None,   # Defaults to SUDO_UID
            'group': None,  # Defaults to SUDO_GID
        },
        'ownership': {
            'extra_paths': [],
            'extra_filters': [],
            'drop_privileges': True,
        },
        'logging': {
            'level': 'INFO',
            'file': None,
        }
    }

    @classmethod
    def load_config(
        cls,
        config_file: Optional[str] = None,
        cli_overrides: Optional[Dict[str, Any]] = None
    ) -> Config:
        """
        Load configuration from file and apply CLI overrides.

        Args:
            config_file: Path to YAML config file (optional)
            cli_overrides: Dictionary of CLI argument overrides (optional)

        Returns:
            Config object with merged configuration

        Raises:
            ValueError: If configuration is invalid
            FileNotFoundError: If config file doesn't exist
        """
        config_dict = cls._deep_copy_dict(cls.DEFAULT_CONFIG)

        if config_file:
            file_config = cls._load_yaml_file(config_file)
            config_dict = cls._merge_dicts(config_dict, file_config)

        if cli_overrides:
            config_dict = cls._apply_cli_overrides(config_dict, cli_overrides)

        return cls._dict_to_config(config_dict)

    @classmethod
    def _load_yaml_file(cls, filepath: str) -> Dict[str, Any]:
        """Load YAML configuration file"""
        path = Path(filepath)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {filepath}")

        if not path.is_file():
            raise ValueError(f"Configuration path is not a file: {filepath}")

        try:
            with open(path, 'r') as f:
                config = yaml.safe_load(f)

            if config is None:
                return {}

            if not isinstance(config, dict):
                raise ValueError("Configuration file must contain a YAML dictionary")

            return config
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

    @classmethod
    def _merge_dicts(cls, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge two dictionaries"""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = cls._merge_dicts(result[key], value)
            else:
                result[key] = value

        return result

    @classmethod
    def _apply_cli_overrides(cls, config: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        """Apply CLI argument overrides to configuration"""
        result = cls._deep_copy_dict(config)

        cli_mapping = {
            'user': ('identity', 'user'),
            'group': ('identity', 'group'),
            'extra_paths': ('ownership', 'extra_paths'),
            'extra_filters': ('ownership', 'extra_filters'),
            'drop_privileges': ('ownership', 'drop_privileges'),
            'log_level': ('logging', 'level'),
            'log_file': ('logging', 'file'),
        }

        for cli_key, value in overrides.items():
            if value is None:
                continue

            if cli_key in cli_mapping:
                section, config_key = cli_mapping[cli_key]
                if section not in result:
                    result[section] = {}
                result[section][config_key] = value

        return result

    @classmethod
    def _dict_to_config(cls, config_dict: Dict[str, Any]) -> Config:
        """Convert configuration dictionary to Config object"""
        identity = config_dict.get('identity') or {}
        ownership = config_dict.get('ownership') or {}
        log = config_dict.get('logging') or {}

        extra_paths = cls._as_list(ownership.get('extra_paths'))
        extra_paths = [os.path.expanduser(os.path.expandvars(p)) for p in extra_paths]

        extra_filters = cls._as_list(ownership.get('extra_filters'))

        log_file = log.get('file')
        if log_file:
            log_file = os.path.expanduser(os.path.expandvars(log_file))

        return Config(
            user=identity.get('user'),
            group=identity.get('group'),
            extra_paths=extra_paths,
            extra_filters=extra_filters,
            drop_privileges=bool(ownership.get('drop_privileges', True)),
            log_level=str(log.get('level', 'INFO')),
            log_file=log_file,
        )

    @staticmethod
    def _as_list(value: Any) -> list:
        """Accept a single string or a list from YAML"""
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        if isinstance(value, (list, tuple)):
            return list(value)
        raise ValueError(f"Expected a string or list, got {type(value).__name__}")

    @classmethod
    def _deep_copy_dict(cls, d: Dict[str, Any]) -> Dict[str, Any]:
        """Deep copy a dictionary"""
        result = {}
        for key, value in d.items():
            if isinstance(value, dict):
                result[key] = cls._deep_copy_dict(value)
            elif isinstance(value, list):
                result[key] = value.copy()
            else:
                result[key] = value
        return result

    @classmethod
    def resolve_identity(cls, config: Config, environ: Optional[Dict[str, str]] = None) -> Identity:
        """
        Work out the uid/gid that ownership should be handed back to.

        Explicit configuration wins. Otherwise the invoking user recorded by
        sudo (SUDO_UID/SUDO_GID) is used, and failing that the current real
        uid/gid.

        Args:
            config: Config object
            environ: Environment mapping (default: os.environ)

        Returns:
            Identity object

        Raises:
            ValueError: If a configured user or group does not exist
        """
        if environ is None:
            environ = os.environ

        if config.user is not None:
            uid = cls._resolve_user(config.user)
        elif environ.get('SUDO_UID'):
            uid = int(environ['SUDO_UID'])
        else:
            uid = os.getuid()

        if config.group is not None:
            gid = cls._resolve_group(config.group)
        elif environ.get('SUDO_GID'):
            gid = int(environ['SUDO_GID'])
        elif config.user is not None and HAS_PWD and not str(config.user).isdigit():
            # Primary group of a named user
            gid = pwd.getpwnam(str(config.user)).pw_gid
        else:
            gid = os.getgid()

        return Identity(uid=uid, gid=gid)

    @staticmethod
    def _resolve_user(user: Union[str, int]) -> int:
        """Map a user name or numeric string to a uid"""
        if isinstance(user, int) or str(user).isdigit():
            return int(user)
        if not HAS_PWD:
            raise ValueError(f"Cannot resolve user name '{user}' on this platform")
        try:
            return pwd.getpwnam(user).pw_uid
        except KeyError:
            raise ValueError(f"User '{user}' does not exist")

    @staticmethod
    def _resolve_group(group: Union[str, int]) -> int:
        """Map a group name or numeric string to a gid"""
        if isinstance(group, int) or str(group).isdigit():
            return int(group)
        if not HAS_PWD:
            raise ValueError(f"Cannot resolve group name '{group}' on this platform")
        try:
            return grp.getgrnam(group).gr_gid
        except KeyError:
            raise ValueError(f"Group '{group}' does not exist")

    @classmethod
    def create_default_config_file(cls, filepath: str) -> None:
        """Create a default configuration file"""
        config_template = """# fsreclaim configuration file

identity:
  # User that owns build artifacts once the privileged phase ends.
  # Name or numeric uid. Defaults to the user that invoked sudo.
  user: null

  # Group name or numeric gid. Defaults to SUDO_GID.
  group: null

ownership:
  # Paths that are always handed back, even if not written through
  # the tracked filesystem (e.g. output of subprocesses)
  extra_paths: []

  # Additional path prefixes that are never chowned
  extra_filters: []

  # Permanently switch to the identity above once ownership is fixed
  drop_privileges: true

logging:
  level: INFO

  # Optional: also log to this file
  file: null
"""

        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w') as f:
            f.write(config_template)
