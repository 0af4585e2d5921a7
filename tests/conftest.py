"""Shared pytest fixtures and configuration for fsreclaim tests"""

import os
import logging
import tempfile
import shutil
from pathlib import Path
from unittest.mock import patch
import pytest

from fsreclaim.models import Event
from fsreclaim.monitor.observer import SessionObserver
from fsreclaim.monitor.write_monitor import WriteMonitor


class RecordingObserver(SessionObserver):
    """Observer that only remembers what it was sent"""

    def __init__(self):
        self.events = []

    def receive(self, event: Event) -> None:
        self.events.append(event)


def pytest_collection_modifyitems(config, items):
    """Skip tests marked 'root' unless running as root"""
    if hasattr(os, 'geteuid') and os.geteuid() == 0:
        return
    skip_root = pytest.mark.skip(reason="needs root")
    for item in items:
        if 'root' in item.keywords:
            item.add_marker(skip_root)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers attached by configure_logging between tests"""
    yield
    package_logger = logging.getLogger('fsreclaim')
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing, canonicalized"""
    tmpdir = tempfile.mkdtemp(prefix='fsreclaim_test_')
    yield os.path.realpath(tmpdir)
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def monitor():
    """A fresh WriteMonitor, reset after the test"""
    write_monitor = WriteMonitor()
    yield write_monitor
    write_monitor.reset()


@pytest.fixture
def recorder():
    """Observer that records every event"""
    return RecordingObserver()


@pytest.fixture
def recorders():
    """Two recording observers"""
    return RecordingObserver(), RecordingObserver()


@pytest.fixture
def no_privilege_change():
    """
    Stub out chown and privilege drop.

    Yields the (chown_recursive, drop_privileges) mocks.
    """
    with patch('fsreclaim.privileges.chown_recursive', return_value={}) as mock_chown, \
         patch('fsreclaim.privileges.drop_privileges', return_value='setresuid') as mock_drop:
        yield mock_chown, mock_drop


@pytest.fixture
def test_tree(temp_dir):
    """Directory with a file, a subdirectory and a symlink to it"""
    root = Path(temp_dir) / 'tree'
    (root / 'sub').mkdir(parents=True)
    (root / 'file1.txt').write_text('one')
    (root / 'sub' / 'file2.txt').write_text('two')
    (root / 'link').symlink_to(root / 'sub')
    return root


@pytest.fixture
def config_yaml_file(temp_dir):
    """Create a test YAML configuration file"""
    config_path = Path(temp_dir) / 'config.yaml'
    config_path.write_text("""
identity:
  user: 1500
  group: 1600

ownership:
  extra_paths:
    - /srv/appliances
  extra_filters:
    - /var/lib/mock
  drop_privileges: false

logging:
  level: DEBUG
""")
    return str(config_path)
