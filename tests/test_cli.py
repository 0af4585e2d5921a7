"""Tests for the command-line interface"""

import os
from pathlib import Path
import pytest
from click.testing import CliRunner

from fsreclaim.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


class TestInitConfig:
    """Test the init-config command"""

    def test_creates_file(self, runner, temp_dir):
        path = os.path.join(temp_dir, 'etc', 'config.yaml')
        result = runner.invoke(cli, ['init-config', path])

        assert result.exit_code == 0
        assert os.path.exists(path)
        assert "Configuration file created" in result.output

    def test_refuses_to_overwrite(self, runner, temp_dir):
        path = Path(temp_dir) / 'config.yaml'
        path.write_text('identity: {}\n')

        result = runner.invoke(cli, ['init-config', str(path)])

        assert result.exit_code == 1
        assert path.read_text() == 'identity: {}\n'

    def test_force_overwrites(self, runner, temp_dir):
        path = Path(temp_dir) / 'config.yaml'
        path.write_text('identity: {}\n')

        result = runner.invoke(cli, ['init-config', str(path), '--force'])

        assert result.exit_code == 0
        assert 'drop_privileges' in path.read_text()


class TestShowConfig:
    """Test the show-config command"""

    def test_shows_identity(self, runner):
        result = runner.invoke(cli, ['show-config', '--user', '1234', '--group', '4321'])

        assert result.exit_code == 0
        assert "1234:4321" in result.output

    def test_reads_config_file(self, runner, config_yaml_file):
        result = runner.invoke(cli, ['show-config', '--config', config_yaml_file])

        assert result.exit_code == 0
        assert "1500:1600" in result.output
        assert "/srv/appliances" in result.output
        assert "Drop privileges:  no" in result.output

    def test_missing_config_file(self, runner):
        result = runner.invoke(cli, ['show-config', '--config', '/nonexistent/config.yaml'])
        assert result.exit_code == 1

    def test_unknown_user(self, runner):
        result = runner.invoke(cli, ['show-config', '--user', 'no_such_user_fsreclaim'])
        assert result.exit_code == 1


class TestReclaim:
    """Test the reclaim command"""

    def test_hands_paths_back(self, runner, temp_dir, no_privilege_change):
        mock_chown, mock_drop = no_privilege_change
        target = Path(temp_dir) / 'appliance'
        target.mkdir()

        result = runner.invoke(cli, ['reclaim', str(target), '--user', '1000', '--group', '1001'])

        assert result.exit_code == 0, result.output
        mock_chown.assert_called_once_with(str(target), 1000, 1001)
        mock_drop.assert_called_once_with(1000, 1001)
        assert "1 corrected" in result.output

    def test_no_drop(self, runner, temp_dir, no_privilege_change):
        mock_chown, mock_drop = no_privilege_change

        result = runner.invoke(cli, ['reclaim', temp_dir, '--user', '1000', '--group', '1001', '--no-drop'])

        assert result.exit_code == 0, result.output
        mock_chown.assert_called_once()
        mock_drop.assert_not_called()

    def test_failures_exit_nonzero(self, runner, temp_dir, no_privilege_change):
        mock_chown, _ = no_privilege_change
        mock_chown.return_value = {temp_dir: 'Operation not permitted'}

        result = runner.invoke(cli, ['reclaim', temp_dir, '--user', '1000', '--group', '1001'])

        assert result.exit_code == 1

    def test_privilege_drop_error(self, runner, temp_dir, no_privilege_change):
        from fsreclaim.privileges import PrivilegeDropError
        _, mock_drop = no_privilege_change
        mock_drop.side_effect = PrivilegeDropError("refused")

        result = runner.invoke(cli, ['reclaim', temp_dir, '--user', '1000', '--group', '1001'])

        assert result.exit_code == 1

    def test_missing_path(self, runner):
        result = runner.invoke(cli, ['reclaim', '/nonexistent/build/output'])
        assert result.exit_code == 2

    def test_system_paths_untouched(self, runner, no_privilege_change):
        """Blacklisted paths are filtered even when named explicitly"""
        mock_chown, _ = no_privilege_change

        result = runner.invoke(cli, ['reclaim', '/etc', '--user', '1000', '--group', '1001', '--no-drop'])

        assert result.exit_code == 0, result.output
        mock_chown.assert_not_called()
        assert "0 corrected" in result.output

    @pytest.mark.parametrize('path', ['//etc', '//', '/tmp/../etc'])
    def test_system_paths_untouched_when_spelled_oddly(self, runner, path, no_privilege_change):
        mock_chown, _ = no_privilege_change

        result = runner.invoke(cli, ['reclaim', path, '--user', '1000', '--group', '1001', '--no-drop'])

        assert result.exit_code == 0, result.output
        mock_chown.assert_not_called()
        assert "0 corrected" in result.output
