"""CLI interface for handing privileged build output back to its user"""
import click
import sys
import os
import traceback
from pathlib import Path
from fsreclaim.config import ConfigManager
from fsreclaim.logging_setup import configure_logging
from fsreclaim.monitor.write_monitor import WriteMonitor
from fsreclaim.privileges import PrivilegeDropError, current_identity
from fsreclaim.session import privileged_session


def handle_error(error, verbose=False):
    """Handle and display errors in a user-friendly way"""
    error_msg = str(error)

    if isinstance(error, PrivilegeDropError):
        click.echo(f"✗ Could not drop privileges: {error_msg}", err=True)
    elif isinstance(error, PermissionError):
        click.echo("✗ Permission denied. Ownership can only be handed back when running as root.", err=True)
    elif isinstance(error, FileNotFoundError):
        click.echo(f"✗ File or directory not found: {error_msg}", err=True)
    else:
        click.echo(f"✗ Error: {error_msg}", err=True)

    if verbose:
        click.echo("\nDetailed traceback:", err=True)
        traceback.print_exc()


def load_config_or_exit(config_file, overrides=None):
    """Load configuration from file and CLI overrides, exit on error"""
    if config_file and not os.path.exists(config_file):
        click.echo(f"Error: Configuration file not found: {config_file}", err=True)
        sys.exit(1)

    try:
        return ConfigManager.load_config(config_file=config_file, cli_overrides=overrides)
    except (ValueError, OSError) as e:
        click.echo(f"Error: Failed to load configuration: {e}", err=True)
        sys.exit(1)


@click.group()
@click.version_option(version='0.1.0')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output', envvar='FSRECLAIM_VERBOSE')
@click.pass_context
def cli(ctx, verbose):
    """Ownership correction for privileged appliance builds

    Hands files created as root back to the user that started the build,
    then drops root privileges for good.

    Environment Variables:
        FSRECLAIM_VERBOSE: Enable verbose output (1, true, yes)

    Examples:
        fsreclaim init-config /etc/fsreclaim/config.yaml
        sudo fsreclaim reclaim build/appliance --config /etc/fsreclaim/config.yaml
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose

    if verbose:
        click.echo("Verbose mode enabled", err=True)


@cli.command('init-config')
@click.argument('path', type=click.Path(dir_okay=False))
@click.option('--force', is_flag=True, help='Overwrite an existing file')
def init_config(path, force):
    """Write a default configuration file to PATH"""
    if Path(path).exists() and not force:
        click.echo(f"Error: {path} already exists (use --force to overwrite)", err=True)
        sys.exit(1)

    ConfigManager.create_default_config_file(path)
    click.echo(f"✓ Configuration file created at {path}")


@cli.command('show-config')
@click.option('--config', 'config_file', help='Path to configuration file')
@click.option('--user', help='Target user name or uid (overrides config)')
@click.option('--group', help='Target group name or gid (overrides config)')
def show_config(config_file, user, group):
    """Show the resolved configuration and target identity"""
    config = load_config_or_exit(config_file, {'user': user, 'group': group})

    try:
        identity = config.identity()
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Target identity:  {identity.uid}:{identity.gid}")
    click.echo(f"Drop privileges:  {'yes' if config.drop_privileges else 'no'}")
    click.echo(f"Extra paths:      {', '.join(config.extra_paths) or '-'}")
    click.echo(f"Extra filters:    {', '.join(config.extra_filters) or '-'}")
    click.echo(f"Log level:        {config.log_level}")

    process = current_identity()
    if process is not None:
        uids, gids = process
        click.echo(f"Process uids:     {uids}")
        click.echo(f"Process gids:     {gids}")


@cli.command()
@click.argument('paths', nargs=-1, required=True, type=click.Path(exists=True))
@click.option('--config', 'config_file', help='Path to configuration file')
@click.option('--user', help='Target user name or uid (overrides config)')
@click.option('--group', help='Target group name or gid (overrides config)')
@click.option('--no-drop', is_flag=True, help='Do not drop privileges afterwards')
@click.pass_context
def reclaim(ctx, paths, config_file, user, group, no_drop):
    """Hand PATHS back to the target user

    Use this for output written by subprocesses, which the write monitor
    cannot observe. System directories such as /etc are never touched.

    Example:
        sudo fsreclaim reclaim build/appliance --user builder
    """
    verbose = ctx.obj.get('verbose', False)
    overrides = {
        'user': user,
        'group': group,
        'drop_privileges': False if no_drop else None,
        'log_level': 'DEBUG' if verbose else None,
    }
    config = load_config_or_exit(config_file, overrides)
    configure_logging(config.log_level, config.log_file)

    try:
        monitor = WriteMonitor()
        with privileged_session(monitor, config, paths=[os.path.realpath(p) for p in paths]) as observer:
            click.echo(f"Handing {len(observer.path_set)} path(s) back to {observer.uid}:{observer.gid}")

        report = observer.last_report
        click.echo(f"✓ {report.summary()}")
        for path, error in sorted(report.failed.items()):
            click.echo(f"  ✗ {path}: {error}", err=True)

        if not report.ok:
            sys.exit(1)
    except (ValueError, OSError, PrivilegeDropError) as e:
        handle_error(e, verbose=verbose)
        sys.exit(1)


def main():
    """Main entry point for the CLI"""
    try:
        cli()
    except KeyboardInterrupt:
        click.echo("\n\nOperation cancelled by user", err=True)
        sys.exit(130)
    except Exception as e:
        verbose = os.environ.get('FSRECLAIM_VERBOSE', '').lower() in ('1', 'true', 'yes')
        handle_error(e, verbose=verbose)
        sys.exit(1)


if __name__ == '__main__':
    main()
