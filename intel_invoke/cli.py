"""Entry point for intel-invoke.

Installed under the name of another command (a symlink or copy placed ahead
of the real binary on PATH), the shim resolves the real binary, runs it with
the caller's stdio, reports the invocation and exits with the child's code.

Invoked under its own name it exposes a small click CLI instead.
"""
from __future__ import annotations

import logging
import os
import sys

import click

from intel_invoke import __version__
from intel_invoke.config import ShimConfig, load_config
from intel_invoke.errors import LaunchError, ShimError
from intel_invoke.launcher import launch
from intel_invoke.models import InvocationRecord, TransportKind
from intel_invoke.resolver import resolve
from intel_invoke.telemetry.report import report

logger = logging.getLogger(__name__)

PROG_NAME = "intel-invoke"


def main(argv: list[str] | None = None) -> None:
    """Console script entry point. Never returns."""
    if argv is None:
        argv = sys.argv
    invoked_path = argv[0]
    if _command_name(invoked_path) == PROG_NAME:
        cli.main(args=argv[1:], prog_name=PROG_NAME)
        return

    # Wrapped arguments are taken straight from argv. click's parser would
    # consume a literal "--" the wrapped command may rely on.
    config = load_config()
    configure_logging(config)
    sys.exit(run(invoked_path, argv[1:], config, os.path.realpath(invoked_path)))


def run(invoked_path: str, args: list[str], config: ShimConfig,
        current_image: str) -> int:
    """Resolve, launch, report. Returns the exit code for the shim process."""
    try:
        cwd = _working_directory()
        resolved = resolve(invoked_path, current_image, config.search_path)
        outcome = launch(resolved.real_path, args, cwd,
                         argv0=os.path.basename(invoked_path))
    except ShimError as e:
        click.echo(f"{PROG_NAME}: {e}", err=True)
        return e.exit_code

    record = InvocationRecord(
        executable_path=resolved.real_path,
        arguments=list(args),
        duration_ms=outcome.duration_ms,
        exit_code=outcome.exit_code,
        working_directory=cwd,
    )
    report(record, config)
    return outcome.shim_exit_code


def configure_logging(config: ShimConfig) -> None:
    """Diagnostics go to stdout, and only when debug mode is on."""
    if not config.debug:
        logging.getLogger("intel_invoke").addHandler(logging.NullHandler())
        return
    logging.basicConfig(
        level=logging.DEBUG,
        stream=sys.stdout,
        format="%(name)s: %(message)s",
    )
    for problem in config.problems:
        logger.debug(problem)


def _working_directory() -> str:
    try:
        return os.getcwd()
    except OSError as e:
        raise LaunchError(f"cannot determine working directory: {e}") from e


def _command_name(path: str) -> str:
    name = os.path.basename(path)
    root, ext = os.path.splitext(name)
    if ext.lower() == ".exe":
        return root
    return name


@click.group()
@click.version_option(version=__version__, prog_name=PROG_NAME)
def cli() -> None:
    """intel-invoke - transparent shim that reports command invocations.

    Link or copy this program under the name of a command, in a directory
    that comes before the real command on PATH.
    """
    pass


@cli.command("resolve")
@click.argument("name")
def resolve_cmd(name: str) -> None:
    """Show which binary a shim installed as NAME would run."""
    config = load_config()
    configure_logging(config)
    shim_image = os.path.realpath(sys.argv[0])
    try:
        resolved = resolve(name, shim_image, config.search_path)
    except ShimError as e:
        click.echo(f"{PROG_NAME}: {e}", err=True)
        sys.exit(e.exit_code)
    click.echo(resolved.real_path)
    click.echo(f"  skipped: {resolved.search_dir_excluded}")


@cli.command("config")
def config_cmd() -> None:
    """Print the telemetry settings read from the environment."""
    config = load_config()
    click.echo(f"transport: {config.transport.value}")
    if config.transport is TransportKind.DATAGRAM:
        click.echo(f"socket:    {config.socket_path}")
    else:
        click.echo(f"address:   {config.host}:{config.port}")
    click.echo(f"timeout:   {int(config.timeout * 1000)}ms")
    click.echo(f"debug:     {'on' if config.debug else 'off'}")
    for problem in config.problems:
        click.echo(f"warning:   {problem}", err=True)

