"""CLI main entry point for anchor-audit."""

import logging
import sys

import click

from anchor_audit.version import __version__


def _configure_logging(verbose: bool, quiet: bool):
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(levelname)s %(name)s: %(message)s',
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Show Info diagnostics and debug logging')
@click.option('--quiet', '-q', is_flag=True, help='Only print diagnostics')
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool):
    """Anchor Audit - Static analyzer for Anchor (Solana) programs."""
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    ctx.obj['quiet'] = quiet
    _configure_logging(verbose, quiet)


# Register commands
from anchor_audit.cli.commands.scan import scan
from anchor_audit.cli.commands.init import init

cli.add_command(scan)
cli.add_command(init)


if __name__ == '__main__':
    cli()
