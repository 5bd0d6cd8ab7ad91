"""Main CLI entry point for aoe."""

from pathlib import Path

import click

from ..utils.log_setup import configure_logging
from .commands.classify import classify
from .commands.doctor import doctor
from .commands.summarize import summarize


@click.group()
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.option('--log-file', type=click.Path(dir_okay=False, path_type=Path), help='Write logs to this file')
def cli(debug, log_file):
    """aoe - Manage AI coding-agent sessions in tmux and sandboxes"""
    configure_logging(log_file=log_file, debug=debug)


# Register commands
cli.add_command(classify)
cli.add_command(doctor)
cli.add_command(summarize)


if __name__ == '__main__':
    cli()
