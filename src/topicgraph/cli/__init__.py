"""topicgraph CLI - build and browse the study-session knowledge graph

Command modules:
- graph.py: init, add, ingest, list, show, delete, clear, stats, export
- config.py: config set, get, show
- common.py: shared utilities
"""
from pathlib import Path

import click

from .. import __version__
from .common import (
    VERBOSITY_NORMAL,
    VERBOSITY_QUIET,
    VERBOSITY_VERBOSE,
    configure_logging,
)
from .config import config_group
from .graph import graph_group


@click.group()
@click.version_option(version=__version__, prog_name="topicgraph")
@click.option('--data-dir', type=click.Path(), default=None, envvar='TOPICGRAPH_BASE_PATH',
              help='Base directory for topicgraph data (default: ~/.topicgraph)')
@click.option('--verbose', '-v', is_flag=True, default=False,
              help='Enable verbose output')
@click.option('--quiet', '-q', is_flag=True, default=False,
              help='Suppress non-essential output')
@click.pass_context
def cli(ctx, data_dir, verbose, quiet):
    """topicgraph - knowledge graph of study sessions

    \b
    Examples:
        topicgraph init
        topicgraph ingest chat.json --session 7f3a...
        topicgraph list
        topicgraph show <node-id>
        topicgraph delete <node-id>
    """
    ctx.ensure_object(dict)

    if verbose and quiet:
        raise click.UsageError("--verbose and --quiet are mutually exclusive")

    if quiet:
        ctx.obj['verbosity'] = VERBOSITY_QUIET
    elif verbose:
        ctx.obj['verbosity'] = VERBOSITY_VERBOSE
    else:
        ctx.obj['verbosity'] = VERBOSITY_NORMAL

    ctx.obj['data_dir'] = Path(data_dir) if data_dir else None
    configure_logging(ctx.obj['verbosity'])


for name, command in graph_group.commands.items():
    cli.add_command(command, name=name)

cli.add_command(config_group, name='config')


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
