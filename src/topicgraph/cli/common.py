"""Shared utilities for topicgraph CLI commands."""
import logging
import sys
from typing import Tuple

import click

from ..config import GraphConfig, load_config
from ..linker import SimilarityLinker
from ..mutator import GraphMutator
from ..query import GraphQuery
from ..storage import GraphStore, create_store

# Verbosity levels
VERBOSITY_QUIET = 0
VERBOSITY_NORMAL = 1
VERBOSITY_VERBOSE = 2

LOG_LEVELS = {
    VERBOSITY_QUIET: logging.ERROR,
    VERBOSITY_NORMAL: logging.WARNING,
    VERBOSITY_VERBOSE: logging.DEBUG,
}


def configure_logging(verbosity: int) -> None:
    logging.basicConfig(
        level=LOG_LEVELS.get(verbosity, logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )


def should_print(verbosity: int, message_level: int) -> bool:
    return verbosity >= message_level


def echo_verbose(message: str, verbosity: int) -> None:
    """Print a message only in verbose mode."""
    if should_print(verbosity, VERBOSITY_VERBOSE):
        click.echo(message)


def echo_normal(message: str, verbosity: int) -> None:
    """Print a message in normal and verbose modes."""
    if should_print(verbosity, VERBOSITY_NORMAL):
        click.echo(message)


def echo_quiet(message: str, verbosity: int) -> None:
    """Print a message that is shown even in quiet mode."""
    click.echo(message)


def fail(message: str, verbosity: int) -> None:
    echo_quiet(click.style(f"Error: {message}", fg="red"), verbosity)
    sys.exit(1)


def get_config(ctx) -> GraphConfig:
    """Load config for the --data-dir in the click context; exit if not initialized."""
    config = load_config(ctx.obj.get('data_dir'))
    if not config.base_path.exists():
        fail("topicgraph not initialized. Run 'topicgraph init' first.", ctx.obj.get('verbosity', 1))
    return config


def open_graph(config: GraphConfig) -> Tuple[GraphStore, GraphMutator, GraphQuery]:
    """Open the configured store and wire a mutator and query over it."""
    store = create_store(config)
    store.open()
    mutator = GraphMutator(
        store,
        linker=SimilarityLinker(config.similarity_threshold),
        dimension=config.dimension,
        max_retries=config.max_retries,
    )
    return store, mutator, GraphQuery(store)
