"""Graph commands for topicgraph CLI: init, add, ingest, list, show, delete, clear, stats, export."""
import json
from pathlib import Path
from typing import Optional

import click

from ..config import write_default_config, load_config
from ..embeddings import create_embedder
from ..errors import TopicGraphError
from ..extraction import create_extractor
from ..pipeline import SessionPipeline
from ..storage import create_store
from .common import (
    VERBOSITY_NORMAL,
    echo_normal,
    echo_quiet,
    echo_verbose,
    fail,
    get_config,
    open_graph,
)


@click.group()
def graph_group():
    """Knowledge graph commands."""
    pass


@graph_group.command("init")
@click.pass_context
def init(ctx) -> None:
    """Create the data directory, default config.yaml and an empty graph."""
    verbosity = ctx.obj.get('verbosity', VERBOSITY_NORMAL)
    config = load_config(ctx.obj.get('data_dir'))

    config_path = write_default_config(config.base_path)
    config = load_config(config.base_path)

    with create_store(config) as store:
        if store.load().version == 0:
            store.save(store.load())

    echo_normal(click.style("✓ topicgraph initialized", fg="green", bold=True), verbosity)
    echo_normal(f"  Config: {click.style(str(config_path), fg='cyan')}", verbosity)
    echo_verbose(f"  Store: {config.storage_backend} ({config.resolved_storage_path})", verbosity)


@graph_group.command("add")
@click.argument('label')
@click.option('--embedding-file', '-e', required=True, type=click.Path(exists=True, dir_okay=False),
              help='JSON file holding the embedding as a list of floats')
@click.option('--session', 'session_id', required=True, help='Originating session id')
@click.option('--messages', 'message_count', default=1, type=click.IntRange(min=1),
              help='Number of messages in the session')
@click.pass_context
def add(ctx, label: str, embedding_file: str, session_id: str, message_count: int) -> None:
    """Add a node from a precomputed embedding.

    Examples:
        topicgraph add "Logarithms" -e logs.json --session 7f3a...
    """
    verbosity = ctx.obj.get('verbosity', VERBOSITY_NORMAL)
    config = get_config(ctx)

    try:
        embedding = json.loads(Path(embedding_file).read_text())
    except ValueError as e:
        fail(f"Invalid embedding file: {e}", verbosity)
    if not isinstance(embedding, list):
        fail("Embedding file must contain a JSON list of numbers", verbosity)

    store, mutator, _ = open_graph(config)
    try:
        node, links = mutator.add_node(label, embedding, session_id, message_count=message_count)
    except (TopicGraphError, ValueError) as e:
        fail(f"Failed to add node: {e}", verbosity)
    finally:
        store.close()

    echo_normal(click.style("✓ Node added", fg="green", bold=True), verbosity)
    echo_quiet(node.id, verbosity)
    echo_normal(f"  Links: {len(links)}", verbosity)


@graph_group.command("ingest")
@click.argument('transcript', type=click.Path(exists=True, dir_okay=False))
@click.option('--session', 'session_id', required=True, help='Session id for the transcript')
@click.pass_context
def ingest(ctx, transcript: str, session_id: str) -> None:
    """Run extraction and embedding on a transcript and add the node.

    TRANSCRIPT is a JSON list of {"role": ..., "content": ...} objects.
    """
    verbosity = ctx.obj.get('verbosity', VERBOSITY_NORMAL)
    config = get_config(ctx)

    try:
        turns = json.loads(Path(transcript).read_text())
    except ValueError as e:
        fail(f"Invalid transcript file: {e}", verbosity)
    if not isinstance(turns, list):
        fail("Transcript must be a JSON list of turns", verbosity)

    store, mutator, _ = open_graph(config)
    try:
        pipeline = SessionPipeline(
            create_extractor(config.extraction),
            create_embedder(config.embedding),
            mutator,
            undetermined_policy=config.undetermined_policy,
        )
        result = pipeline.ingest(turns, session_id)
    except (TopicGraphError, ValueError) as e:
        fail(f"Ingest failed: {e}", verbosity)
    finally:
        store.close()

    if result.skipped:
        echo_normal(click.style(f"Skipped: {result.reason} ({result.label})", fg="yellow"), verbosity)
        return
    echo_normal(click.style(f"✓ {result.label}", fg="green", bold=True), verbosity)
    echo_quiet(result.node.id, verbosity)
    echo_normal(f"  Links: {len(result.links)}", verbosity)


@graph_group.command("list")
@click.option('--json-output', is_flag=True, help='Output as JSON')
@click.pass_context
def list_nodes(ctx, json_output: bool) -> None:
    """List all nodes."""
    verbosity = ctx.obj.get('verbosity', VERBOSITY_NORMAL)
    store, _, query = open_graph(get_config(ctx))
    try:
        nodes = query.list_all()
    finally:
        store.close()

    if json_output:
        click.echo(json.dumps([
            {
                "id": n.id,
                "label": n.label,
                "session_id": n.session_id,
                "message_count": n.message_count,
                "created_at": n.created_at.isoformat(),
            }
            for n in nodes
        ], indent=2))
        return

    if not nodes:
        echo_normal("Graph is empty", verbosity)
        return
    for n in nodes:
        echo_quiet(f"{click.style(n.id, fg='cyan')}  {n.label}", verbosity)


@graph_group.command("show")
@click.argument('node_id')
@click.pass_context
def show(ctx, node_id: str) -> None:
    """Show a node and its linked topics."""
    verbosity = ctx.obj.get('verbosity', VERBOSITY_NORMAL)
    store, _, query = open_graph(get_config(ctx))
    try:
        node = query.get_by_id(node_id)
        neighbors = query.neighbors(node_id) if node else []
    finally:
        store.close()

    if node is None:
        fail(f"Node not found: {node_id}", verbosity)

    echo_quiet(click.style(node.label, fg="cyan", bold=True), verbosity)
    echo_normal(f"  ID: {node.id}", verbosity)
    echo_normal(f"  Session: {node.session_id}", verbosity)
    echo_normal(f"  Messages: {node.message_count}", verbosity)
    echo_normal(f"  Created: {node.created_at.isoformat()}", verbosity)
    echo_verbose(f"  Dimension: {node.dimension}", verbosity)
    if neighbors:
        echo_normal("  Related:", verbosity)
        for other, sim in neighbors:
            echo_normal(f"    {sim:.3f}  {other.label}", verbosity)


@graph_group.command("delete")
@click.argument('node_id')
@click.pass_context
def delete(ctx, node_id: str) -> None:
    """Delete a node and its links."""
    verbosity = ctx.obj.get('verbosity', VERBOSITY_NORMAL)
    store, mutator, _ = open_graph(get_config(ctx))
    try:
        removed = mutator.delete_node(node_id)
    except TopicGraphError as e:
        fail(f"Failed to delete node: {e}", verbosity)
    finally:
        store.close()

    if removed:
        echo_normal(click.style(f"✓ Deleted {node_id}", fg="green"), verbosity)
    else:
        echo_normal(click.style(f"Node not found: {node_id}", fg="yellow"), verbosity)


@graph_group.command("clear")
@click.option('--yes', is_flag=True, help='Skip confirmation')
@click.pass_context
def clear(ctx, yes: bool) -> None:
    """Delete every node and link."""
    verbosity = ctx.obj.get('verbosity', VERBOSITY_NORMAL)
    config = get_config(ctx)
    if not yes and not click.confirm("Clear the whole graph?"):
        echo_normal("Aborted", verbosity)
        return

    store, mutator, _ = open_graph(config)
    try:
        mutator.clear()
    except TopicGraphError as e:
        fail(f"Failed to clear graph: {e}", verbosity)
    finally:
        store.close()
    echo_normal(click.style("✓ Graph cleared", fg="green"), verbosity)


@graph_group.command("stats")
@click.pass_context
def stats(ctx) -> None:
    """Show node and link counts."""
    verbosity = ctx.obj.get('verbosity', VERBOSITY_NORMAL)
    store, _, query = open_graph(get_config(ctx))
    try:
        summary = query.stats()
    finally:
        store.close()

    echo_normal(click.style("Graph Statistics", fg="cyan", bold=True), verbosity)
    for key, value in summary.items():
        echo_quiet(f"  {key}: {value}", verbosity)


@graph_group.command("export")
@click.option('--output', '-o', type=click.Path(dir_okay=False), default=None,
              help='Write to a file instead of stdout')
@click.pass_context
def export(ctx, output: Optional[str]) -> None:
    """Export nodes and links (without embeddings) as JSON."""
    verbosity = ctx.obj.get('verbosity', VERBOSITY_NORMAL)
    store, _, query = open_graph(get_config(ctx))
    try:
        data = json.dumps(query.to_display_data(), indent=2)
    finally:
        store.close()

    if output:
        Path(output).write_text(data)
        echo_normal(click.style(f"✓ Exported to {output}", fg="green"), verbosity)
    else:
        click.echo(data)
