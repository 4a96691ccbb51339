"""Configuration management commands for topicgraph CLI."""
import click
import yaml

from ..config import CONFIG_FILENAME, get_base_path
from .common import VERBOSITY_NORMAL, echo_normal, echo_quiet, fail


def _parse_value(value: str):
    """Interpret CLI strings as YAML scalars (numbers, booleans, null)."""
    try:
        return yaml.safe_load(value)
    except yaml.YAMLError:
        return value


@click.group()
def config_group():
    """Configuration management commands."""
    pass


def _config_path(ctx):
    config_path = get_base_path(ctx.obj.get('data_dir')) / CONFIG_FILENAME
    if not config_path.exists():
        fail("topicgraph not initialized. Run 'topicgraph init' first.",
             ctx.obj.get('verbosity', VERBOSITY_NORMAL))
    return config_path


@config_group.command('set')
@click.argument('key')
@click.argument('value')
@click.pass_context
def config_set(ctx, key: str, value: str) -> None:
    """Set a configuration value.

    Examples:
        topicgraph config set graph.similarity_threshold 0.75
        topicgraph config set storage.backend sqlite
    """
    verbosity = ctx.obj.get('verbosity', VERBOSITY_NORMAL)
    config_path = _config_path(ctx)

    try:
        config_data = yaml.safe_load(config_path.read_text()) or {}
    except yaml.YAMLError as e:
        fail(f"Failed to parse config: {e}", verbosity)

    # Nested keys, e.g. 'graph.similarity_threshold'
    keys = key.split('.')
    current = config_data
    for k in keys[:-1]:
        if not isinstance(current.get(k), dict):
            current[k] = {}
        current = current[k]
    current[keys[-1]] = _parse_value(value)

    config_path.write_text(yaml.dump(config_data, default_flow_style=False, sort_keys=False))
    echo_normal(click.style(f"✓ Set {key} = {value}", fg="green"), verbosity)


@config_group.command('get')
@click.argument('key')
@click.pass_context
def config_get(ctx, key: str) -> None:
    """Get a configuration value."""
    verbosity = ctx.obj.get('verbosity', VERBOSITY_NORMAL)
    config_path = _config_path(ctx)

    try:
        current = yaml.safe_load(config_path.read_text()) or {}
    except yaml.YAMLError as e:
        fail(f"Failed to parse config: {e}", verbosity)

    for k in key.split('.'):
        if not isinstance(current, dict) or k not in current:
            echo_quiet(click.style(f"Key '{key}' not found", fg="yellow"), verbosity)
            raise SystemExit(1)
        current = current[k]

    echo_quiet(str(current), verbosity)


@config_group.command('show')
@click.pass_context
def config_show(ctx) -> None:
    """Display full configuration."""
    verbosity = ctx.obj.get('verbosity', VERBOSITY_NORMAL)
    config_path = _config_path(ctx)
    echo_normal(click.style("Current configuration:", fg="cyan", bold=True), verbosity)
    echo_quiet(config_path.read_text(), verbosity)
