"""
Configuration loading for topicgraph.

Settings live in `config.yaml` under the base directory. A missing or
unparseable file yields defaults so the graph stays usable.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

DEFAULT_BASE_PATH = Path.home() / ".topicgraph"
CONFIG_FILENAME = "config.yaml"

DEFAULT_SIMILARITY_THRESHOLD = 0.8
UNDETERMINED_POLICIES = ("skip", "create")

DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    "graph": {
        "similarity_threshold": DEFAULT_SIMILARITY_THRESHOLD,
        "undetermined_policy": "skip",
        "dimension": None,
        "max_retries": 3,
    },
    "storage": {
        "backend": "json",  # json | sqlite | memory
        "path": "graph.json",
    },
    "embedding": {
        "provider": "ollama",  # ollama | openai
        "model": None,
        "base_url": None,
    },
    "extraction": {
        "provider": "ollama",  # ollama | openai | anthropic
        "model": None,
        "base_url": None,
    },
}


@dataclass
class GraphConfig:
    """Resolved configuration for the graph pipeline"""
    base_path: Path = DEFAULT_BASE_PATH
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    undetermined_policy: str = "skip"
    dimension: Optional[int] = None
    max_retries: int = 3
    storage_backend: str = "json"
    storage_path: str = "graph.json"
    embedding: Dict[str, Any] = field(default_factory=dict)
    extraction: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not -1.0 <= self.similarity_threshold <= 1.0:
            raise ValueError(
                f"similarity_threshold must be between -1.0 and 1.0, got {self.similarity_threshold}"
            )
        if self.undetermined_policy not in UNDETERMINED_POLICIES:
            raise ValueError(
                f"Invalid undetermined_policy: {self.undetermined_policy}. "
                f"Must be one of: {UNDETERMINED_POLICIES}"
            )

    @property
    def resolved_storage_path(self) -> Path:
        path = Path(self.storage_path)
        return path if path.is_absolute() else self.base_path / path


def get_base_path(cli_data_dir: Optional[Union[str, Path]] = None) -> Path:
    """Get the base path for topicgraph data.

    Priority: --data-dir flag > TOPICGRAPH_BASE_PATH env var > default path.
    """
    if cli_data_dir:
        return Path(cli_data_dir)
    env_path = os.getenv("TOPICGRAPH_BASE_PATH")
    if env_path:
        return Path(env_path)
    return DEFAULT_BASE_PATH


def read_config_file(base_path: Union[str, Path]) -> Dict[str, Any]:
    """Read config.yaml as a raw dict; empty dict if missing or invalid."""
    config_path = Path(base_path) / CONFIG_FILENAME
    if not config_path.exists():
        return {}
    try:
        data = yaml.safe_load(config_path.read_text())
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to read {config_path}, using defaults: {e}")
        return {}
    return data if isinstance(data, dict) else {}


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    merged = dict(DEFAULT_CONFIG[name])
    section = raw.get(name)
    if isinstance(section, dict):
        merged.update(section)
    return merged


def load_config(base_path: Optional[Union[str, Path]] = None) -> GraphConfig:
    """
    Load configuration from config.yaml merged over defaults.

    The TOPICGRAPH_THRESHOLD env var overrides graph.similarity_threshold.

    Args:
        base_path: Base directory containing config.yaml

    Returns:
        GraphConfig instance
    """
    base = get_base_path(base_path)
    raw = read_config_file(base)

    graph = _section(raw, "graph")
    storage = _section(raw, "storage")

    threshold = float(graph["similarity_threshold"])
    env_threshold = os.getenv("TOPICGRAPH_THRESHOLD")
    if env_threshold:
        try:
            parsed = float(env_threshold)
        except ValueError:
            parsed = None
        if parsed is not None and -1.0 <= parsed <= 1.0:
            threshold = parsed
        else:
            logger.warning(
                f"Ignoring invalid TOPICGRAPH_THRESHOLD={env_threshold!r}, using {threshold}"
            )

    dimension = graph.get("dimension")

    return GraphConfig(
        base_path=base,
        similarity_threshold=threshold,
        undetermined_policy=str(graph["undetermined_policy"]),
        dimension=int(dimension) if dimension else None,
        max_retries=int(graph["max_retries"]),
        storage_backend=str(storage["backend"]),
        storage_path=str(storage["path"]),
        embedding=_section(raw, "embedding"),
        extraction=_section(raw, "extraction"),
    )


def write_default_config(base_path: Union[str, Path]) -> Path:
    """Write the default config.yaml (does not overwrite an existing one)."""
    base = Path(base_path)
    base.mkdir(parents=True, exist_ok=True)
    config_path = base / CONFIG_FILENAME
    if not config_path.exists():
        config_path.write_text(yaml.dump(DEFAULT_CONFIG, default_flow_style=False, sort_keys=False))
    return config_path
