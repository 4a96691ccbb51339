"""Tests for topicgraph CLI

Uses Click's test runner for command testing.
"""
import json
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from topicgraph.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def data_dir(tmp_path, runner):
    """Initialized data directory using the default json backend."""
    path = tmp_path / "data"
    result = runner.invoke(cli, ["--data-dir", str(path), "init"])
    assert result.exit_code == 0, result.output
    return path


def write_embedding(tmp_path, name, vector):
    path = tmp_path / f"{name}.json"
    path.write_text(json.dumps(vector))
    return str(path)


def add_node(runner, data_dir, tmp_path, label, vector, session):
    result = runner.invoke(cli, [
        "--data-dir", str(data_dir), "-q", "add", label,
        "-e", write_embedding(tmp_path, session, vector),
        "--session", session,
    ])
    assert result.exit_code == 0, result.output
    return result.stdout.strip().splitlines()[-1]


def list_nodes(runner, data_dir):
    result = runner.invoke(cli, ["--data-dir", str(data_dir), "list", "--json-output"])
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


class TestCLIInit:
    """Tests for 'topicgraph init' command."""

    def test_init_creates_config_and_graph(self, runner, tmp_path):
        base_path = tmp_path / "data"
        result = runner.invoke(cli, ["--data-dir", str(base_path), "init"])

        assert result.exit_code == 0
        assert "initialized" in result.output
        config = yaml.safe_load((base_path / "config.yaml").read_text())
        assert config["graph"]["similarity_threshold"] == 0.8
        assert (base_path / "graph.json").exists()

    def test_init_with_env_var(self, runner, tmp_path):
        base_path = tmp_path / "env-data"
        with patch.dict('os.environ', {"TOPICGRAPH_BASE_PATH": str(base_path)}):
            result = runner.invoke(cli, ["init"])
        assert result.exit_code == 0
        assert (base_path / "config.yaml").exists()

    def test_init_is_idempotent(self, runner, data_dir, tmp_path):
        add_node(runner, data_dir, tmp_path, "Logarithms", [1.0, 0.0], "s1")
        result = runner.invoke(cli, ["--data-dir", str(data_dir), "init"])
        assert result.exit_code == 0
        assert len(list_nodes(runner, data_dir)) == 1

    def test_commands_require_init(self, runner, tmp_path):
        result = runner.invoke(cli, ["--data-dir", str(tmp_path / "missing"), "list"])
        assert result.exit_code == 1
        assert "not initialized" in result.output


class TestCLIGlobalOptions:

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_verbose_and_quiet_conflict(self, runner, tmp_path):
        result = runner.invoke(cli, ["--data-dir", str(tmp_path), "-v", "-q", "list"])
        assert result.exit_code != 0
        assert "mutually exclusive" in result.output

    def test_help_lists_commands(self, runner):
        result = runner.invoke(cli, ["--help"])
        for command in ("init", "add", "ingest", "list", "show", "delete", "clear", "stats", "export", "config"):
            assert command in result.output


class TestCLIGraphCommands:

    def test_add_and_link(self, runner, data_dir, tmp_path):
        first = add_node(runner, data_dir, tmp_path, "Logarithms", [1.0, 0.0], "s1")
        result = runner.invoke(cli, [
            "--data-dir", str(data_dir), "add", "Logarithmic Equations",
            "-e", write_embedding(tmp_path, "s2", [0.95, 0.1]),
            "--session", "s2", "--messages", "7",
        ])

        assert result.exit_code == 0
        assert "Links: 1" in result.output
        nodes = list_nodes(runner, data_dir)
        assert [n["label"] for n in nodes] == ["Logarithms", "Logarithmic Equations"]
        assert nodes[0]["id"] == first
        assert nodes[1]["message_count"] == 7

    def test_add_dimension_mismatch(self, runner, data_dir, tmp_path):
        add_node(runner, data_dir, tmp_path, "Logarithms", [1.0, 0.0], "s1")
        result = runner.invoke(cli, [
            "--data-dir", str(data_dir), "add", "Mitosis",
            "-e", write_embedding(tmp_path, "s3", [0.0, 0.0, 1.0]),
            "--session", "s3",
        ])
        assert result.exit_code == 1
        assert "Failed to add node" in result.output
        assert len(list_nodes(runner, data_dir)) == 1

    def test_add_invalid_embedding_file(self, runner, data_dir, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text('{"not": "a list"}')
        result = runner.invoke(cli, [
            "--data-dir", str(data_dir), "add", "X", "-e", str(bad), "--session", "s",
        ])
        assert result.exit_code == 1
        assert "JSON list" in result.output

    def test_list_empty(self, runner, data_dir):
        result = runner.invoke(cli, ["--data-dir", str(data_dir), "list"])
        assert result.exit_code == 0
        assert "Graph is empty" in result.output

    def test_show_with_related(self, runner, data_dir, tmp_path):
        first = add_node(runner, data_dir, tmp_path, "Logarithms", [1.0, 0.0], "s1")
        add_node(runner, data_dir, tmp_path, "Logarithmic Equations", [1.0, 0.05], "s2")

        result = runner.invoke(cli, ["--data-dir", str(data_dir), "show", first])

        assert result.exit_code == 0
        assert "Logarithms" in result.output
        assert "Related:" in result.output
        assert "Logarithmic Equations" in result.output

    def test_show_missing(self, runner, data_dir):
        result = runner.invoke(cli, ["--data-dir", str(data_dir), "show", "nope"])
        assert result.exit_code == 1
        assert "Node not found" in result.output

    def test_delete(self, runner, data_dir, tmp_path):
        first = add_node(runner, data_dir, tmp_path, "Logarithms", [1.0, 0.0], "s1")
        add_node(runner, data_dir, tmp_path, "Logarithmic Equations", [1.0, 0.05], "s2")

        result = runner.invoke(cli, ["--data-dir", str(data_dir), "delete", first])

        assert result.exit_code == 0
        assert f"Deleted {first}" in result.output
        assert [n["label"] for n in list_nodes(runner, data_dir)] == ["Logarithmic Equations"]
        graph = json.loads((data_dir / "graph.json").read_text())
        assert graph["links"] == []

    def test_delete_missing_is_not_an_error(self, runner, data_dir):
        result = runner.invoke(cli, ["--data-dir", str(data_dir), "delete", "nope"])
        assert result.exit_code == 0
        assert "Node not found" in result.output

    def test_clear_with_confirmation(self, runner, data_dir, tmp_path):
        add_node(runner, data_dir, tmp_path, "Logarithms", [1.0, 0.0], "s1")

        aborted = runner.invoke(cli, ["--data-dir", str(data_dir), "clear"], input="n\n")
        assert "Aborted" in aborted.output
        assert len(list_nodes(runner, data_dir)) == 1

        result = runner.invoke(cli, ["--data-dir", str(data_dir), "clear"], input="y\n")
        assert result.exit_code == 0
        assert list_nodes(runner, data_dir) == []

    def test_clear_yes(self, runner, data_dir, tmp_path):
        add_node(runner, data_dir, tmp_path, "Logarithms", [1.0, 0.0], "s1")
        result = runner.invoke(cli, ["--data-dir", str(data_dir), "clear", "--yes"])
        assert result.exit_code == 0
        assert list_nodes(runner, data_dir) == []

    def test_stats(self, runner, data_dir, tmp_path):
        add_node(runner, data_dir, tmp_path, "Logarithms", [1.0, 0.0], "s1")
        add_node(runner, data_dir, tmp_path, "Logarithmic Equations", [1.0, 0.05], "s2")

        result = runner.invoke(cli, ["--data-dir", str(data_dir), "stats"])

        assert result.exit_code == 0
        assert "nodes: 2" in result.output
        assert "links: 1" in result.output

    def test_export_to_file(self, runner, data_dir, tmp_path):
        add_node(runner, data_dir, tmp_path, "Logarithms", [1.0, 0.0], "s1")
        out = tmp_path / "export.json"

        result = runner.invoke(cli, ["--data-dir", str(data_dir), "export", "-o", str(out)])

        assert result.exit_code == 0
        data = json.loads(out.read_text())
        assert data["nodes"][0]["label"] == "Logarithms"
        assert "embedding" not in data["nodes"][0]

    def test_sqlite_backend(self, runner, data_dir, tmp_path):
        runner.invoke(cli, ["--data-dir", str(data_dir), "config", "set", "storage.backend", "sqlite"])
        runner.invoke(cli, ["--data-dir", str(data_dir), "config", "set", "storage.path", "graph.sqlite"])

        add_node(runner, data_dir, tmp_path, "Logarithms", [1.0, 0.0], "s1")

        assert (data_dir / "graph.sqlite").exists()
        assert [n["label"] for n in list_nodes(runner, data_dir)] == ["Logarithms"]


class TestCLIIngest:

    @pytest.fixture
    def transcript(self, tmp_path):
        path = tmp_path / "chat.json"
        path.write_text(json.dumps([
            {"role": "user", "content": "What is log base 2 of 8?"},
            {"role": "assistant", "content": "3"},
        ]))
        return str(path)

    def test_ingest_creates_node(self, runner, data_dir, transcript, fake_extractor, fake_embedder):
        extractor = fake_extractor(labels={"What is log base 2 of 8?": "Logarithms"})
        with patch("topicgraph.cli.graph.create_extractor", return_value=extractor), \
                patch("topicgraph.cli.graph.create_embedder", return_value=fake_embedder()):
            result = runner.invoke(cli, ["--data-dir", str(data_dir), "ingest", transcript, "--session", "s1"])

        assert result.exit_code == 0, result.output
        assert "Logarithms" in result.output
        nodes = list_nodes(runner, data_dir)
        assert nodes[0]["session_id"] == "s1"
        assert nodes[0]["message_count"] == 2

    def test_ingest_undetermined_is_skipped(self, runner, data_dir, transcript,
                                            fake_extractor, fake_embedder):
        with patch("topicgraph.cli.graph.create_extractor", return_value=fake_extractor()), \
                patch("topicgraph.cli.graph.create_embedder", return_value=fake_embedder()):
            result = runner.invoke(cli, ["--data-dir", str(data_dir), "ingest", transcript, "--session", "s1"])

        assert result.exit_code == 0
        assert "Skipped" in result.output
        assert list_nodes(runner, data_dir) == []

    def test_ingest_failure(self, runner, data_dir, transcript, fake_extractor, fake_embedder):
        from topicgraph.errors import ExtractionFailed

        failing = fake_extractor(error=ExtractionFailed("connection refused"))
        with patch("topicgraph.cli.graph.create_extractor", return_value=failing), \
                patch("topicgraph.cli.graph.create_embedder", return_value=fake_embedder()):
            result = runner.invoke(cli, ["--data-dir", str(data_dir), "ingest", transcript, "--session", "s1"])

        assert result.exit_code == 1
        assert "Ingest failed" in result.output
        assert list_nodes(runner, data_dir) == []


class TestCLIConfig:

    def test_set_and_get(self, runner, data_dir):
        result = runner.invoke(cli, ["--data-dir", str(data_dir), "config", "set",
                                     "graph.similarity_threshold", "0.75"])
        assert result.exit_code == 0

        result = runner.invoke(cli, ["--data-dir", str(data_dir), "config", "get",
                                     "graph.similarity_threshold"])
        assert result.exit_code == 0
        assert result.output.strip() == "0.75"

        config = yaml.safe_load((data_dir / "config.yaml").read_text())
        assert config["graph"]["similarity_threshold"] == 0.75

    def test_get_missing_key(self, runner, data_dir):
        result = runner.invoke(cli, ["--data-dir", str(data_dir), "config", "get", "graph.nope"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_show(self, runner, data_dir):
        result = runner.invoke(cli, ["--data-dir", str(data_dir), "config", "show"])
        assert result.exit_code == 0
        assert "similarity_threshold" in result.output

    def test_config_requires_init(self, runner, tmp_path):
        result = runner.invoke(cli, ["--data-dir", str(tmp_path / "nope"), "config", "show"])
        assert result.exit_code == 1

    def test_threshold_applies_to_linking(self, runner, data_dir, tmp_path):
        runner.invoke(cli, ["--data-dir", str(data_dir), "config", "set",
                            "graph.similarity_threshold", "0.99"])
        add_node(runner, data_dir, tmp_path, "Logarithms", [1.0, 0.0], "s1")
        add_node(runner, data_dir, tmp_path, "Logarithmic Equations", [1.0, 0.3], "s2")

        result = runner.invoke(cli, ["--data-dir", str(data_dir), "stats"])
        assert "links: 0" in result.output


class TestCLIEnvironment:

    def test_invalid_threshold_env_does_not_crash(self, runner, data_dir):
        with patch.dict('os.environ', {"TOPICGRAPH_THRESHOLD": "abc"}):
            result = runner.invoke(cli, ["--data-dir", str(data_dir), "stats"])
        assert result.exit_code == 0
        assert "nodes: 0" in result.output
