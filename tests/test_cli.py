import json
from pathlib import Path

from click.testing import CliRunner

from healthsutra.cli import cli


def test_version() -> None:
    result = CliRunner().invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert "hsutra" in result.output


def test_graph_summary_json(graph_file: Path) -> None:
    result = CliRunner().invoke(cli, ["graph", "summary", str(graph_file), "--json"])

    assert result.exit_code == 0
    assert json.loads(result.output)["node_count"] == 4


def test_edit_then_export(tmp_path: Path) -> None:
    runner = CliRunner()
    path = tmp_path / "g.json"

    assert runner.invoke(cli, ["edit", "add-node", str(path), "--label", "Patient", "--id", "a"]).exit_code == 0
    assert runner.invoke(cli, ["edit", "add-node", str(path), "--label", "Doctor", "--id", "b", "--prop", "ward"]).exit_code == 0
    result = runner.invoke(cli, ["edit", "add-link", str(path), "--source", "a", "--target", "b", "--label", "sees"])
    assert result.exit_code == 0

    out = tmp_path / "schema.json"
    result = runner.invoke(cli, ["graph", "export", str(path), "--codec", "schema", "--out", str(out)])
    assert result.exit_code == 0
    assert json.loads(out.read_text(encoding="utf-8")) == {
        "entity_types": {"Patient": [], "Doctor": ["ward"]},
        "predicates": {"sees": {"subject_type": "Patient", "object_type": "Doctor", "attributes": []}},
    }


def test_edit_clear_requires_confirmation(graph_file: Path) -> None:
    result = CliRunner().invoke(cli, ["edit", "clear", str(graph_file)], input="n\n")

    assert result.exit_code != 0
    assert json.loads(graph_file.read_text(encoding="utf-8"))["nodes"]


def test_bad_config_is_reported(tmp_path: Path) -> None:
    cfg = tmp_path / "bad.yml"
    cfg.write_text("timeout_s: soon\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["--config", str(cfg), "graph", "summary", str(cfg)])

    assert result.exit_code == 1
    assert "timeout_s must be a number" in result.output


def test_remote_ping_reports_connection_error() -> None:
    result = CliRunner().invoke(cli, ["--api-url", "http://127.0.0.1:9", "--timeout", "1", "remote", "ping"])

    assert result.exit_code == 1
