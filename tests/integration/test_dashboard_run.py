"""End-to-end tests for orchestrated runs and the command-line interface."""

import json

import pandas as pd
import pytest
import yaml
from click.testing import CliRunner

from routestats.cli import cli
from routestats.orchestration import DashboardOrchestrator
from routestats.utils.config_validator import ConfigurationError

ARRIVALS = [
    {
        "createdAt": "2024-03-01T10:00:00Z",
        "instances": [
            {
                "instance": "web.1",
                "routers": [
                    {"url": "GET /", "totalResponseTime": 650, "200": 3},
                    {"url": "POST /login", "totalResponseTime": 300, "200": 1, "401": 2},
                ],
                "cloudApi": [{"url": "Query", "totalResponseTime": 40, "200": 4}],
            },
            {
                "instance": "web.2",
                "routers": [{"url": "GET /", "totalResponseTime": 100, "200": 1, "502": 1}],
                "cloudApi": [],
            },
        ],
    },
    {
        "createdAt": "2024-03-01T10:05:00Z",
        "instances": [
            {
                "instance": "web.1",
                "routers": [{"url": "GET /", "totalResponseTime": 90, "200": 3}],
                "cloudApi": [],
            },
        ],
    },
]


@pytest.fixture
def bulk_file(tmp_path):
    path = tmp_path / "lastDayStatistics.json"
    path.write_text(json.dumps(ARRIVALS))
    return path


@pytest.fixture
def stream_file(tmp_path):
    lines = [
        {"type": "message", "data": {"instance": "web.1", "routers": [{"url": "GET /", "totalResponseTime": 30, "200": 3}], "cloudApi": []}},
        {"type": "error", "data": "connection reset", "delay_s": 1},
        {"type": "message", "data": json.dumps({"instance": "web.2", "routers": [], "cloudApi": []})},
        {"type": "message", "data": "{broken", "delay_s": 1},
        {"type": "message", "data": {"instance": "web.2", "routers": [{"url": "GET /", "totalResponseTime": 20, "404": 1}], "cloudApi": []}},
    ]
    path = tmp_path / "realtime.jsonl"
    path.write_text("\n".join(json.dumps(line) for line in lines) + "\n\nnot json\n")
    return path


def make_config(tmp_path, **source):
    return {
        "source": source,
        "output": {
            "summary_json_path": str(tmp_path / "results" / "summary.json"),
            "entries_csv_path": str(tmp_path / "results" / "entries.csv"),
            "view_json_path": str(tmp_path / "results" / "view.json"),
        },
    }


class TestDashboardOrchestrator:
    """Test configured runs end to end."""

    def test_bulk_run(self, tmp_path, bulk_file):
        config = make_config(tmp_path, mode="bulk", bulk_path=str(bulk_file))

        summary = DashboardOrchestrator(config).run()

        assert summary["requests"]["total"] == 11
        assert summary["top"]["routes"][0] == {"name": "GET /", "count": 8}
        assert summary["rows"]["routers"] == 2

        saved = json.loads((tmp_path / "results" / "summary.json").read_text())
        assert saved["requests"]["total"] == 11

        df = pd.read_csv(tmp_path / "results" / "entries.csv")
        assert set(df["url"]) == {"GET /", "POST /login", "Query"}
        merged_row = df[(df["stream"] == "routers") & (df["url"] == "GET /")].iloc[0]
        assert merged_row["requests"] == 5
        assert merged_row["merged_instances"] == "web.2"

        view = json.loads((tmp_path / "results" / "view.json").read_text())
        assert view["routers"][0]["mergedInstance"] == ["web.2"]
        assert view["topLists"]["area"]["instances"][0]["name"] == "web.1"

    def test_bulk_run_with_filters(self, tmp_path, bulk_file):
        config = make_config(tmp_path, mode="bulk", bulk_path=str(bulk_file))
        config["filters"] = {"by_route": "GET /", "by_status_code": 200}
        config["display"] = {"merge_instances": False}

        summary = DashboardOrchestrator(config).run()

        assert summary["rows"]["routers"] == 3
        assert summary["requests"]["in_view"] == 7
        assert summary["requests"]["total"] == 11
        assert summary["filters"]["by_route"] == "GET /"

    def test_realtime_run(self, tmp_path, stream_file):
        config = make_config(tmp_path, mode="realtime", stream_path=str(stream_file))
        orchestrator = DashboardOrchestrator(config)

        summary = orchestrator.run()

        assert summary["requests"]["total"] == 4
        assert summary["views_built"] == 3
        assert orchestrator.stream_env.now() == 2
        assert [r.instance for r in orchestrator.session.routers] == ["web.1", "web.2"]

    def test_invalid_config_rejected(self, tmp_path):
        with pytest.raises(ConfigurationError):
            DashboardOrchestrator({"source": {"mode": "bulk"}})

    def test_missing_bulk_file(self, tmp_path):
        config = make_config(tmp_path, mode="bulk", bulk_path=str(tmp_path / "missing.json"))
        with pytest.raises(FileNotFoundError):
            DashboardOrchestrator(config).run()

    def test_from_yaml_file(self, tmp_path, bulk_file):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump(make_config(tmp_path, mode="bulk", bulk_path=str(bulk_file))))

        orchestrator = DashboardOrchestrator.from_yaml_file(str(path))

        assert orchestrator.session.chart_limits["pie"] == 15


class TestCli:
    """Test the click command-line interface."""

    def test_summarize(self, bulk_file):
        result = CliRunner().invoke(cli, ["summarize", str(bulk_file), "--limit", "2"])

        assert result.exit_code == 0, result.output
        assert "Top routes" in result.output
        assert "GET /" in result.output
        assert "web.1+web.2" in result.output

    def test_summarize_json(self, bulk_file):
        result = CliRunner().invoke(cli, ["summarize", str(bulk_file), "--json", "--instance", "web.2"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["routers"][0]["urls"][0]["url"] == "GET /"
        assert data["routers"][0]["urls"][0]["server_error"] == 1

    def test_run(self, tmp_path, bulk_file):
        path = tmp_path / "config.json"
        path.write_text(json.dumps(make_config(tmp_path, mode="bulk", bulk_path=str(bulk_file))))

        result = CliRunner().invoke(cli, ["run", str(path), "--format", "json"])

        assert result.exit_code == 0, result.output
        assert "Total requests: 11" in result.output

    def test_run_reports_errors(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"source": {"mode": "nope"}}))

        result = CliRunner().invoke(cli, ["run", str(path), "--format", "json"])

        assert result.exit_code == 1

    def test_generate_then_validate(self, tmp_path):
        path = tmp_path / "routestats.yaml"
        runner = CliRunner()

        generated = runner.invoke(cli, ["generate-config", "--output", str(path)])
        validated = runner.invoke(cli, ["validate", str(path)])

        assert generated.exit_code == 0
        assert validated.exit_code == 0, validated.output
        assert "Configuration is valid" in validated.output
        assert "Status bands:" in validated.output
        assert "200-299  success" in validated.output
        assert "500-599  server_error" in validated.output

    def test_validate_prints_configured_bands(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({
            "source": {"mode": "bulk", "bulk_path": "stats.json"},
            "classifier": {"bands": [
                {"low": 404, "high": 404, "name": "not_found"},
                {"low": 200, "high": 299, "name": "success"},
            ]},
        }))

        result = CliRunner().invoke(cli, ["validate", str(path)])

        assert result.exit_code == 0, result.output
        assert "404-404  not_found" in result.output
        assert "server_error" not in result.output

    def test_validate_reports_errors(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"source": {"mode": "nope"}}))

        result = CliRunner().invoke(cli, ["validate", str(path)])

        assert result.exit_code == 1
        assert "Status bands:" not in result.output
