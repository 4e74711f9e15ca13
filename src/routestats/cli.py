"""Command-line interface for routestats."""

import json
import logging
import sys
from pathlib import Path

import click

from routestats.ingestion import AggregationSession, BulkSource
from routestats.metrics import MetricsReporter, StatusClassifier, format_response_time
from routestats.orchestration import DashboardOrchestrator
from routestats.utils.config_validator import validate_and_fix_config

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@click.group()
@click.version_option(version="0.1.0", prog_name="routestats")
def cli():
    """routestats: Aggregate per-instance request logs into chart-ready metrics."""
    pass


@cli.command()
@click.argument("config_file", type=click.Path(exists=True))
@click.option(
    "--format", "-f", type=click.Choice(["yaml", "json"]), default="yaml",
    help="Configuration file format"
)
@click.option(
    "--log-level", "-l", type=click.Choice(LOG_LEVELS), default="INFO",
    help="Logging level"
)
def run(config_file: str, format: str, log_level: str):
    """Run a bulk or real-time aggregation from a configuration file."""
    logging.getLogger().setLevel(getattr(logging, log_level))

    click.echo(f"Loading configuration from {config_file}...")

    try:
        if format == "yaml":
            orchestrator = DashboardOrchestrator.from_yaml_file(config_file)
        else:
            orchestrator = DashboardOrchestrator.from_json_file(config_file)

        summary = orchestrator.run()

        record_stats = summary["response_time"]["records"]
        click.echo("\nAggregation completed!")
        click.echo(f"Total requests: {summary['requests']['total']}")
        click.echo(f"Rows: {summary['rows']['routers']} router, {summary['rows']['cloud_api']} cloud API")
        click.echo(f"Mean response time: {format_response_time(record_stats.get('mean', float('nan')))}")

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument("arrivals_file", type=click.Path(exists=True))
@click.option("--route", "-r", default=None, help="Only show this route")
@click.option("--instance", "-i", default=None, help="Only show this instance")
@click.option("--status-code", "-s", default=None, help="Only count this status code")
@click.option("--limit", "-n", default=10, show_default=True, help="Rows per top list")
@click.option("--no-merge", is_flag=True, help="Keep one row per instance snapshot")
@click.option("--json", "as_json", is_flag=True, help="Print the chart data as JSON")
def summarize(arrivals_file, route, instance, status_code, limit, no_merge, as_json):
    """Summarize a bulk statistics file without a configuration."""
    logging.getLogger().setLevel(logging.WARNING)

    try:
        session = AggregationSession(merge_instances=not no_merge)
        session.ingest_bulk(BulkSource.from_json_file(arrivals_file).fetch())
        session.set_filters(by_route=route, by_instance=instance, by_status_code=status_code)
        view = session.build_view()
    except (OSError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(view.to_dict(), indent=2, default=str))
        return

    for title, items in (
        ("Top routes", session.counters.top_routes(limit)),
        ("Top instances", session.counters.top_instances(limit)),
        ("Top status codes", session.counters.top_status_codes(limit)),
    ):
        click.echo(click.style(title, bold=True))
        for item in items:
            click.echo(f"  {item.count:>8}  {item.name}")

    click.echo(click.style("Rows", bold=True))
    for record in view.routers:
        label = record.instance
        if record.merged_instances:
            label += "+" + "+".join(record.merged_instances)
        created = record.created_at.isoformat() if record.created_at else "-"
        click.echo(
            f"  {created}  {label}: {record.requests} requests, "
            f"avg {format_response_time(record.response_time)}"
        )

    summary = MetricsReporter({}).generate_summary_report(view, session.counters)
    click.echo(f"Error rate: {summary['requests']['error_rate']:.1%}")


@cli.command()
@click.option(
    "--output", "-o", default="routestats.yaml",
    help="Output file path"
)
@click.option(
    "--format", "-f", type=click.Choice(["yaml", "json"]), default="yaml",
    help="Configuration file format"
)
def generate_config(output: str, format: str):
    """Generate an example configuration file."""
    example_config = {
        "source": {
            "mode": "bulk",
            "bulk_path": "data/lastDayStatistics.json",
            "stream_path": "data/realtime.jsonl",
        },
        "display": {
            "chart_limits": {"pie": 15, "column": 10, "line": 8, "area": 5},
            "merge_instances": True,
        },
        "filters": {
            "by_route": None,
            "by_instance": None,
            "by_status_code": None,
        },
        "classifier": {
            "bands": [
                {"low": 100, "high": 199, "name": "informational"},
                {"low": 200, "high": 299, "name": "success"},
                {"low": 300, "high": 399, "name": "redirect"},
                {"low": 400, "high": 499, "name": "client_error"},
                {"low": 500, "high": 599, "name": "server_error"},
            ],
        },
        "metrics_config": {
            "percentiles_to_calculate": [0.5, 0.9, 0.95, 0.99],
        },
        "output": {
            "summary_json_path": "results/summary.json",
            "entries_csv_path": "results/entries.csv",
            "view_json_path": "results/view.json",
        },
    }

    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if format == "yaml":
        import yaml
        with open(output_path, "w") as f:
            yaml.dump(example_config, f, default_flow_style=False, sort_keys=False)
    else:
        with open(output_path, "w") as f:
            json.dump(example_config, f, indent=2)

    click.echo(f"Generated example configuration at {output_path}")


@cli.command()
@click.argument("config_file", type=click.Path(exists=True))
def validate(config_file: str):
    """Validate a configuration file without running it."""
    click.echo(f"Validating configuration: {config_file}")

    try:
        is_valid, errors, config = validate_and_fix_config(config_file)

        if is_valid:
            click.echo(click.style("✓ Configuration is valid", fg="green"))
            classifier = StatusClassifier(config["classifier"].get("bands"))
            click.echo("Status bands:")
            for band, name in classifier.describe().items():
                click.echo(f"  {band:>9}  {name}")
        else:
            click.echo(click.style(f"✗ Configuration has {len(errors)} errors:", fg="red"))
            for i, error in enumerate(errors[:20], 1):
                click.echo(f"  {i}. {error}")
            if len(errors) > 20:
                click.echo(f"  ... and {len(errors) - 20} more errors")

        sys.exit(0 if is_valid else 1)

    except Exception as e:
        click.echo(click.style(f"Error validating configuration: {e}", fg="red"))
        sys.exit(1)


if __name__ == "__main__":
    cli()
