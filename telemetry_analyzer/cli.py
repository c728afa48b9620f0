# telemetry_analyzer/cli.py - Command-line interface
"""
Command-line interface for the telemetry artifact analyzers.
"""

import click
import sys
from pathlib import Path

from telemetry_analyzer.errors import AnalysisError, ConfigError
from telemetry_analyzer.exporters.json_exporter import JSONExporter
from telemetry_analyzer.utils.logger import setup_logging
from telemetry_analyzer.utils.config import Config
from telemetry_analyzer.utils.helpers import infer_profile_type, read_artifact


@click.group()
@click.option('--log-level', default='WARNING', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']))
@click.option('--log-file', type=click.Path(), help='Log file path')
@click.option('--config', 'config_file', type=click.Path(), help='YAML configuration file')
@click.pass_context
def cli(ctx, log_level, log_file, config_file):
    """
    Telemetry Artifact Analyzer

    Summarizes pprof profiles, access logs and MySQL slow-query logs.
    """
    ctx.ensure_object(dict)

    setup_logging(level=log_level, log_file=log_file)

    try:
        ctx.obj['config'] = Config(config_file)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _emit(ctx, result, output, prefix):
    """Write a result as JSON to stdout or a file"""
    cfg = ctx.obj['config']
    exporter = JSONExporter(
        output_dir=str(Path(output).parent) if output else None,
        indent=cfg.get('output.indent', 2),
    )

    if output:
        path = exporter.export(result, filename=Path(output).name, prefix=prefix)
        click.echo(f"Wrote {prefix} to {path}", err=True)
    else:
        click.echo(exporter.to_json(result))


@cli.command()
@click.argument('profile_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--type', 'profile_type', help='Profile type label (cpu, heap, ...); inferred from the file name if omitted')
@click.option('--format', 'output_format', type=click.Choice(['structured', 'detailed', 'report']),
              default='structured', help='Output shape')
@click.option('--entry-id', help='Artifact id included in report output')
@click.option('--output', type=click.Path(), help='Output file')
@click.pass_context
def pprof(ctx, profile_file, profile_type, output_format, entry_id, output):
    """
    Analyze a pprof profiling snapshot.

    Example:
        telemetry-analyzer pprof cpu.pb.gz
        telemetry-analyzer pprof heap.pb.gz --format report --entry-id 1700000000
    """
    from telemetry_analyzer.profile.reporter import ProfileReporter

    cfg = ctx.obj['config']
    if not profile_type:
        profile_type = infer_profile_type(Path(profile_file).name, cfg.get('pprof.profile_type', 'unknown'))

    reporter = ProfileReporter()
    data = read_artifact(profile_file)

    try:
        if output_format == 'detailed':
            result = reporter.detailed_graph(data)
        elif output_format == 'report':
            result = reporter.text_report(data, profile_type, entry_id)
        else:
            result = reporter.structured_summary(data, profile_type)

        _emit(ctx, result, output, 'pprof')
    except AnalysisError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('log_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--threshold', type=float, help='Slow request threshold in seconds')
@click.option('--alp-config', type=click.Path(), help='ALP config with matching_groups')
@click.option('--output', type=click.Path(), help='Output file')
@click.pass_context
def httplog(ctx, log_file, threshold, alp_config, output):
    """
    Aggregate an access log by endpoint.

    Example:
        telemetry-analyzer httplog access.log --threshold 0.5
        telemetry-analyzer httplog access.log --alp-config data/alp.yml
    """
    from telemetry_analyzer.httplog.aggregator import AccessLogAggregator

    cfg = ctx.obj['config']
    if threshold is None:
        threshold = cfg.get('httplog.slow_threshold', 1.0)

    aggregator = AccessLogAggregator.from_config(cfg, alp_config)

    try:
        result = aggregator.aggregate(read_artifact(log_file), threshold)
        _emit(ctx, result, output, 'httplog')
    except AnalysisError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('log_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--threshold', type=float, help='Slow query threshold in seconds')
@click.option('--timeout', type=float, help='Analysis deadline in seconds')
@click.option('--output', type=click.Path(), help='Output file')
@click.pass_context
def slowlog(ctx, log_file, threshold, timeout, output):
    """
    Aggregate a MySQL slow-query log by query pattern.

    Example:
        telemetry-analyzer slowlog mysql-slow.log --threshold 0.5
    """
    from telemetry_analyzer.slowlog.aggregator import SlowQueryAggregator

    cfg = ctx.obj['config']
    if threshold is None:
        threshold = cfg.get('slowlog.slow_threshold', 0.5)
    if timeout is None:
        timeout = cfg.get('slowlog.timeout_seconds', 30.0)

    aggregator = SlowQueryAggregator(
        timeout=timeout,
        queue_size=cfg.get('slowlog.queue_size', 128),
    )

    try:
        result = aggregator.aggregate(read_artifact(log_file), threshold)
        _emit(ctx, result, output, 'slowlog')
    except AnalysisError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == '__main__':
    cli(obj={})
