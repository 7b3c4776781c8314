"""
TokioAI CLI Main Entry Point

Command-line host for capturing and analysing outcomes against an encrypted
state file.
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click

from ..analysis.reporting import TextReportRenderer
from ..core.config import get_config
from ..core.exceptions import TokioAIException
from ..core.logging import setup_logging
from ..engine.session import TokioAI
from ..security.encryption import SecureCodec
from ..security.keys import KeyStore

DEFAULT_KEY_FILE = "./tokioai.key"


def _fail(message: str) -> None:
    click.echo(f"✗ {message}", err=True)
    sys.exit(1)


def _open_engine(ctx: click.Context) -> TokioAI:
    """Build an engine from the key file and load the state file if present."""
    key_store = KeyStore(ctx.obj["key_file"])
    state_path: Path = ctx.obj["state"]

    try:
        engine = TokioAI(key_store.load(), config=ctx.obj["config"])
        if state_path.exists():
            engine.load_encrypted(state_path)
    except (TokioAIException, OSError) as e:
        _fail(str(e))

    return engine


def _save(engine: TokioAI, ctx: click.Context) -> None:
    state_path: Path = ctx.obj["state"]
    state_path.parent.mkdir(parents=True, exist_ok=True)
    audit = engine.save_encrypted(state_path)
    click.echo(f"  Saved {len(engine.ledger)} outcome(s) to {state_path} (iv {audit['iv']})")


def _print_analysis(report) -> None:
    click.echo(f"\nAnalysis of {report.batch_size} outcome(s):")
    click.echo(f"  Dominant: {report.dominant.value}")
    click.echo(f"  Most frequent: {report.most_frequent} ({report.max_frequency}x)")
    click.echo(f"  Average: {report.average:.2f}")
    if report.sequences:
        click.echo(
            "  Sequences: "
            + ", ".join("-".join(str(v) for v in run) for run in report.sequences)
        )
    if report.repetitions:
        click.echo(
            "  Repetitions: "
            + ", ".join(f"{v}x{c}" for v, c in report.repetitions.items())
        )
    click.echo(f"\n{report.suggestion}")


@click.group()
@click.version_option(version="0.1.0")
@click.option("--state", type=click.Path(dir_okay=False), help="Encrypted state file")
@click.option("--key-file", type=click.Path(dir_okay=False), help="Hex key file")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, state: Optional[str], key_file: Optional[str], verbose: bool):
    """
    TokioAI - roulette outcome pattern analysis

    Outcomes are kept in an AES-256-GCM encrypted state file.
    """
    config = get_config()
    setup_logging(config.logging, log_level="DEBUG" if verbose else "WARNING")

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["state"] = Path(state or config.persistence.state_path).expanduser()
    ctx.obj["key_file"] = Path(
        key_file or config.security.key_file or DEFAULT_KEY_FILE
    ).expanduser()


@cli.command()
@click.option("--force", is_flag=True, help="Overwrite an existing key file")
@click.pass_context
def keygen(ctx: click.Context, force: bool):
    """
    Generate a new encryption key file.

    Example:
        tokioai --key-file ~/.tokioai/key keygen
    """
    codec = SecureCodec.generate()
    try:
        path = KeyStore(ctx.obj["key_file"]).save(codec, overwrite=force)
    except TokioAIException as e:
        _fail(str(e))

    click.echo(f"✓ Generated key {codec.fingerprint()}")
    click.echo(f"  Key file: {path}")


@cli.command()
@click.argument("values", nargs=-1, required=True)
@click.pass_context
def capture(ctx: click.Context, values: tuple):
    """
    Capture one or more outcomes.

    Example:
        tokioai capture 12 35 3
    """
    engine = _open_engine(ctx)
    analyses_before = engine.get_statistics().total_analyses

    try:
        outcomes = engine.capture_many(values)
    except TokioAIException as e:
        _fail(str(e))

    for outcome in outcomes:
        click.echo(f"✓ Captured {outcome.value} at {outcome.display_date} {outcome.display_time}")

    if engine.get_statistics().total_analyses > analyses_before and engine.last_analysis:
        _print_analysis(engine.last_analysis)

    _save(engine, ctx)


@cli.command()
@click.option("--count", "-n", type=int, default=None, help="Outcomes to analyze")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
@click.pass_context
def analyze(ctx: click.Context, count: Optional[int], as_json: bool):
    """
    Analyze the most recent outcomes.

    Example:
        tokioai analyze -n 20
    """
    engine = _open_engine(ctx)

    try:
        report = engine.analyze(count)
    except TokioAIException as e:
        _fail(str(e))

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
    else:
        _print_analysis(report)

    engine.save_encrypted(ctx.obj["state"])


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print statistics as JSON")
@click.pass_context
def stats(ctx: click.Context, as_json: bool):
    """Show session statistics."""
    engine = _open_engine(ctx)
    statistics = engine.get_statistics()

    if as_json:
        click.echo(json.dumps(statistics.to_json(), indent=2))
        return

    click.echo(f"Current results: {statistics.current_results}")
    click.echo(f"Total results: {statistics.total_results}")
    click.echo(f"Total analyses: {statistics.total_analyses}")
    if statistics.last_analysis_at:
        click.echo(
            f"Last analysis: {statistics.last_analysis_at.strftime('%Y-%m-%d %H:%M:%S')}"
        )


@cli.command()
@click.option("--limit", "-l", type=int, default=None, help="Number of outcomes")
@click.option("--json", "as_json", is_flag=True, help="Print outcomes as JSON")
@click.pass_context
def recent(ctx: click.Context, limit: Optional[int], as_json: bool):
    """List the most recent outcomes."""
    engine = _open_engine(ctx)

    try:
        outcomes = engine.recent(limit)
    except TokioAIException as e:
        _fail(str(e))

    if as_json:
        click.echo(json.dumps([o.to_json() for o in outcomes], indent=2, ensure_ascii=False))
        return

    if not outcomes:
        click.echo("No outcomes captured.")
        return

    for outcome in outcomes:
        click.echo(f"  {outcome.value:>3}  {outcome.display_date} {outcome.display_time}")


@cli.command()
@click.confirmation_option(prompt="Remove every captured outcome?")
@click.pass_context
def clear(ctx: click.Context):
    """Remove every captured outcome from the state file."""
    engine = _open_engine(ctx)
    removed = engine.clear_all()
    click.echo(f"✓ Removed {removed} outcome(s)")
    _save(engine, ctx)


@cli.command()
@click.argument("output", type=click.Path(dir_okay=False))
@click.option(
    "--format",
    "-f",
    "fmt",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Report format",
)
@click.option("--include-statistics", is_flag=True, help="Append session statistics")
@click.option("--count", "-n", type=int, default=None, help="Outcomes to analyze")
@click.pass_context
def report(
    ctx: click.Context,
    output: str,
    fmt: str,
    include_statistics: bool,
    count: Optional[int],
):
    """
    Write an analysis report file.

    Example:
        tokioai report report.txt --include-statistics
    """
    engine = _open_engine(ctx)

    try:
        if len(engine.ledger):
            engine.analyze(count)
        path = engine.generate_report(
            TextReportRenderer(fmt=fmt), output, include_statistics=include_statistics
        )
    except TokioAIException as e:
        _fail(str(e))

    click.echo(f"✓ Report written to {path}")


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
