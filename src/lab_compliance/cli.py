"""
Lab Compliance CLI
===================
Command-line interface for the compliance evaluation engine.

Commands:
    classify — Classify one measured result against an expected value
    evaluate — Evaluate the specifications in a snapshot file
    report   — Write Markdown/JSON reports for a snapshot
    summary  — Cross-specification compliance overview
"""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from lab_compliance import __version__
from lab_compliance.config import get_settings
from lab_compliance.utils.log import get_logger, log_file_for, setup_logging

logger = get_logger(__name__)
console = Console()

_STATUS_COLORS = {
    "Pass": "green",
    "Compliant": "green",
    "Fail": "red",
    "Non-Compliant": "red",
    "Pending": "yellow",
    "Incomplete": "yellow",
    "Inconclusive": "yellow",
}


def _colored(status: str) -> str:
    color = _STATUS_COLORS.get(status, "dim")
    return f"[{color}]{status}[/{color}]"


def _load(snapshot_path: Path):
    from lab_compliance.snapshot.loader import SnapshotError, load_snapshot

    try:
        return load_snapshot(snapshot_path)
    except SnapshotError as e:
        console.print(f"[red]Cannot load snapshot:[/red] {e}")
        sys.exit(1)


def _fail_first(option: bool | None) -> bool:
    if option is None:
        return get_settings().evaluation.fail_first
    return option


_precedence_option = click.option(
    "--fail-first/--pending-first",
    "fail_first",
    default=None,
    help="Precedence when a specification has both failing and pending parameters. Default: config.",
)


# ═══════════════════════════════════════════════════════
#  Root group
# ═══════════════════════════════════════════════════════
@click.group()
@click.version_option(version=__version__, prog_name="lab-compliance")
@click.option("--log-level", default=None, help="Override the configured log level.")
@click.option("--log-file", is_flag=True, help="Also write logs to the configured log directory.")
def main(log_level: str | None, log_file: bool):
    """Laboratory specification compliance evaluator."""
    settings = get_settings()
    log_path = log_file_for(settings) if log_file else None
    setup_logging(log_level or settings.log_level, log_path)


# ═══════════════════════════════════════════════════════
#  CLASSIFY — one result against one criterion
# ═══════════════════════════════════════════════════════
@main.command()
@click.argument("expected")
@click.argument("measured", required=False, default="")
def classify(expected: str, measured: str):
    """Classify MEASURED against the EXPECTED criterion text."""
    from lab_compliance.compliance.criterion import evaluate_criterion, parse_criterion

    settings = get_settings()
    criterion = parse_criterion(expected)
    verdict = evaluate_criterion(criterion, measured, settings.evaluation.numeric_tolerance)

    console.print(f"Criterion: [bold]{criterion.kind.value}[/bold] ({criterion.describe()})")
    console.print(f"Result:    {_colored(verdict.value)}")


# ═══════════════════════════════════════════════════════
#  EVALUATE — specification compliance
# ═══════════════════════════════════════════════════════
@main.command()
@click.argument("snapshot_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--spec", "spec_ids", multiple=True, help="Only evaluate these specification ids.")
@_precedence_option
@click.option("--details/--no-details", default=True, help="Show per-parameter tables.")
def evaluate(snapshot_path: Path, spec_ids: tuple[str, ...], fail_first: bool | None, details: bool):
    """Evaluate specifications in SNAPSHOT_PATH (YAML or JSON)."""
    from lab_compliance.compliance.scorer import evaluate_specification

    settings = get_settings()
    snapshot = _load(snapshot_path)
    tests_by_id = snapshot.tests_by_id
    policy = _fail_first(fail_first)

    specs = snapshot.specifications
    if spec_ids:
        unknown = [s for s in spec_ids if snapshot.specification(s) is None]
        if unknown:
            console.print(f"[red]Unknown specification(s):[/red] {', '.join(unknown)}")
            sys.exit(1)
        specs = [snapshot.specification(s) for s in spec_ids]

    if not specs:
        console.print("[yellow]No specifications in snapshot.[/yellow]")
        sys.exit(1)

    results = [
        evaluate_specification(s, tests_by_id, policy, settings.evaluation.numeric_tolerance)
        for s in specs
    ]

    if details:
        for r in results:
            _print_parameter_table(r)
    _print_results_table(results)


def _print_parameter_table(result):
    spec = result.specification
    table = Table(title=f"{spec.id} — {spec.name}", show_lines=True)
    table.add_column("Parameter", style="bold")
    table.add_column("Type", style="cyan")
    table.add_column("Expected")
    table.add_column("Tests")
    table.add_column("Status", justify="center")

    for pr in result.parameters:
        p = pr.parameter
        tests = "\n".join(
            f"{t.test_id}: {t.result or 'No result'} ({t.result_status.value if t.result_status else t.status.value})"
            for t in pr.tests
        ) or "[dim]none[/dim]"
        table.add_row(p.name, p.type.value, f"{p.expected_value} {p.unit}".strip(), tests, _colored(pr.status.value))

    console.print()
    console.print(table)


def _print_results_table(results):
    """Display a rich summary table of specification results."""
    table = Table(title="Compliance Summary", show_lines=True)
    table.add_column("Specification", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Pass", justify="right", style="green")
    table.add_column("Fail", justify="right", style="red")
    table.add_column("Pending", justify="right", style="yellow")
    table.add_column("Total", justify="right")
    table.add_column("Passing", justify="right")

    for r in results:
        table.add_row(
            f"{r.specification.id} {r.specification.name}",
            _colored(r.status.value),
            str(r.passing),
            str(r.failing),
            str(r.pending),
            str(r.total),
            f"{r.passing_pct}%",
        )

    console.print()
    console.print(table)


# ═══════════════════════════════════════════════════════
#  REPORT — Markdown / JSON reports
# ═══════════════════════════════════════════════════════
@main.command()
@click.argument("snapshot_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output-dir", "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Output directory for reports. Default: config value.",
)
@click.option(
    "--format", "-f", "output_format",
    type=click.Choice(["md", "json", "both"], case_sensitive=False),
    default=None,
    help="Report format. Default: config value.",
)
@_precedence_option
def report(snapshot_path: Path, output_dir: Path | None, output_format: str | None, fail_first: bool | None):
    """Write a report per specification plus a cross-specification summary."""
    from lab_compliance.compliance.summary import summarize_specifications
    from lab_compliance.reporting.report import generate_report, generate_summary_report

    settings = get_settings()
    snapshot = _load(snapshot_path)
    out = output_dir or Path(settings.paths.report_dir)

    summary = summarize_specifications(
        snapshot.specifications,
        snapshot.tests_by_id,
        fail_first=_fail_first(fail_first),
        top_failures=settings.report.top_failures,
        tolerance=settings.evaluation.numeric_tolerance,
    )

    for r in summary.results:
        for path in generate_report(r, out, output_format):
            console.print(f"  [green]✓[/green] {path.name}")

    summary_path = generate_summary_report(summary, out)
    console.print(f"\n[bold green]Summary report:[/bold green] {summary_path}\n")


# ═══════════════════════════════════════════════════════
#  SUMMARY — portfolio overview
# ═══════════════════════════════════════════════════════
@main.command()
@click.argument("snapshot_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@_precedence_option
def summary(snapshot_path: Path, fail_first: bool | None):
    """Show how many specifications are compliant, failing or incomplete."""
    from lab_compliance.compliance.summary import summarize_specifications

    settings = get_settings()
    snapshot = _load(snapshot_path)
    result = summarize_specifications(
        snapshot.specifications,
        snapshot.tests_by_id,
        fail_first=_fail_first(fail_first),
        top_failures=settings.report.top_failures,
        tolerance=settings.evaluation.numeric_tolerance,
    )

    console.print(f"\n[bold]{result.total} specification(s)[/bold]")
    console.print(
        f"  {_colored('Compliant')}: {result.compliant}   "
        f"{_colored('Non-Compliant')}: {result.non_compliant}   "
        f"{_colored('Incomplete')}: {result.incomplete}"
    )

    if result.recent_failures:
        console.print("\n[bold red]Failing specifications:[/bold red]")
        for r in result.recent_failures:
            names = ", ".join(p.parameter.name for p in r.failing_parameters)
            console.print(f"  [red]✗[/red] {r.specification.id} {r.specification.name}: {names}")
    console.print()


if __name__ == "__main__":
    main()
