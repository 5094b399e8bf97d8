"""
Report Generator
==================
Generates Markdown and JSON compliance reports, and flat result rows
for table-based exporters.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

from lab_compliance.compliance.parameter import ParameterStatus
from lab_compliance.compliance.scorer import SpecificationResult
from lab_compliance.compliance.summary import PortfolioSummary
from lab_compliance.config import get_settings
from lab_compliance.snapshot.models import Verdict
from lab_compliance.utils.helpers import safe_filename
from lab_compliance.utils.log import get_logger

logger = get_logger(__name__)

_ICONS = {
    ParameterStatus.PASS: "✅",
    ParameterStatus.FAIL: "❌",
    ParameterStatus.PENDING: "⏳",
}


def _label(value) -> str:
    return value.value if value is not None else "Pending"


def result_rows(result: SpecificationResult) -> list[list[str]]:
    """
    Flatten a specification result into table rows.

    Each parameter row (name, type, expected value + unit, status) is
    followed by one row per relevant test (id, name, result, status).
    """
    rows: list[list[str]] = []
    for pr in result.parameters:
        p = pr.parameter
        expected = f"{p.expected_value} {p.unit}".strip()
        rows.append([p.name, p.type.value, expected, pr.status.value])
        for t in pr.tests:
            rows.append([
                f"  • {t.test_id}",
                t.name,
                t.result or "No result",
                _label(t.result_status),
            ])
    return rows


def render_markdown(result: SpecificationResult, generated_at: datetime | None = None) -> str:
    """Render a detailed Markdown compliance report."""
    spec = result.specification
    generated_at = generated_at or datetime.now()
    lines: list[str] = []

    lines.append(f"# Compliance Report: {spec.name or spec.id}")
    lines.append("")
    lines.append(f"**Generated:** {generated_at.strftime('%Y-%m-%d %H:%M')}")
    lines.append(f"**Specification:** {spec.id} v{spec.version or '-'} ({spec.status.value})")
    if spec.regions:
        lines.append(f"**Regions:** {', '.join(spec.regions)}")
    if spec.regulatory_guidelines:
        lines.append(f"**Guidelines:** {', '.join(spec.regulatory_guidelines)}")
    lines.append(f"**Precedence:** {'fail-first' if result.fail_first else 'pending-first'}")
    lines.append("")

    lines.append("## Summary")
    lines.append("")
    lines.append("| Metric | Value |")
    lines.append("|--------|-------|")
    lines.append(f"| **Status** | **{result.status.value}** |")
    lines.append(f"| Parameters | {result.total} |")
    lines.append(f"| Tests linked | {result.linked_tests} |")
    lines.append(f"| Tests completed | {result.completed_tests} |")
    lines.append(f"| ✅ Passing | {result.passing} ({result.passing_pct}%) |")
    lines.append(f"| ❌ Failing | {result.failing} ({result.failing_pct}%) |")
    lines.append(f"| ⏳ Pending | {result.pending} ({result.pending_pct}%) |")
    lines.append("")

    lines.append("## Parameter Results")
    lines.append("")
    lines.append("| # | Status | Parameter | Type | Expected | Tests |")
    lines.append("|---|--------|-----------|------|----------|-------|")
    for i, pr in enumerate(result.parameters, 1):
        p = pr.parameter
        tests = ", ".join(t.test_id for t in pr.tests) or "—"
        lines.append(
            f"| {i} | {_ICONS[pr.status]} {pr.status.value} | {p.name} | {p.type.value} | "
            f"{p.expected_value} {p.unit} | {tests} |"
        )
    lines.append("")

    # Per-test detail for anything not passing
    gaps = [pr for pr in result.parameters if pr.status != ParameterStatus.PASS]
    if gaps:
        lines.append("## Open Items")
        lines.append("")
        for pr in gaps:
            p = pr.parameter
            lines.append(f"### {_ICONS[pr.status]} {p.name} ({p.id})")
            lines.append(f"- **Expected:** {p.expected_value} {p.unit}".rstrip())
            if p.test_method:
                lines.append(f"- **Method:** {p.test_method}")
            if not pr.relevant_test_ids:
                lines.append("- **No tests linked**")
            for t in pr.tests:
                state = _label(t.result_status) if t.complete else t.status.value
                lines.append(f"- {t.test_id} {t.name}: {t.result or 'No result'} → {state}")
            for tid in pr.missing_test_ids:
                lines.append(f"- {tid}: not found")
            for tid in pr.undeclared_test_ids:
                lines.append(f"- {tid}: not declared by the specification (ignored)")
            lines.append("")

    return "\n".join(lines)


def render_json(result: SpecificationResult, generated_at: datetime | None = None) -> dict:
    """Render a structured JSON compliance report."""
    spec = result.specification
    generated_at = generated_at or datetime.now()

    return {
        "specification_id": spec.id,
        "name": spec.name,
        "version": spec.version,
        "generated_at": generated_at.isoformat(),
        "fail_first": result.fail_first,
        "summary": {
            "status": result.status.value,
            "linked_tests": result.linked_tests,
            "completed_tests": result.completed_tests,
            **result.counts(),
        },
        "parameters": [
            {
                "parameter_id": pr.parameter.id,
                "name": pr.parameter.name,
                "type": pr.parameter.type.value,
                "expected_value": pr.parameter.expected_value,
                "unit": pr.parameter.unit,
                "status": pr.status.value,
                "missing_test_ids": list(pr.missing_test_ids),
                "undeclared_test_ids": list(pr.undeclared_test_ids),
                "tests": [
                    {
                        "test_id": t.test_id,
                        "name": t.name,
                        "status": t.status.value,
                        "complete": t.complete,
                        "result": t.result,
                        "result_status": t.result_status.value if t.result_status else None,
                        "samples": [
                            {
                                "sample_id": s.sample_id,
                                "value": s.value,
                                "status": s.status.value if s.status else None,
                                "completed_date": s.completed_date.isoformat() if s.completed_date else None,
                            }
                            for s in t.samples
                        ],
                    }
                    for t in pr.tests
                ],
            }
            for pr in result.parameters
        ],
    }


def generate_report(
    result: SpecificationResult,
    output_dir: Path | None = None,
    output_format: str | None = None,
) -> list[Path]:
    """
    Write the report(s) for one specification.

    Returns: paths written (Markdown and/or JSON).
    """
    settings = get_settings()
    if output_dir is None:
        output_dir = Path(settings.paths.report_dir)
    output_format = output_format or settings.report.output_format
    output_dir.mkdir(parents=True, exist_ok=True)

    safe_name = safe_filename(result.specification.id)
    generated_at = datetime.now()
    written: list[Path] = []

    if output_format in ("md", "both"):
        md_path = output_dir / f"report-{safe_name}.md"
        md_path.write_text(render_markdown(result, generated_at), encoding="utf-8")
        written.append(md_path)

    if output_format in ("json", "both"):
        json_path = output_dir / f"report-{safe_name}.json"
        json_path.write_text(
            json.dumps(render_json(result, generated_at), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        written.append(json_path)

    logger.info("Reports: %s", ", ".join(p.name for p in written))
    return written


def generate_summary_report(
    summary: PortfolioSummary,
    output_dir: Path | None = None,
) -> Path:
    """
    Generate a cross-specification summary report.
    Shows each specification's status and the parameters failing it.
    """
    settings = get_settings()
    if output_dir is None:
        output_dir = Path(settings.paths.report_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    out_path = output_dir / "summary-report.md"
    lines = [
        "# Cross-Specification Compliance Summary",
        "",
        f"**Generated:** {datetime.now().strftime('%Y-%m-%d %H:%M')}",
        f"**Specifications:** {summary.total}",
        f"**Compliant:** {summary.compliant} ({summary.compliant_pct}%) · "
        f"**Non-Compliant:** {summary.non_compliant} · **Incomplete:** {summary.incomplete}",
        "",
        "## Overview",
        "",
        "| Specification | Status | Pass | Fail | Pending | Total |",
        "|---------------|--------|------|------|---------|-------|",
    ]

    for r in summary.results:
        name = (r.specification.name or r.specification.id)[:40]
        lines.append(
            f"| {name} | {r.status.value} | {r.passing} | {r.failing} | {r.pending} | {r.total} |"
        )
    lines.append("")

    if summary.recent_failures:
        lines.append("## Failing Specifications")
        lines.append("")
        for r in summary.recent_failures:
            lines.append(f"### ❌ {r.specification.name or r.specification.id}")
            for pr in r.failing_parameters:
                verdicts = ", ".join(
                    f"{t.test_id}={_label(t.result_status)}"
                    for t in pr.tests if t.result_status != Verdict.PASS
                )
                lines.append(f"- {pr.parameter.name}: expected {pr.parameter.expected_value} ({verdicts})")
            lines.append("")

    out_path.write_text("\n".join(lines), encoding="utf-8")
    logger.info("Summary report: %s", out_path.name)
    return out_path

