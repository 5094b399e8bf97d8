"""Reporting subpackage — Markdown/JSON reports and export rows."""

from lab_compliance.reporting.report import generate_report, generate_summary_report, result_rows

__all__ = ["generate_report", "generate_summary_report", "result_rows"]
