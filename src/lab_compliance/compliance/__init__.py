"""Compliance engine subpackage — criterion parsing, classification, rollups."""

from lab_compliance.compliance.classifier import classify_result
from lab_compliance.compliance.criterion import evaluate, parse_criterion
from lab_compliance.compliance.links import is_test_complete, relevant_tests
from lab_compliance.compliance.parameter import evaluate_parameter
from lab_compliance.compliance.scorer import evaluate_specification

__all__ = [
    "classify_result",
    "evaluate",
    "evaluate_parameter",
    "evaluate_specification",
    "is_test_complete",
    "parse_criterion",
    "relevant_tests",
]
