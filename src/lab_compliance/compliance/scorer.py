"""
Compliance Scorer
==================
Aggregates parameter-level statuses into an overall compliance
state for a specification, with pass/fail/pending counts.

Two precedence policies are supported, selected by `fail_first`:
  fail_first=True   Fail → Non-Compliant, then Pending → Incomplete
  fail_first=False  Pending → Incomplete, then Fail → Non-Compliant
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from lab_compliance.compliance.criterion import DEFAULT_TOLERANCE
from lab_compliance.compliance.links import is_test_complete
from lab_compliance.compliance.parameter import ParameterResult, ParameterStatus, evaluate_parameter
from lab_compliance.snapshot.models import Specification, Test
from lab_compliance.utils.helpers import percent
from lab_compliance.utils.log import get_logger

logger = get_logger(__name__)


class ComplianceStatus(str, Enum):
    COMPLIANT = "Compliant"
    NON_COMPLIANT = "Non-Compliant"
    INCOMPLETE = "Incomplete"


@dataclass
class SpecificationResult:
    """Overall compliance assessment for a specification."""

    specification: Specification
    status: ComplianceStatus
    fail_first: bool = True
    passing: int = 0
    failing: int = 0
    pending: int = 0
    total: int = 0
    linked_tests: int = 0
    completed_tests: int = 0
    parameters: list[ParameterResult] = field(default_factory=list)

    @property
    def passing_pct(self) -> int:
        return percent(self.passing, self.total)

    @property
    def failing_pct(self) -> int:
        return percent(self.failing, self.total)

    @property
    def pending_pct(self) -> int:
        return percent(self.pending, self.total)

    @property
    def failing_parameters(self) -> list[ParameterResult]:
        return [p for p in self.parameters if p.status == ParameterStatus.FAIL]

    def counts(self) -> dict:
        return {
            "passing": self.passing,
            "failing": self.failing,
            "pending": self.pending,
            "total": self.total,
            "passing_pct": self.passing_pct,
            "failing_pct": self.failing_pct,
            "pending_pct": self.pending_pct,
        }


def decide_status(passing: int, failing: int, pending: int, fail_first: bool = True) -> ComplianceStatus:
    """
    Overall status from parameter counts.

    A specification with no parameters has nothing to assert and is
    reported Incomplete.
    """
    if passing + failing + pending == 0:
        return ComplianceStatus.INCOMPLETE
    if fail_first:
        if failing:
            return ComplianceStatus.NON_COMPLIANT
        if pending:
            return ComplianceStatus.INCOMPLETE
    else:
        if pending:
            return ComplianceStatus.INCOMPLETE
        if failing:
            return ComplianceStatus.NON_COMPLIANT
    return ComplianceStatus.COMPLIANT


def evaluate_specification(
    specification: Specification,
    tests_by_id: dict[str, Test],
    fail_first: bool = True,
    tolerance: float = DEFAULT_TOLERANCE,
) -> SpecificationResult:
    """
    Evaluate every parameter of a specification and roll them up.

    Pure: the same snapshot always yields an equal result.
    """
    results = [
        evaluate_parameter(specification, p, tests_by_id, tolerance)
        for p in specification.parameters
    ]

    passing = sum(1 for r in results if r.status == ParameterStatus.PASS)
    failing = sum(1 for r in results if r.status == ParameterStatus.FAIL)
    pending = sum(1 for r in results if r.status == ParameterStatus.PENDING)
    status = decide_status(passing, failing, pending, fail_first)

    linked = [tests_by_id[t] for t in specification.linked_test_ids if t in tests_by_id]

    spec_result = SpecificationResult(
        specification=specification,
        status=status,
        fail_first=fail_first,
        passing=passing,
        failing=failing,
        pending=pending,
        total=len(results),
        linked_tests=len(linked),
        completed_tests=sum(1 for t in linked if is_test_complete(t)),
        parameters=results,
    )

    logger.info(
        "Specification %s → %s — %d PASS, %d FAIL, %d PENDING of %d (%s)",
        specification.id, status.value, passing, failing, pending, len(results),
        "fail-first" if fail_first else "pending-first",
    )
    return spec_result
