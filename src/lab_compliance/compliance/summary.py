"""
Portfolio summary and result filtering.

`summarize_specifications` gives the dashboard view across many
specifications; `filter_parameter_results` narrows one specification's
parameter results by type, status and free-text search.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from lab_compliance.compliance.criterion import DEFAULT_TOLERANCE
from lab_compliance.compliance.parameter import ParameterResult, ParameterStatus
from lab_compliance.compliance.scorer import ComplianceStatus, SpecificationResult, evaluate_specification
from lab_compliance.snapshot.models import ParameterType, Specification, Test
from lab_compliance.utils.helpers import percent


@dataclass
class PortfolioSummary:
    results: list[SpecificationResult] = field(default_factory=list)
    recent_failures: list[SpecificationResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    def _count(self, status: ComplianceStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def compliant(self) -> int:
        return self._count(ComplianceStatus.COMPLIANT)

    @property
    def non_compliant(self) -> int:
        return self._count(ComplianceStatus.NON_COMPLIANT)

    @property
    def incomplete(self) -> int:
        return self._count(ComplianceStatus.INCOMPLETE)

    @property
    def compliant_pct(self) -> int:
        return percent(self.compliant, self.total)


def _latest_completion(result: SpecificationResult) -> float | None:
    stamps = [s.completed_date.timestamp() for p in result.parameters for s in p.samples if s.completed_date]
    return max(stamps) if stamps else None


def _recency_key(result: SpecificationResult) -> tuple:
    done = _latest_completion(result)
    return (done is not None, done or 0.0)


def summarize_specifications(
    specifications: Iterable[Specification],
    tests_by_id: dict[str, Test],
    fail_first: bool = True,
    top_failures: int = 3,
    tolerance: float = DEFAULT_TOLERANCE,
) -> PortfolioSummary:
    """
    Evaluate each specification and collect the `top_failures` most
    recent non-compliant ones.

    Recency is the latest completion date among the samples behind a
    result. Undated results come last, in snapshot order.
    """
    results = [evaluate_specification(s, tests_by_id, fail_first, tolerance) for s in specifications]
    failures = sorted(
        (r for r in results if r.status == ComplianceStatus.NON_COMPLIANT),
        key=_recency_key,
        reverse=True,
    )
    return PortfolioSummary(results=results, recent_failures=failures[:max(top_failures, 0)])


def filter_parameter_results(
    results: Iterable[ParameterResult],
    types: Iterable[ParameterType | str] = (),
    statuses: Iterable[ParameterStatus | str] = (),
    search: str = "",
) -> list[ParameterResult]:
    """
    Filter parameter results. Empty filters match everything.

    `search` is matched case-insensitively against the parameter name
    and test method.
    """
    type_set = {ParameterType(t) for t in types}
    status_set = {ParameterStatus(s) for s in statuses}
    needle = search.strip().lower()

    out = []
    for r in results:
        p = r.parameter
        if type_set and p.type not in type_set:
            continue
        if status_set and r.status not in status_set:
            continue
        if needle and needle not in p.name.lower() and needle not in (p.test_method or "").lower():
            continue
        out.append(r)
    return out
