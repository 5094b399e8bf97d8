"""
Parameter Rollup
=================
Aggregates the results of every relevant test for one specification
parameter into a single Pass / Fail / Pending status.

Rules:
  - no relevant tests                      → Pending
  - any relevant test not yet complete     → Pending
  - any completed test Fail / Inconclusive → Fail
  - otherwise                              → Pass
Dangling test ids are skipped. When none of the relevant ids resolve
the parameter stays Pending.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from lab_compliance.compliance.classifier import classify_sample, measured_value
from lab_compliance.compliance.criterion import DEFAULT_TOLERANCE
from lab_compliance.compliance.links import (
    is_sample_complete,
    is_test_complete,
    relevant_tests,
    undeclared_test_ids,
)
from lab_compliance.snapshot.models import (
    SampleTest,
    Specification,
    SpecificationParameter,
    Test,
    TestStatus,
    Verdict,
)
from lab_compliance.utils.log import get_logger

logger = get_logger(__name__)


class ParameterStatus(str, Enum):
    PASS = "Pass"
    FAIL = "Fail"
    PENDING = "Pending"


@dataclass
class SampleDetail:
    """A completed sample's result as seen by one parameter."""

    test_id: str
    sample_id: str
    sample_name: str
    value: str | None
    status: Verdict | None  # None when the sample recorded nothing
    completed_date: datetime | None = None


@dataclass
class TestDetail:
    """One relevant test's contribution to a parameter."""

    test_id: str
    name: str
    status: TestStatus
    complete: bool
    result: str | None = None
    result_status: Verdict | None = None  # None while the test is incomplete
    samples: list[SampleDetail] = field(default_factory=list)

    __test__ = False


@dataclass
class ParameterResult:
    """Rolled-up status of one parameter plus the detail behind it."""

    parameter: SpecificationParameter
    status: ParameterStatus
    tests: list[TestDetail] = field(default_factory=list)
    relevant_test_ids: tuple[str, ...] = ()
    missing_test_ids: tuple[str, ...] = ()
    undeclared_test_ids: tuple[str, ...] = ()

    @property
    def parameter_id(self) -> str:
        return self.parameter.id

    @property
    def samples(self) -> list[SampleDetail]:
        return [s for t in self.tests for s in t.samples]


def _completion_key(indexed: tuple[int, SampleTest]) -> tuple:
    idx, sample = indexed
    done = sample.completed_date
    return (done is not None, done.timestamp() if done else 0.0, idx)


def representative_sample(test: Test) -> SampleTest | None:
    """
    The most recently completed sample, whether or not it recorded a result.

    Samples without a completion date rank below dated ones; ties go to
    the later sample in the test.
    """
    candidates = [(i, s) for i, s in enumerate(test.samples) if is_sample_complete(s)]
    if not candidates:
        return None
    return max(candidates, key=_completion_key)[1]


def _test_detail(
    parameter: SpecificationParameter,
    test: Test,
    tolerance: float,
) -> TestDetail:
    complete = is_test_complete(test)
    samples = [
        SampleDetail(
            test_id=test.id,
            sample_id=s.sample_id,
            sample_name=s.sample_name,
            value=measured_value(s),
            status=classify_sample(parameter, s, tolerance),
            completed_date=s.completed_date,
        )
        for s in test.samples
        if is_sample_complete(s)
    ]

    detail = TestDetail(
        test_id=test.id,
        name=test.name,
        status=test.status,
        complete=complete,
        samples=samples,
    )
    if not complete:
        return detail

    rep = representative_sample(test)
    if rep is None:
        detail.result_status = Verdict.INCONCLUSIVE
        return detail

    detail.result = measured_value(rep)
    detail.result_status = classify_sample(parameter, rep, tolerance) or Verdict.INCONCLUSIVE
    return detail


def evaluate_parameter(
    specification: Specification,
    parameter: SpecificationParameter,
    tests_by_id: dict[str, Test],
    tolerance: float = DEFAULT_TOLERANCE,
) -> ParameterResult:
    """
    Roll up all relevant tests for `parameter`.

    Args:
        specification: Specification owning the parameter.
        parameter: Parameter to evaluate.
        tests_by_id: Snapshot of tests keyed by id. Never mutated.
        tolerance: Absolute tolerance for exact-numeric criteria.

    Returns:
        ParameterResult with status and per-test / per-sample detail.
    """
    ids = relevant_tests(specification, parameter)
    result = ParameterResult(
        parameter=parameter,
        status=ParameterStatus.PENDING,
        relevant_test_ids=ids,
        undeclared_test_ids=undeclared_test_ids(specification, parameter),
    )

    if not ids:
        logger.debug("Parameter %s/%s: no relevant tests", specification.id, parameter.id)
        return result

    missing = []
    for test_id in ids:
        test = tests_by_id.get(test_id)
        if test is None:
            missing.append(test_id)
            continue
        result.tests.append(_test_detail(parameter, test, tolerance))

    if missing:
        logger.warning(
            "Parameter %s/%s: skipping unknown test(s) %s",
            specification.id, parameter.id, ", ".join(missing),
        )
    result.missing_test_ids = tuple(missing)

    if not result.tests or not all(t.complete for t in result.tests):
        return result

    if all(t.result_status == Verdict.PASS for t in result.tests):
        result.status = ParameterStatus.PASS
    else:
        result.status = ParameterStatus.FAIL

    logger.debug("Parameter %s/%s → %s", specification.id, parameter.id, result.status.value)
    return result
