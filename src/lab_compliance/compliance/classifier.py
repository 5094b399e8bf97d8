"""
Result Classifier
==================
Classifies a recorded result for a specification parameter as
Pass / Fail / Inconclusive using the parameter's expected value.
"""

from __future__ import annotations

from lab_compliance.compliance.criterion import DEFAULT_TOLERANCE, evaluate_criterion, parse_criterion
from lab_compliance.snapshot.models import SampleTest, SpecificationParameter, StepStatus, Verdict


def classify_result(
    parameter: SpecificationParameter,
    raw_result: str | None,
    tolerance: float = DEFAULT_TOLERANCE,
) -> Verdict:
    """Classify one raw result against the parameter's criterion."""
    return evaluate_criterion(parse_criterion(parameter.expected_value), raw_result, tolerance)


def measured_value(sample: SampleTest) -> str | None:
    """
    The raw measurement recorded for a sample.

    The sample's own `results` field wins; otherwise the last completed
    step that recorded a result is used.
    """
    if sample.results and sample.results.strip():
        return sample.results
    for step in reversed(sample.steps):
        if step.status == StepStatus.COMPLETE and step.results and step.results.strip():
            return step.results
    return None


def classify_sample(
    parameter: SpecificationParameter,
    sample: SampleTest,
    tolerance: float = DEFAULT_TOLERANCE,
) -> Verdict | None:
    """
    Verdict for a sample against `parameter`.

    Raw text is re-classified against this parameter; without raw text
    the sample's recorded result status is returned (possibly None).
    """
    raw = measured_value(sample)
    if raw is not None:
        return classify_result(parameter, raw, tolerance)
    return sample.result_status
