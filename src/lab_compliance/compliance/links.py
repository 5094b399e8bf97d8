"""
Test Link Resolver
===================
Decides which tests count towards a parameter, and whether a test
has finished.

Two-tier linking: a parameter's own links are authoritative when it
has any; otherwise every test linked to the specification covers it.
The tiers are never merged.
"""

from __future__ import annotations

from lab_compliance.snapshot.models import (
    SampleTest,
    Specification,
    SpecificationParameter,
    StepStatus,
    Test,
    TestStatus,
)
from lab_compliance.utils.log import get_logger

logger = get_logger(__name__)


def undeclared_test_ids(
    specification: Specification,
    parameter: SpecificationParameter,
) -> tuple[str, ...]:
    """Parameter-level links the specification itself does not declare."""
    declared = set(specification.linked_test_ids)
    return tuple(t for t in parameter.linked_test_ids if t not in declared)


def undeclared_links(specification: Specification) -> dict[str, tuple[str, ...]]:
    """Map parameter id -> undeclared test ids, for every offending parameter."""
    out = {}
    for param in specification.parameters:
        bad = undeclared_test_ids(specification, param)
        if bad:
            out[param.id] = bad
    return out


def relevant_tests(
    specification: Specification,
    parameter: SpecificationParameter,
) -> tuple[str, ...]:
    """
    Test ids used to evaluate `parameter`, in link order.

    Parameter links the specification does not declare are dropped
    (with a warning) rather than silently evaluated.
    """
    if not parameter.linked_test_ids:
        return specification.linked_test_ids

    bad = undeclared_test_ids(specification, parameter)
    if bad:
        logger.warning(
            "Parameter %s/%s links test(s) not declared by the specification: %s",
            specification.id, parameter.id, ", ".join(bad),
        )
    return tuple(t for t in parameter.linked_test_ids if t not in bad)


def is_sample_complete(sample: SampleTest) -> bool:
    """A sample is complete when marked Completed and every step is Complete."""
    return sample.status == TestStatus.COMPLETED and all(
        s.status == StepStatus.COMPLETE for s in sample.steps
    )


def is_test_complete(test: Test) -> bool:
    """A test is complete when marked Completed and every sample is complete."""
    return test.status == TestStatus.COMPLETED and all(
        is_sample_complete(s) for s in test.samples
    )
