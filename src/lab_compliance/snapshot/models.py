"""
Snapshot Models
================
Read-only records for specifications and lab work.

The evaluation engine never owns or mutates these. Callers build a
snapshot from their own store (or via `snapshot.loader`) and pass it in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ParameterType(str, Enum):
    PHYSICAL = "Physical"
    CHEMICAL = "Chemical"
    MICROBIAL = "Microbial"
    PERFORMANCE = "Performance"
    STABILITY = "Stability"
    OTHER = "Other"


class SpecificationStatus(str, Enum):
    DRAFT = "Draft"
    ACTIVE = "Active"
    OBSOLETE = "Obsolete"


class TestStatus(str, Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class StepStatus(str, Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETE = "Complete"


class Verdict(str, Enum):
    """Outcome of comparing one measured result with its criterion."""

    PASS = "Pass"
    FAIL = "Fail"
    INCONCLUSIVE = "Inconclusive"


# pytest would otherwise try to collect these as test classes
TestStatus.__test__ = False


@dataclass(frozen=True)
class AcceptableRange:
    min: float
    max: float


@dataclass(frozen=True)
class SpecificationParameter:
    """One measurable quality attribute with its free-text criterion."""

    id: str
    name: str
    expected_value: str
    type: ParameterType = ParameterType.OTHER
    unit: str = ""
    acceptable_range: AcceptableRange | None = None
    test_method: str | None = None
    mandatory: bool = True
    linked_test_ids: tuple[str, ...] = ()
    regulatory_reference: str | None = None


@dataclass(frozen=True)
class Specification:
    """A named set of acceptance-criteria parameters governing a product."""

    id: str
    name: str = ""
    parameters: tuple[SpecificationParameter, ...] = ()
    linked_test_ids: tuple[str, ...] = ()
    status: SpecificationStatus = SpecificationStatus.DRAFT
    product_id: str = ""
    version: str = ""
    regions: tuple[str, ...] = ()
    regulatory_guidelines: tuple[str, ...] = ()

    def parameter(self, parameter_id: str) -> SpecificationParameter | None:
        return next((p for p in self.parameters if p.id == parameter_id), None)


@dataclass(frozen=True)
class TestStep:
    id: str
    name: str = ""
    status: StepStatus = StepStatus.NOT_STARTED
    results: str | None = None

    __test__ = False


@dataclass(frozen=True)
class SampleTest:
    """One sample's run through a test; aggregates its steps."""

    sample_id: str
    sample_name: str = ""
    status: TestStatus = TestStatus.NOT_STARTED
    results: str | None = None
    result_status: Verdict | None = None
    steps: tuple[TestStep, ...] = ()
    completed_date: datetime | None = None


@dataclass(frozen=True)
class Test:
    """A unit of lab work run over one or more samples."""

    id: str
    name: str = ""
    status: TestStatus = TestStatus.NOT_STARTED
    samples: tuple[SampleTest, ...] = field(default_factory=tuple)

    __test__ = False
