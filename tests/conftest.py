"""Pytest configuration and shared fixtures."""

import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add project root and src to path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))

# Set config path for tests
os.environ.setdefault("LAB_COMPLIANCE_CONFIG_DIR", str(ROOT / "config"))

from lab_compliance.snapshot.models import (  # noqa: E402
    ParameterType,
    SampleTest,
    Specification,
    SpecificationParameter,
    StepStatus,
    Test,
    TestStatus,
    TestStep,
)
from lab_compliance.utils.log import reset_logging  # noqa: E402


def build_parameter(pid, expected, linked=(), name=None, ptype=ParameterType.PHYSICAL, method=None):
    return SpecificationParameter(
        id=pid,
        name=name or pid,
        expected_value=expected,
        type=ptype,
        test_method=method,
        linked_test_ids=tuple(linked),
    )


def build_sample(sample_id, results=None, status=TestStatus.COMPLETED, result_status=None, day=None):
    step_status = StepStatus.COMPLETE if status == TestStatus.COMPLETED else StepStatus.IN_PROGRESS
    return SampleTest(
        sample_id=sample_id,
        status=status,
        results=results,
        result_status=result_status,
        steps=(TestStep(id=f"{sample_id}-S1", status=step_status),),
        completed_date=datetime(2024, 3, day, tzinfo=timezone.utc) if day else None,
    )


def build_test(test_id, *samples, status=None):
    if status is None:
        done = samples and all(s.status == TestStatus.COMPLETED for s in samples)
        status = TestStatus.COMPLETED if done else TestStatus.IN_PROGRESS
    return Test(id=test_id, name=f"Test {test_id}", status=status, samples=tuple(samples))


def completed_test(test_id, result):
    return build_test(test_id, build_sample(f"{test_id}-A", results=result))


def running_test(test_id):
    return build_test(test_id, build_sample(f"{test_id}-A", status=TestStatus.IN_PROGRESS))


@pytest.fixture
def project_root():
    return ROOT


@pytest.fixture
def three_parameter_case():
    """P1 passes, P2 is still running, P3 fails."""
    spec = Specification(
        id="SPEC-E2E",
        name="End to end",
        linked_test_ids=("T1", "T2", "T3"),
        parameters=(
            build_parameter("P1", "6.5-7.5", linked=["T1"], name="pH"),
            build_parameter("P2", "≤ 0.5", linked=["T2"], name="Water content"),
            build_parameter("P3", "NLT 80%", linked=["T3"], name="Dissolution"),
        ),
    )
    tests = {
        "T1": completed_test("T1", "7.1"),
        "T2": running_test("T2"),
        "T3": completed_test("T3", "72"),
    }
    return spec, tests


SNAPSHOT_YAML = """\
specifications:
  - id: SPEC-001
    name: API Quality Control
    version: "1.0"
    status: Active
    regions: [US, EU]
    regulatoryGuidelines: [FDA, ICH Q6A]
    linkedTestIds: [TST-001, TST-002]
    parameters:
      - id: PARAM-001
        name: pH
        type: Physical
        unit: pH units
        expectedValue: "6.5-7.5"
        acceptableRange: {min: 6.5, max: 7.5}
        testMethod: USP <791>
        mandatory: true
        linkedTestIds: [TST-001]
      - id: PARAM-002
        name: Appearance
        type: Physical
        expectedValue: White to off-white powder
        linkedTestIds: [TST-002]
  - id: SPEC-002
    name: Tablet Release
    linkedTestIds: [TST-003]
    parameters:
      - id: PARAM-001
        name: Dissolution
        type: Performance
        unit: "%"
        expectedValue: NLT 80%
tests:
  - id: TST-001
    name: pH Determination
    status: Completed
    samples:
      - sampleId: SMP-001
        status: Completed
        results: "7.2"
        resultStatus: Pass
        completedDate: "2024-03-16T10:00:00Z"
        steps:
          - {id: STEP-1, name: Calibrate, status: Complete}
          - {id: STEP-2, name: Measure, status: Complete, results: "7.2"}
  - id: TST-002
    name: Appearance
    status: Completed
    samples:
      - sampleId: SMP-002
        status: Completed
        results: Off-white powder, uniform
        steps:
          - {id: STEP-1, name: Inspect, status: Complete}
  - id: TST-003
    name: Dissolution
    status: In Progress
    samples:
      - sampleId: SMP-003
        status: In Progress
        steps:
          - {id: STEP-1, name: Dissolve, status: Complete}
          - {id: STEP-2, name: Assay, status: In Progress}
"""


@pytest.fixture
def snapshot_file(tmp_path):
    path = tmp_path / "snapshot.yaml"
    path.write_text(SNAPSHOT_YAML, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _fresh_logging():
    yield
    reset_logging()
