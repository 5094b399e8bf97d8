"""
Snapshot Loader
================
Loads specifications and tests from a YAML or JSON document:

    specifications:
      - id: SPEC-001
        linkedTestIds: [TST-001]
        parameters:
          - {id: PARAM-001, name: pH, expectedValue: "6.5-7.5"}
    tests:
      - id: TST-001
        status: Completed
        samples: [...]

Keys may be camelCase or snake_case. Structural problems raise
SnapshotError naming the offending record.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

import yaml

from lab_compliance.snapshot.models import (
    AcceptableRange,
    ParameterType,
    SampleTest,
    Specification,
    SpecificationParameter,
    SpecificationStatus,
    StepStatus,
    Test,
    TestStatus,
    TestStep,
    Verdict,
)
from lab_compliance.utils.helpers import unique
from lab_compliance.utils.log import get_logger

logger = get_logger(__name__)

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


class SnapshotError(ValueError):
    """Raised when a snapshot document cannot be turned into records."""


@dataclass
class Snapshot:
    """Everything one evaluation run needs, loaded at a single point in time."""

    specifications: list[Specification] = field(default_factory=list)
    tests: list[Test] = field(default_factory=list)

    @property
    def tests_by_id(self) -> dict[str, Test]:
        return {t.id: t for t in self.tests}

    def specification(self, spec_id: str) -> Specification | None:
        return next((s for s in self.specifications if s.id == spec_id), None)


# ── Key / value normalisation ──────────────────────────


def _snake(key: str) -> str:
    return _CAMEL_RE.sub("_", key).lower()


def _normalise(raw, where: str) -> dict:
    if not isinstance(raw, dict):
        raise SnapshotError(f"{where}: expected a mapping, got {type(raw).__name__}")
    return {_snake(k): v for k, v in raw.items()}


def _records(value, where: str) -> list:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise SnapshotError(f"{where}: expected a list, got {type(value).__name__}")
    return list(value)


def _require(raw: dict, key: str, where: str):
    if key not in raw or raw[key] in (None, ""):
        raise SnapshotError(f"{where}: missing required field '{key}'")
    return raw[key]


def _enum(enum_cls: type[Enum], value, where: str, default=None):
    if value is None or value == "":
        return default
    if isinstance(value, enum_cls):
        return value
    for member in enum_cls:
        if member.value.lower() == str(value).strip().lower():
            return member
    allowed = ", ".join(m.value for m in enum_cls)
    raise SnapshotError(f"{where}: invalid {enum_cls.__name__} '{value}' (expected one of: {allowed})")


def _date(value, where: str) -> datetime | None:
    if value is None or value == "":
        return None
    if not isinstance(value, datetime):
        try:
            value = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError as e:
            raise SnapshotError(f"{where}: invalid date '{value}'") from e
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _text(value) -> str | None:
    if value is None:
        return None
    return str(value)


def _strings(value, where: str) -> tuple[str, ...]:
    """A list of strings; a lone string counts as a one-item list."""
    if value is None or value == "":
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, (list, tuple)):
        raise SnapshotError(f"{where}: expected a list, got {type(value).__name__}")
    return tuple(str(v) for v in value)


def _ids(value, where: str) -> tuple[str, ...]:
    return unique(_strings(value, where))


# ── Record builders ───────────────────────────────────


def parse_parameter(raw: dict, spec_id: str = "?") -> SpecificationParameter:
    data = _normalise(raw, f"specification {spec_id} parameter")
    pid = str(_require(data, "id", f"specification {spec_id} parameter"))
    where = f"parameter {spec_id}/{pid}"

    rng = data.get("acceptable_range")
    acceptable_range = None
    if rng:
        try:
            acceptable_range = AcceptableRange(min=float(rng["min"]), max=float(rng["max"]))
        except (KeyError, TypeError, ValueError) as e:
            raise SnapshotError(f"{where}: acceptableRange needs numeric min and max") from e

    return SpecificationParameter(
        id=pid,
        name=str(data.get("name", pid)),
        expected_value=str(_require(data, "expected_value", where)),
        type=_enum(ParameterType, data.get("type"), where, ParameterType.OTHER),
        unit=str(data.get("unit") or ""),
        acceptable_range=acceptable_range,
        test_method=_text(data.get("test_method")),
        mandatory=bool(data.get("mandatory", True)),
        linked_test_ids=_ids(data.get("linked_test_ids"), where),
        regulatory_reference=_text(data.get("regulatory_reference")),
    )


def parse_specification(raw: dict) -> Specification:
    data = _normalise(raw, "specification")
    sid = str(_require(data, "id", "specification"))
    where = f"specification {sid}"

    return Specification(
        id=sid,
        name=str(data.get("name", sid)),
        parameters=tuple(parse_parameter(p, sid) for p in _records(data.get("parameters"), where)),
        linked_test_ids=_ids(data.get("linked_test_ids"), where),
        status=_enum(SpecificationStatus, data.get("status"), where, SpecificationStatus.DRAFT),
        product_id=str(data.get("product_id") or ""),
        version=str(data.get("version") or ""),
        regions=_strings(data.get("regions"), where),
        regulatory_guidelines=_strings(data.get("regulatory_guidelines"), where),
    )


def parse_step(raw: dict, where: str) -> TestStep:
    data = _normalise(raw, f"{where} step")
    step_id = str(_require(data, "id", f"{where} step"))
    return TestStep(
        id=step_id,
        name=str(data.get("name", step_id)),
        status=_enum(StepStatus, data.get("status"), f"{where} step {step_id}", StepStatus.NOT_STARTED),
        results=_text(data.get("results")),
    )


def parse_sample(raw: dict, test_id: str = "?") -> SampleTest:
    data = _normalise(raw, f"test {test_id} sample")
    sample_id = str(_require(data, "sample_id", f"test {test_id} sample"))
    where = f"test {test_id} sample {sample_id}"

    return SampleTest(
        sample_id=sample_id,
        sample_name=str(data.get("sample_name", sample_id)),
        status=_enum(TestStatus, data.get("status"), where, TestStatus.NOT_STARTED),
        results=_text(data.get("results")),
        result_status=_enum(Verdict, data.get("result_status"), where),
        steps=tuple(parse_step(s, where) for s in _records(data.get("steps"), where)),
        completed_date=_date(data.get("completed_date"), where),
    )


def parse_test(raw: dict) -> Test:
    data = _normalise(raw, "test")
    tid = str(_require(data, "id", "test"))
    return Test(
        id=tid,
        name=str(data.get("name", tid)),
        status=_enum(TestStatus, data.get("status"), f"test {tid}", TestStatus.NOT_STARTED),
        samples=tuple(parse_sample(s, tid) for s in _records(data.get("samples"), f"test {tid}")),
    )


# ── Status derivation ────────────────────────────────


def derive_sample_status(sample: SampleTest) -> TestStatus:
    """Status a sample should carry given its steps."""
    if not sample.steps:
        return sample.status
    if all(s.status == StepStatus.COMPLETE for s in sample.steps):
        return TestStatus.COMPLETED
    if any(s.status != StepStatus.NOT_STARTED for s in sample.steps):
        return TestStatus.IN_PROGRESS
    return TestStatus.NOT_STARTED


def derive_test_status(test: Test) -> TestStatus:
    """Status a test should carry given its samples' steps."""
    if not test.samples:
        return test.status
    statuses = [derive_sample_status(s) for s in test.samples]
    if all(s == TestStatus.COMPLETED for s in statuses):
        return TestStatus.COMPLETED
    if any(s != TestStatus.NOT_STARTED for s in statuses):
        return TestStatus.IN_PROGRESS
    return TestStatus.NOT_STARTED


# ── Entry points ─────────────────────────────────────


def parse_snapshot(data: dict | None) -> Snapshot:
    """Build a Snapshot from an already-decoded document."""
    if data is None:
        return Snapshot()
    if not isinstance(data, dict):
        raise SnapshotError("snapshot root must be a mapping with 'specifications' and 'tests'")

    specs = [parse_specification(s) for s in _records(data.get("specifications"), "specifications")]
    tests = [parse_test(t) for t in _records(data.get("tests"), "tests")]

    seen: set[str] = set()
    for t in tests:
        if t.id in seen:
            raise SnapshotError(f"test {t.id}: duplicate id")
        seen.add(t.id)

    return Snapshot(specifications=specs, tests=tests)


def load_snapshot(path: Path) -> Snapshot:
    """
    Load a snapshot file (.yaml, .yml or .json).

    Raises:
        SnapshotError: if the file is missing, undecodable or structurally invalid.
    """
    path = Path(path)
    if not path.exists():
        raise SnapshotError(f"snapshot file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise SnapshotError(f"{path.name}: cannot decode ({e})") from e

    snapshot = parse_snapshot(data)
    logger.info(
        "Loaded %d specification(s) and %d test(s) from %s",
        len(snapshot.specifications), len(snapshot.tests), path.name,
    )
    return snapshot
