"""Tests for snapshot loading."""

import json

import pytest

from lab_compliance.snapshot.loader import (
    SnapshotError,
    derive_sample_status,
    derive_test_status,
    load_snapshot,
    parse_snapshot,
)
from lab_compliance.snapshot.models import (
    ParameterType,
    SampleTest,
    StepStatus,
    TestStatus,
    TestStep,
    Verdict,
)


def test_load_yaml(snapshot_file):
    snap = load_snapshot(snapshot_file)
    assert [s.id for s in snap.specifications] == ["SPEC-001", "SPEC-002"]
    assert set(snap.tests_by_id) == {"TST-001", "TST-002", "TST-003"}

    spec = snap.specification("SPEC-001")
    ph = spec.parameter("PARAM-001")
    assert ph.type == ParameterType.PHYSICAL
    assert ph.expected_value == "6.5-7.5"
    assert ph.acceptable_range.min == 6.5
    assert ph.linked_test_ids == ("TST-001",)
    assert spec.regulatory_guidelines == ("FDA", "ICH Q6A")


def test_load_sample_fields(snapshot_file):
    sample = load_snapshot(snapshot_file).tests_by_id["TST-001"].samples[0]
    assert sample.result_status == Verdict.PASS
    assert sample.completed_date.year == 2024
    assert sample.completed_date.tzinfo is not None
    assert sample.steps[1].results == "7.2"


def test_load_json_snake_case(tmp_path):
    doc = {
        "specifications": [
            {"id": "S", "linked_test_ids": ["T"], "parameters": [{"id": "P", "expected_value": "7"}]}
        ],
        "tests": [{"id": "T", "status": "completed", "samples": []}],
    }
    path = tmp_path / "snap.json"
    path.write_text(json.dumps(doc), encoding="utf-8")
    snap = load_snapshot(path)
    assert snap.tests[0].status == TestStatus.COMPLETED
    assert snap.specifications[0].parameters[0].expected_value == "7"


def test_missing_file(tmp_path):
    with pytest.raises(SnapshotError, match="not found"):
        load_snapshot(tmp_path / "nope.yaml")


def test_missing_expected_value():
    with pytest.raises(SnapshotError, match="expected_value"):
        parse_snapshot({"specifications": [{"id": "S", "parameters": [{"id": "P"}]}]})


def test_invalid_enum_value():
    with pytest.raises(SnapshotError, match="TestStatus"):
        parse_snapshot({"tests": [{"id": "T", "status": "Done-ish"}]})


def test_duplicate_test_ids():
    with pytest.raises(SnapshotError, match="duplicate"):
        parse_snapshot({"tests": [{"id": "T"}, {"id": "T"}]})


def test_undecodable_yaml(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("specifications: [unclosed", encoding="utf-8")
    with pytest.raises(SnapshotError, match="cannot decode"):
        load_snapshot(path)


def test_empty_document():
    assert parse_snapshot(None).specifications == []


def test_derive_sample_status():
    steps = (TestStep(id="a", status=StepStatus.COMPLETE), TestStep(id="b", status=StepStatus.NOT_STARTED))
    assert derive_sample_status(SampleTest(sample_id="s", steps=steps)) == TestStatus.IN_PROGRESS
    done = tuple(TestStep(id=i, status=StepStatus.COMPLETE) for i in "ab")
    assert derive_sample_status(SampleTest(sample_id="s", steps=done)) == TestStatus.COMPLETED


def test_derive_test_status(snapshot_file):
    tests = load_snapshot(snapshot_file).tests_by_id
    assert derive_test_status(tests["TST-001"]) == TestStatus.COMPLETED
    assert derive_test_status(tests["TST-003"]) == TestStatus.IN_PROGRESS


def test_single_string_link_is_one_id():
    snap = parse_snapshot({"specifications": [{"id": "S", "linkedTestIds": "TST-001"}]})
    assert snap.specifications[0].linked_test_ids == ("TST-001",)


def test_links_must_be_a_list():
    with pytest.raises(SnapshotError, match="expected a list"):
        parse_snapshot({"specifications": [{"id": "S", "linkedTestIds": {"TST-001": True}}]})


def test_record_must_be_a_mapping():
    with pytest.raises(SnapshotError, match="expected a mapping"):
        parse_snapshot({"specifications": ["SPEC-1"]})


def test_nested_record_must_be_a_mapping():
    with pytest.raises(SnapshotError, match="test T sample"):
        parse_snapshot({"tests": [{"id": "T", "samples": ["S-1"]}]})


def test_record_list_must_be_a_list():
    with pytest.raises(SnapshotError, match="tests: expected a list"):
        parse_snapshot({"tests": {"id": "T"}})
