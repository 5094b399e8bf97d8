"""Tests for the criterion parser."""

import pytest

from lab_compliance.compliance.criterion import (
    CriterionKind,
    evaluate,
    leading_number,
    parse_criterion,
)
from lab_compliance.snapshot.models import Verdict


# ── Classification ───────────────────────────────────


@pytest.mark.parametrize(
    "expected, kind",
    [
        ("6.5-7.5", CriterionKind.RANGE),
        ("80-120% of labeled potency", CriterionKind.RANGE),
        ("≤ 0.5", CriterionKind.UPPER_BOUND),
        ("NMT 1000", CriterionKind.UPPER_BOUND),
        ("≥ 98%", CriterionKind.LOWER_BOUND),
        ("nlt 80%", CriterionKind.LOWER_BOUND),
        ("7.0", CriterionKind.EXACT_NUMERIC),
        ("White to off-white powder", CriterionKind.TEXTUAL),
        ("Meets USP requirements", CriterionKind.TEXTUAL),
    ],
)
def test_classify(expected, kind):
    assert parse_criterion(expected).kind == kind


def test_range_bounds_parsed():
    c = parse_criterion("6.5 - 7.5")
    assert (c.lower, c.upper) == (6.5, 7.5)
    assert not c.malformed


def test_bound_stripping():
    assert parse_criterion("NLT 80%").lower == 80.0
    assert parse_criterion("≤ 0.5").upper == 0.5
    assert parse_criterion("NMT 1000").upper == 1000.0


def test_parse_is_cached():
    assert parse_criterion("≤ 0.5") is parse_criterion("≤ 0.5")


def test_leading_number_ignores_units():
    assert leading_number("80%") == 80.0
    assert leading_number(" 7.2 pH units") == 7.2
    assert leading_number("approx. 7") is None
    assert leading_number("") is None


def test_describe():
    assert parse_criterion("6.5-7.5").describe() == "6.5 ≤ x ≤ 7.5"
    assert parse_criterion("NLT 80%").describe() == "x ≥ 80"


# ── Evaluation ───────────────────────────────────────


class TestRange:
    def test_inside(self):
        assert evaluate("6.5-7.5", "7.0") == Verdict.PASS

    def test_outside(self):
        assert evaluate("6.5-7.5", "7.6") == Verdict.FAIL

    def test_inclusive_edges(self):
        assert evaluate("6.5-7.5", "6.5") == Verdict.PASS
        assert evaluate("6.5-7.5", "7.5") == Verdict.PASS


class TestUpperBound:
    def test_at_bound(self):
        assert evaluate("≤ 0.5", "0.5") == Verdict.PASS

    def test_above_bound(self):
        assert evaluate("≤ 0.5", "0.51") == Verdict.FAIL

    def test_nmt_keyword(self):
        assert evaluate("NMT 1000", "850 CFU/g") == Verdict.PASS


class TestLowerBound:
    def test_below(self):
        assert evaluate("NLT 80%", "79.9") == Verdict.FAIL

    def test_at_bound(self):
        assert evaluate("NLT 80%", "80") == Verdict.PASS

    def test_symbol(self):
        assert evaluate("≥ 98%", "99.1%") == Verdict.PASS


class TestExactNumeric:
    def test_within_absolute_tolerance(self):
        assert evaluate("7.0", "7.0005") == Verdict.PASS

    def test_outside_tolerance(self):
        assert evaluate("7.0", "7.002") == Verdict.FAIL

    def test_tolerance_is_absolute_not_relative(self):
        assert evaluate("1000", "1000.01") == Verdict.FAIL


class TestTextual:
    def test_measured_inside_expected(self):
        assert evaluate("White to off-white powder", "Off-white powder") == Verdict.PASS

    def test_measured_clause_inside_expected(self):
        assert evaluate("White to off-white powder", "Off-white powder, uniform") == Verdict.PASS

    def test_expected_inside_measured(self):
        assert evaluate("Clear solution", "A clear solution, free of particles") == Verdict.PASS

    def test_no_match_is_inconclusive(self):
        assert evaluate("White to off-white powder", "Yellow crystals") == Verdict.INCONCLUSIVE

    def test_shared_word_is_not_a_match(self):
        assert evaluate("White to off-white powder", "White crystals") == Verdict.INCONCLUSIVE

    def test_only_leading_clause_is_matched(self):
        assert evaluate("White to off-white powder", "Yellow, powder") == Verdict.INCONCLUSIVE

    def test_short_leading_clause_is_ignored(self):
        assert evaluate("White to off-white powder", "of, something") == Verdict.INCONCLUSIVE

    def test_numeric_measured_against_text_criterion_stays_textual(self):
        # Only the criterion lacks a digit, so no numeric comparison happens
        assert evaluate("Meets requirements", "7.2") == Verdict.INCONCLUSIVE

    def test_digit_free_measurement_against_numeric_criterion(self):
        assert evaluate("6.5-7.5", "Not determined") == Verdict.INCONCLUSIVE


@pytest.mark.parametrize("expected", ["6.5-7.5", "≤ 0.5", "NLT 80%", "7.0", "White powder"])
@pytest.mark.parametrize("measured", ["", "   ", None])
def test_empty_measurement_is_inconclusive(expected, measured):
    assert evaluate(expected, measured) == Verdict.INCONCLUSIVE


# ── Fail-soft on unreadable criteria ─────────────────


def test_stray_character_in_bound_is_inconclusive():
    c = parse_criterion("≤ X0.5")
    assert c.malformed
    assert evaluate("≤ X0.5", "0.1") == Verdict.INCONCLUSIVE


def test_multiple_numbers_in_bound_is_inconclusive():
    assert evaluate("≤ 0.2% individual, ≤ 1.0% total", "0.1") == Verdict.INCONCLUSIVE


def test_unreadable_range_is_inconclusive():
    assert evaluate("pH-7", "7") == Verdict.INCONCLUSIVE


def test_unreadable_measurement_is_inconclusive():
    assert evaluate("6.5-7.5", "approx 7") == Verdict.INCONCLUSIVE


def test_exact_with_leading_text_is_inconclusive():
    assert evaluate("λmax at 243 nm", "243") == Verdict.INCONCLUSIVE
