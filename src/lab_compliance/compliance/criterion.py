"""
Criterion Parser
=================
Turns a parameter's free-text expected value into a structured
criterion and evaluates measured results against it.

Recognised forms (checked in this order when the text holds a digit):
  1. Range        "6.5-7.5", "80-120% of labeled potency"
  2. Upper bound  "≤ 0.5", "NMT 1000 CFU/g"
  3. Lower bound  "≥ 98%", "NLT 80%"
  4. Exact value  "7.0"   (absolute tolerance 1e-3)
Anything without a digit is a textual criterion matched by
case-insensitive substring in either direction. A textual mismatch
is Inconclusive.

The parser is heuristic by intent. A criterion it cannot read
yields Inconclusive, never an exception.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

from lab_compliance.snapshot.models import Verdict
from lab_compliance.utils.log import get_logger

logger = get_logger(__name__)

DEFAULT_TOLERANCE = 1e-3

_DIGIT_RE = re.compile(r"\d")
# Leading numeric literal; trailing units are ignored ("80%" -> 80)
_LEADING_NUMBER_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_NUMBER_TOKEN_RE = re.compile(r"\d+(?:\.\d+)?|\.\d+")
_NOT_BOUND_CHARS_RE = re.compile(r"[^0-9.\-]")
_KEYWORD_RE = re.compile(r"nmt|nlt", re.IGNORECASE)
# A digit glued to a preceding letter ("X0.5") is a typo, not a bound
_GLUED_DIGIT_RE = re.compile(r"[^\W\d_][\d.]")
# A measured text's leading clause ends at the first comma or semicolon
_CLAUSE_SEP_RE = re.compile(r"[,;]")
_MIN_CLAUSE_LEN = 3


class CriterionKind(str, Enum):
    RANGE = "Range"
    UPPER_BOUND = "UpperBound"
    LOWER_BOUND = "LowerBound"
    EXACT_NUMERIC = "ExactNumeric"
    TEXTUAL = "Textual"


@dataclass(frozen=True)
class Criterion:
    """Parsed form of an expected-value string."""

    kind: CriterionKind
    source: str
    lower: float | None = None
    upper: float | None = None
    target: float | None = None
    malformed: bool = False  # numeric form recognised but its numbers unreadable

    @property
    def is_numeric(self) -> bool:
        return self.kind != CriterionKind.TEXTUAL

    def describe(self) -> str:
        """Short human-readable form, e.g. '6.5 ≤ x ≤ 7.5'."""
        if self.malformed:
            return f"unreadable {self.kind.value.lower()} '{self.source}'"
        if self.kind == CriterionKind.RANGE:
            return f"{self.lower:g} ≤ x ≤ {self.upper:g}"
        if self.kind == CriterionKind.UPPER_BOUND:
            return f"x ≤ {self.upper:g}"
        if self.kind == CriterionKind.LOWER_BOUND:
            return f"x ≥ {self.lower:g}"
        if self.kind == CriterionKind.EXACT_NUMERIC:
            return f"x = {self.target:g}"
        return f"contains '{self.source}'"


# ── Number reading ───────────────────────────────────


def has_digit(text: str | None) -> bool:
    return bool(text) and _DIGIT_RE.search(text) is not None


def leading_number(text: str | None) -> float | None:
    """Read the numeric literal at the start of `text`, or None."""
    if not text:
        return None
    m = _LEADING_NUMBER_RE.match(text.strip())
    if not m:
        return None
    return float(m.group(0))


def _stripped_bound(expected: str) -> float | None:
    """
    Bound for '≤ 0.5' / 'NLT 80%' style criteria.

    Everything except digits, '.' and '-' is dropped. The result must
    be a single readable number; several numbers or letter-glued
    digits make the bound unreadable.
    """
    if _GLUED_DIGIT_RE.search(_KEYWORD_RE.sub(" ", expected)):
        return None
    if len(_NUMBER_TOKEN_RE.findall(expected)) != 1:
        return None
    stripped = _NOT_BOUND_CHARS_RE.sub("", expected)
    try:
        return float(stripped)
    except ValueError:
        return None


# ── Parsing ──────────────────────────────────────────


@lru_cache(maxsize=1024)
def parse_criterion(expected: str) -> Criterion:
    """
    Classify an expected-value string into a Criterion.

    Results are memoised per distinct string, so each parameter's
    criterion is parsed once however often it is evaluated.
    """
    text = (expected or "").strip()

    if not has_digit(text):
        return Criterion(kind=CriterionKind.TEXTUAL, source=text)

    if "-" in text:
        left, right = text.split("-", 1)
        lower, upper = leading_number(left), leading_number(right)
        if lower is None or upper is None:
            logger.debug("Unreadable range criterion: %r", text)
            return Criterion(kind=CriterionKind.RANGE, source=text, malformed=True)
        return Criterion(kind=CriterionKind.RANGE, source=text, lower=lower, upper=upper)

    lowered = text.lower()
    if "≤" in text or "nmt" in lowered:
        bound = _stripped_bound(text)
        if bound is None:
            logger.debug("Unreadable upper bound: %r", text)
        return Criterion(
            kind=CriterionKind.UPPER_BOUND, source=text, upper=bound, malformed=bound is None,
        )

    if "≥" in text or "nlt" in lowered:
        bound = _stripped_bound(text)
        if bound is None:
            logger.debug("Unreadable lower bound: %r", text)
        return Criterion(
            kind=CriterionKind.LOWER_BOUND, source=text, lower=bound, malformed=bound is None,
        )

    target = leading_number(text)
    return Criterion(
        kind=CriterionKind.EXACT_NUMERIC, source=text, target=target, malformed=target is None,
    )


# ── Evaluation ───────────────────────────────────────


def _evaluate_textual(expected: str, measured: str) -> Verdict:
    """
    Case-insensitive substring match in either direction.

    Whole strings are tried first, then the measured text's leading
    clause: 'White to off-white powder' accepts 'Off-white powder,
    uniform' because 'off-white powder' sits inside the expected text.
    Anything else is Inconclusive.
    """
    exp = expected.strip().lower()
    got = measured.strip().lower()
    if not exp:
        return Verdict.INCONCLUSIVE
    if exp in got or got in exp:
        return Verdict.PASS
    lead = _CLAUSE_SEP_RE.split(got, 1)[0].strip()
    if len(lead) >= _MIN_CLAUSE_LEN and lead in exp:
        return Verdict.PASS
    return Verdict.INCONCLUSIVE


def evaluate_criterion(
    criterion: Criterion,
    measured: str | None,
    tolerance: float = DEFAULT_TOLERANCE,
) -> Verdict:
    """
    Evaluate a measured result against a parsed criterion.

    The numeric branch applies only when both the criterion text and
    the measurement contain a digit; otherwise the raw texts are
    compared as a textual criterion.
    """
    if measured is None or not measured.strip():
        return Verdict.INCONCLUSIVE

    if not criterion.is_numeric or not has_digit(measured):
        return _evaluate_textual(criterion.source, measured)

    if criterion.malformed:
        return Verdict.INCONCLUSIVE

    value = leading_number(measured)
    if value is None:
        return Verdict.INCONCLUSIVE

    if criterion.kind == CriterionKind.RANGE:
        passed = criterion.lower <= value <= criterion.upper
    elif criterion.kind == CriterionKind.UPPER_BOUND:
        passed = value <= criterion.upper
    elif criterion.kind == CriterionKind.LOWER_BOUND:
        passed = value >= criterion.lower
    else:
        passed = abs(value - criterion.target) < tolerance

    return Verdict.PASS if passed else Verdict.FAIL


def evaluate(expected: str, measured: str | None, tolerance: float = DEFAULT_TOLERANCE) -> Verdict:
    """Parse `expected` (cached) and evaluate `measured` against it."""
    return evaluate_criterion(parse_criterion(expected), measured, tolerance)
