"""Security score calculation.

Two entry points exist and callers pick one on purpose:

* :func:`compute_security_score` consumes per-section counts (certificate,
  manifest, code and network analysis) plus the dangerous-permission count.
* :func:`compute_summary_score` consumes aggregate counts only.

The two can disagree on the same data; a deployment should settle on one.
Both are pure and deterministic.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Mapping

from ..domain.errors import InvalidInputError
from ..domain.models import CanonicalSeverity

SCORE_MIN = 0
SCORE_MAX = 100

HIGH_WEIGHT = 10
WARNING_WEIGHT = 5
INFO_WEIGHT = 1
GOOD_CREDIT = 3

RESCALE_THRESHOLD = 20
"""Base scores below this are rescaled from the issue ratio."""

RESCALE_FLOOR = 20
RESCALE_SPAN = 80
RESCALE_SMOOTHING = 10

DANGEROUS_PERMISSION_CAPS: tuple[tuple[int, int], ...] = (
    (10, 35),
    (5, 55),
    (3, 70),
)
"""(minimum dangerous permissions, score ceiling), most severe first."""

HIGH_SEVERITY_DEDUCTIONS: tuple[tuple[int, int], ...] = (
    (15, 25),
    (10, 15),
    (5, 5),
)
"""(minimum effective high count, points subtracted), most severe first."""

MINIMUM_FLOORS: tuple[tuple[int, int], ...] = (
    (2, 70),
    (5, 50),
    (10, 30),
)
"""(maximum total items, guaranteed score), smallest bucket first."""

VARIANT_SECTIONS = "sections"
VARIANT_SUMMARY = "summary"


def _check_count(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{name} must be an integer count.")
    if value < 0:
        raise InvalidInputError(f"{name} must not be negative.")
    return value


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""

    return int(math.floor(value + 0.5))


def _clamp(value: float) -> float:
    return min(max(value, SCORE_MIN), SCORE_MAX)


@dataclass(frozen=True)
class SectionCounts:
    """Severity counts reported for one analysis section."""

    high: int = 0
    warning: int = 0
    info: int = 0
    good: int = 0

    def __post_init__(self) -> None:
        for name in ("high", "warning", "info", "good"):
            _check_count(name, getattr(self, name))

    def __add__(self, other: "SectionCounts") -> "SectionCounts":
        return SectionCounts(
            high=self.high + other.high,
            warning=self.warning + other.warning,
            info=self.info + other.info,
            good=self.good + other.good,
        )


@dataclass(frozen=True)
class ScoreInputs:
    """Aggregated counts consumed by :func:`compute_security_score`."""

    effective_high: int
    total_warning: int
    total_info: int
    total_good: int
    dangerous_permission_count: int

    def __post_init__(self) -> None:
        for name in (
            "effective_high",
            "total_warning",
            "total_info",
            "total_good",
            "dangerous_permission_count",
        ):
            _check_count(name, getattr(self, name))

    @property
    def total_items(self) -> int:
        return self.effective_high + self.total_warning + self.total_info

    @classmethod
    def from_sections(
        cls, sections: Iterable[SectionCounts], dangerous_permission_count: int
    ) -> "ScoreInputs":
        """Sum section counts; dangerous permissions also count as high."""

        dangerous = _check_count(
            "dangerous_permission_count", dangerous_permission_count
        )
        total = sum(sections, SectionCounts())
        return cls(
            effective_high=total.high + dangerous,
            total_warning=total.warning,
            total_info=total.info,
            total_good=total.good,
            dangerous_permission_count=dangerous,
        )


@dataclass(frozen=True)
class SummaryScoreInputs:
    """Aggregate counts consumed by :func:`compute_summary_score`."""

    high: int
    warning: int
    info: int
    good: int = 0

    def __post_init__(self) -> None:
        for name in ("high", "warning", "info", "good"):
            _check_count(name, getattr(self, name))

    @property
    def total_items(self) -> int:
        return self.high + self.warning + self.info

    @classmethod
    def from_summary(
        cls, summary: Mapping[CanonicalSeverity, int], good: int = 0
    ) -> "SummaryScoreInputs":
        """Fold the five canonical buckets into high/warning/info."""

        def count(severity: CanonicalSeverity) -> int:
            return _check_count(severity.value, summary.get(severity, 0))

        return cls(
            high=count(CanonicalSeverity.CRITICAL) + count(CanonicalSeverity.HIGH),
            warning=count(CanonicalSeverity.MEDIUM),
            info=count(CanonicalSeverity.LOW) + count(CanonicalSeverity.INFO),
            good=good,
        )


def compute_security_score(inputs: ScoreInputs) -> int:
    """Return the 0-100 score from per-section aggregates."""

    total_items = inputs.total_items
    if total_items == 0:
        return SCORE_MAX

    weighted_penalty = (
        inputs.effective_high * HIGH_WEIGHT
        + inputs.total_warning * WARNING_WEIGHT
        + inputs.total_info * INFO_WEIGHT
        - inputs.total_good * GOOD_CREDIT
    )
    score: float = SCORE_MAX - weighted_penalty

    if score < RESCALE_THRESHOLD:
        issue_ratio = total_items / max(total_items + RESCALE_SMOOTHING, 1)
        score = max(RESCALE_FLOOR, SCORE_MAX - issue_ratio * RESCALE_SPAN)

    ceiling = dangerous_permission_cap(inputs.dangerous_permission_count)
    score = min(score, ceiling)

    for minimum, deduction in HIGH_SEVERITY_DEDUCTIONS:
        if inputs.effective_high >= minimum:
            score = max(0, score - deduction)
            break

    for maximum, floor in MINIMUM_FLOORS:
        if total_items <= maximum:
            score = max(score, floor)
            break

    # floors never lift a score past the permission ceiling
    score = min(score, ceiling)
    return round_half_up(_clamp(score))


def dangerous_permission_cap(dangerous_permission_count: int) -> int:
    """Return the score ceiling implied by the dangerous-permission count."""

    for minimum, ceiling in DANGEROUS_PERMISSION_CAPS:
        if dangerous_permission_count >= minimum:
            return ceiling
    return SCORE_MAX


def compute_summary_score(inputs: SummaryScoreInputs) -> int:
    """Return the 0-100 score from aggregate counts only."""

    weighted_penalty = (
        inputs.high * HIGH_WEIGHT
        + inputs.warning * WARNING_WEIGHT
        + inputs.info * INFO_WEIGHT
        - inputs.good * GOOD_CREDIT
    )
    max_penalty = max(inputs.total_items * HIGH_WEIGHT, 1)
    raw = SCORE_MAX - weighted_penalty / max_penalty * 100
    return int(_clamp(round_half_up(raw)))


def score_rating(score: int) -> str:
    """Human label used in notifications and report headers."""

    if score >= 70:
        return "Good"
    if score >= 40:
        return "Moderate"
    return "Poor"


def score_band(score: int) -> str:
    """Distribution bucket used by the analytics dashboard."""

    if score >= 80:
        return "excellent"
    if score >= 60:
        return "good"
    if score >= 40:
        return "fair"
    return "poor"
