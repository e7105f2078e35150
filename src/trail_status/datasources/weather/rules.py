"""Ordered heuristics turning tomorrow's forecast into a predicted status.

Each rule is a predicate over ``ForecastStats`` plus the outcome it yields.
``RULES`` is evaluated top to bottom and the first match wins, so order is
part of the behaviour. The last rule always matches.

Thresholds are in °F and inches.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from trail_status.schemas import Confidence, TrailStatus

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from trail_status.datasources.weather.models import ForecastStats


@dataclass(frozen=True)
class RuleOutcome:
    """What a matching rule predicts."""

    prediction: TrailStatus
    confidence: Confidence
    reason: str


@dataclass(frozen=True)
class Rule:
    """A named ``(predicate, outcome)`` pair."""

    name: str
    applies: Callable[[ForecastStats], bool]
    prediction: TrailStatus
    confidence: Confidence
    reason: Callable[[ForecastStats], str]

    def outcome(self, stats: ForecastStats) -> RuleOutcome:
        return RuleOutcome(self.prediction, self.confidence, self.reason(stats))


RAIN_TOTAL_THRESHOLD = 0.1  # inches
FREEZE_THAW_LOW = 35
FREEZE_THAW_HIGH = 32
FROZEN_HIGH = 28
SOFT_HUMIDITY = 85
SOFT_MAX_TEMP = 55
DRY_MIN_TEMP = 40
DRY_HUMIDITY = 75


RULES: tuple[Rule, ...] = (
    Rule(
        name="snow",
        applies=lambda s: s.has_snow or s.total_snow > 0,
        prediction=TrailStatus.FREEZE_THAW,
        confidence=Confidence.HIGH,
        reason=lambda s: "Snow expected tomorrow",
    ),
    Rule(
        name="rain",
        applies=lambda s: s.has_rain or s.total_rain > RAIN_TOTAL_THRESHOLD,
        prediction=TrailStatus.CLOSED,
        confidence=Confidence.HIGH,
        reason=lambda s: f'Rain expected (~{s.total_rain:.1f}" total)',
    ),
    Rule(
        name="freeze-thaw",
        applies=lambda s: s.min_temp <= FREEZE_THAW_LOW and s.max_temp >= FREEZE_THAW_HIGH,
        prediction=TrailStatus.FREEZE_THAW,
        confidence=Confidence.HIGH,
        reason=lambda s: f"Temps {s.low}°F-{s.high}°F (freeze/thaw range)",
    ),
    Rule(
        name="frozen",
        applies=lambda s: s.max_temp < FROZEN_HIGH,
        prediction=TrailStatus.FREEZE_THAW,
        confidence=Confidence.MEDIUM,
        reason=lambda s: f"Cold temps (high of {s.high}°F) - ground frozen",
    ),
    Rule(
        name="soft",
        applies=lambda s: (
            s.avg_humidity > SOFT_HUMIDITY
            and s.min_temp > FREEZE_THAW_LOW
            and s.max_temp < SOFT_MAX_TEMP
        ),
        prediction=TrailStatus.CAUTION,
        confidence=Confidence.LOW,
        reason=lambda s: f"High humidity ({s.avg_humidity}%) - trails may be soft",
    ),
    Rule(
        name="dry",
        applies=lambda s: (
            s.min_temp > DRY_MIN_TEMP and s.avg_humidity < DRY_HUMIDITY and not s.has_rain
        ),
        prediction=TrailStatus.OPEN,
        confidence=Confidence.HIGH,
        reason=lambda s: f"Good conditions: {s.low}°F-{s.high}°F, dry",
    ),
    Rule(
        name="default",
        applies=lambda s: True,
        prediction=TrailStatus.OPEN,
        confidence=Confidence.LOW,
        reason=lambda s: f"Temps {s.low}°F-{s.high}°F",
    ),
)


def first_matching_rule(stats: ForecastStats, rules: Sequence[Rule] = RULES) -> Rule:
    """
    Return the first rule whose predicate holds.

    Raises:
        LookupError: No rule matched (only possible with a custom rule list).
    """
    for rule in rules:
        if rule.applies(stats):
            return rule
    msg = "No prediction rule matched"
    raise LookupError(msg)


def apply_rules(stats: ForecastStats, rules: Sequence[Rule] = RULES) -> RuleOutcome:
    """Evaluate ``rules`` in order and return the first match's outcome."""
    return first_matching_rule(stats, rules).outcome(stats)
