"""
Engagement scoring and reading-pattern classification.

Pure functions over a session's samples and elapsed time. Insufficient
signal yields ``None`` rather than an error.
"""

import math
from collections.abc import Sequence

from readtrack.domain.models import PatternReport, ReadingSessionType, ScrollSample

TIME_SATURATION_MS = 180_000
TIME_WEIGHT = 0.35
DEPTH_WEIGHT = 0.40
VELOCITY_WEIGHT = 0.25

MIN_SAMPLES_FOR_PATTERN = 5
DEEP_READING_MS = 300_000
MODERATE_READING_MS = 120_000

COMPLETED_READING_MS = 120_000
COMPLETED_READING_DEPTH = 80


def round_half_up(value: float) -> int:
    """Round halves away from zero for non-negative inputs (12.5 -> 13)."""
    return int(math.floor(value + 0.5))


def engagement_score(
    time_spent_ms: float,
    max_depth_percent: float,
    reading_velocity: float,
) -> float:
    """
    Weighted engagement in [0, 1].

    Time saturates at three minutes and velocity at one sample per second, so
    erratic fast scrolling cannot inflate the score.
    """
    time_score = min(max(time_spent_ms, 0.0) / TIME_SATURATION_MS, 1.0)
    depth_score = max(0.0, min(max_depth_percent, 100.0)) / 100.0
    velocity_score = min(max(reading_velocity, 0.0), 1.0)
    return TIME_WEIGHT * time_score + DEPTH_WEIGHT * depth_score + VELOCITY_WEIGHT * velocity_score


def classify_session_type(time_spent_ms: float) -> ReadingSessionType:
    if time_spent_ms > DEEP_READING_MS:
        return ReadingSessionType.DEEP_READING
    if time_spent_ms > MODERATE_READING_MS:
        return ReadingSessionType.MODERATE_READING
    return ReadingSessionType.SCANNING


def classify_reading(
    samples: Sequence[ScrollSample],
    time_spent_ms: float,
) -> PatternReport | None:
    """Describe how the visitor scrolled; None below five samples."""
    count = len(samples)
    if count < MIN_SAMPLES_FOR_PATTERN or time_spent_ms <= 0:
        return None

    reading_velocity = count / (time_spent_ms / 1000)
    deltas = [
        curr.depth_percent - prev.depth_percent
        for prev, curr in zip(samples, samples[1:])
    ]
    avg_depth_increment = sum(deltas) / len(deltas)

    return PatternReport(
        reading_velocity=reading_velocity,
        avg_depth_increment=avg_depth_increment,
        scroll_consistency=1.0 if avg_depth_increment > 0 else 0.5,
        total_samples=count,
        session_type=classify_session_type(time_spent_ms),
    )


def is_completed_reading(time_spent_ms: float, max_depth_percent: float) -> bool:
    return time_spent_ms > COMPLETED_READING_MS and max_depth_percent > COMPLETED_READING_DEPTH
