from typing import Callable, List, Tuple

from recording_service.domain.models import QualityMetrics, QualityReport

MAX_SCORE = 100

# (predicate, deduction, issue, recommendation), applied in this order.
_RULES: List[Tuple[Callable[[QualityMetrics], bool], int, str, str]] = [
    (
        lambda m: m.volume_level is not None and m.volume_level < 30,
        20,
        "volume too low",
        "Move closer to the microphone or raise the input gain.",
    ),
    (
        lambda m: m.volume_level is not None and m.volume_level > 90,
        15,
        "volume too high",
        "Lower the recording volume to avoid distortion.",
    ),
    (
        lambda m: m.silence_ratio is not None and m.silence_ratio > 0.3,
        15,
        "excessive silence",
        "Reduce pauses and silent stretches in the recording.",
    ),
    (
        lambda m: m.snr_db is not None and m.snr_db < 15,
        25,
        "excessive background noise",
        "Record in a quieter environment.",
    ),
    (
        lambda m: m.clarity_score is not None and m.clarity_score < 50,
        20,
        "poor clarity",
        "Use a better microphone or improve the recording environment.",
    ),
    (
        lambda m: m.duration_ms < 1000,
        30,
        "recording too short",
        "Record for at least one second.",
    ),
    (
        lambda m: m.duration_ms > 30000,
        10,
        "recording too long",
        "Keep recordings under 30 seconds.",
    ),
]


def score(metrics: QualityMetrics) -> QualityReport:
    """
    Map quality metrics to an overall 0–100 score plus issues and recommendations.

    Deductions are independent; the score never drops below zero.
    """
    total = MAX_SCORE
    issues: List[str] = []
    recommendations: List[str] = []

    for applies, deduction, issue, recommendation in _RULES:
        if applies(metrics):
            total -= deduction
            issues.append(issue)
            recommendations.append(recommendation)

    return QualityReport(
        overall_score=max(0, total),
        issues=issues,
        recommendations=recommendations,
    )
