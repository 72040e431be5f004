"""
Objective quality metrics for an uploaded recording.

Each analysis pass runs the engine against a null sink and scrapes its
diagnostic text. Only the size guard, the probe and the duration guard can
abort an analysis; every later pass degrades to a default value.
"""
import logging
import re
import time
from pathlib import Path
from typing import List, Optional, Tuple

from recording_service.config import settings
from recording_service.domain.errors import AnalysisFailed, ProbeFailed
from recording_service.domain.models import AnalysisResult, QualityMetrics
from recording_service.infrastructure.ffmpeg_adapter import (
    FilterSpec,
    extension_for_mime,
    probe,
    remove_quietly,
    run_filter_pass,
    temp_path,
)

logger = logging.getLogger(__name__)

SILENCE_THRESHOLD = "-30dB"
SILENCE_MIN_DURATION_SECONDS = 0.5
# Silence is measured against a fixed window, not the clip length.
SILENCE_REFERENCE_SECONDS = 10.0
VOICE_BAND_HZ = (300, 3400)
DEFAULT_CLARITY_SCORE = 50.0
DEFAULT_SNR_DB = 20.0

_NUMBER = r"(-?\d+(?:\.\d+)?)"
_MEAN_VOLUME_RE = re.compile(r"mean_volume:\s*" + _NUMBER + r" dB")
_SILENCE_DURATION_RE = re.compile(r"silence_duration:\s*" + _NUMBER)
_RMS_LEVEL_RE = re.compile(r"RMS level dB:\s*" + _NUMBER)
_MIN_LEVEL_RE = re.compile(r"Min level dB:\s*" + _NUMBER)
_MAX_LEVEL_RE = re.compile(r"Max level dB:\s*" + _NUMBER)

VOLUME_FILTERS: List[FilterSpec] = [
    ("volumedetect", {}),
    ("silencedetect", {"noise": SILENCE_THRESHOLD, "d": SILENCE_MIN_DURATION_SECONDS}),
]
CLARITY_FILTERS: List[FilterSpec] = [
    ("highpass", {"f": VOICE_BAND_HZ[0]}),
    ("lowpass", {"f": VOICE_BAND_HZ[1]}),
    ("astats", {}),
]
NOISE_FLOOR_FILTERS: List[FilterSpec] = [
    ("astats", {"metadata": 1, "reset": 1}),
]


def _last_number(pattern: re.Pattern, text: str) -> Optional[float]:
    """Engine diagnostics repeat per channel; the last figure wins."""
    matches = pattern.findall(text)
    if not matches:
        return None
    return float(matches[-1])


def parse_mean_volume(text: str) -> Optional[float]:
    return _last_number(_MEAN_VOLUME_RE, text)


def parse_silence_duration(text: str) -> Optional[float]:
    return _last_number(_SILENCE_DURATION_RE, text)


def parse_rms_level(text: str) -> Optional[float]:
    return _last_number(_RMS_LEVEL_RE, text)


def parse_level_range(text: str) -> Optional[Tuple[float, float]]:
    min_level = _last_number(_MIN_LEVEL_RE, text)
    max_level = _last_number(_MAX_LEVEL_RE, text)
    if min_level is None or max_level is None:
        return None
    return min_level, max_level


def _volume_and_silence(path: Path) -> Tuple[Optional[float], Optional[float]]:
    try:
        text = run_filter_pass(path, VOLUME_FILTERS)
    except AnalysisFailed as exc:
        logger.warning("Volume/silence pass failed for %s: %s", path.name, exc)
        return None, None

    volume_level = None
    mean_volume = parse_mean_volume(text)
    if mean_volume is not None:
        volume_level = (mean_volume + 60) * (100 / 60)

    silence_ratio = None
    silence_seconds = parse_silence_duration(text)
    if silence_seconds is not None:
        silence_ratio = silence_seconds / SILENCE_REFERENCE_SECONDS

    return volume_level, silence_ratio


def _clarity(path: Path) -> float:
    try:
        rms_db = parse_rms_level(run_filter_pass(path, CLARITY_FILTERS))
    except AnalysisFailed as exc:
        logger.warning("Clarity pass failed for %s, using default: %s", path.name, exc)
        return DEFAULT_CLARITY_SCORE
    if rms_db is None:
        return DEFAULT_CLARITY_SCORE
    return (rms_db + 40) * 2


def _signal_to_noise(path: Path) -> float:
    try:
        levels = parse_level_range(run_filter_pass(path, NOISE_FLOOR_FILTERS))
    except AnalysisFailed as exc:
        logger.warning("Noise-floor pass failed for %s, using default: %s", path.name, exc)
        return DEFAULT_SNR_DB
    if levels is None:
        return DEFAULT_SNR_DB
    min_db, max_db = levels
    return max_db - min_db


def analyze(
    data: bytes,
    mime_type: str,
    *,
    temp_dir: Optional[Path] = None,
    max_file_size: Optional[int] = None,
    max_duration_seconds: Optional[int] = None,
) -> QualityMetrics:
    """
    Compute QualityMetrics for a recording.

    Raises AnalysisFailed when the input is too large, cannot be probed,
    or is too long. Clamping of bounded fields happens in QualityMetrics.
    """
    size_limit = max_file_size if max_file_size is not None else settings.max_file_size_bytes
    if len(data) > size_limit:
        raise AnalysisFailed(f"Recording too large: {len(data)} bytes (max {size_limit} bytes)")

    duration_limit_ms = (
        max_duration_seconds if max_duration_seconds is not None else settings.max_duration_seconds
    ) * 1000

    input_path: Optional[Path] = None
    try:
        try:
            input_path = temp_path("audio_analysis", extension_for_mime(mime_type), temp_dir=temp_dir)
            input_path.write_bytes(data)
        except OSError as exc:
            raise AnalysisFailed(f"Could not stage recording for analysis: {exc}") from exc

        logger.info("Starting quality analysis: size=%d mime=%s", len(data), mime_type)

        try:
            info = probe(input_path)
        except ProbeFailed as exc:
            raise AnalysisFailed(str(exc)) from exc

        if info.duration_ms > duration_limit_ms:
            raise AnalysisFailed(
                f"Recording too long: {info.duration_ms}ms (max {duration_limit_ms}ms)"
            )

        volume_level, silence_ratio = _volume_and_silence(input_path)
        clarity_score = _clarity(input_path)
        snr_db = _signal_to_noise(input_path)

        return QualityMetrics(
            duration_ms=info.duration_ms,
            sample_rate=info.sample_rate,
            bit_rate=info.bit_rate,
            channels=info.channels,
            format=info.format,
            snr_db=snr_db,
            volume_level=volume_level,
            silence_ratio=silence_ratio,
            clarity_score=clarity_score,
            file_size=len(data),
        )
    finally:
        remove_quietly(input_path)


def analyze_with_result(data: bytes, mime_type: str, **kwargs) -> AnalysisResult:
    """Run analyze() and report success/failure with timing instead of raising."""
    started = time.monotonic()
    try:
        metrics = analyze(data, mime_type, **kwargs)
    except AnalysisFailed as exc:
        elapsed = int((time.monotonic() - started) * 1000)
        logger.warning("Quality analysis failed after %dms: %s", elapsed, exc)
        return AnalysisResult(success=False, processing_time_ms=elapsed, error=str(exc))

    elapsed = int((time.monotonic() - started) * 1000)
    logger.info("Quality analysis finished in %dms", elapsed)
    return AnalysisResult(success=True, processing_time_ms=elapsed, metrics=metrics)
