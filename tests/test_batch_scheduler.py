"""Grouped, order-preserving batch analysis."""

from __future__ import annotations

import threading
import time

from recording_service.domain.models import AnalysisResult, BatchItem, QualityMetrics
from recording_service.domain.services.batch_scheduler import analyze_batch


def _items(count: int) -> list[BatchItem]:
    return [BatchItem(id=f"rec-{i}", data=bytes([i]), mime_type="audio/wav") for i in range(count)]


def test_seven_items_run_in_three_groups_in_input_order():
    lock = threading.Lock()
    finished: set[int] = set()
    in_flight = 0
    peak = 0
    violations: list[str] = []
    rounds: list[int] = []

    def analyzer(data: bytes, mime_type: str) -> AnalysisResult:
        nonlocal in_flight, peak
        index = data[0]
        with lock:
            group_start = (index // 3) * 3
            missing = [i for i in range(group_start) if i not in finished]
            if missing:
                violations.append(f"rec-{index} started before {missing} finished")
            if index % 3 == 0:
                rounds.append(index // 3)
            in_flight += 1
            peak = max(peak, in_flight)
        time.sleep(0.02)
        with lock:
            in_flight -= 1
            finished.add(index)
        return AnalysisResult(
            success=True,
            processing_time_ms=20,
            metrics=QualityMetrics(duration_ms=1000 + index),
        )

    results = analyze_batch(_items(7), group_size=3, analyzer=analyzer)

    assert [r.id for r in results] == [f"rec-{i}" for i in range(7)]
    assert [r.result.metrics.duration_ms for r in results] == [1000 + i for i in range(7)]
    assert violations == []
    assert sorted(rounds) == [0, 1, 2]
    assert peak <= 3


def test_one_failure_does_not_affect_siblings():
    def analyzer(data: bytes, mime_type: str) -> AnalysisResult:
        if data[0] == 1:
            raise RuntimeError("decoder exploded")
        if data[0] == 4:
            return AnalysisResult(success=False, processing_time_ms=1, error="Recording too long")
        return AnalysisResult(success=True, processing_time_ms=1, metrics=QualityMetrics(duration_ms=2000))

    results = analyze_batch(_items(5), group_size=3, analyzer=analyzer)

    assert [r.result.success for r in results] == [True, False, True, True, False]
    assert results[1].result.error == "decoder exploded"
    assert results[4].result.error == "Recording too long"


def test_empty_batch():
    assert analyze_batch([], group_size=3) == []
