import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence

from recording_service.config import settings
from recording_service.domain.models import AnalysisResult, BatchItem, BatchItemResult
from recording_service.domain.services.quality_analyzer import analyze_with_result

logger = logging.getLogger(__name__)


def _chunked(items: Sequence[BatchItem], size: int) -> List[Sequence[BatchItem]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


def _safe_analyze(
    analyzer: Callable[[bytes, str], AnalysisResult],
    item: BatchItem,
) -> AnalysisResult:
    started = time.monotonic()
    try:
        return analyzer(item.data, item.mime_type)
    except Exception as exc:  # noqa: BLE001 - one item must not sink its group
        logger.exception("Batch analysis crashed for item %s", item.id)
        return AnalysisResult(
            success=False,
            processing_time_ms=int((time.monotonic() - started) * 1000),
            error=str(exc),
        )


def analyze_batch(
    items: Sequence[BatchItem],
    *,
    group_size: Optional[int] = None,
    analyzer: Callable[[bytes, str], AnalysisResult] = analyze_with_result,
) -> List[BatchItemResult]:
    """
    Analyze many recordings, at most `group_size` at a time.

    Groups run one after another; members of a group run concurrently.
    Results come back in input order.
    """
    size = group_size or settings.batch_group_size
    started = time.monotonic()
    results: List[BatchItemResult] = []

    with ThreadPoolExecutor(max_workers=size, thread_name_prefix="quality-batch") as pool:
        for group in _chunked(list(items), size):
            futures = [pool.submit(_safe_analyze, analyzer, item) for item in group]
            results.extend(
                BatchItemResult(id=item.id, result=future.result())
                for item, future in zip(group, futures)
            )

    logger.info(
        "Batch analysis finished: items=%d succeeded=%d elapsed_ms=%d",
        len(results),
        sum(1 for r in results if r.result.success),
        int((time.monotonic() - started) * 1000),
    )
    return results
