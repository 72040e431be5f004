from typing import List

from fastapi import APIRouter, File, UploadFile
from fastapi.concurrency import run_in_threadpool

from recording_service.app.api.routes_recordings import read_upload
from recording_service.app.schemas.quality import (
    BatchAnalysisResponse,
    BatchItemOut,
    QualityMetricsOut,
    QualityReportOut,
)
from recording_service.domain.models import BatchItem
from recording_service.domain.services.batch_scheduler import analyze_batch
from recording_service.domain.services.quality_scorer import score

router = APIRouter(prefix="/api/quality", tags=["quality"])


@router.post("/analyze-batch", response_model=BatchAnalysisResponse)
async def analyze_uploads(files: List[UploadFile] = File(...)):
    """
    Analyze several uploaded recordings and return metrics plus a scored
    report for each. Nothing is standardized or stored.
    """
    items = []
    for index, file in enumerate(files):
        blob = await read_upload(file)
        items.append(BatchItem(id=f"{index}:{blob.filename}", data=blob.data, mime_type=blob.mime_type))

    results = await run_in_threadpool(analyze_batch, items)

    return BatchAnalysisResponse(
        status="completed",
        results=[
            BatchItemOut(
                id=r.id,
                success=r.result.success,
                processing_time_ms=r.result.processing_time_ms,
                metrics=QualityMetricsOut.from_domain(r.result.metrics) if r.result.metrics else None,
                report=QualityReportOut.from_domain(score(r.result.metrics)) if r.result.metrics else None,
                error=r.result.error,
            )
            for r in results
        ],
    )
