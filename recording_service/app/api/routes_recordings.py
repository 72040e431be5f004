from fastapi import APIRouter, BackgroundTasks, File, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool

from recording_service.app.schemas.quality import QualityReportOut
from recording_service.app.schemas.recordings import RecordingCreatedResponse, RecordingDetail
from recording_service.config import settings
from recording_service.domain.models import AudioBlob, ProcessingStatus
from recording_service.domain.services.job_service import (
    create_recording,
    get_recording,
    quality_report,
    resubmit_recording,
    run_processing_job,
)

CHUNK_SIZE = 1024 * 1024  # 1 MB per read
DEFAULT_MIME_TYPE = "application/octet-stream"

router = APIRouter(prefix="/api/recordings", tags=["recordings"])


async def read_upload(file: UploadFile) -> AudioBlob:
    """
    Buffer an uploaded recording in memory, enforcing the optional size cap.
    """
    if not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    max_bytes = settings.max_upload_mb * 1024 * 1024
    chunks = []
    total = 0
    while True:
        chunk = await file.read(CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if max_bytes and total > max_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File too large. Maximum size is {settings.max_upload_mb} MB.",
            )
        chunks.append(chunk)
    await file.close()

    if total == 0:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    return AudioBlob(
        data=b"".join(chunks),
        mime_type=file.content_type or DEFAULT_MIME_TYPE,
        filename=file.filename,
    )


@router.post("", response_model=RecordingCreatedResponse, status_code=202)
async def create_recording_upload(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
):
    """
    Accept a recording and process it in the background.
    Poll GET /api/recordings/{id} for the final status.
    """
    blob = await read_upload(file)
    recording = create_recording(blob)
    background_tasks.add_task(run_processing_job, recording.id, blob)
    return RecordingCreatedResponse.from_domain(recording)


@router.put("/{recording_id}", response_model=RecordingCreatedResponse, status_code=202)
async def replace_recording_audio(
    recording_id: str,
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
):
    """
    Replace the audio of an existing recording and reprocess it.
    """
    blob = await read_upload(file)
    recording = await run_in_threadpool(resubmit_recording, recording_id, blob)
    if not recording:
        raise HTTPException(status_code=404, detail="Recording not found")
    background_tasks.add_task(run_processing_job, recording.id, blob)
    return RecordingCreatedResponse.from_domain(recording)


@router.get("/{recording_id}", response_model=RecordingDetail)
async def get_recording_status(recording_id: str):
    recording = get_recording(recording_id)
    if not recording:
        raise HTTPException(status_code=404, detail="Recording not found")
    return RecordingDetail.from_domain(recording)


@router.get("/{recording_id}/quality-report", response_model=QualityReportOut)
async def get_quality_report(recording_id: str):
    recording = get_recording(recording_id)
    if not recording:
        raise HTTPException(status_code=404, detail="Recording not found")

    if recording.processing_status != ProcessingStatus.COMPLETED:
        raise HTTPException(
            status_code=409,
            detail=f"Recording not completed yet (status={recording.processing_status.value})",
        )

    report = quality_report(recording)
    if report is None:
        raise HTTPException(status_code=409, detail="No quality metrics for this recording")
    return QualityReportOut.from_domain(report)
