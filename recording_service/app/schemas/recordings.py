from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from recording_service.app.schemas.quality import QualityMetricsOut
from recording_service.domain.models import ProcessingStatus, Recording


class RecordingDetail(BaseModel):
    id: str
    processing_status: ProcessingStatus
    audio_url: Optional[str] = None
    audio_quality: Optional[QualityMetricsOut] = None
    original_filename: Optional[str] = None
    mime_type: Optional[str] = None
    file_size_bytes: Optional[int] = None
    processing_time_ms: int = 0
    error_message: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, recording: Recording) -> "RecordingDetail":
        return cls(
            id=recording.id,
            processing_status=recording.processing_status,
            audio_url=recording.audio_url,
            audio_quality=(
                QualityMetricsOut.from_domain(recording.audio_quality)
                if recording.audio_quality
                else None
            ),
            original_filename=recording.original_filename,
            mime_type=recording.mime_type,
            file_size_bytes=recording.file_size_bytes,
            processing_time_ms=recording.processing_time_ms,
            error_message=recording.error_message,
            created_at=recording.created_at,
            updated_at=recording.updated_at,
        )


class RecordingCreatedResponse(RecordingDetail):
    pass
