from threading import Lock
from typing import Dict, Optional

from recording_service.domain.interfaces import RecordingStatusStore
from recording_service.domain.models import ProcessingOutcome, ProcessingStatus, Recording


class InMemoryRecordingRepository(RecordingStatusStore):
    """
    Very simple in-memory recording store for demo / local development.

    In a real production system, this would be backed by MongoDB, RDS, etc.
    """

    def __init__(self) -> None:
        self._recordings: Dict[str, Recording] = {}
        self._lock = Lock()

    def save(self, recording: Recording) -> None:
        with self._lock:
            recording.touch()
            self._recordings[recording.id] = recording

    def get(self, recording_id: str) -> Optional[Recording]:
        with self._lock:
            return self._recordings.get(recording_id)

    def set_processing(self, recording_id: str) -> None:
        with self._lock:
            recording = self._recordings.get(recording_id)
            if recording is None:
                raise KeyError(recording_id)
            recording.processing_status = ProcessingStatus.PROCESSING
            recording.error_message = None
            recording.touch()

    def finalize(self, recording_id: str, outcome: ProcessingOutcome) -> None:
        with self._lock:
            recording = self._recordings.get(recording_id)
            if recording is None:
                raise KeyError(recording_id)
            recording.processing_status = outcome.status
            recording.processing_time_ms = outcome.processing_time_ms
            recording.error_message = outcome.error_message
            if outcome.status == ProcessingStatus.COMPLETED:
                recording.audio_url = outcome.audio_url
                if outcome.metrics is not None:
                    recording.audio_quality = outcome.metrics
            recording.touch()


# Single process-wide instance for this app
recording_repository = InMemoryRecordingRepository()
