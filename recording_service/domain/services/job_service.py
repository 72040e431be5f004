import logging
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from threading import Lock
from typing import Dict, Iterator, Optional

from recording_service.domain.models import (
    AudioBlob,
    ProcessingOutcome,
    ProcessingStatus,
    QualityReport,
    Recording,
)
from recording_service.domain.services.processing_job import AudioProcessingJob
from recording_service.domain.services.quality_scorer import score
from recording_service.infrastructure.object_store import create_object_store
from recording_service.infrastructure.persistence.in_memory_repo import recording_repository

logger = logging.getLogger(__name__)

object_store = create_object_store()

_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="recording-job")

# One lock per recording id so a re-upload never races an in-flight job.
# Entries are reference-counted and dropped once nobody holds or waits on them.
_registry_lock = Lock()
_recording_locks: Dict[str, Lock] = {}
_lock_holders: Dict[str, int] = {}


@contextmanager
def _recording_lock(recording_id: str) -> Iterator[None]:
    with _registry_lock:
        lock = _recording_locks.setdefault(recording_id, Lock())
        _lock_holders[recording_id] = _lock_holders.get(recording_id, 0) + 1
    try:
        with lock:
            yield
    finally:
        with _registry_lock:
            _lock_holders[recording_id] -= 1
            if not _lock_holders[recording_id]:
                del _lock_holders[recording_id]
                del _recording_locks[recording_id]


def create_recording(blob: AudioBlob) -> Recording:
    """
    Create a new recording in PROCESSING state for an accepted upload.
    """
    recording = Recording(
        id=str(uuid.uuid4()),
        processing_status=ProcessingStatus.PROCESSING,
        original_filename=blob.filename,
        mime_type=blob.mime_type,
        file_size_bytes=len(blob.data),
    )
    recording_repository.save(recording)
    return recording


def resubmit_recording(recording_id: str, blob: AudioBlob) -> Optional[Recording]:
    """
    Replace the audio of an existing recording and flip it back to PROCESSING.

    Waits for any in-flight job on the same recording, so that job's
    finalize cannot overwrite the flip.
    """
    with _recording_lock(recording_id):
        recording = recording_repository.get(recording_id)
        if not recording:
            return None

        recording.original_filename = blob.filename or recording.original_filename
        recording.mime_type = blob.mime_type
        recording.file_size_bytes = len(blob.data)
        recording_repository.save(recording)
        recording_repository.set_processing(recording_id)
        return recording


def get_recording(recording_id: str) -> Optional[Recording]:
    return recording_repository.get(recording_id)


def quality_report(recording: Recording) -> Optional[QualityReport]:
    if recording.audio_quality is None:
        return None
    return score(recording.audio_quality)


def run_processing_job(recording_id: str, blob: AudioBlob) -> Optional[ProcessingOutcome]:
    """
    Background processing for a recording, serialized per recording id.
    """
    if not recording_repository.get(recording_id):
        logger.warning("Skipping processing for unknown recording %s", recording_id)
        return None

    with _recording_lock(recording_id):
        job = AudioProcessingJob(
            recording_id,
            blob,
            store=recording_repository,
            object_store=object_store,
        )
        return job.run()


def process(recording_id: str, blob: AudioBlob) -> "Future[Optional[ProcessingOutcome]]":
    """
    Fire-and-forget entry point: the result lands in the status store.

    The caller must already have moved the recording to PROCESSING.
    """
    future = _executor.submit(run_processing_job, recording_id, blob)
    future.add_done_callback(_log_unexpected_failure)
    return future


def _log_unexpected_failure(future: Future) -> None:
    exc = future.exception()
    if exc is not None:
        logger.error("Recording job crashed: %r", exc)
