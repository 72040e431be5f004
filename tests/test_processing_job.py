"""Audio processing job: degraded paths, fatal upload and finalization."""

from __future__ import annotations

import pytest

from recording_service.domain.errors import AnalysisFailed, StandardizationFailed, UploadFailed
from recording_service.domain.interfaces import ObjectStore
from recording_service.domain.models import JobStage, ProcessingStatus, Recording
from recording_service.domain.services.processing_job import AudioProcessingJob
from recording_service.infrastructure.object_store import InMemoryObjectStore
from recording_service.infrastructure.persistence.in_memory_repo import InMemoryRecordingRepository


class RecordingStore(InMemoryRecordingRepository):
    def __init__(self) -> None:
        super().__init__()
        self.finalized = []

    def finalize(self, recording_id, outcome):
        self.finalized.append((recording_id, outcome))
        super().finalize(recording_id, outcome)


class BrokenObjectStore(ObjectStore):
    def __init__(self) -> None:
        self.calls = 0

    def put(self, key, data, content_type):
        self.calls += 1
        raise ConnectionError("bucket unreachable")


@pytest.fixture
def store() -> RecordingStore:
    repo = RecordingStore()
    repo.save(Recording(id="rec-1", processing_status=ProcessingStatus.PROCESSING))
    return repo


def _standardized(data: bytes, mime_type: str) -> bytes:
    return b"RIFF-canonical"


def _failing_standardize(data: bytes, mime_type: str) -> bytes:
    raise StandardizationFailed("ffmpeg failed: Invalid data found")


def _failing_analyze(data: bytes, mime_type: str):
    raise AnalysisFailed("Recording too long: 700000ms (max 600000ms)")


def test_happy_path_completes_with_metrics(store, blob, metrics):
    uploads = InMemoryObjectStore()
    job = AudioProcessingJob(
        "rec-1",
        blob,
        store=store,
        object_store=uploads,
        analyzer=lambda data, mime: metrics,
        standardizer=_standardized,
    )

    outcome = job.run()

    assert outcome.status == ProcessingStatus.COMPLETED
    assert outcome.metrics == metrics
    assert outcome.audio_url.startswith("memory://recordings/rec-1_")
    assert outcome.audio_url.endswith(".wav")
    assert job.stage == JobStage.SUCCEEDED
    [key] = uploads.objects
    assert uploads.objects[key] == b"RIFF-canonical"
    assert uploads.content_types[key] == "audio/wav"

    recording = store.get("rec-1")
    assert recording.processing_status == ProcessingStatus.COMPLETED
    assert recording.audio_url == outcome.audio_url
    assert recording.audio_quality == metrics
    assert len(store.finalized) == 1


def test_standardization_failure_uploads_original_bytes(store, blob, metrics):
    uploads = InMemoryObjectStore()
    job = AudioProcessingJob(
        "rec-1",
        blob,
        store=store,
        object_store=uploads,
        analyzer=lambda data, mime: metrics,
        standardizer=_failing_standardize,
    )

    outcome = job.run()

    assert outcome.status == ProcessingStatus.COMPLETED
    assert list(uploads.objects.values()) == [blob.data]


def test_analysis_failure_is_not_fatal(store, blob):
    job = AudioProcessingJob(
        "rec-1",
        blob,
        store=store,
        object_store=InMemoryObjectStore(),
        analyzer=_failing_analyze,
        standardizer=_standardized,
    )

    outcome = job.run()

    assert outcome.status == ProcessingStatus.COMPLETED
    assert outcome.metrics is None
    assert store.get("rec-1").audio_quality is None


def test_upload_failure_fails_the_job(store, blob, metrics):
    uploads = BrokenObjectStore()
    job = AudioProcessingJob(
        "rec-1",
        blob,
        store=store,
        object_store=uploads,
        analyzer=lambda data, mime: metrics,
        standardizer=_standardized,
    )

    outcome = job.run()

    assert outcome.status == ProcessingStatus.FAILED
    assert outcome.audio_url is None
    assert outcome.metrics is None
    assert "bucket unreachable" in outcome.error_message
    assert job.stage == JobStage.FAILED
    assert uploads.calls == 1

    [(recording_id, finalized)] = store.finalized
    assert recording_id == "rec-1"
    recording = store.get("rec-1")
    assert recording.processing_status == ProcessingStatus.FAILED
    assert recording.audio_url is None
    assert recording.audio_quality is None


def test_upload_failed_from_store_is_kept(store, blob, metrics):
    class RejectingStore(ObjectStore):
        def put(self, key, data, content_type):
            raise UploadFailed("S3 bucket name is not configured.")

    job = AudioProcessingJob(
        "rec-1",
        blob,
        store=store,
        object_store=RejectingStore(),
        analyzer=lambda data, mime: metrics,
        standardizer=_standardized,
    )

    outcome = job.run()

    assert outcome.error_message == "S3 bucket name is not configured."


def test_processing_time_comes_from_clock(store, blob, metrics):
    ticks = iter([10.0, 10.25])
    job = AudioProcessingJob(
        "rec-1",
        blob,
        store=store,
        object_store=InMemoryObjectStore(),
        analyzer=lambda data, mime: metrics,
        standardizer=_standardized,
        clock=lambda: next(ticks),
    )

    outcome = job.run()

    assert outcome.processing_time_ms == 250
    assert store.get("rec-1").processing_time_ms == 250


def test_job_runs_only_once(store, blob, metrics):
    job = AudioProcessingJob(
        "rec-1",
        blob,
        store=store,
        object_store=InMemoryObjectStore(),
        analyzer=lambda data, mime: metrics,
        standardizer=_standardized,
    )
    job.run()

    with pytest.raises(RuntimeError, match="already run"):
        job.run()

    assert len(store.finalized) == 1


def test_unexpected_stage_errors_still_upload_original_bytes(store, blob):
    def broken_scratch_dir(data, mime_type):
        raise OSError(20, "Not a directory")

    uploads = InMemoryObjectStore()
    job = AudioProcessingJob(
        "rec-1",
        blob,
        store=store,
        object_store=uploads,
        analyzer=broken_scratch_dir,
        standardizer=broken_scratch_dir,
    )

    outcome = job.run()

    assert outcome.status == ProcessingStatus.COMPLETED
    assert outcome.metrics is None
    assert list(uploads.objects.values()) == [blob.data]
    assert store.get("rec-1").processing_status == ProcessingStatus.COMPLETED
