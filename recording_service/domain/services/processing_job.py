import logging
import time
from typing import Callable, Optional

from recording_service.domain.errors import AnalysisFailed, StandardizationFailed, UploadFailed
from recording_service.domain.interfaces import ObjectStore, RecordingStatusStore
from recording_service.domain.models import (
    AudioBlob,
    JobStage,
    ProcessingOutcome,
    ProcessingStatus,
    QualityMetrics,
)
from recording_service.domain.services.quality_analyzer import analyze
from recording_service.infrastructure.ffmpeg_adapter import standardize

logger = logging.getLogger(__name__)

CANONICAL_CONTENT_TYPE = "audio/wav"


class AudioProcessingJob:
    """
    One processing run for one recording: analyze, standardize, upload, finalize.

    Analysis and standardization failures degrade the result; an upload
    failure fails the job. The outcome is written to the status store once.
    """

    def __init__(
        self,
        recording_id: str,
        blob: AudioBlob,
        *,
        store: RecordingStatusStore,
        object_store: ObjectStore,
        analyzer: Callable[[bytes, str], QualityMetrics] = analyze,
        standardizer: Callable[[bytes, str], bytes] = standardize,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.recording_id = recording_id
        self.blob = blob
        self.store = store
        self.object_store = object_store
        self.analyzer = analyzer
        self.standardizer = standardizer
        self.clock = clock
        self.stage = JobStage.STARTED
        self.outcome: Optional[ProcessingOutcome] = None
        self._started_at: Optional[float] = None

    def _elapsed_ms(self) -> int:
        return int((self.clock() - self._started_at) * 1000)

    def _analyze(self) -> Optional[QualityMetrics]:
        self.stage = JobStage.ANALYZING
        try:
            return self.analyzer(self.blob.data, self.blob.mime_type)
        except AnalysisFailed as exc:
            logger.warning(
                "Quality analysis failed recording=%s stage=%s: %s",
                self.recording_id,
                self.stage.value,
                exc,
            )
        except Exception:  # noqa: BLE001 - analysis never fails the job
            logger.exception(
                "Quality analysis crashed recording=%s stage=%s",
                self.recording_id,
                self.stage.value,
            )
        return None

    def _standardize(self) -> bytes:
        self.stage = JobStage.STANDARDIZING
        try:
            return self.standardizer(self.blob.data, self.blob.mime_type)
        except StandardizationFailed as exc:
            logger.warning(
                "Standardization failed recording=%s stage=%s, uploading original bytes: %s",
                self.recording_id,
                self.stage.value,
                exc,
            )
        except Exception:  # noqa: BLE001 - fall back to the original bytes
            logger.exception(
                "Standardization crashed recording=%s stage=%s, uploading original bytes",
                self.recording_id,
                self.stage.value,
            )
        return self.blob.data

    def _upload(self, audio: bytes) -> str:
        self.stage = JobStage.UPLOADING
        key = f"recordings/{self.recording_id}_{int(time.time() * 1000)}.wav"
        try:
            return self.object_store.put(key, audio, CANONICAL_CONTENT_TYPE)
        except UploadFailed:
            raise
        except Exception as exc:
            raise UploadFailed(f"Failed to upload {key}: {exc}") from exc

    def run(self) -> ProcessingOutcome:
        if self._started_at is not None:
            raise RuntimeError(f"Job for recording {self.recording_id} has already run")

        self._started_at = self.clock()
        logger.info("Processing recording %s", self.recording_id)

        try:
            metrics = self._analyze()
            audio = self._standardize()
            audio_url = self._upload(audio)
        except Exception as exc:  # noqa: BLE001 - top-level guard
            failed_stage = self.stage
            elapsed = self._elapsed_ms()
            self.stage = JobStage.FAILED
            logger.exception(
                "Processing failed recording=%s stage=%s elapsed_ms=%d",
                self.recording_id,
                failed_stage.value,
                elapsed,
            )
            self.outcome = ProcessingOutcome(
                status=ProcessingStatus.FAILED,
                processing_time_ms=elapsed,
                error_message=str(exc),
            )
        else:
            self.stage = JobStage.SUCCEEDED
            self.outcome = ProcessingOutcome(
                status=ProcessingStatus.COMPLETED,
                processing_time_ms=self._elapsed_ms(),
                audio_url=audio_url,
                metrics=metrics,
            )
            logger.info(
                "Processing completed recording=%s elapsed_ms=%d",
                self.recording_id,
                self.outcome.processing_time_ms,
            )

        self.store.finalize(self.recording_id, self.outcome)
        return self.outcome
