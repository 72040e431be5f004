from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


def _clamp(value: Optional[float], low: float, high: float) -> Optional[float]:
    if value is None:
        return None
    return max(low, min(high, value))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AudioBlob:
    data: bytes
    mime_type: str
    filename: str = ""


@dataclass(frozen=True)
class QualityMetrics:
    """
    Objective quality figures for one recording.

    Bounded fields are clamped on construction; None means the value
    could not be determined.
    """
    duration_ms: int
    sample_rate: Optional[int] = None
    bit_rate: Optional[int] = None
    channels: Optional[int] = None
    format: Optional[str] = None
    snr_db: Optional[float] = None
    volume_level: Optional[float] = None  # 0–100
    silence_ratio: Optional[float] = None  # 0–1
    clarity_score: Optional[float] = None  # 0–100
    file_size: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "snr_db", _clamp(self.snr_db, 0.0, 60.0))
        object.__setattr__(self, "volume_level", _clamp(self.volume_level, 0.0, 100.0))
        object.__setattr__(self, "silence_ratio", _clamp(self.silence_ratio, 0.0, 1.0))
        object.__setattr__(self, "clarity_score", _clamp(self.clarity_score, 0.0, 100.0))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class QualityReport:
    overall_score: int
    issues: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


@dataclass
class AnalysisResult:
    success: bool
    processing_time_ms: int
    metrics: Optional[QualityMetrics] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class BatchItem:
    id: str
    data: bytes
    mime_type: str


@dataclass(frozen=True)
class BatchItemResult:
    id: str
    result: AnalysisResult


class ProcessingStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class JobStage(str, Enum):
    STARTED = "started"
    ANALYZING = "analyzing"
    STANDARDIZING = "standardizing"
    UPLOADING = "uploading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class ProcessingOutcome:
    status: ProcessingStatus
    processing_time_ms: int
    audio_url: Optional[str] = None
    metrics: Optional[QualityMetrics] = None
    error_message: Optional[str] = None


@dataclass
class Recording:
    id: str
    processing_status: ProcessingStatus = ProcessingStatus.PENDING
    audio_url: Optional[str] = None
    audio_quality: Optional[QualityMetrics] = None
    original_filename: Optional[str] = None
    mime_type: Optional[str] = None
    file_size_bytes: Optional[int] = None
    processing_time_ms: int = 0
    error_message: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def touch(self) -> None:
        self.updated_at = _utcnow()
