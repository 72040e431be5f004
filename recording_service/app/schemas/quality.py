from typing import List, Optional

from pydantic import BaseModel

from recording_service.domain.models import QualityMetrics, QualityReport


class QualityMetricsOut(BaseModel):
    duration_ms: int
    sample_rate: Optional[int] = None
    bit_rate: Optional[int] = None
    channels: Optional[int] = None
    format: Optional[str] = None
    snr_db: Optional[float] = None
    volume_level: Optional[float] = None
    silence_ratio: Optional[float] = None
    clarity_score: Optional[float] = None
    file_size: Optional[int] = None

    @classmethod
    def from_domain(cls, metrics: QualityMetrics) -> "QualityMetricsOut":
        return cls(**metrics.to_dict())


class QualityReportOut(BaseModel):
    overall_score: int
    issues: List[str] = []
    recommendations: List[str] = []

    @classmethod
    def from_domain(cls, report: QualityReport) -> "QualityReportOut":
        return cls(
            overall_score=report.overall_score,
            issues=list(report.issues),
            recommendations=list(report.recommendations),
        )


class BatchItemOut(BaseModel):
    id: str
    success: bool
    processing_time_ms: int
    metrics: Optional[QualityMetricsOut] = None
    report: Optional[QualityReportOut] = None
    error: Optional[str] = None


class BatchAnalysisResponse(BaseModel):
    status: str
    results: List[BatchItemOut]
