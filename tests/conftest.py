"""Shared fixtures: isolated stores and canned engine diagnostics."""

from __future__ import annotations

import pytest

from recording_service.domain.models import AudioBlob, QualityMetrics
from recording_service.domain.services import job_service
from recording_service.infrastructure.object_store import InMemoryObjectStore
from recording_service.infrastructure.persistence.in_memory_repo import InMemoryRecordingRepository

VOLUME_STDERR = """
[silencedetect @ 0x1] silence_start: 0.4
[silencedetect @ 0x1] silence_end: 1.2 | silence_duration: 0.8
[silencedetect @ 0x1] silence_end: 4.5 | silence_duration: 2.5
[Parsed_volumedetect_0 @ 0x2] n_samples: 80000
[Parsed_volumedetect_0 @ 0x2] mean_volume: -24.0 dB
[Parsed_volumedetect_0 @ 0x2] max_volume: -3.0 dB
"""

CLARITY_STDERR = """
[Parsed_astats_2 @ 0x3] Channel: 1
[Parsed_astats_2 @ 0x3] RMS level dB: -30.0
[Parsed_astats_2 @ 0x3] Overall
[Parsed_astats_2 @ 0x3] RMS level dB: -15.5
"""

NOISE_STDERR = """
[Parsed_astats_0 @ 0x4] Overall
[Parsed_astats_0 @ 0x4] Min level dB: -70.0
[Parsed_astats_0 @ 0x4] Max level dB: -28.0
"""


@pytest.fixture
def repository(monkeypatch: pytest.MonkeyPatch) -> InMemoryRecordingRepository:
    repo = InMemoryRecordingRepository()
    monkeypatch.setattr(job_service, "recording_repository", repo)
    return repo


@pytest.fixture
def object_store(monkeypatch: pytest.MonkeyPatch) -> InMemoryObjectStore:
    store = InMemoryObjectStore()
    monkeypatch.setattr(job_service, "object_store", store)
    return store


@pytest.fixture
def blob() -> AudioBlob:
    return AudioBlob(data=b"ID3-original-bytes", mime_type="audio/mpeg", filename="take1.mp3")


@pytest.fixture
def metrics() -> QualityMetrics:
    return QualityMetrics(
        duration_ms=5000,
        sample_rate=44100,
        channels=2,
        format="mp3",
        snr_db=42.0,
        volume_level=60.0,
        silence_ratio=0.08,
        clarity_score=61.0,
        file_size=18,
    )
