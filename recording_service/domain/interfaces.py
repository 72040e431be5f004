from abc import ABC, abstractmethod
from typing import Optional

from recording_service.domain.models import ProcessingOutcome, Recording


class RecordingStatusStore(ABC):
    """Durable record of each recording's processing state"""

    @abstractmethod
    def save(self, recording: Recording) -> None:
        ...

    @abstractmethod
    def get(self, recording_id: str) -> Optional[Recording]:
        ...

    @abstractmethod
    def set_processing(self, recording_id: str) -> None:
        ...

    @abstractmethod
    def finalize(self, recording_id: str, outcome: ProcessingOutcome) -> None:
        """Write the terminal outcome of one job run."""
        ...


class ObjectStore(ABC):
    """Key-addressed blob storage for standardized audio"""

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str) -> str:
        """Store data under key and return a URL for it."""
        ...
