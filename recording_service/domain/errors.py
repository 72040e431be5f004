class AudioPipelineError(RuntimeError):
    """Base class for failures inside the recording processing pipeline."""


class StandardizationFailed(AudioPipelineError):
    """Raised when the engine cannot convert a recording to canonical WAV."""


class ProbeFailed(AudioPipelineError):
    """Raised when container/stream metadata cannot be read."""


class AnalysisFailed(AudioPipelineError):
    """Raised when quality analysis cannot produce any metrics."""


class UploadFailed(AudioPipelineError):
    """Raised when the standardized audio cannot be persisted."""
