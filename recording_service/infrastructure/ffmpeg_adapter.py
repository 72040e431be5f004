import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple
from uuid import uuid4

import ffmpeg

from recording_service.config import settings
from recording_service.domain.errors import AnalysisFailed, ProbeFailed, StandardizationFailed

logger = logging.getLogger(__name__)

# Checked in order; the extension only helps the engine sniff the container.
_MIME_EXTENSIONS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("wav",), "wav"),
    (("mp4", "m4a"), "m4a"),
    (("aac",), "aac"),
    (("mpeg",), "mp3"),
)
_FALLBACK_EXTENSION = "tmp"

FilterSpec = Tuple[str, Dict[str, Any]]


@dataclass(frozen=True)
class ProbeInfo:
    duration_ms: int
    sample_rate: Optional[int] = None
    bit_rate: Optional[int] = None
    channels: Optional[int] = None
    format: Optional[str] = None


def extension_for_mime(mime_type: str) -> str:
    mime = (mime_type or "").lower()
    for needles, extension in _MIME_EXTENSIONS:
        if any(needle in mime for needle in needles):
            return extension
    return _FALLBACK_EXTENSION


def temp_path(
    prefix: str,
    extension: str,
    *,
    temp_dir: Optional[Path] = None,
    token: Optional[str] = None,
) -> Path:
    """
    Build a collision-resistant scratch path under the shared temp directory.
    """
    directory = Path(temp_dir or settings.temp_dir)
    directory.mkdir(parents=True, exist_ok=True)
    return directory / f"{prefix}_{token or uuid4().hex}.{extension}"


def remove_quietly(path: Optional[Path]) -> None:
    """Delete a scratch file, logging (not raising) if removal fails."""
    if path is None:
        return
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Failed to remove temp file %s: %s", path, exc)


def _stderr_text(exc: ffmpeg.Error) -> str:
    stderr = getattr(exc, "stderr", None) or b""
    return stderr.decode("utf-8", errors="replace").strip()


def _run_engine(stream, **kwargs) -> Tuple[bytes, bytes]:
    return stream.run(**kwargs)


def standardize(
    data: bytes,
    mime_type: str,
    *,
    temp_dir: Optional[Path] = None,
    sample_rate: Optional[int] = None,
    channels: Optional[int] = None,
) -> bytes:
    """
    Convert an arbitrary input encoding to 16-bit PCM mono WAV.

    Input and output scratch files are removed on every exit path.
    """
    token = uuid4().hex
    input_path: Optional[Path] = None
    output_path: Optional[Path] = None

    try:
        input_path = temp_path("upload", extension_for_mime(mime_type), temp_dir=temp_dir, token=token)
        output_path = temp_path("converted", "wav", temp_dir=temp_dir, token=token)
        input_path.write_bytes(data)
        stream = (
            ffmpeg.input(str(input_path))
            .output(
                str(output_path),
                acodec="pcm_s16le",
                ar=sample_rate or settings.target_sample_rate,
                ac=channels or settings.target_channels,
                format="wav",
            )
            .overwrite_output()
        )
        _run_engine(stream, capture_stdout=True, capture_stderr=True)
        return output_path.read_bytes()
    except ffmpeg.Error as exc:
        detail = _stderr_text(exc) or str(exc)
        logger.debug("ffmpeg standardize stderr: %s", detail[-2000:])
        raise StandardizationFailed(f"ffmpeg failed: {detail}") from exc
    except OSError as exc:
        raise StandardizationFailed(f"Standardization I/O failed: {exc}") from exc
    finally:
        remove_quietly(input_path)
        remove_quietly(output_path)


def _optional_int(value: Any) -> Optional[int]:
    if value in (None, "", "N/A"):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def probe(path: Path) -> ProbeInfo:
    """
    Read duration and the first audio stream's parameters from a file.
    """
    try:
        metadata = ffmpeg.probe(str(path))
    except ffmpeg.Error as exc:
        raise ProbeFailed(f"ffprobe failed: {_stderr_text(exc) or exc}") from exc
    except OSError as exc:
        raise ProbeFailed(f"ffprobe failed: {exc}") from exc

    audio_stream = next(
        (stream for stream in metadata.get("streams", []) if stream.get("codec_type") == "audio"),
        None,
    )
    if audio_stream is None:
        raise ProbeFailed("No audio stream found")

    try:
        duration = float(metadata.get("format", {}).get("duration") or 0)
    except (TypeError, ValueError):
        duration = 0.0

    return ProbeInfo(
        duration_ms=int(round(duration * 1000)),
        sample_rate=_optional_int(audio_stream.get("sample_rate")),
        bit_rate=_optional_int(audio_stream.get("bit_rate")),
        channels=_optional_int(audio_stream.get("channels")),
        format=audio_stream.get("codec_name"),
    )


def run_filter_pass(path: Path, filters: Sequence[FilterSpec]) -> str:
    """
    Run the audio stream through a filter chain into the null muxer and
    return the engine's diagnostic (stderr) text.
    """
    stream = ffmpeg.input(str(path)).audio
    for name, options in filters:
        stream = stream.filter(name, **options)
    try:
        _, stderr = _run_engine(
            ffmpeg.output(stream, "-", format="null"),
            capture_stdout=True,
            capture_stderr=True,
        )
    except ffmpeg.Error as exc:
        raise AnalysisFailed(f"ffmpeg filter pass failed: {_stderr_text(exc) or exc}") from exc
    except OSError as exc:
        raise AnalysisFailed(f"ffmpeg filter pass failed: {exc}") from exc
    return (stderr or b"").decode("utf-8", errors="replace")
