import json
import logging
from dataclasses import dataclass
from pathlib import Path

from .config import TranscodeConfig
from .errors import MetadataError, trim_error
from .tools import MediaToolRunner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VideoMetadata:
    duration: float  # seconds
    width: int
    height: int
    codec: str
    bitrate: int  # bits per second, 0 when the container does not say


def _to_float(value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _to_int(value) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def parse_probe_output(raw: str) -> VideoMetadata:
    """Pick the first video stream out of `ffprobe -print_format json` output."""
    try:
        data = json.loads(raw or "")
    except json.JSONDecodeError as e:
        raise MetadataError(f"Failed to parse probe output: {e}") from e

    streams = data.get("streams") or []
    video = next((s for s in streams if s.get("codec_type") == "video"), None)
    if video is None:
        raise MetadataError("No video stream found")

    fmt = data.get("format") or {}
    duration = _to_float(fmt.get("duration")) or _to_float(video.get("duration"))
    if duration <= 0:
        raise MetadataError("Source has no usable duration")

    width, height = _to_int(video.get("width")), _to_int(video.get("height"))
    if width <= 0 or height <= 0:
        raise MetadataError(f"Invalid video dimensions {width}x{height}")

    return VideoMetadata(
        duration=duration,
        width=width,
        height=height,
        codec=str(video.get("codec_name") or ""),
        bitrate=_to_int(fmt.get("bit_rate")) or _to_int(video.get("bit_rate")),
    )


def extract_metadata(source: Path, runner: MediaToolRunner, cfg: TranscodeConfig) -> VideoMetadata:
    cmd = [
        cfg.ffprobe_bin,
        "-v", "error",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        str(source),
    ]
    result = runner.run(cmd, timeout=cfg.probe_timeout)
    if not result.ok:
        err = result.stderr.strip() or f"exit code {result.returncode}"
        raise MetadataError(f"Failed to extract metadata: {trim_error(err)}")

    meta = parse_probe_output(result.stdout)
    logger.info(
        "probed %s duration=%.2fs %sx%s codec=%s bitrate=%s",
        source.name, meta.duration, meta.width, meta.height, meta.codec, meta.bitrate,
    )
    return meta
