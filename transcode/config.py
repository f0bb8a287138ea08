"""
Transcode configuration.

The variant ladder, segment duration and thumbnail layout are fixed when the
worker process starts; nothing here varies per job.
"""
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from django.conf import settings


def parse_bitrate(value: str) -> int:
    """'3000k' -> 3000000, '2M' -> 2000000, '128000' -> 128000."""
    text = str(value).strip().lower()
    multiplier = 1
    if text.endswith("k"):
        multiplier, text = 1000, text[:-1]
    elif text.endswith("m"):
        multiplier, text = 1000 * 1000, text[:-1]
    return int(float(text) * multiplier)


@dataclass(frozen=True)
class VariantProfile:
    name: str
    width: int
    height: int
    video_bitrate: str
    audio_bitrate: str

    @property
    def resolution(self) -> str:
        return f"{self.width}x{self.height}"

    @property
    def bandwidth(self) -> int:
        return parse_bitrate(self.video_bitrate) + parse_bitrate(self.audio_bitrate)


DEFAULT_VARIANTS = (
    VariantProfile("1080p", 1920, 1080, "3000k", "128k"),
    VariantProfile("720p", 1280, 720, "1500k", "128k"),
    VariantProfile("480p", 854, 480, "700k", "96k"),
)

# 0%, 25%, 50%, 75%, 100% of the source duration
THUMBNAIL_POSITIONS = (0.0, 0.25, 0.5, 0.75, 1.0)


@dataclass(frozen=True)
class TranscodeConfig:
    variants: tuple = DEFAULT_VARIANTS
    segment_duration: int = 6
    thumbnail_positions: tuple = THUMBNAIL_POSITIONS
    thumbnail_width: int = 320
    staging_root: Path = field(default_factory=lambda: Path("/tmp/transcode-worker"))
    ffmpeg_bin: str = "ffmpeg"
    ffprobe_bin: str = "ffprobe"
    x264_preset: str = "veryfast"
    probe_timeout: int = 60
    encode_timeout: int = 7200
    watermark_enabled: bool = False
    watermark_fontfile: str = ""

    @property
    def thumbnail_count(self) -> int:
        return len(self.thumbnail_positions)

    @classmethod
    def from_settings(cls) -> "TranscodeConfig":
        return cls(
            segment_duration=int(settings.TRANSCODE_SEGMENT_SECONDS),
            thumbnail_width=int(settings.TRANSCODE_THUMBNAIL_WIDTH),
            staging_root=Path(settings.TRANSCODE_STAGING_ROOT),
            ffmpeg_bin=settings.TRANSCODE_FFMPEG_BIN,
            ffprobe_bin=settings.TRANSCODE_FFPROBE_BIN,
            x264_preset=settings.TRANSCODE_X264_PRESET,
            probe_timeout=int(settings.TRANSCODE_PROBE_TIMEOUT_SECONDS),
            encode_timeout=int(settings.TRANSCODE_ENCODE_TIMEOUT_SECONDS),
            watermark_enabled=bool(settings.ENABLE_VIDEO_WATERMARKING),
            watermark_fontfile=settings.TRANSCODE_WATERMARK_FONTFILE or "",
        )


@lru_cache(maxsize=1)
def get_transcode_config() -> TranscodeConfig:
    return TranscodeConfig.from_settings()
