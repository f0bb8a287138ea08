"""
Variant encoder: one HLS rendition (playlist + fixed-length .ts segments) per
configured profile, each in its own staging subdirectory.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .config import TranscodeConfig, VariantProfile
from .errors import EncodeError, trim_error
from .tools import MediaToolRunner

logger = logging.getLogger(__name__)

PLAYLIST_NAME = "playlist.m3u8"
SEGMENT_PATTERN = "segment_%03d.ts"


@dataclass
class VariantOutput:
    profile: VariantProfile
    directory: Path
    playlist: Path
    segments: List[Path] = field(default_factory=list)


def escape_drawtext(text: str) -> str:
    """
    Escape a literal for drawtext's `text=` option inside a -vf chain.
    First for the option parser (\\ ' :), then for the filtergraph parser
    (\\ ' [ ] , ;).
    """
    value = text
    for ch in "\\':":
        value = value.replace(ch, "\\" + ch)
    for ch in "\\'[],;":
        value = value.replace(ch, "\\" + ch)
    return value


def build_filter_chain(profile: VariantProfile, watermark_text: Optional[str] = None, fontfile: str = "") -> str:
    """Fit inside the profile's box keeping aspect ratio; optional bottom-right text overlay."""
    chain = (
        f"scale=w={profile.width}:h={profile.height}"
        ":force_original_aspect_ratio=decrease:force_divisible_by=2"
    )
    if watermark_text:
        overlay = [
            f"drawtext=text={escape_drawtext(watermark_text)}",
            "expansion=none",
            "fontsize=16",
            "fontcolor=white@0.7",
            "x=w-tw-10",
            "y=h-th-10",
            "box=1",
            "boxcolor=black@0.5",
            "boxborderw=5",
        ]
        if fontfile:
            overlay.append(f"fontfile={escape_drawtext(fontfile)}")
        chain += "," + ":".join(overlay)
    return chain


def build_variant_command(
    source: Path,
    variant_dir: Path,
    profile: VariantProfile,
    cfg: TranscodeConfig,
    watermark_text: Optional[str] = None,
) -> list:
    return [
        cfg.ffmpeg_bin,
        "-y",
        "-hide_banner",
        "-loglevel", "error",
        "-i", str(source),
        "-vf", build_filter_chain(profile, watermark_text, cfg.watermark_fontfile),
        "-c:v", "libx264",
        "-preset", cfg.x264_preset,
        "-b:v", profile.video_bitrate,
        # HLS can only cut on keyframes
        "-force_key_frames", f"expr:gte(t,n_forced*{cfg.segment_duration})",
        "-c:a", "aac",
        "-b:a", profile.audio_bitrate,
        "-hls_time", str(cfg.segment_duration),
        "-hls_playlist_type", "vod",
        "-hls_list_size", "0",
        "-hls_segment_filename", str(variant_dir / SEGMENT_PATTERN),
        "-f", "hls",
        str(variant_dir / PLAYLIST_NAME),
    ]


def encode_variants(
    source: Path,
    workdir: Path,
    runner: MediaToolRunner,
    cfg: TranscodeConfig,
    watermark_text: Optional[str] = None,
) -> List[VariantOutput]:
    """
    Encode every configured profile in order. The first failing variant
    raises EncodeError and nothing encoded so far is returned.
    """
    outputs = []
    for profile in cfg.variants:
        variant_dir = workdir / profile.name
        variant_dir.mkdir(parents=True, exist_ok=True)

        logger.info("encoding %s (%s @ %s)", profile.name, profile.resolution, profile.video_bitrate)
        result = runner.run(
            build_variant_command(source, variant_dir, profile, cfg, watermark_text),
            timeout=cfg.encode_timeout,
        )
        if not result.ok:
            stderr = trim_error(result.stderr.strip())
            raise EncodeError(
                f"Encoding {profile.name} failed (exit {result.returncode}): {stderr}",
                stderr=stderr,
            )

        playlist = variant_dir / PLAYLIST_NAME
        if not playlist.is_file():
            raise EncodeError(f"Encoding {profile.name} produced no playlist")

        segments = sorted(variant_dir.glob("*.ts"))
        if not segments:
            raise EncodeError(f"Encoding {profile.name} produced no segments")

        outputs.append(VariantOutput(profile, variant_dir, playlist, segments))
        logger.info("encoded %s with %d segments", profile.name, len(segments))

    return outputs
