import logging
from pathlib import Path
from typing import List

from PIL import Image

from .config import TranscodeConfig
from .errors import EncodeError, trim_error
from .tools import MediaToolRunner

logger = logging.getLogger(__name__)


def thumbnail_offsets(duration: float, positions=(0.0, 0.25, 0.5, 0.75, 1.0)) -> List[float]:
    """
    Proportional seek offsets, strictly increasing and inside [0, duration).
    The tail is pulled back by min(1s, 10% of duration) so the last seek
    never lands on end-of-stream.
    """
    if duration <= 0:
        raise ValueError("duration must be positive")
    tail = duration - min(1.0, duration * 0.1)
    return [min(duration * p, tail) for p in positions]


def _scale_to_width(frame_path: Path, out_path: Path, width: int) -> None:
    """Resize the raw frame to a fixed width keeping aspect ratio, save as JPEG."""
    with Image.open(frame_path) as img:
        img = img.convert("RGB")
        w, h = img.size
        height = max(1, round(h * width / w))
        img = img.resize((width, height), Image.LANCZOS)
        img.save(out_path, format="JPEG", quality=85)


def generate_thumbnails(
    source: Path,
    workdir: Path,
    duration: float,
    runner: MediaToolRunner,
    cfg: TranscodeConfig,
) -> List[Path]:
    """Returns `thumb_{i}.jpg` paths in timestamp order."""
    out_dir = workdir / "thumbnails"
    out_dir.mkdir(parents=True, exist_ok=True)

    thumbs = []
    offsets = thumbnail_offsets(duration, cfg.thumbnail_positions)
    for index, at in enumerate(offsets):
        frame = out_dir / f"frame_{index}.png"
        cmd = [
            cfg.ffmpeg_bin,
            "-y",
            "-hide_banner",
            "-loglevel", "error",
            "-ss", f"{at:.3f}",
            "-i", str(source),
            "-frames:v", "1",
            str(frame),
        ]
        result = runner.run(cmd, timeout=cfg.probe_timeout)
        if not result.ok or not frame.is_file():
            stderr = trim_error(result.stderr.strip())
            raise EncodeError(f"Thumbnail {index} at {at:.3f}s failed: {stderr}", stderr=stderr)

        out = out_dir / f"thumb_{index}.jpg"
        try:
            _scale_to_width(frame, out, cfg.thumbnail_width)
        except OSError as e:
            raise EncodeError(f"Thumbnail {index} could not be decoded: {e}") from e
        frame.unlink(missing_ok=True)
        thumbs.append(out)

    logger.info("generated %d thumbnails at %s", len(thumbs), offsets)
    return thumbs
