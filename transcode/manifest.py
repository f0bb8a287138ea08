from pathlib import Path
from typing import Iterable

from .encoder import PLAYLIST_NAME, VariantOutput

MASTER_NAME = "master.m3u8"


def build_master_playlist(variants: Iterable[VariantOutput]) -> str:
    """One EXT-X-STREAM-INF entry per variant, pointing at `<name>/playlist.m3u8`."""
    lines = ["#EXTM3U", "#EXT-X-VERSION:3", ""]
    for v in variants:
        p = v.profile
        lines.append(f"#EXT-X-STREAM-INF:BANDWIDTH={p.bandwidth},RESOLUTION={p.resolution}")
        lines.append(f"{p.name}/{PLAYLIST_NAME}")
        lines.append("")
    return "\n".join(lines)


def write_master_playlist(variants: Iterable[VariantOutput], workdir: Path) -> Path:
    path = workdir / MASTER_NAME
    path.write_text(build_master_playlist(variants), encoding="utf-8")
    return path
