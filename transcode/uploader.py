"""
Publishes a staged playback package.

Order matters: every variant's segments and playlist go first, thumbnails
next, and the master playlist last, so a client can never fetch a master
that points at a rendition still being written.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List

from .encoder import PLAYLIST_NAME, VariantOutput
from .manifest import MASTER_NAME
from .s3 import ObjectStorage

logger = logging.getLogger(__name__)


def asset_prefix(asset_id) -> str:
    return f"media/{asset_id}"


def master_key(asset_id) -> str:
    return f"{asset_prefix(asset_id)}/{MASTER_NAME}"


def thumbnail_key(asset_id, index: int) -> str:
    return f"{asset_prefix(asset_id)}/thumb_{index}.jpg"


@dataclass
class PublishedPackage:
    manifest_url: str
    thumbnail_urls: List[str]


def upload_package(
    storage: ObjectStorage,
    asset_id,
    variants: List[VariantOutput],
    thumbnails: List[Path],
    master: Path,
) -> PublishedPackage:
    """Any UploadError aborts the rest; the master is never written in that case."""
    prefix = asset_prefix(asset_id)
    written = []

    for v in variants:
        for seg in v.segments:
            key = f"{prefix}/{v.profile.name}/{seg.name}"
            storage.upload_file(seg, key)
            written.append(key)
        key = f"{prefix}/{v.profile.name}/{PLAYLIST_NAME}"
        storage.upload_file(v.playlist, key)
        written.append(key)
        logger.info("uploaded %s: %d segments + playlist", v.profile.name, len(v.segments))

    thumb_urls = []
    for index, thumb in enumerate(thumbnails):
        key = thumbnail_key(asset_id, index)
        storage.upload_file(thumb, key)
        written.append(key)
        thumb_urls.append(storage.public_url(key))

    key = master_key(asset_id)
    storage.upload_file(master, key)
    written.append(key)
    logger.info("published %s (%d objects)", key, len(written))

    return PublishedPackage(
        manifest_url=storage.public_url(key),
        thumbnail_urls=thumb_urls,
    )
