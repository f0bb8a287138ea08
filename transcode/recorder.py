"""Persisted lifecycle state of a MediaAsset."""
import logging

from django.db import DatabaseError, transaction
from django.utils import timezone

from .errors import PersistenceError, trim_error
from .models import MediaAsset

logger = logging.getLogger(__name__)


def load_asset(asset_id) -> MediaAsset:
    try:
        return MediaAsset.objects.select_related("uploaded_by").get(pk=asset_id)
    except MediaAsset.DoesNotExist as e:
        raise PersistenceError(f"Media asset {asset_id} not found") from e
    except DatabaseError as e:
        raise PersistenceError(f"Failed to load media asset {asset_id}: {e}") from e


def _update(asset_id, **fields) -> None:
    # queryset.update() skips auto_now, and the stale sweep keys off updated_at
    fields["updated_at"] = timezone.now()
    try:
        with transaction.atomic():
            updated = MediaAsset.objects.filter(pk=asset_id).update(**fields)
    except DatabaseError as e:
        raise PersistenceError(f"Failed to update media asset {asset_id}: {e}") from e
    if not updated:
        raise PersistenceError(f"Media asset {asset_id} not found")


def mark_processing(asset_id) -> None:
    _update(asset_id, status=MediaAsset.Status.PROCESSING)


def record_success(asset_id, *, manifest_url, thumbnail_urls, metadata, watermarked: bool) -> None:
    _update(
        asset_id,
        status=MediaAsset.Status.READY,
        manifest_url=manifest_url,
        thumbnails=list(thumbnail_urls),
        duration=int(round(metadata.duration)),
        width=metadata.width,
        height=metadata.height,
        metadata={
            "codec": metadata.codec,
            "bitrate": metadata.bitrate,
            "watermarked": watermarked,
        },
    )
    logger.info("asset %s READY manifest=%s", asset_id, manifest_url)


def record_failure(asset_id, error: str) -> None:
    _update(
        asset_id,
        status=MediaAsset.Status.FAILED,
        metadata={
            "error": trim_error(error),
            "failed_at": timezone.now().isoformat(),
        },
    )
    logger.info("asset %s FAILED", asset_id)
