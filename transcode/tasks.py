import logging
import uuid
from dataclasses import asdict
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from .models import MediaAsset, TranscodeJobLog
from .pipeline import TranscodePipeline
from .ratelimit import JobStartLimiter

logger = logging.getLogger(__name__)


@shared_task(bind=True, name="transcode.tasks.transcode_media", max_retries=None)
def transcode_media(self, asset_id: str, source_key: str):
    """
    Queue entry point. Payload is {asset_id, source_key}; the Celery task id
    is the job id recorded in the audit log.
    """
    admitted, retry_after = JobStartLimiter().acquire()
    if not admitted:
        raise self.retry(countdown=retry_after)

    job_id = self.request.id or f"local-{uuid.uuid4()}"

    def report(pct: int):
        self.update_state(state="PROGRESS", meta={"progress": pct, "asset_id": asset_id})

    result = TranscodePipeline().run(asset_id, source_key, job_id, progress=report)
    return asdict(result)


@shared_task(name="transcode.tasks.reconcile_stale_assets")
def reconcile_stale_assets(stale_after_seconds=None) -> int:
    """
    Fail assets stuck in PROCESSING, e.g. after a worker crashed mid-job.
    Returns how many assets were reconciled.
    """
    seconds = int(stale_after_seconds or settings.TRANSCODE_STALE_AFTER_SECONDS)
    now = timezone.now()
    cutoff = now - timedelta(seconds=seconds)

    stale_ids = list(
        MediaAsset.objects.filter(
            status=MediaAsset.Status.PROCESSING,
            updated_at__lt=cutoff,
        ).values_list("id", flat=True)
    )
    if not stale_ids:
        return 0

    message = f"stale: no progress for {seconds}s, worker presumed lost"
    with transaction.atomic():
        count = MediaAsset.objects.filter(
            id__in=stale_ids,
            status=MediaAsset.Status.PROCESSING,
        ).update(
            status=MediaAsset.Status.FAILED,
            metadata={"error": message, "failed_at": now.isoformat()},
            updated_at=now,
        )
        TranscodeJobLog.objects.filter(
            asset_id__in=stale_ids,
            status=TranscodeJobLog.Status.STARTED,
        ).update(
            status=TranscodeJobLog.Status.FAILED,
            completed_at=now,
            error_message=message,
            updated_at=now,
        )

    logger.warning("reconciled %d stale assets: %s", count, [str(i) for i in stale_ids])
    return count
