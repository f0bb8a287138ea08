"""
Audit trail for transcode attempts (one TranscodeJobLog row per job id).

Every function here is fire-and-forget: a failure to write the audit row is
logged and swallowed so it can never change the outcome of the job.
"""
import logging
import traceback

from django.db import transaction
from django.utils import timezone

from .errors import trim_error
from .models import TranscodeJobLog

logger = logging.getLogger(__name__)


def log_start(asset_id, job_id: str, metadata=None) -> None:
    try:
        with transaction.atomic():
            TranscodeJobLog.objects.create(
                asset_id=asset_id,
                job_id=job_id,
                status=TranscodeJobLog.Status.STARTED,
                started_at=timezone.now(),
                metadata=metadata or {},
            )
        logger.info("transcode started asset=%s job=%s", asset_id, job_id)
    except Exception:
        logger.exception("failed to log transcode start asset=%s job=%s", asset_id, job_id)


def _finish(asset_id, job_id: str, **fields) -> None:
    now = timezone.now()
    with transaction.atomic():
        TranscodeJobLog.objects.filter(
            asset_id=asset_id,
            job_id=job_id,
            status=TranscodeJobLog.Status.STARTED,
        ).update(
            completed_at=now,
            updated_at=now,
            **fields,
        )


def log_complete(asset_id, job_id: str, duration_ms: int, metadata=None) -> None:
    try:
        _finish(
            asset_id,
            job_id,
            status=TranscodeJobLog.Status.COMPLETED,
            duration_ms=duration_ms,
            metadata=metadata or {},
        )
        logger.info("transcode completed asset=%s job=%s in %sms", asset_id, job_id, duration_ms)
    except Exception:
        logger.exception("failed to log transcode completion asset=%s job=%s", asset_id, job_id)


def log_failed(asset_id, job_id: str, duration_ms: int, error: BaseException, metadata=None) -> None:
    try:
        stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        _finish(
            asset_id,
            job_id,
            status=TranscodeJobLog.Status.FAILED,
            duration_ms=duration_ms,
            error_message=trim_error(str(error)),
            error_stack=trim_error(stack),
            metadata=metadata or {},
        )
        logger.info("transcode failed asset=%s job=%s in %sms: %s", asset_id, job_id, duration_ms, error)
    except Exception:
        logger.exception("failed to log transcode failure asset=%s job=%s", asset_id, job_id)
