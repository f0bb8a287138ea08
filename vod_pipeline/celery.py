import logging
import os
from celery import Celery
from celery.signals import worker_shutting_down

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "vod_pipeline.settings")

logger = logging.getLogger(__name__)

celery_app = Celery("vod_pipeline")
celery_app.config_from_object("django.conf:settings", namespace="CELERY")
celery_app.autodiscover_tasks()


@worker_shutting_down.connect
def _on_worker_shutting_down(sig=None, how=None, exitcode=None, **kwargs):
    # Warm shutdown stops consuming and lets the in-flight job run to completion.
    logger.info("worker shutting down signal=%s how=%s; no new transcode jobs will be accepted", sig, how)
