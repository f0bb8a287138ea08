import uuid
from django.conf import settings
from django.db import models


class MediaAsset(models.Model):
    class Status(models.TextChoices):
        PENDING = "PENDING"
        PROCESSING = "PROCESSING"
        READY = "READY"
        FAILED = "FAILED"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    original_name = models.CharField(max_length=512, blank=True, default="")
    source_key = models.CharField(max_length=1024)      # object-storage key of the raw upload
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    manifest_url = models.URLField(max_length=1024, blank=True, default="")
    thumbnails = models.JSONField(default=list, blank=True)  # ordered by timestamp
    duration = models.PositiveIntegerField(null=True, blank=True)  # whole seconds
    width = models.PositiveIntegerField(null=True, blank=True)
    height = models.PositiveIntegerField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)  # codec/bitrate/watermarked or error/failed_at
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="media_assets",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["status", "updated_at"], name="media_status_updated_idx")]

    def __str__(self):
        return f"{self.original_name or self.source_key} ({self.status})"


class TranscodeJobLog(models.Model):
    class Status(models.TextChoices):
        STARTED = "started"
        COMPLETED = "completed"
        FAILED = "failed"

    asset = models.ForeignKey(MediaAsset, on_delete=models.CASCADE, related_name="job_logs")
    job_id = models.CharField(max_length=255)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.STARTED)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    duration_ms = models.PositiveIntegerField(null=True, blank=True)
    error_message = models.TextField(blank=True, default="")
    error_stack = models.TextField(blank=True, default="")
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["asset", "job_id"], name="joblog_asset_job_idx")]

    def __str__(self):
        return f"{self.job_id} {self.status}"
