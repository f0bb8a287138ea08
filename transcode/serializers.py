from rest_framework import serializers
from .models import MediaAsset, TranscodeJobLog


class MediaAssetSerializer(serializers.ModelSerializer):
    class Meta:
        model = MediaAsset
        fields = [
            "id",
            "original_name",
            "status",
            "manifest_url",
            "thumbnails",
            "duration",
            "width",
            "height",
            "metadata",
            "created_at",
            "updated_at",
        ]


class TranscodeJobLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = TranscodeJobLog
        fields = [
            "job_id",
            "status",
            "started_at",
            "completed_at",
            "duration_ms",
            "error_message",
            "metadata",
        ]
