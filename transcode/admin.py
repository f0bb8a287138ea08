from django.contrib import admin

from .models import MediaAsset, TranscodeJobLog


class TranscodeJobLogInline(admin.TabularInline):
    model = TranscodeJobLog
    extra = 0
    can_delete = False
    fields = ("job_id", "status", "started_at", "completed_at", "duration_ms", "error_message")
    readonly_fields = fields


@admin.register(MediaAsset)
class MediaAssetAdmin(admin.ModelAdmin):
    list_display = ("id", "original_name", "status", "duration", "width", "height", "updated_at")
    list_filter = ("status",)
    search_fields = ("id", "original_name", "source_key")
    readonly_fields = ("manifest_url", "thumbnails", "metadata", "created_at", "updated_at")
    inlines = [TranscodeJobLogInline]


@admin.register(TranscodeJobLog)
class TranscodeJobLogAdmin(admin.ModelAdmin):
    list_display = ("job_id", "asset", "status", "started_at", "completed_at", "duration_ms")
    list_filter = ("status",)
    search_fields = ("job_id", "asset__id")
