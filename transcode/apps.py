from django.apps import AppConfig


class TranscodeAppConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "transcode"
    verbose_name = "Transcode"
