from django.urls import path
from .views import MediaAssetDetailView, MediaAssetJobsView

urlpatterns = [
    path("media/<uuid:asset_id>/", MediaAssetDetailView.as_view(), name="media_detail"),
    path("media/<uuid:asset_id>/jobs/", MediaAssetJobsView.as_view(), name="media_jobs"),
]
