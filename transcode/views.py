from rest_framework import views
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .models import MediaAsset
from .serializers import MediaAssetSerializer, TranscodeJobLogSerializer


class MediaAssetDetailView(views.APIView):
    """Processing status of one asset, polled by the admin UI."""
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request, asset_id):
        try:
            asset = MediaAsset.objects.get(pk=asset_id)
        except MediaAsset.DoesNotExist:
            return Response({"detail": "Not found"}, status=404)
        return Response(MediaAssetSerializer(asset).data)


class MediaAssetJobsView(views.APIView):
    """Transcode attempts for an asset, newest first."""
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request, asset_id):
        try:
            asset = MediaAsset.objects.get(pk=asset_id)
        except MediaAsset.DoesNotExist:
            return Response({"detail": "Not found"}, status=404)
        logs = asset.job_logs.order_by("-created_at", "-id")
        return Response(TranscodeJobLogSerializer(logs, many=True).data)
