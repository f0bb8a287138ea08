from pathlib import Path
from typing import Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

from .errors import DownloadError, UploadError

CHUNK_SIZE = 1024 * 1024

CONTENT_TYPES = {
    ".m3u8": "application/vnd.apple.mpegurl",
    ".ts": "video/MP2T",
    ".m2ts": "video/MP2T",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
}


def get_s3_client():
    """
    SDK client for server-side upload/download.
    """
    session = boto3.session.Session(
        aws_access_key_id=settings.S3_ACCESS_KEY,
        aws_secret_access_key=settings.S3_SECRET_KEY,
        region_name=settings.S3_REGION,
    )
    return session.client(
        "s3",
        endpoint_url=settings.S3_ENDPOINT_URL,  # e.g. http://127.0.0.1:9000 or the R2 account endpoint
        config=BotoConfig(
            s3={"addressing_style": "path"},
            signature_version="s3v4",
            retries={"max_attempts": 3, "mode": "standard"},
        ),
    )


def cache_control_for(key: str) -> Optional[str]:
    """
    Cache-Control value for an output key.

    Playlists may be replaced by a later attempt, so they revalidate often.
    Segments and thumbnails live at positional keys written once per
    successful job and are cached as immutable.
    """
    suffix = Path(key).suffix.lower()
    if suffix == ".m3u8":
        return f"public, max-age={settings.CDN_MANIFEST_MAX_AGE}"
    if suffix in (".ts", ".m2ts", ".jpg", ".jpeg", ".png", ".webp"):
        return f"public, max-age={settings.CDN_IMMUTABLE_MAX_AGE}, immutable"
    return None


def content_type_for(key: str) -> str:
    return CONTENT_TYPES.get(Path(key).suffix.lower(), "application/octet-stream")


class ObjectStorage:
    """getObject / putObject / getPublicUrl over one bucket."""

    def __init__(self, client=None, bucket: Optional[str] = None, public_base_url: Optional[str] = None):
        self._client = client
        self.bucket = bucket or settings.S3_BUCKET
        self.public_base_url = (public_base_url or settings.S3_PUBLIC_BASE_URL).rstrip("/")

    @property
    def client(self):
        if self._client is None:
            self._client = get_s3_client()
        return self._client

    def get_object(self, key: str):
        """Streaming body of an object."""
        try:
            return self.client.get_object(Bucket=self.bucket, Key=key)["Body"]
        except (BotoCoreError, ClientError) as e:
            raise DownloadError(f"Failed to download source {key}: {e}") from e

    def download_to(self, key: str, dest: Path) -> Path:
        body = self.get_object(key)
        try:
            with open(dest, "wb") as f:
                for chunk in body.iter_chunks(CHUNK_SIZE):
                    f.write(chunk)
        except (BotoCoreError, ClientError, OSError) as e:
            raise DownloadError(f"Failed to download source {key}: {e}") from e
        finally:
            body.close()
        return dest

    def put_object(self, key: str, body: bytes, content_type: str, cache_control: Optional[str] = None):
        params = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": body,
            "ContentType": content_type,
        }
        if cache_control:
            params["CacheControl"] = cache_control
        try:
            self.client.put_object(**params)
        except (BotoCoreError, ClientError) as e:
            raise UploadError(f"Failed to upload {key}: {e}") from e

    def upload_file(self, local_path: Path, key: str):
        """Upload one staged file with the content type and cache policy its key implies."""
        try:
            body = Path(local_path).read_bytes()
        except OSError as e:
            raise UploadError(f"Failed to read {local_path} for {key}: {e}") from e
        self.put_object(key, body, content_type_for(key), cache_control_for(key))

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"
