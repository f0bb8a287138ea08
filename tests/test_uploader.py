import pytest

from transcode.errors import UploadError
from transcode.manifest import write_master_playlist
from transcode.encoder import encode_variants
from transcode.s3 import ObjectStorage
from transcode.thumbnails import generate_thumbnails
from transcode.uploader import master_key, upload_package

from .conftest import FakeS3Client, FakeToolRunner

ASSET_ID = "3f0c0c3e-7d7b-4d6f-9d5e-1a2b3c4d5e6f"


@pytest.fixture
def staged(tmp_path, transcode_config):
    runner = FakeToolRunner(duration=30.0)
    source = tmp_path / "source.mp4"
    variants = encode_variants(source, tmp_path, runner, transcode_config)
    thumbs = generate_thumbnails(source, tmp_path, 30.0, runner, transcode_config)
    master = write_master_playlist(variants, tmp_path)
    return variants, thumbs, master


def test_master_is_uploaded_last_after_all_variants(staged):
    variants, thumbs, master = staged
    client = FakeS3Client()
    storage = ObjectStorage(client=client, bucket="b", public_base_url="https://cdn.example.com")

    package = upload_package(storage, ASSET_ID, variants, thumbs, master)

    keys = client.put_keys
    assert keys[-1] == master_key(ASSET_ID)
    for v in variants:
        playlist_key = f"media/{ASSET_ID}/{v.profile.name}/playlist.m3u8"
        segment_keys = [f"media/{ASSET_ID}/{v.profile.name}/{s.name}" for s in v.segments]
        assert keys.index(playlist_key) < keys.index(master_key(ASSET_ID))
        assert all(keys.index(k) < keys.index(playlist_key) for k in segment_keys)
    thumb_keys = [f"media/{ASSET_ID}/thumb_{i}.jpg" for i in range(5)]
    assert keys[-6:-1] == thumb_keys

    assert package.manifest_url == f"https://cdn.example.com/media/{ASSET_ID}/master.m3u8"
    assert package.thumbnail_urls == [f"https://cdn.example.com/{k}" for k in thumb_keys]
    assert len(keys) == 3 * (5 + 1) + 5 + 1


def test_cache_headers_follow_asset_class(staged):
    variants, thumbs, master = staged
    client = FakeS3Client()
    upload_package(ObjectStorage(client=client, bucket="b", public_base_url="x"), ASSET_ID, variants, thumbs, master)

    for put in client.puts:
        if put["Key"].endswith(".m3u8"):
            assert put["CacheControl"] == "public, max-age=300"
            assert put["ContentType"] == "application/vnd.apple.mpegurl"
        else:
            assert put["CacheControl"].endswith("immutable")


def test_failure_aborts_remaining_uploads_and_never_writes_master(staged):
    variants, thumbs, master = staged
    client = FakeS3Client(fail_put=lambda key: key.endswith("480p/segment_002.ts"))

    with pytest.raises(UploadError):
        upload_package(ObjectStorage(client=client, bucket="b", public_base_url="x"), ASSET_ID, variants, thumbs, master)

    assert master_key(ASSET_ID) not in client.put_keys
    assert not any("thumb_" in k for k in client.put_keys)
    assert client.put_keys[-1].endswith("480p/segment_001.ts")
