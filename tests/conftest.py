import json
import math
from pathlib import Path

import pytest
from botocore.exceptions import ClientError
from PIL import Image

from transcode.config import TranscodeConfig
from transcode.models import MediaAsset
from transcode.pipeline import TranscodePipeline
from transcode.s3 import ObjectStorage
from transcode.tools import ToolResult


class FakeToolRunner:
    """
    Stands in for ffprobe/ffmpeg. Writes the files the real tools would:
    probe JSON, HLS playlist + segments, and single-frame PNGs.
    """

    def __init__(self, duration=30.0, width=1920, height=1080, codec="h264", bitrate=5_000_000,
                 fail_variant=None, fail_probe=None, no_video=False):
        self.duration = duration
        self.width = width
        self.height = height
        self.codec = codec
        self.bitrate = bitrate
        self.fail_variant = fail_variant
        self.fail_probe = fail_probe
        self.no_video = no_video
        self.calls = []

    def run(self, args, *, timeout=None):
        args = [str(a) for a in args]
        self.calls.append(args)
        if "-show_streams" in args:
            return self._probe(args)
        if "hls" in args:
            return self._encode(args)
        if "-frames:v" in args:
            return self._frame(args)
        return ToolResult(args, returncode=1, stderr="unexpected invocation")

    @property
    def encode_calls(self):
        return [c for c in self.calls if "hls" in c]

    def _probe(self, args):
        if self.fail_probe:
            return ToolResult(args, returncode=1, stderr=self.fail_probe)
        streams = [{"codec_type": "audio", "codec_name": "aac"}]
        if not self.no_video:
            streams.insert(0, {
                "codec_type": "video",
                "codec_name": self.codec,
                "width": self.width,
                "height": self.height,
            })
        payload = {
            "streams": streams,
            "format": {"duration": str(self.duration), "bit_rate": str(self.bitrate)},
        }
        return ToolResult(args, returncode=0, stdout=json.dumps(payload))

    def _encode(self, args):
        playlist = Path(args[-1])
        if self.fail_variant and playlist.parent.name == self.fail_variant:
            return ToolResult(args, returncode=1, stderr=f"Conversion failed for {self.fail_variant}: Invalid data found")
        seg_time = int(args[args.index("-hls_time") + 1])
        pattern = args[args.index("-hls_segment_filename") + 1]
        count = math.ceil(self.duration / seg_time)
        lines = ["#EXTM3U", "#EXT-X-VERSION:3", f"#EXT-X-TARGETDURATION:{seg_time}", "#EXT-X-PLAYLIST-TYPE:VOD"]
        for i in range(count):
            seg = Path(pattern % i)
            seg.write_bytes(b"\x47" * 188)
            lines.append(f"#EXTINF:{min(seg_time, self.duration - i * seg_time):.6f},")
            lines.append(seg.name)
        lines.append("#EXT-X-ENDLIST")
        playlist.write_text("\n".join(lines) + "\n")
        return ToolResult(args, returncode=0)

    def _frame(self, args):
        Image.new("RGB", (self.width // 10, self.height // 10), (40, 80, 120)).save(args[-1], format="PNG")
        return ToolResult(args, returncode=0)


class FakeBody:
    def __init__(self, data: bytes):
        self._data = data
        self.closed = False

    def iter_chunks(self, size):
        for i in range(0, len(self._data), size):
            yield self._data[i:i + size]

    def close(self):
        self.closed = True


class FakeS3Client:
    """Records put_object calls in order; get_object serves seeded objects."""

    def __init__(self, objects=None, fail_put=None):
        self.objects = dict(objects or {})
        self.puts = []
        self.fail_put = fail_put

    def get_object(self, Bucket, Key):
        if Key not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "Not Found"}}, "GetObject")
        return {"Body": FakeBody(self.objects[Key])}

    def put_object(self, **params):
        if self.fail_put and self.fail_put(params["Key"]):
            raise ClientError({"Error": {"Code": "InternalError", "Message": "boom"}}, "PutObject")
        self.puts.append(params)
        self.objects[params["Key"]] = params["Body"]

    @property
    def put_keys(self):
        return [p["Key"] for p in self.puts]


SOURCE_KEY = "uploads/lecture-01.mp4"


@pytest.fixture
def staging_root(tmp_path):
    return tmp_path / "staging"


@pytest.fixture
def transcode_config(staging_root):
    return TranscodeConfig(staging_root=staging_root, segment_duration=6, thumbnail_width=320)


@pytest.fixture
def runner():
    return FakeToolRunner()


@pytest.fixture
def s3_client():
    return FakeS3Client(objects={SOURCE_KEY: b"\x00\x00\x00\x18ftypmp42" * 64})


@pytest.fixture
def storage(s3_client):
    return ObjectStorage(client=s3_client, bucket="test-bucket", public_base_url="https://cdn.example.com")


@pytest.fixture
def asset(db):
    return MediaAsset.objects.create(original_name="lecture-01.mp4", source_key=SOURCE_KEY)


@pytest.fixture
def make_pipeline(storage, runner, transcode_config):
    def _make(**overrides):
        return TranscodePipeline(
            storage=overrides.get("storage", storage),
            runner=overrides.get("runner", runner),
            config=overrides.get("config", transcode_config),
        )
    return _make
