import math
from pathlib import Path

import pytest

from transcode.config import DEFAULT_VARIANTS, VariantProfile
from transcode.encoder import build_filter_chain, encode_variants, escape_drawtext
from transcode.errors import EncodeError

from .conftest import FakeToolRunner


P1080 = VariantProfile("1080p", 1920, 1080, "3000k", "128k")


def _vf(cmd):
    return cmd[cmd.index("-vf") + 1]


def test_filter_chain_fits_and_keeps_aspect_ratio():
    chain = build_filter_chain(P1080)
    assert chain.startswith("scale=w=1920:h=1080")
    assert "force_original_aspect_ratio=decrease" in chain
    assert "drawtext" not in chain


def test_filter_chain_with_watermark_overlay():
    chain = build_filter_chain(P1080, "owner@example.com")
    assert "drawtext=text=owner@example.com" in chain
    assert "x=w-tw-10" in chain and "y=h-th-10" in chain
    assert "box=1" in chain
    assert "boxcolor=black@0.5" in chain


@pytest.mark.parametrize(
    "raw, escaped",
    [
        ("plain@example.com", "plain@example.com"),
        ("a:b", "a\\\\:b"),
        ("o'neil@example.com", "o\\\\\\'neil@example.com"),
        ("x,y", "x\\,y"),
    ],
)
def test_escape_drawtext(raw, escaped):
    assert escape_drawtext(raw) == escaped


def test_encode_variants_produces_every_profile(tmp_path, transcode_config):
    runner = FakeToolRunner(duration=30.0)
    source = tmp_path / "source.mp4"

    outputs = encode_variants(source, tmp_path, runner, transcode_config)

    assert [o.profile.name for o in outputs] == ["1080p", "720p", "480p"]
    for o in outputs:
        assert o.directory == tmp_path / o.profile.name
        assert o.playlist.is_file()
        assert len(o.segments) == math.ceil(30.0 / transcode_config.segment_duration)
        assert [s.name for s in o.segments] == sorted(s.name for s in o.segments)


def test_encode_command_uses_profile_bitrates_and_segment_settings(tmp_path, transcode_config):
    runner = FakeToolRunner(duration=12.0)
    encode_variants(tmp_path / "source.mp4", tmp_path, runner, transcode_config)

    for cmd, profile in zip(runner.encode_calls, DEFAULT_VARIANTS):
        assert cmd[cmd.index("-b:v") + 1] == profile.video_bitrate
        assert cmd[cmd.index("-b:a") + 1] == profile.audio_bitrate
        assert cmd[cmd.index("-hls_time") + 1] == "6"
        assert cmd[cmd.index("-hls_segment_filename") + 1].endswith(f"{profile.name}/segment_%03d.ts")
        assert cmd[-1].endswith(f"{profile.name}/playlist.m3u8")


def test_watermark_only_when_text_given(tmp_path, transcode_config):
    runner = FakeToolRunner(duration=12.0)
    encode_variants(tmp_path / "source.mp4", tmp_path, runner, transcode_config, "owner@example.com")
    assert all("drawtext=text=owner@example.com" in _vf(c) for c in runner.encode_calls)

    runner = FakeToolRunner(duration=12.0)
    encode_variants(tmp_path / "source.mp4", tmp_path / "plain", runner, transcode_config, None)
    assert all("drawtext" not in _vf(c) for c in runner.encode_calls)


def test_failing_variant_aborts_with_tool_error(tmp_path, transcode_config):
    runner = FakeToolRunner(fail_variant="720p")

    with pytest.raises(EncodeError) as excinfo:
        encode_variants(tmp_path / "source.mp4", tmp_path, runner, transcode_config)

    assert "720p" in str(excinfo.value)
    assert "Invalid data found" in excinfo.value.stderr
    # 480p is never attempted once 720p fails
    assert len(runner.encode_calls) == 2


def test_missing_playlist_is_encode_error(tmp_path, transcode_config):
    class SilentRunner(FakeToolRunner):
        def _encode(self, args):
            from transcode.tools import ToolResult
            return ToolResult(args, returncode=0)

    with pytest.raises(EncodeError, match="no playlist"):
        encode_variants(Path("src.mp4"), tmp_path, SilentRunner(), transcode_config)


def test_keyframes_are_forced_on_segment_boundaries(tmp_path, transcode_config):
    runner = FakeToolRunner(duration=60.0)

    encode_variants(tmp_path / "source.mp4", tmp_path, runner, transcode_config)

    assert len(runner.encode_calls) == 3
    for cmd in runner.encode_calls:
        keyframes = cmd[cmd.index("-force_key_frames") + 1]
        assert keyframes == f"expr:gte(t,n_forced*{transcode_config.segment_duration})"
        assert cmd[cmd.index("-hls_time") + 1] == str(transcode_config.segment_duration)
