"""
Transcode pipeline: download -> probe -> encode variants -> master playlist
-> thumbnails -> upload -> record state, inside a per-job staging area.

Progress is reported at fixed milestones through an optional callback so the
pipeline stays independent of the queue library driving it.
"""
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from . import monitoring, recorder
from .config import TranscodeConfig, get_transcode_config
from .encoder import encode_variants
from .errors import PersistenceError
from .manifest import write_master_playlist
from .probe import extract_metadata
from .s3 import ObjectStorage
from .staging import staging_area
from .thumbnails import generate_thumbnails
from .tools import MediaToolRunner
from .uploader import upload_package

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


@dataclass
class TranscodeResult:
    manifest_url: str
    thumbnails: List[str] = field(default_factory=list)
    duration: int = 0
    width: int = 0
    height: int = 0
    watermarked: bool = False


class TranscodePipeline:
    def __init__(
        self,
        storage: Optional[ObjectStorage] = None,
        runner: Optional[MediaToolRunner] = None,
        config: Optional[TranscodeConfig] = None,
    ):
        self.storage = storage or ObjectStorage()
        self.runner = runner or MediaToolRunner()
        self.config = config or get_transcode_config()

    def run(self, asset_id, source_key: str, job_id: str, progress: Optional[ProgressCallback] = None) -> TranscodeResult:
        """
        Process one job attempt.

        On failure the asset is marked FAILED, the attempt is logged as failed,
        staging is removed, and the original exception propagates so the
        queue can decide whether to redispatch.
        """
        started = time.monotonic()
        monitoring.log_start(asset_id, job_id, {"source_key": source_key})
        logger.info("starting transcode asset=%s job=%s source=%s", asset_id, job_id, source_key)

        with staging_area(self.config.staging_root, asset_id) as workdir:
            try:
                result = self._execute(asset_id, source_key, workdir, progress)
            except Exception as exc:
                logger.exception("transcode failed asset=%s job=%s", asset_id, job_id)
                self._record_failure(asset_id, exc)
                monitoring.log_failed(
                    asset_id, job_id, _elapsed_ms(started), exc, {"source_key": source_key}
                )
                raise

            monitoring.log_complete(
                asset_id,
                job_id,
                _elapsed_ms(started),
                {
                    "manifest_url": result.manifest_url,
                    "thumbnail_count": len(result.thumbnails),
                    "video_duration": result.duration,
                    "resolution": f"{result.width}x{result.height}",
                },
            )

        _report(progress, 100)
        logger.info("transcode completed asset=%s job=%s in %sms", asset_id, job_id, _elapsed_ms(started))
        return result

    def _execute(self, asset_id, source_key: str, workdir: Path, progress) -> TranscodeResult:
        cfg = self.config

        asset = recorder.load_asset(asset_id)
        recorder.mark_processing(asset_id)
        _report(progress, 10)

        source = workdir / f"source{Path(source_key).suffix or '.mp4'}"
        self.storage.download_to(source_key, source)
        _report(progress, 20)

        meta = extract_metadata(source, self.runner, cfg)
        _report(progress, 30)

        watermark_text = self._watermark_text(asset)
        variants = encode_variants(source, workdir, self.runner, cfg, watermark_text)
        master = write_master_playlist(variants, workdir)
        _report(progress, 60)

        thumbs = generate_thumbnails(source, workdir, meta.duration, self.runner, cfg)
        _report(progress, 80)

        package = upload_package(self.storage, asset_id, variants, thumbs, master)
        _report(progress, 90)

        watermarked = watermark_text is not None
        recorder.record_success(
            asset_id,
            manifest_url=package.manifest_url,
            thumbnail_urls=package.thumbnail_urls,
            metadata=meta,
            watermarked=watermarked,
        )
        return TranscodeResult(
            manifest_url=package.manifest_url,
            thumbnails=package.thumbnail_urls,
            duration=int(round(meta.duration)),
            width=meta.width,
            height=meta.height,
            watermarked=watermarked,
        )

    def _watermark_text(self, asset) -> Optional[str]:
        if not self.config.watermark_enabled:
            return None
        owner = asset.uploaded_by
        email = (getattr(owner, "email", "") or "").strip() if owner else ""
        if not email:
            logger.info("watermarking enabled but asset %s has no owner email; skipping overlay", asset.pk)
            return None
        return email

    @staticmethod
    def _record_failure(asset_id, exc: Exception) -> None:
        try:
            recorder.record_failure(asset_id, str(exc) or exc.__class__.__name__)
        except PersistenceError:
            logger.exception("could not mark asset %s FAILED", asset_id)


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def _report(progress: Optional[ProgressCallback], value: int) -> None:
    if progress is None:
        return
    try:
        progress(value)
    except Exception:
        logger.warning("progress callback failed at %s%%", value, exc_info=True)
