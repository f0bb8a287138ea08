"""Failure taxonomy for the transcode pipeline.

Every stage wraps library errors into one of these at its boundary, so the
orchestrator can record a readable message on the asset and re-raise to the
queue.
"""

MAX_ERROR_CHARS = 4000


class TranscodeError(Exception):
    """Base class for any stage failure."""


class DownloadError(TranscodeError):
    """Source object is missing or could not be fetched."""


class MetadataError(TranscodeError):
    """No usable video stream, corrupt container, or the probe tool failed."""


class EncodeError(TranscodeError):
    """The transcoding tool exited nonzero for a variant or a thumbnail frame."""

    def __init__(self, message: str, *, stderr: str = ""):
        super().__init__(message)
        self.stderr = stderr


class UploadError(TranscodeError):
    """An artifact could not be written to object storage."""


class PersistenceError(TranscodeError):
    """The asset record could not be read or written."""


def trim_error(text: str, limit: int = MAX_ERROR_CHARS) -> str:
    text = text or ""
    return text if len(text) <= limit else text[-limit:]
