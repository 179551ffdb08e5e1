# frame_annote/errors.py
from __future__ import annotations


class AnnotateError(Exception):
    """Base class for every error raised by frame_annote."""

    status_code = 500


class InvalidInput(AnnotateError):
    """Missing or malformed request fields (user-correctable)."""

    status_code = 400


class NotFound(AnnotateError):
    status_code = 404


# -----------------------------
# Capture
# -----------------------------

class CaptureNotReady(AnnotateError):
    """Playback surface has no metadata yet, or reports a zero-size frame."""


class CaptureEncodingFailed(AnnotateError):
    """The sampled frame could not be encoded to a lossless image."""


# -----------------------------
# Persistence
# -----------------------------

class ThumbnailEncodingFailed(AnnotateError):
    pass


class StorageError(AnnotateError):
    """Image, thumbnail or metadata could not be written."""


class FileCleanupFailed(AnnotateError):
    """Asset removal after a delete failed. Logged, never raised to callers."""


# -----------------------------
# Editing / client
# -----------------------------

class EditorStateError(AnnotateError):
    """Operation not permitted in the editor's current state."""


class ExportFailed(AnnotateError):
    """The edited surface could not be encoded (as an undo snapshot or for upload)."""


class SaveInProgress(AnnotateError):
    """A save is already in flight for this editing session."""


class ApiError(AnnotateError):
    """Non-success response from the annotation server."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = int(status_code)
