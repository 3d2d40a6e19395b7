from .base import (
    ResourceError,
    SessionState,
    SessionStatus,
    SinkError,
    SinkStateError,
    UploadError,
)
from .manifest import ManifestFinalizer
from .policy import should_rollover
from .session import WriteSession
from .spill_buffer import SealedSegment, SpillBuffer
from .uploader import PartUploader

__all__ = [
    "WriteSession",
    "SpillBuffer",
    "SealedSegment",
    "PartUploader",
    "ManifestFinalizer",
    "should_rollover",
    "SessionState",
    "SessionStatus",
    "SinkError",
    "ResourceError",
    "UploadError",
    "SinkStateError",
]
