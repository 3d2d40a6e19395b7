from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from spillway.infra.storage.client import CompletedPart


class SinkError(Exception):
    """Base class for streaming write path exceptions."""


class ResourceError(SinkError):
    """Raised when a local spill directory or file cannot be created or written."""


class UploadError(SinkError):
    """Raised when the object store rejects an object, part, or manifest write."""


class SinkStateError(SinkError):
    """Raised when a closed or failed session is used again."""


class SessionStatus(str, Enum):
    OPEN = "open"
    ROLLING_OVER = "rolling_over"
    CLOSED_DIRECT = "closed_direct"
    CLOSED_SEGMENTED = "closed_segmented"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in _TERMINAL


_TERMINAL = frozenset(
    {SessionStatus.CLOSED_DIRECT, SessionStatus.CLOSED_SEGMENTED, SessionStatus.FAILED}
)


@dataclass(slots=True)
class SessionState:
    """Mutable state of one logical write, shared by the sink components."""

    object_key: str
    part_number: int = 1
    segmented: bool = False
    status: SessionStatus = SessionStatus.OPEN
    parts: list[CompletedPart] = field(default_factory=list)
