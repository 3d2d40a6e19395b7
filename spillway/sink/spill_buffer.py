"""Local spill file backing the segment currently being written.

Only one spill file is alive at a time: a sealed segment's file is removed
before the next one is provisioned.
"""

from __future__ import annotations

import logging
import os
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator

from spillway.common.config import DEFAULT_WRITE_BUFFER_BYTES
from spillway.sink.base import ResourceError

logger = logging.getLogger("spillway.spill")

SPILL_PREFIX = "output-"
SPILL_SUFFIX = ".tmp"


@dataclass(frozen=True, slots=True)
class SealedSegment:
    """A closed spill file ready to be uploaded."""

    path: Path
    length: int
    part_number: int | None = None

    def open(self) -> BinaryIO:
        return self.path.open("rb")


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning(
            "spill file removal failed [event=spill_remove_failed] path=%s error=%s",
            path,
            exc,
        )


class SpillBuffer:
    def __init__(
        self,
        spill_dir: str | os.PathLike[str],
        *,
        buffer_size: int = DEFAULT_WRITE_BUFFER_BYTES,
    ) -> None:
        self._spill_dir = Path(spill_dir)
        self._buffer_size = buffer_size
        self._path: Path | None = None
        self._handle: BinaryIO | None = None
        self._length = 0
        self._provision()

    @property
    def current_length(self) -> int:
        return self._length

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def live(self) -> bool:
        return self._handle is not None

    def _provision(self) -> None:
        try:
            self._spill_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ResourceError(
                f"Cannot create spill directory: {self._spill_dir}"
            ) from exc

        try:
            fd, name = tempfile.mkstemp(
                prefix=SPILL_PREFIX, suffix=SPILL_SUFFIX, dir=self._spill_dir
            )
        except OSError as exc:
            raise ResourceError(
                f"Cannot create spill file in {self._spill_dir}: {exc}"
            ) from exc

        self._path = Path(name)
        self._handle = os.fdopen(fd, "wb", buffering=self._buffer_size)
        self._length = 0

    def _require_handle(self) -> BinaryIO:
        if self._handle is None:
            raise ResourceError("Spill buffer has no open spill file")
        return self._handle

    def append(self, data: bytes | bytearray | memoryview) -> None:
        handle = self._require_handle()
        try:
            handle.write(data)
        except OSError as exc:
            raise ResourceError(f"Failed to write spill file {self._path}: {exc}") from exc
        self._length += len(data)

    def flush(self) -> None:
        handle = self._require_handle()
        try:
            handle.flush()
        except OSError as exc:
            raise ResourceError(f"Failed to flush spill file {self._path}: {exc}") from exc

    @contextmanager
    def finalize(
        self, part_number: int | None = None, *, renew: bool = True
    ) -> Iterator[SealedSegment]:
        """Seal the current spill file and yield it for upload.

        The sealed file is removed when the block exits, whatever the outcome.
        A fresh spill file is provisioned only after a block that completed
        normally, and only when ``renew`` is set.
        """
        handle = self._require_handle()
        path = self._path
        assert path is not None
        segment = SealedSegment(path=path, length=self._length, part_number=part_number)
        self._handle = None
        self._path = None
        self._length = 0

        try:
            try:
                handle.close()
            except OSError as exc:
                raise ResourceError(f"Failed to close spill file {path}: {exc}") from exc
            yield segment
        finally:
            _remove_quietly(path)

        if renew:
            self._provision()

    def discard(self) -> None:
        """Drop the live spill file, if any, without uploading it."""
        handle, path = self._handle, self._path
        self._handle = None
        self._path = None
        self._length = 0
        if handle is not None:
            try:
                handle.close()
            except OSError as exc:
                logger.warning(
                    "spill file close failed [event=spill_close_failed] path=%s error=%s",
                    path,
                    exc,
                )
        if path is not None:
            _remove_quietly(path)
