"""Byte sink writing one logical object through local spill files.

Bytes accumulate in a spill file until the next write would reach the
segment threshold. The segment is then uploaded as a numbered part and a new
spill file takes over. On close the last segment becomes either the whole
object (no rollover happened) or the final part followed by a manifest.

A session is driven by a single caller; concurrent writes are not supported.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from types import TracebackType
from typing import Generator

from spillway.common.config import Settings, get_settings
from spillway.infra.storage.client import CompletedPart, ObjectStoreClient
from spillway.sink.base import SessionState, SessionStatus, SinkStateError
from spillway.sink.manifest import ManifestFinalizer
from spillway.sink.policy import should_rollover
from spillway.sink.spill_buffer import SpillBuffer
from spillway.sink.uploader import PartUploader

logger = logging.getLogger("spillway.session")


def _as_byte_view(data: bytes | bytearray | memoryview) -> memoryview:
    if isinstance(data, str):
        raise TypeError("write() expects a bytes-like object, not str")
    view = memoryview(data)
    if view.ndim != 1 or view.itemsize != 1:
        view = view.cast("B")
    return view


class WriteSession:
    """Writable sink for ``object_key`` backed by an object store client."""

    def __init__(
        self,
        object_key: str,
        client: ObjectStoreClient,
        *,
        spill_dir: str | os.PathLike[str] | None = None,
        threshold: int | None = None,
        settings: Settings | None = None,
    ) -> None:
        if not object_key:
            raise ValueError("object_key is required")
        settings = settings or get_settings()
        self._threshold = (
            settings.SEGMENT_THRESHOLD_BYTES if threshold is None else int(threshold)
        )
        if self._threshold <= 0:
            raise ValueError("threshold must be positive")

        self._client = client
        self._state = SessionState(object_key=object_key)
        self._uploader = PartUploader(client, metrics_enabled=settings.ENABLE_METRICS)
        self._manifest = ManifestFinalizer(
            client, metrics_enabled=settings.ENABLE_METRICS
        )
        self._bytes_written = 0
        self._buffer = SpillBuffer(
            spill_dir if spill_dir is not None else settings.SPILL_DIR,
            buffer_size=settings.WRITE_BUFFER_BYTES,
        )

    @property
    def object_key(self) -> str:
        return self._state.object_key

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    @property
    def segmented(self) -> bool:
        return self._state.segmented

    @property
    def part_number(self) -> int:
        return self._state.part_number

    @property
    def parts(self) -> tuple[CompletedPart, ...]:
        return tuple(self._state.parts)

    @property
    def threshold(self) -> int:
        return self._threshold

    @property
    def bytes_written(self) -> int:
        return self._bytes_written

    @property
    def closed(self) -> bool:
        return self._state.status.terminal

    def __enter__(self) -> "WriteSession":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            self.close()
        else:
            self.abort()

    def write(
        self,
        data: bytes | bytearray | memoryview,
        offset: int = 0,
        length: int | None = None,
    ) -> int:
        """Append ``data[offset:offset + length]`` and return the count written."""
        self._ensure_open()
        view = _as_byte_view(data)
        if length is None:
            length = len(view) - offset
        if offset < 0 or length < 0 or offset + length > len(view):
            raise ValueError(
                f"offset={offset} length={length} out of range for {len(view)} bytes"
            )
        if length == 0:
            return 0

        with self._failing_on_error():
            if should_rollover(self._buffer.current_length, length, self._threshold):
                self._roll_over()
            self._buffer.append(view[offset : offset + length])

        self._bytes_written += length
        return length

    def write_byte(self, value: int) -> None:
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError("write_byte() expects an int")
        if not 0 <= value <= 255:
            raise ValueError("byte value must be in range 0..255")
        self.write(bytes((value,)))

    def flush(self) -> None:
        """Flush buffered bytes to the spill file; nothing is uploaded."""
        self._ensure_open()
        with self._failing_on_error():
            self._buffer.flush()

    def close(self) -> None:
        """Upload the remaining bytes and publish the object.

        Calling close again after it has completed, or after the session
        failed, performs no I/O.
        """
        if self._state.status.terminal:
            return

        with self._failing_on_error():
            self._uploader.upload_final(self._state, self._buffer)
            if self._state.segmented:
                self._manifest.finalize(self._state)
                self._state.status = SessionStatus.CLOSED_SEGMENTED
            else:
                self._state.status = SessionStatus.CLOSED_DIRECT

        logger.info(
            "write session closed [event=session_closed] key=%s status=%s bytes=%s parts=%s",
            self._state.object_key,
            self._state.status.value,
            self._bytes_written,
            len(self._state.parts),
            extra={
                "extra": {
                    "object_key": self._state.object_key,
                    "status": self._state.status.value,
                    "size_bytes": self._bytes_written,
                    "parts": len(self._state.parts),
                }
            },
        )

    def abort(self) -> None:
        """Abandon the write: drop local data and any parts already uploaded."""
        if self._state.status.terminal:
            return
        logger.warning(
            "write session aborted [event=session_aborted] key=%s bytes=%s parts=%s",
            self._state.object_key,
            self._bytes_written,
            len(self._state.parts),
        )
        self._fail()

    def _ensure_open(self) -> None:
        if self._state.status is not SessionStatus.OPEN:
            raise SinkStateError(
                f"Write session for {self._state.object_key} is {self._state.status.value}"
            )

    def _roll_over(self) -> None:
        self._state.status = SessionStatus.ROLLING_OVER
        part = self._uploader.upload_as_part(self._state, self._buffer)
        self._state.status = SessionStatus.OPEN
        logger.debug(
            "segment rolled over [event=segment_rollover] key=%s part=%s",
            self._state.object_key,
            part.part_number,
        )

    @contextmanager
    def _failing_on_error(self) -> Generator[None, None, None]:
        try:
            yield
        except Exception:
            self._fail()
            raise

    def _fail(self) -> None:
        self._state.status = SessionStatus.FAILED
        self._buffer.discard()
        if not self._state.segmented:
            return
        try:
            self._client.abort_parts(object_key=self._state.object_key)
        except Exception as exc:
            logger.warning(
                "abort of uploaded parts failed [event=abort_parts_failed] key=%s error=%s",
                self._state.object_key,
                exc,
                exc_info=True,
            )
