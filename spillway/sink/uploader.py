"""Upload of finalized segments as whole objects or numbered parts."""

from __future__ import annotations

import logging
import time
from typing import BinaryIO, Callable, TypeVar

from spillway.infra.observability.metrics import record_store_write
from spillway.infra.storage.client import CompletedPart, ObjectStoreClient, StorageError
from spillway.sink.base import ResourceError, SessionState, UploadError
from spillway.sink.spill_buffer import SealedSegment, SpillBuffer

logger = logging.getLogger("spillway.upload")

T = TypeVar("T")


class PartUploader:
    """Sends sealed spill segments to the object store.

    No retries are attempted here; a failed upload surfaces as
    ``UploadError`` and the segment's spill file is removed regardless.
    """

    def __init__(self, client: ObjectStoreClient, *, metrics_enabled: bool = True):
        self._client = client
        self._metrics_enabled = metrics_enabled

    def upload_final(self, state: SessionState, buffer: SpillBuffer) -> None:
        """Upload the last segment at close.

        Before any rollover the segment becomes the whole object; afterwards
        it is just the next numbered part.
        """
        if state.segmented:
            self.upload_as_part(state, buffer, renew=False)
            return

        with buffer.finalize(renew=False) as segment:
            self._send(
                "object",
                state,
                segment,
                lambda body: self._client.upload_object(
                    object_key=state.object_key, body=body, length=segment.length
                ),
            )

    def upload_as_part(
        self, state: SessionState, buffer: SpillBuffer, *, renew: bool = True
    ) -> CompletedPart:
        """Upload the open segment under the session's current part number."""
        state.segmented = True
        part_number = state.part_number

        with buffer.finalize(part_number, renew=renew) as segment:
            part = self._send(
                "part",
                state,
                segment,
                lambda body: self._client.upload_object_part(
                    object_key=state.object_key,
                    part_number=part_number,
                    body=body,
                    length=segment.length,
                ),
            )
            state.parts.append(part)
            state.part_number = part_number + 1

        return part

    def _send(
        self,
        kind: str,
        state: SessionState,
        segment: SealedSegment,
        call: Callable[[BinaryIO], T],
    ) -> T:
        try:
            body = segment.open()
        except OSError as exc:
            raise ResourceError(
                f"Cannot read spill file {segment.path}: {exc}"
            ) from exc

        start = time.perf_counter()
        with body:
            try:
                result = call(body)
            except StorageError as exc:
                elapsed = time.perf_counter() - start
                if self._metrics_enabled:
                    record_store_write(kind, "error", elapsed)
                logger.error(
                    "%s upload failed [event=upload_failed] key=%s part=%s bytes=%s error=%s",
                    kind,
                    state.object_key,
                    segment.part_number,
                    segment.length,
                    exc,
                    extra={
                        "extra": {
                            "kind": kind,
                            "object_key": state.object_key,
                            "part_number": segment.part_number,
                            "size_bytes": segment.length,
                        }
                    },
                )
                raise UploadError(
                    f"Failed to upload {kind} for {state.object_key}: {exc}"
                ) from exc

        elapsed = time.perf_counter() - start
        if self._metrics_enabled:
            record_store_write(kind, "success", elapsed, segment.length)
        logger.info(
            "%s uploaded [event=upload_succeeded] key=%s part=%s bytes=%s duration_ms=%.3f",
            kind,
            state.object_key,
            segment.part_number,
            segment.length,
            round(elapsed * 1000, 3),
            extra={
                "extra": {
                    "kind": kind,
                    "object_key": state.object_key,
                    "part_number": segment.part_number,
                    "size_bytes": segment.length,
                    "duration_ms": round(elapsed * 1000, 3),
                }
            },
        )
        return result
