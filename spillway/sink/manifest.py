from __future__ import annotations

import logging
import time

from spillway.infra.observability.metrics import record_store_write
from spillway.infra.storage.client import ObjectStoreClient, StorageError
from spillway.sink.base import SessionState, SinkStateError, UploadError

logger = logging.getLogger("spillway.manifest")


class ManifestFinalizer:
    """Assembles the uploaded parts of a segmented write into one object."""

    def __init__(self, client: ObjectStoreClient, *, metrics_enabled: bool = True):
        self._client = client
        self._metrics_enabled = metrics_enabled

    def finalize(self, state: SessionState) -> None:
        if not state.segmented:
            raise SinkStateError(
                f"Manifest requested for unsegmented object: {state.object_key}"
            )

        numbers = [part.part_number for part in state.parts]
        if not numbers or numbers != list(range(1, len(numbers) + 1)):
            raise SinkStateError(
                f"Manifest for {state.object_key} requires parts 1..n, got {numbers}"
            )

        start = time.perf_counter()
        try:
            self._client.create_manifest(object_key=state.object_key)
        except StorageError as exc:
            if self._metrics_enabled:
                record_store_write("manifest", "error", time.perf_counter() - start)
            logger.error(
                "manifest creation failed [event=manifest_failed] key=%s parts=%s error=%s",
                state.object_key,
                len(numbers),
                exc,
            )
            raise UploadError(
                f"Failed to create manifest for {state.object_key}: {exc}"
            ) from exc

        if self._metrics_enabled:
            record_store_write("manifest", "success", time.perf_counter() - start)
        logger.info(
            "manifest created [event=manifest_created] key=%s parts=%s",
            state.object_key,
            len(numbers),
        )
