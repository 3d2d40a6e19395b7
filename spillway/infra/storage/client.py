"""Object store client protocol and data types.

This module defines the boundary between the streaming write path and the
remote object store: whole-object uploads, numbered part uploads, and
manifest assembly of previously uploaded parts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, Protocol


class StorageError(RuntimeError):
    """Raised when object storage operations fail."""


@dataclass(frozen=True, slots=True)
class CompletedPart:
    """Represents a part the store has acknowledged."""

    part_number: int
    etag: str


class ObjectStoreClient(Protocol):
    """Protocol defining the operations a write session consumes.

    Implementations own transport, authentication, and any retry policy.
    """

    def upload_object(
        self,
        *,
        object_key: str,
        body: BinaryIO,
        length: int,
    ) -> None:
        """Upload ``length`` bytes as the entire content of an object.

        Args:
            object_key: Object key (path) in the bucket.
            body: Readable binary stream positioned at the first byte.
            length: Exact number of bytes to read from ``body``.

        Raises:
            StorageError: If the upload fails.
        """
        ...

    def upload_object_part(
        self,
        *,
        object_key: str,
        part_number: int,
        body: BinaryIO,
        length: int,
    ) -> CompletedPart:
        """Upload ``length`` bytes as a numbered part of ``object_key``.

        Args:
            object_key: Logical object key the part belongs to.
            part_number: Part number (1-based, strictly increasing).
            body: Readable binary stream positioned at the first byte.
            length: Exact number of bytes to read from ``body``.

        Returns:
            CompletedPart acknowledged by the store.

        Raises:
            StorageError: If the upload fails.
        """
        ...

    def create_manifest(self, *, object_key: str) -> None:
        """Assemble all uploaded parts of ``object_key`` into one object.

        Parts are referenced in increasing part-number order.

        Raises:
            StorageError: If no parts exist or the operation fails.
        """
        ...

    def abort_parts(self, *, object_key: str) -> None:
        """Discard parts uploaded for ``object_key`` without assembling them.

        Raises:
            StorageError: If the operation fails.
        """
        ...
