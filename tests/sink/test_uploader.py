"""Tests for PartUploader and ManifestFinalizer."""

from __future__ import annotations

import pytest

from spillway.infra.storage.client import CompletedPart
from spillway.sink.base import SessionState, SinkStateError, UploadError
from spillway.sink.manifest import ManifestFinalizer
from spillway.sink.spill_buffer import SpillBuffer
from spillway.sink.uploader import PartUploader
from tests.sink.mock_store import spill_files


@pytest.fixture()
def buffer(spill_dir):
    return SpillBuffer(spill_dir)


@pytest.fixture()
def state():
    return SessionState(object_key="logs/run.bin")


class TestUploadFinal:
    def test_whole_object_when_never_segmented(self, mock_store, buffer, state, spill_dir):
        buffer.append(b"12345")

        PartUploader(mock_store).upload_final(state, buffer)

        assert mock_store.calls == [("upload_object", "logs/run.bin", 5)]
        assert mock_store.objects["logs/run.bin"] == b"12345"
        assert state.part_number == 1
        assert state.segmented is False
        assert spill_files(spill_dir) == []

    def test_numbered_part_once_segmented(self, mock_store, buffer, state, spill_dir):
        uploader = PartUploader(mock_store)
        buffer.append(b"first")
        uploader.upload_as_part(state, buffer)
        buffer.append(b"last")

        uploader.upload_final(state, buffer)

        assert mock_store.calls == [
            ("upload_object_part", "logs/run.bin", 1, 5),
            ("upload_object_part", "logs/run.bin", 2, 4),
        ]
        assert state.part_number == 3
        assert not buffer.live
        assert spill_files(spill_dir) == []


class TestUploadAsPart:
    def test_flips_segmented_and_increments(self, mock_store, buffer, state):
        buffer.append(b"abc")

        part = PartUploader(mock_store).upload_as_part(state, buffer)

        assert part == CompletedPart(part_number=1, etag="etag-1")
        assert state.segmented is True
        assert state.part_number == 2
        assert state.parts == [part]
        assert buffer.live
        assert buffer.current_length == 0

    def test_failure_raises_upload_error_and_removes_spill(
        self, mock_store, buffer, state, spill_dir
    ):
        mock_store.fail_on.add("part:1")
        buffer.append(b"abc")

        with pytest.raises(UploadError, match="Failed to upload part for logs/run.bin"):
            PartUploader(mock_store).upload_as_part(state, buffer)

        assert state.part_number == 1
        assert state.parts == []
        assert spill_files(spill_dir) == []
        assert not buffer.live

    def test_error_chains_storage_error(self, mock_store, buffer, state):
        mock_store.fail_on.add("object")

        with pytest.raises(UploadError) as excinfo:
            PartUploader(mock_store).upload_final(state, buffer)

        assert "simulated outage" in str(excinfo.value.__cause__)


class TestManifestFinalizer:
    def test_creates_manifest_for_contiguous_parts(self, mock_store, buffer, state):
        uploader = PartUploader(mock_store)
        buffer.append(b"aa")
        uploader.upload_as_part(state, buffer)
        buffer.append(b"bb")
        uploader.upload_final(state, buffer)

        ManifestFinalizer(mock_store).finalize(state)

        assert mock_store.manifests["logs/run.bin"] == [1, 2]
        assert mock_store.objects["logs/run.bin"] == b"aabb"

    def test_refuses_unsegmented_state(self, mock_store, state):
        with pytest.raises(SinkStateError, match="unsegmented"):
            ManifestFinalizer(mock_store).finalize(state)

        assert mock_store.calls == []

    def test_refuses_gap_in_parts(self, mock_store, state):
        state.segmented = True
        state.parts = [
            CompletedPart(part_number=1, etag="e1"),
            CompletedPart(part_number=3, etag="e3"),
        ]

        with pytest.raises(SinkStateError, match="requires parts 1..n"):
            ManifestFinalizer(mock_store).finalize(state)

        assert mock_store.calls == []

    def test_store_failure_becomes_upload_error(self, mock_store, state):
        state.segmented = True
        state.parts = [CompletedPart(part_number=1, etag="e1")]
        mock_store.fail_on.add("manifest")

        with pytest.raises(UploadError, match="Failed to create manifest"):
            ManifestFinalizer(mock_store).finalize(state)
