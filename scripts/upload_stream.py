#!/usr/bin/env python3
"""Stream a local file (or stdin) into an S3-compatible bucket.

Usage:
  .venv/bin/python scripts/upload_stream.py --key backups/db.dump db.dump
  pg_dump mydb | .venv/bin/python scripts/upload_stream.py --key backups/db.dump

Large inputs are split into parts and assembled by the store on completion.
Connection settings come from the environment (S3_ENDPOINT_URL, S3_BUCKET, ...).
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import BinaryIO

from spillway.common.config import Settings, get_settings
from spillway.common.logging import setup_logging
from spillway.infra.storage.client import ObjectStoreClient
from spillway.infra.storage.s3_client import S3ObjectStoreClient
from spillway.sink import SinkError, WriteSession

CHUNK_SIZE = 1024 * 1024

logger = logging.getLogger("spillway.script")


def upload_stream(
    source: BinaryIO,
    *,
    object_key: str,
    client: ObjectStoreClient,
    settings: Settings,
    threshold: int | None = None,
    spill_dir: str | None = None,
    chunk_size: int = CHUNK_SIZE,
) -> WriteSession:
    with WriteSession(
        object_key,
        client,
        spill_dir=spill_dir,
        threshold=threshold,
        settings=settings,
    ) as session:
        while True:
            chunk = source.read(chunk_size)
            if not chunk:
                break
            session.write(chunk)
    return session


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Upload a byte stream to an object store, splitting large inputs"
    )
    parser.add_argument("--key", required=True, help="Target object key")
    parser.add_argument(
        "--bucket", default=None, help="Target bucket (default: S3_BUCKET)"
    )
    parser.add_argument(
        "--threshold",
        type=int,
        default=None,
        help="Segment size in bytes that triggers a part upload "
        "(default: SEGMENT_THRESHOLD_BYTES)",
    )
    parser.add_argument(
        "--spill-dir",
        default=None,
        help="Directory for local spill files (default: SPILL_DIR)",
    )
    parser.add_argument(
        "source",
        nargs="?",
        default="-",
        help="Input file path, or '-' for stdin (default)",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    client = S3ObjectStoreClient(settings=settings, bucket=args.bucket)

    try:
        if args.source == "-":
            session = upload_stream(
                sys.stdin.buffer,
                object_key=args.key,
                client=client,
                settings=settings,
                threshold=args.threshold,
                spill_dir=args.spill_dir,
            )
        else:
            with open(args.source, "rb") as source:
                session = upload_stream(
                    source,
                    object_key=args.key,
                    client=client,
                    settings=settings,
                    threshold=args.threshold,
                    spill_dir=args.spill_dir,
                )
    except SinkError as exc:
        logger.error("Upload of %s failed: %s", args.key, exc)
        return 1

    logger.info(
        "Uploaded %s bytes to s3://%s/%s (%s)",
        session.bytes_written,
        client.bucket,
        args.key,
        f"{len(session.parts)} parts" if session.segmented else "single object",
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
