"""Segmented streaming writes to S3-compatible object stores."""

from spillway.sink import WriteSession

__all__ = ["WriteSession"]
