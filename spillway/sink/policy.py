from __future__ import annotations


def should_rollover(current_size: int, incoming_len: int, threshold: int) -> bool:
    """Decide whether the open segment must be uploaded before appending.

    A single write larger than ``threshold`` is never split: the rollover
    happens before it is appended, so the following segment may still exceed
    the threshold.
    """
    if threshold <= 0:
        raise ValueError("threshold must be positive")
    return current_size + incoming_len >= threshold
