from prometheus_client import Counter, Histogram

# kind: object | part | manifest; outcome: success | error
STORE_WRITES = Counter(
    "spillway_store_writes_total",
    "Total object store write calls",
    ["kind", "outcome"],
)

STORE_BYTES = Counter(
    "spillway_store_bytes_total",
    "Bytes successfully uploaded to the object store",
    ["kind"],
)

STORE_LATENCY = Histogram(
    "spillway_store_write_duration_seconds",
    "Object store write latency in seconds",
    ["kind"],
)


def record_store_write(
    kind: str, outcome: str, elapsed: float, size_bytes: int = 0
) -> None:
    STORE_WRITES.labels(kind, outcome).inc()
    STORE_LATENCY.labels(kind).observe(elapsed)
    if outcome == "success" and size_bytes:
        STORE_BYTES.labels(kind).inc(size_bytes)
