from prometheus_client import Counter, Histogram

# operation is one of a fixed set of store method names; never the key
OPERATIONS = Counter(
    "s3store_operations_total",
    "Total object store operations",
    ["operation", "outcome"],
)

LATENCY = Histogram(
    "s3store_operation_duration_seconds",
    "Object store operation latency in seconds",
    ["operation"],
)
