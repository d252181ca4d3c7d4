# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Prometheus metrics, single source of truth for all metric objects.
Imported by services and middleware. Never instantiated in controllers.
"""

from prometheus_client import Counter, Histogram

# ── HTTP Metrics (used by middleware) ──
REQUEST_COUNT = Counter(
    "binome_requests_total",
    "Total HTTP requests to the binome service",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "binome_request_duration_seconds",
    "Request latency in seconds",
    ["method", "endpoint"],
)
HTTP_ERRORS = Counter(
    "binome_http_errors_total",
    "Total HTTP error responses",
    ["method", "endpoint", "status"],
)

# ── Business Metrics (updated by service layer only) ──
CYCLES_CREATED = Counter(
    "binome_cycles_created_total",
    "Total pairing cycles created",
    ["policy"],
)
PAIRS_CREATED = Counter(
    "binome_pairs_created_total",
    "Total pairs persisted",
    ["policy"],
)
ROTATIONS_TOTAL = Counter(
    "binome_rotations_total",
    "Cycle rotations performed",
    ["trigger"],
)
ROTATION_CONFLICTS = Counter(
    "binome_rotation_conflicts_total",
    "Rotations abandoned because the active cycle changed concurrently",
)
SWEEP_RUNS = Counter(
    "binome_sweep_runs_total",
    "Background expiry sweeps executed",
)
SWEEP_FAILURES = Counter(
    "binome_sweep_failures_total",
    "Sections whose expiry check failed during a sweep",
)
SWEEP_DURATION = Histogram(
    "binome_sweep_duration_seconds",
    "Time taken by one background expiry sweep",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)
