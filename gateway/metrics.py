from prometheus_client import Counter, Histogram
from gateway.prom import REGISTRY


# -----------------------------------------------------------------------------
#  Statement guard metrics
# -----------------------------------------------------------------------------
guard_checks_total = Counter(
    "guard_checks_total",
    "Total SQL statements checked by the statement guard",
    ["ok"],  # "true" or "false"
    registry=REGISTRY,
)

guard_blocks_total = Counter(
    "guard_blocks_total",
    "Count of statements rejected by the statement guard",
    ["reason"],  # empty_sql | non_readonly
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
#  Limit rewriter metrics
# -----------------------------------------------------------------------------
limit_rewrites_total = Counter(
    "limit_rewrites_total",
    "Outcome of the limit rewriter",
    ["mode"],  # existing_limit | unbounded | appended | union_wrapped
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
#  Engine / query metrics
# -----------------------------------------------------------------------------
queries_total = Counter(
    "gateway_queries_total",
    "Gateway operations by engine, operation and outcome",
    ["engine", "operation", "status"],  # status: ok | validation | connection | query | timeout
    registry=REGISTRY,
)

query_duration_ms = Histogram(
    "gateway_query_duration_ms",
    "Duration (ms) of gateway operations, connection included",
    ["engine", "operation"],
    buckets=(1, 5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000, 30000, 60000),
    registry=REGISTRY,
)

connections_opened_total = Counter(
    "gateway_connections_opened_total",
    "Per-request engine connections opened",
    ["engine"],
    registry=REGISTRY,
)

connection_close_failures_total = Counter(
    "gateway_connection_close_failures_total",
    "Connection close failures (swallowed)",
    ["engine"],
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
#  Prime counters with zero so dashboards always have data
# -----------------------------------------------------------------------------
for ok in ("true", "false"):
    guard_checks_total.labels(ok=ok).inc(0)

for reason in ("empty_sql", "non_readonly"):
    guard_blocks_total.labels(reason=reason).inc(0)

for mode in ("existing_limit", "unbounded", "appended", "union_wrapped"):
    limit_rewrites_total.labels(mode=mode).inc(0)

for engine in ("mysql", "postgresql"):
    connections_opened_total.labels(engine=engine).inc(0)
    connection_close_failures_total.labels(engine=engine).inc(0)
