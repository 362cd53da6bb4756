"""Prometheus metrics for the client portal.

Defines operational metrics for monitoring tenant-scoped data access.
"""

from prometheus_client import Counter

# Every operation that goes through the tenant gateway
scoped_operations_total = Counter(
    "clientportal_scoped_operations_total",
    "Total tenant-scoped data operations",
    ["entity", "operation"]  # operation: find_many|find_unique|create|update|delete|count
)

# Lookups/mutations that matched nothing inside the caller's scope.
# Covers both genuinely absent rows and rows owned by another tenant.
scope_misses_total = Counter(
    "clientportal_scope_misses_total",
    "Scoped lookups or mutations that matched no row in the caller's organization",
    ["entity", "operation"]
)

# Rejected requests before any data access
tenancy_errors_total = Counter(
    "clientportal_tenancy_errors_total",
    "Tenancy errors raised to clients",
    ["error"]  # error: class name of the TenancyError subclass
)
