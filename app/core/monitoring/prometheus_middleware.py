from prometheus_client import Counter, Histogram, Gauge
from fastapi import Request
from fastapi.routing import APIRoute
import time
import logging

logger = logging.getLogger(__name__)

# ============================================================================
# HTTP Metrics
# ============================================================================

# Request counter by method, endpoint, and status
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code']
)

# Request duration histogram
http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request latency in seconds',
    ['method', 'endpoint'],
    buckets=(0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0, 7.5, 10.0)
)

# Active requests gauge
http_requests_in_progress = Gauge(
    'http_requests_in_progress',
    'Number of HTTP requests in progress',
    ['method', 'endpoint']
)

# ============================================================================
# Application-Specific Metrics
# ============================================================================

# Production summary operations
summary_operations_total = Counter(
    'production_summary_operations_total',
    'Total production summary operations',
    ['operation', 'status']  # aggregate/derive/approve x success/skipped/not_found/conflict/error
)

# Lost compare-and-set races on summary rows
summary_write_conflicts_total = Counter(
    'production_summary_write_conflicts_total',
    'Summary row writes retried because another request changed the row first',
    ['operation']
)

# Order operations
order_operations_total = Counter(
    'order_operations_total',
    'Total order operations',
    ['operation']  # created, updated, status_changed, deleted
)

# Cache operations
cache_operations_total = Counter(
    'cache_operations_total',
    'Total cache operations',
    ['operation', 'status']  # hit, miss, set, error
)

# ============================================================================
# Middleware Class
# ============================================================================

class PrometheusMiddleware:
    """
    FastAPI middleware to collect Prometheus metrics
    """

    async def __call__(self, request: Request, call_next):
        # Extract route pattern (e.g., /api/v1/orders/{order_id})
        route = request.url.path
        for route_obj in request.app.routes:
            if isinstance(route_obj, APIRoute):
                match = route_obj.path_regex.match(route)
                if match:
                    route = route_obj.path
                    break

        method = request.method

        # Track in-progress requests
        http_requests_in_progress.labels(method=method, endpoint=route).inc()

        # Start timer
        start_time = time.time()

        try:
            response = await call_next(request)

            duration = time.time() - start_time

            http_requests_total.labels(
                method=method,
                endpoint=route,
                status_code=response.status_code
            ).inc()

            http_request_duration_seconds.labels(
                method=method,
                endpoint=route
            ).observe(duration)

            return response

        except Exception as e:
            # Track failed requests
            http_requests_total.labels(
                method=method,
                endpoint=route,
                status_code=500
            ).inc()

            logger.error(f"Request failed: {str(e)}")
            raise

        finally:
            # Decrement in-progress counter
            http_requests_in_progress.labels(method=method, endpoint=route).dec()


# ============================================================================
# Helper Functions for Application Metrics
# ============================================================================

def track_summary_operation(operation: str, status: str):
    """Track production summary operations"""
    summary_operations_total.labels(operation=operation, status=status).inc()


def track_summary_conflict(operation: str):
    """Track a lost compare-and-set race"""
    summary_write_conflicts_total.labels(operation=operation).inc()


def track_order_operation(operation: str):
    """Track order operations"""
    order_operations_total.labels(operation=operation).inc()


def track_cache_operation(operation: str, hit: bool = None, error: bool = False):
    """Track cache operations"""
    if error:
        status = "error"
    elif hit is not None:
        status = "hit" if hit else "miss"
    else:
        status = "success"

    cache_operations_total.labels(
        operation=operation,
        status=status
    ).inc()
