"""
API endpoints package.

Contains FastAPI routers for all service endpoints:
- /webhook - Crashlytics webhook receiver
- /metrics - Prometheus metrics
- /healthz - Liveness check
"""
from .healthz import router as healthz_router
from .metrics import router as metrics_router
from .webhook import router as webhook_router

__all__ = ["healthz_router", "metrics_router", "webhook_router"]
