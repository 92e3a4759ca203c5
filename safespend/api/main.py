"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from safespend.api.middleware import RequestIDMiddleware, MetricsMiddleware
from safespend.api.v1 import anomalies, safe_to_spend, summary
from safespend.infrastructure.observability.logging import setup_logging
from safespend.config import settings

# JSON logs on stdout for the whole process
setup_logging(settings.log_level, settings.service_name)

V1_ROUTERS = (
    (safe_to_spend.router, "forecast"),
    (anomalies.router, "anomalies"),
    (summary.router, "analytics"),
)


def create_app() -> FastAPI:
    """Build the API: health and metrics probes plus the versioned forecast routes"""
    app = FastAPI(
        title="SafeSpend Engine",
        description="Cycle-aware safe-to-spend forecasts and spending anomaly detection",
        version="0.1.0",
    )

    # RequestIDMiddleware runs first so metrics and handlers see the id
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    for router, tag in V1_ROUTERS:
        app.include_router(router, prefix="/v1", tags=[tag])

    return app


app = create_app()
