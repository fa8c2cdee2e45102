from __future__ import annotations

from datetime import UTC, datetime

from dotenv import load_dotenv
from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

from .. import __version__
from ..observability.metrics import metrics_middleware_factory
from .routers.contract import router as contract_router
from .routers.identities import router as identities_router

load_dotenv()  # Load MULTISIG_* settings from .env if present

app = FastAPI(title="Multisig Account Tool API", version=__version__)

# Observability: request latency histogram
app.middleware("http")(metrics_middleware_factory())

app.include_router(contract_router)
app.include_router(identities_router)

# Also expose the same routers under /api
app.include_router(contract_router, prefix="/api")
app.include_router(identities_router, prefix="/api")


@app.get("/")
def root():
    return {"name": "Multisig Account Tool API", "version": __version__}


@app.get("/health")
def health():
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
    }


@app.get("/metrics")
def metrics() -> Response:
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
