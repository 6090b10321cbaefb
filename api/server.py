"""
Cangkul ZK Verification API

FastAPI service exposing the length-keyed proof dispatcher:
- Health check
- Proof verification (hex public inputs + hex proof)
- Outcome metrics

Run:
    uvicorn api.server:app --host 0.0.0.0 --port 8080
"""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from cangkul_zk import __schema__, __version__
from cangkul_zk.circuit import CircuitVerifier
from cangkul_zk.dispatch import Dispatcher, ProofDomain
from cangkul_zk.errors import MalformedInput
from cangkul_zk.hashing import from_hex
from cangkul_zk.metrics import Metrics
from cangkul_zk.settings import Settings

# --- Pydantic Models for API Requests/Responses ---

class VerifyRequest(BaseModel):
    """Proof submission; both blobs are hex, 0x prefix optional."""
    domain: ProofDomain = ProofDomain.SEED
    public_inputs: str = Field(alias="publicInputs")
    proof: str

    model_config = {"populate_by_name": True}


class VerifyResponse(BaseModel):
    ok: bool
    reason: str
    kind: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    version: str
    schema_version: str
    circuit_verifier: bool
    timestamp: float


def create_app(
    settings: Optional[Settings] = None,
    circuit_verifier: Optional[CircuitVerifier] = None,
    metrics: Optional[Metrics] = None,
) -> FastAPI:
    """Build the service around one Dispatcher instance."""
    settings = settings or Settings.load()
    metrics = metrics or Metrics()
    dispatcher = Dispatcher(settings, circuit_verifier=circuit_verifier, metrics=metrics)

    app = FastAPI(
        title="Cangkul ZK Verification API",
        description="Commitment and proof verification for Cangkulan",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.get("/", tags=["Meta"])
    def root() -> Dict[str, Any]:
        return {
            "service": "cangkul-zk",
            "version": __version__,
            "endpoints": ["/health", "/verify", "/metrics"],
        }

    @app.get("/health", response_model=HealthResponse, tags=["Meta"])
    def health() -> HealthResponse:
        return HealthResponse(
            status="healthy",
            version=__version__,
            schema_version=__schema__,
            circuit_verifier=circuit_verifier is not None,
            timestamp=time.time(),
        )

    @app.post("/verify", response_model=VerifyResponse, tags=["Verify"])
    def verify(req: VerifyRequest) -> VerifyResponse:
        try:
            public_inputs = from_hex(req.public_inputs)
            proof = from_hex(req.proof)
        except MalformedInput as e:
            raise HTTPException(status_code=400, detail=str(e))
        result = dispatcher.verify(req.domain, public_inputs, proof)
        return VerifyResponse(ok=result.ok, reason=result.reason.value, kind=result.kind)

    @app.get("/metrics", tags=["Meta"])
    def get_metrics() -> Dict[str, Any]:
        return metrics.snapshot()

    return app


app = create_app()

# Run with: uvicorn api.server:app --reload --port 8080
