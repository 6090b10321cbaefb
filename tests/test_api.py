"""
Tests for the verification REST API.

Coverage:
- Health check endpoint
- Verify endpoint for seed and play proofs
- Bad hex handling
- Metrics endpoint
"""

import pytest
from fastapi.testclient import TestClient

from api.server import create_app
from cangkul_zk import sigma
from cangkul_zk.commitments import seed_commit_hash
from cangkul_zk.settings import Settings

from conftest import BLINDING_BB, PLAYER, SEED_HASH_AA, SESSION


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(create_app(Settings()))


@pytest.fixture
def pedersen_payload(rng):
    proof = sigma.build_pedersen_proof(SEED_HASH_AA, BLINDING_BB, SESSION, PLAYER, rng)
    inputs = sigma.encode_inputs(seed_commit_hash(SEED_HASH_AA, BLINDING_BB), SEED_HASH_AA, SESSION, PLAYER)
    return {"domain": "seed", "publicInputs": "0x" + inputs.hex(), "proof": proof.hex()}


class TestHealthEndpoint:
    def test_health_check_returns_200(self, client):
        """Health endpoint should return 200."""
        response = client.get("/health")
        assert response.status_code == 200

    def test_health_check_json_structure(self, client):
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["circuit_verifier"] is False
        assert "version" in data and "timestamp" in data


class TestVerifyEndpoint:
    def test_valid_proof(self, client, pedersen_payload):
        data = client.post("/verify", json=pedersen_payload).json()
        assert data == {"ok": True, "reason": "OK", "kind": "pedersen"}

    def test_wrong_domain(self, client, pedersen_payload):
        """The same 224 bytes read as a play are a malformed two-member ring proof."""
        pedersen_payload["domain"] = "play"
        data = client.post("/verify", json=pedersen_payload).json()
        assert data["ok"] is False

    def test_rejected_proof(self, client, pedersen_payload):
        pedersen_payload["proof"] = "00" * 64
        data = client.post("/verify", json=pedersen_payload).json()
        assert data["ok"] is False and data["kind"] == "hash"

    def test_bad_hex(self, client):
        response = client.post("/verify", json={"domain": "seed", "publicInputs": "zz", "proof": "00"})
        assert response.status_code == 400

    def test_bad_domain(self, client, pedersen_payload):
        pedersen_payload["domain"] = "chain"
        assert client.post("/verify", json=pedersen_payload).status_code == 422


class TestMetricsEndpoint:
    def test_counts_verifications(self, client, pedersen_payload):
        client.post("/verify", json=pedersen_payload)
        data = client.get("/metrics").json()
        assert data["counters"]["verify_total"] == 1
        assert data["counters"]["verify_ok_total.pedersen"] == 1
