"""
Settings and metrics.

Verifies:
- environment parsing with defaults
- invalid values fail at load time
- metrics carry no player data
"""

from __future__ import annotations

import pytest

from cangkul_zk.errors import Reason, VerifyResult
from cangkul_zk.metrics import Metrics
from cangkul_zk.settings import Settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in (
            "CANGKUL_RING_MAX_SIZE",
            "CANGKUL_HAND_MAX_SIZE",
            "CANGKUL_CIRCUIT_MIN_PROOF",
            "CANGKUL_STRICT_CIRCUIT",
            "CANGKUL_STORE_KEY",
        ):
            monkeypatch.delenv(name, raising=False)
        s = Settings.load()
        assert s.RING_MAX_SIZE == 9
        assert s.HAND_MAX_SIZE == 18
        assert s.CIRCUIT_MIN_PROOF == 4000
        assert s.STRICT_CIRCUIT is True
        assert s.store_key is None

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("CANGKUL_RING_MAX_SIZE", "12")
        monkeypatch.setenv("CANGKUL_STRICT_CIRCUIT", "no")
        monkeypatch.setenv("CANGKUL_STORE_KEY", "0x" + "11" * 32)
        s = Settings.load()
        assert s.RING_MAX_SIZE == 12
        assert s.STRICT_CIRCUIT is False
        assert s.store_key == b"\x11" * 32

    def test_bad_int(self, monkeypatch):
        monkeypatch.setenv("CANGKUL_RING_MAX_SIZE", "nine")
        with pytest.raises(RuntimeError):
            Settings.load()

    def test_bounds(self):
        with pytest.raises(RuntimeError):
            Settings(RING_MAX_SIZE=0)
        with pytest.raises(RuntimeError):
            Settings(CIRCUIT_MIN_PROOF=100)

    def test_bad_store_key(self):
        with pytest.raises(RuntimeError):
            Settings(STORE_KEY_HEX="abcd").store_key


class TestMetrics:
    def test_record(self):
        m = Metrics()
        m.record(VerifyResult.accept("ring"), 0.01)
        m.record(VerifyResult.reject(Reason.SIGMA_CHECK_FAILED, "pedersen"))
        snap = m.snapshot()
        assert snap["counters"]["verify_total"] == 2
        assert snap["counters"]["verify_ok_total.ring"] == 1
        assert snap["counters"]["verify_rejected_total.pedersen.SIGMA_CHECK_FAILED"] == 1
        assert snap["gauges"]["verify_last_seconds.ring"] == 0.01

    def test_snapshot_is_copy(self):
        m = Metrics()
        m.inc("a")
        snap = m.snapshot()
        m.inc("a")
        assert snap["counters"]["a"] == 1
