"""
Verification metrics.

Privacy boundary:
- No player addresses
- No session ids
- No proof or secret material
- Outcome counts per proof kind and reason only
"""

from __future__ import annotations

from dataclasses import dataclass, field
from threading import Lock
from typing import Dict

from .errors import VerifyResult


@dataclass
class Metrics:
    """Counters and gauges for the verify path."""

    counters: Dict[str, int] = field(default_factory=dict)
    gauges: Dict[str, float] = field(default_factory=dict)
    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    def inc(self, name: str, by: int = 1) -> None:
        """Increment counter by value."""
        with self._lock:
            self.counters[name] = self.counters.get(name, 0) + by

    def observe(self, name: str, value: float) -> None:
        """Record gauge value."""
        with self._lock:
            self.gauges[name] = float(value)

    def record(self, result: VerifyResult, elapsed_s: float = 0.0) -> None:
        """Count one verification outcome."""
        kind = result.kind or "unknown"
        self.inc("verify_total")
        if result.ok:
            self.inc(f"verify_ok_total.{kind}")
        else:
            self.inc(f"verify_rejected_total.{kind}.{result.reason.value}")
        self.observe(f"verify_last_seconds.{kind}", elapsed_s)

    def snapshot(self) -> dict:
        """Return current metrics snapshot."""
        with self._lock:
            return {
                "counters": dict(self.counters),
                "gauges": dict(self.gauges),
            }
