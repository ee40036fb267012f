"""
In-memory counters for the authentication gates.

- auth_success_total{gate}: successful authentications per gate
- auth_failure_total{gate,reason}: rejected requests per gate and reason
- last_login_write_failures_total: best-effort login timestamp writes that failed
"""
import re as _re
from collections import defaultdict
from typing import Any
import logging

logger = logging.getLogger("subplatform.metrics")

_PREFIX = "subplatform_"


class MetricsCollector:
    """Simple in-memory metrics collector."""

    def __init__(self):
        self.counters: dict[str, int] = defaultdict(int)

    def increment_counter(self, name: str, value: int = 1, labels: dict[str, str] | None = None):
        """Increment a counter metric."""
        key = self._build_key(name, labels)
        self.counters[key] += value

    def get_counter(self, name: str, labels: dict[str, str] | None = None) -> int:
        """Get current counter value."""
        key = self._build_key(name, labels)
        return self.counters.get(key, 0)

    def get_all_metrics(self) -> dict[str, Any]:
        return {"counters": dict(self.counters)}

    def reset(self):
        self.counters.clear()

    @staticmethod
    def _build_key(name: str, labels: dict[str, str] | None) -> str:
        """Build metric key from name and labels."""
        if not labels:
            return name
        label_str = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"


# Global metrics collector instance
metrics = MetricsCollector()


def record_auth_success(gate: str):
    metrics.increment_counter("auth_success_total", labels={"gate": gate})


def record_auth_failure(gate: str, reason: str):
    metrics.increment_counter("auth_failure_total", labels={"gate": gate, "reason": reason})


def record_last_login_write_failure():
    metrics.increment_counter("last_login_write_failures_total")


def _parse_metric_key(key: str) -> tuple[str, str]:
    """Split an internal metric key into (base_name, prometheus_label_string).

    ``auth_failure_total{gate=admin,reason=invalid}`` becomes
    ``("auth_failure_total", '{gate="admin",reason="invalid"}')``.
    """
    m = _re.match(r'^([^{]+)(?:\{(.+)\})?$', key)
    if not m:
        return key, ""
    base_name = m.group(1)
    raw_labels = m.group(2) or ""
    if not raw_labels:
        return base_name, ""
    label_parts: list[str] = []
    for pair in raw_labels.split(","):
        if "=" in pair:
            k, v = pair.split("=", 1)
            label_parts.append(f'{k.strip()}="{v.strip()}"')
    label_str = "{" + ",".join(label_parts) + "}" if label_parts else ""
    return base_name, label_str


def to_prometheus_text() -> str:
    """Render all counters in the Prometheus text exposition format.

    Each metric family gets exactly one ``# TYPE`` line; label sets of the
    same family are grouped beneath it.
    """
    families: dict[str, list[tuple[str, int]]] = defaultdict(list)
    for key, val in metrics.get_all_metrics()["counters"].items():
        base_name, label_str = _parse_metric_key(key)
        families[_PREFIX + base_name].append((label_str, val))

    lines: list[str] = []
    for prom_name, entries in families.items():
        lines.append(f"# TYPE {prom_name} counter")
        for label_str, val in entries:
            lines.append(f"{prom_name}{label_str} {val}")
    return "\n".join(lines) + "\n"
