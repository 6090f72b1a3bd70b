from __future__ import annotations

import math
import time
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Deque


@dataclass(frozen=True)
class RequestSample:
    ts: float
    method: str
    path: str
    status_code: int
    latency_ms: float


_request_samples: Deque[RequestSample] = deque(maxlen=20000)
_counters: dict[str, int] = defaultdict(int)


def record_request(*, method: str, path: str, status_code: int, latency_ms: float) -> None:
    # Track request latency and status for ops visibility.
    _request_samples.append(
        RequestSample(
            ts=time.time(),
            method=method,
            path=path,
            status_code=status_code,
            latency_ms=latency_ms,
        )
    )


def increment_counter(name: str, value: int = 1) -> None:
    _counters[name] += value


def counters() -> dict[str, int]:
    return dict(_counters)


def _window_samples(window_s: int) -> list[RequestSample]:
    cutoff = time.time() - window_s
    return [sample for sample in _request_samples if sample.ts >= cutoff]


def availability(window_s: int) -> float | None:
    # Calculate availability as % of non-5xx requests over the window.
    samples = _window_samples(window_s)
    if not samples:
        return None
    failures = sum(1 for sample in samples if sample.status_code >= 500)
    return ((len(samples) - failures) / len(samples)) * 100.0


def p95_latency(window_s: int) -> float | None:
    samples = _window_samples(window_s)
    if not samples:
        return None
    latencies = sorted(sample.latency_ms for sample in samples)
    idx = max(0, math.ceil(0.95 * len(latencies)) - 1)
    return latencies[idx]


def status_families(window_s: int) -> dict[str, int]:
    families: dict[str, int] = defaultdict(int)
    for sample in _window_samples(window_s):
        families[f"{sample.status_code // 100}xx"] += 1
    return dict(families)


def reset() -> None:
    # Tests share the module-level buffers; clear them between cases.
    _request_samples.clear()
    _counters.clear()
