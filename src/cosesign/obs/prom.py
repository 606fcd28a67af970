"""Prometheus instrumentation for COSE sign/verify.

Labels stay low-cardinality: variant and alg names come from fixed tables and
failure reasons are exception class names from ``cosesign.errors``.
"""
from __future__ import annotations

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
    CONTENT_TYPE_LATEST,
)

from ..config import METRICS_ENABLED

# Registry must be created before metric objects reference it.
REGISTRY = CollectorRegistry()

SIGN_COUNTER = Counter(
    "cosesign_sign_total",
    "COSE envelopes produced, by variant, algorithm and result.",
    ["variant", "alg", "result"],
    registry=REGISTRY,
)
VERIFY_COUNTER = Counter(
    "cosesign_verify_total",
    "COSE envelope verifications, by variant, result and failure reason.",
    ["variant", "result", "reason"],
    registry=REGISTRY,
)
SIG_HIST = Histogram(
    "cosesign_signature_bytes",
    "Size of produced signature values (bytes).",
    ["alg"],
    buckets=(64, 96, 132, 256, 384, 512, 768, 1024),
    registry=REGISTRY,
)

VARIANT_NAMES = {98: "sign", 18: "sign1"}


def _variant(tag) -> str:
    return VARIANT_NAMES.get(tag, "unknown")


def observe_sign(*, variant: int, alg: str, ok: bool, signature_bytes: int = 0) -> None:
    if not METRICS_ENABLED:
        return
    SIGN_COUNTER.labels(variant=_variant(variant), alg=alg, result="ok" if ok else "fail").inc()
    if ok:
        SIG_HIST.labels(alg=alg).observe(signature_bytes)


def observe_verify(*, variant, ok: bool, reason: str = "") -> None:
    if not METRICS_ENABLED:
        return
    VERIFY_COUNTER.labels(variant=_variant(variant), result="ok" if ok else "fail", reason=reason).inc()


def prometheus_latest() -> tuple[bytes, str]:
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
