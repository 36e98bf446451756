from __future__ import annotations

"""
Prometheus metrics for governance rounds.

We expose counters and gauges covering:
- applications: submissions and removals
- votes: ballots cast and raw weight accumulated
- phases: transitions by target phase
- finalize: finalizations, winners selected, finalize latency
- payouts: downstream handoffs by result
- rejections: failed operations by error code

Labels carry the round id so several rounds can share one process.
"""


import time
from contextlib import contextmanager
from typing import Optional

from prometheus_client import (CONTENT_TYPE_LATEST, CollectorRegistry, Counter,
                               Gauge, Histogram, generate_latest)

# Use a dedicated registry so embedding apps can choose to merge or expose it directly.
REGISTRY = CollectorRegistry()

# ────────────────────────────────────────────────────────────────────────────────
# Label conventions
#   round:  config round_id
#   action: "submitted" | "removed"
#   phase:  "APPLICATION" | "VOTING" | "FINALIZED"
#   result: "ok" | "failed"
#   code:   GovernanceError.code
# ────────────────────────────────────────────────────────────────────────────────

APPLICATIONS = Counter(
    "gov_applications_total",
    "Application registry changes by action.",
    labelnames=("round", "action"),
    registry=REGISTRY,
)

VOTES_CAST = Counter(
    "gov_votes_cast_total",
    "Ballots accepted.",
    labelnames=("round",),
    registry=REGISTRY,
)

VOTE_WEIGHT = Counter(
    "gov_vote_weight_total",
    "Sum of raw shares accepted across all ballots.",
    labelnames=("round",),
    registry=REGISTRY,
)

PHASE_TRANSITIONS = Counter(
    "gov_phase_transitions_total",
    "Phase transitions by target phase.",
    labelnames=("round", "phase"),
    registry=REGISTRY,
)

FINALIZATIONS = Counter(
    "gov_finalizations_total",
    "Rounds finalized.",
    labelnames=("round",),
    registry=REGISTRY,
)

PAYOUT_HANDOFFS = Counter(
    "gov_payout_handoffs_total",
    "Payout collaborator handoffs by result.",
    labelnames=("round", "result"),
    registry=REGISTRY,
)

REJECTIONS = Counter(
    "gov_rejections_total",
    "Operations rejected by error code.",
    labelnames=("round", "code"),
    registry=REGISTRY,
)

APPLICATIONS_OPEN = Gauge(
    "gov_applications_open",
    "Currently registered applications.",
    labelnames=("round",),
    registry=REGISTRY,
)

WINNERS = Gauge(
    "gov_winners",
    "Winners selected at finalize.",
    labelnames=("round",),
    registry=REGISTRY,
)

FINALIZE_SECONDS = Histogram(
    "gov_finalize_seconds",
    "Wall time spent in finalize (selection + commit + payout handoff).",
    labelnames=("round",),
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0),
    registry=REGISTRY,
)


# ────────────────────────────────────────────────────────────────────────────────
# Recording helpers
# ────────────────────────────────────────────────────────────────────────────────


def record_application(round_id: str, action: str, open_count: int) -> None:
    APPLICATIONS.labels(round=round_id, action=action).inc()
    APPLICATIONS_OPEN.labels(round=round_id).set(open_count)


def record_vote(round_id: str, weight: int) -> None:
    VOTES_CAST.labels(round=round_id).inc()
    if weight > 0:
        VOTE_WEIGHT.labels(round=round_id).inc(weight)


def record_phase(round_id: str, phase: str) -> None:
    PHASE_TRANSITIONS.labels(round=round_id, phase=phase).inc()


def record_finalized(round_id: str, winners: int) -> None:
    FINALIZATIONS.labels(round=round_id).inc()
    WINNERS.labels(round=round_id).set(winners)


def record_payout(round_id: str, ok: bool) -> None:
    PAYOUT_HANDOFFS.labels(round=round_id, result="ok" if ok else "failed").inc()


def record_rejection(round_id: str, code: str) -> None:
    REJECTIONS.labels(round=round_id, code=code).inc()


@contextmanager
def time_finalize(round_id: str):
    """Context manager to observe finalize duration."""
    start = time.perf_counter()
    try:
        yield
    finally:
        FINALIZE_SECONDS.labels(round=round_id).observe(time.perf_counter() - start)


def render_latest(registry: Optional[CollectorRegistry] = None) -> bytes:
    """Prometheus text exposition of the governance registry."""
    return generate_latest(registry or REGISTRY)


def mount_fastapi(
    app, path: str = "/metrics", registry: Optional[CollectorRegistry] = None
) -> None:
    """
    Mount a GET {path} endpoint on a FastAPI app to serve metrics.

    Usage:
        from fastapi import FastAPI
        from governance.metrics import mount_fastapi
        app = FastAPI()
        mount_fastapi(app)
    """
    from fastapi import Response

    reg = registry or REGISTRY

    @app.get(path)
    def _metrics() -> Response:
        return Response(generate_latest(reg), media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "APPLICATIONS",
    "VOTES_CAST",
    "VOTE_WEIGHT",
    "PHASE_TRANSITIONS",
    "FINALIZATIONS",
    "PAYOUT_HANDOFFS",
    "REJECTIONS",
    "APPLICATIONS_OPEN",
    "WINNERS",
    "FINALIZE_SECONDS",
    "record_application",
    "record_vote",
    "record_phase",
    "record_finalized",
    "record_payout",
    "record_rejection",
    "time_finalize",
    "render_latest",
    "mount_fastapi",
]
