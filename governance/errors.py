from __future__ import annotations
# governance/errors.py
"""
Error types for governance rounds. Every failure a caller can hit maps to a
distinct, named exception carrying a stable `code` and a small `details`
mapping, so they are safe to surface over RPC/logs.

Taxonomy:
- WrongPhase               operation attempted outside its required phase
- Unauthorized             admin-only transition or foreign application removal
- AlreadyRegistered        identity already holds an active application
- InvalidInput             bad arguments (IndexOccupied, ApplicationCapReached,
                           NoApplications are refinements)
- AlreadyVoted             identity casting a second ballot
- NotFound                 missing application/submission/winner
- ScanBoundExceeded        candidate scan ran past its safety margin
- AlreadyFinalized         finalize called twice
- ScheduleError            wall-clock boundary not reached / already passed
- ReentrantCall            state-mutating call made from inside a critical section
- PayoutError / PayoutHandoffFailed   downstream payout collaborator failures
- ConfigError              invalid configuration values
"""


from typing import Any, Dict, Mapping, Optional
import json


class GovernanceError(Exception):
    """Base class for governance domain errors."""

    code: str = "GOV_ERROR"

    def __init__(self, message: str = "", *, details: Optional[Mapping[str, Any]] = None) -> None:
        self.message = message or self.__class__.__name__
        self.details = dict(details or {})
        super().__init__(self.__str__())

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.details:
            # Keep this compact and stable for logs
            try:
                packed = json.dumps(self.details, sort_keys=True, separators=(",", ":"))
            except Exception:
                packed = str(self.details)
            return f"{self.code}: {self.message} [{packed}]"
        return f"{self.code}: {self.message}"


def _with(details: Optional[Mapping[str, Any]], **extra: Any) -> Dict[str, Any]:
    d = dict(details or {})
    for k, v in extra.items():
        if v is not None:
            d.setdefault(k, v)
    return d


# ─────────────────────────────── phase / schedule ───────────────────────────────


class WrongPhase(GovernanceError):
    """An operation was attempted while the round was in a different phase."""
    code = "GOV_WRONG_PHASE"

    def __init__(
        self,
        *,
        required: Any,
        current: Any,
        operation: Optional[str] = None,
        message: str = "wrong phase",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.required = required
        self.current = current
        d = _with(
            details,
            required=getattr(required, "name", required),
            current=getattr(current, "name", current),
            operation=operation,
        )
        super().__init__(message, details=d)


class ScheduleError(GovernanceError):
    """A wall-clock boundary gating a transition has not been reached (or has passed)."""
    code = "GOV_SCHEDULE"

    def __init__(
        self,
        message: str = "schedule constraint not met",
        *,
        now: Optional[int] = None,
        boundary: Optional[int] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=_with(details, now=now, boundary=boundary))


class ApplicationDeadlinePassed(ScheduleError):
    code = "GOV_APPLICATION_DEADLINE_PASSED"

    def __init__(self, *, now: int, boundary: int) -> None:
        super().__init__("application start deadline passed", now=now, boundary=boundary)


class ApplicationPeriodOngoing(ScheduleError):
    code = "GOV_APPLICATION_PERIOD_ONGOING"

    def __init__(self, *, now: int, boundary: int) -> None:
        super().__init__("application period still ongoing", now=now, boundary=boundary)


class VotingOngoing(ScheduleError):
    code = "GOV_VOTING_ONGOING"

    def __init__(self, *, now: int, boundary: int) -> None:
        super().__init__("voting still ongoing", now=now, boundary=boundary)


# ─────────────────────────────── authorization ───────────────────────────────


class Unauthorized(GovernanceError):
    """Caller lacks the capability required for the operation."""
    code = "GOV_UNAUTHORIZED"

    def __init__(
        self,
        message: str = "unauthorized",
        *,
        caller: Optional[str] = None,
        role: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=_with(details, caller=caller, role=role))


# ─────────────────────────────── registration / votes ───────────────────────────────


class AlreadyRegistered(GovernanceError):
    """Identity already has an active application."""
    code = "GOV_ALREADY_REGISTERED"

    def __init__(self, *, applicant: str, index: Optional[int] = None) -> None:
        super().__init__("applicant already registered", details=_with(None, applicant=applicant, index=index))


class InvalidInput(GovernanceError):
    """Malformed or inadmissible arguments."""
    code = "GOV_INVALID_INPUT"

    def __init__(self, message: str = "invalid input", *, details: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(message, details=details)


class IndexOccupied(InvalidInput):
    code = "GOV_INDEX_OCCUPIED"

    def __init__(self, *, index: int) -> None:
        super().__init__("application index already occupied", details={"index": int(index)})


class ApplicationCapReached(InvalidInput):
    code = "GOV_APPLICATION_CAP_REACHED"

    def __init__(self, *, cap: int) -> None:
        super().__init__("maximum application count reached", details={"cap": int(cap)})


class NoApplications(InvalidInput):
    code = "GOV_NO_APPLICATIONS"

    def __init__(self) -> None:
        super().__init__("cannot finalize a round without applications")


class AlreadyVoted(GovernanceError):
    """Identity already cast its ballot."""
    code = "GOV_ALREADY_VOTED"

    def __init__(self, *, voter: str) -> None:
        super().__init__("voter already cast a ballot", details={"voter": voter})


# ─────────────────────────────── lookups ───────────────────────────────


class NotFound(GovernanceError):
    """A requested entity does not exist."""
    code = "GOV_NOT_FOUND"


class ApplicationNotFound(NotFound):
    code = "GOV_APPLICATION_NOT_FOUND"

    def __init__(self, *, index: int) -> None:
        super().__init__("application does not exist", details={"index": int(index)})


class NotRegistered(NotFound):
    """Removal targeted an index that holds no application."""
    code = "GOV_NOT_REGISTERED"

    def __init__(self, *, index: int) -> None:
        super().__init__("no application registered at index", details={"index": int(index)})


class SubmissionNotFound(NotFound):
    code = "GOV_SUBMISSION_NOT_FOUND"

    def __init__(self, *, voter: str) -> None:
        super().__init__("voter has no submission", details={"voter": voter})


class WinnerNotFound(NotFound):
    code = "GOV_WINNER_NOT_FOUND"

    def __init__(self, *, rank: int, count: int) -> None:
        super().__init__("no winner at rank", details={"rank": int(rank), "count": int(count)})


# ─────────────────────────────── finalize ───────────────────────────────


class ScanBoundExceeded(GovernanceError):
    """
    The candidate scan visited more index slots than `application_count +
    safety_margin`. This signals that callers broke the dense-index contract.
    """
    code = "GOV_INDEX_SPACE_TOO_SPARSE"

    def __init__(self, *, visited: int, limit: int, found: int, expected: int) -> None:
        super().__init__(
            "index space too sparse",
            details={"visited": visited, "limit": limit, "found": found, "expected": expected},
        )


class AlreadyFinalized(GovernanceError):
    code = "GOV_ALREADY_FINALIZED"

    def __init__(self) -> None:
        super().__init__("results already finalized")


class ReentrantCall(GovernanceError):
    """A state-mutating operation was invoked while another one is still in progress on this thread."""
    code = "GOV_REENTRANT_CALL"

    def __init__(self, *, operation: str, active: Optional[str] = None) -> None:
        super().__init__("reentrant call rejected", details=_with(None, operation=operation, active=active))


# ─────────────────────────────── payout ───────────────────────────────


class PayoutError(GovernanceError):
    """The payout collaborator rejected its inputs or was initialized twice."""
    code = "GOV_PAYOUT_ERROR"


class PayoutHandoffFailed(GovernanceError):
    """
    Finalize committed its results but the downstream payout call raised.
    Winners, phase and results stay committed and queryable.
    """
    code = "GOV_PAYOUT_HANDOFF_FAILED"

    def __init__(self, *, reason: str, winners: int) -> None:
        super().__init__("payout handoff failed", details={"reason": reason, "winners": winners})


# ─────────────────────────────── config ───────────────────────────────


class ConfigError(GovernanceError, ValueError):
    """Invalid configuration values."""
    code = "GOV_CONFIG_ERROR"


__all__ = [
    "GovernanceError",
    "WrongPhase",
    "ScheduleError",
    "ApplicationDeadlinePassed",
    "ApplicationPeriodOngoing",
    "VotingOngoing",
    "Unauthorized",
    "AlreadyRegistered",
    "InvalidInput",
    "IndexOccupied",
    "ApplicationCapReached",
    "NoApplications",
    "AlreadyVoted",
    "NotFound",
    "ApplicationNotFound",
    "NotRegistered",
    "SubmissionNotFound",
    "WinnerNotFound",
    "ScanBoundExceeded",
    "AlreadyFinalized",
    "ReentrantCall",
    "PayoutError",
    "PayoutHandoffFailed",
    "ConfigError",
]
