from __future__ import annotations

"""
governance.rpc.methods
----------------------

JSON-RPC style method implementations for a governance round.

Exposed methods (bind via `make_methods`):
  reads
  • gov.getPhase                 • gov.getSummary
  • gov.listApplications         • gov.getApplication(index)
  • gov.getAggregatedScore(index)
  • gov.getSubmission(voter)     • gov.hasVoted(voter)
  • gov.getWinnerCount           • gov.getWinner(rank)
  • gov.getWinners               • gov.getEvents(since?)
  writes (identity passed as `caller`)
  • gov.startApplicationPhase(caller)
  • gov.startVotingPhase(caller)
  • gov.submitApplication(caller, index, uri)
  • gov.removeApplication(caller, index)
  • gov.castVote(caller, indices, shares)
  • gov.finalizeResults(caller?)

Design:
  - Transport-agnostic: `make_methods` returns plain callables; a JSON-RPC
    dispatcher can register them directly. `build_rest_router` exposes the
    same calls through FastAPI.
  - Parameters are validated with pydantic models before reaching the round;
    domain failures surface as `GovernanceError` (mapped to HTTP statuses by
    the router).
  - Authentication of `caller` is the transport's job; this layer trusts it.
"""

from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from ..errors import (AlreadyFinalized, AlreadyRegistered, AlreadyVoted,
                      GovernanceError, InvalidInput, NotFound,
                      PayoutHandoffFailed, ReentrantCall, ScanBoundExceeded,
                      ScheduleError, Unauthorized, WrongPhase)
from ..round import GovernanceRound


# ---- Request models ---------------------------------------------------------


class CallerParams(BaseModel):
    caller: str = Field(..., min_length=1, description="Authenticated identity of the caller.")


class SubmitApplicationParams(CallerParams):
    index: int = Field(..., ge=0, description="Caller-chosen application index.")
    uri: str = Field(..., description="Pointer to the application content.")


class RemoveApplicationParams(CallerParams):
    index: int = Field(..., ge=0)


class CastVoteParams(CallerParams):
    indices: List[int] = Field(..., description="Application indices, same length as shares.")
    shares: List[int] = Field(..., description="Raw non-negative weights.")


class FinalizeParams(BaseModel):
    caller: Optional[str] = None


def _parse(model: Any, params: Dict[str, Any]) -> Any:
    try:
        return model(**params)
    except ValidationError as e:
        errors = [{"loc": [str(x) for x in err["loc"]], "msg": err["msg"]} for err in e.errors()]
        raise InvalidInput("invalid parameters", details={"errors": errors}) from e


# ---- Method table -----------------------------------------------------------


def make_methods(rnd: GovernanceRound) -> Dict[str, Callable[..., Any]]:
    """Return a mapping of JSON-RPC method name → callable bound to `rnd`."""

    def get_phase() -> Dict[str, Any]:
        return {"phase": rnd.phase.name, "resultsFinalized": rnd.results_finalized}

    def get_summary() -> Dict[str, Any]:
        return rnd.summary()

    def list_applications() -> List[Dict[str, Any]]:
        return [a.to_dict() for a in rnd.list_applications()]

    def get_application(index: int) -> Dict[str, Any]:
        return rnd.get_application(int(index)).to_dict()

    def get_aggregated_score(index: int) -> Dict[str, Any]:
        return {"index": int(index), "score": rnd.get_aggregated_score(int(index))}

    def get_submission(voter: str) -> Dict[str, Any]:
        return rnd.get_submission(voter).to_dict()

    def has_voted(voter: str) -> Dict[str, Any]:
        return {"voter": voter, "hasVoted": rnd.has_voted(voter)}

    def get_winner_count() -> Dict[str, Any]:
        return {"count": rnd.get_winner_count()}

    def get_winner(rank: int) -> Dict[str, Any]:
        return rnd.get_winner(int(rank)).to_dict()

    def get_winners() -> List[Dict[str, Any]]:
        return [w.to_dict() for w in rnd.get_winners()]

    def get_events(since: int = 0) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in rnd.events_since(int(since))]

    def start_application_phase(**params: Any) -> Dict[str, Any]:
        p = _parse(CallerParams, params)
        return rnd.start_application_phase(p.caller).to_dict()

    def start_voting_phase(**params: Any) -> Dict[str, Any]:
        p = _parse(CallerParams, params)
        return rnd.start_voting_phase(p.caller).to_dict()

    def submit_application(**params: Any) -> Dict[str, Any]:
        p = _parse(SubmitApplicationParams, params)
        return rnd.submit_application(p.caller, p.index, p.uri).to_dict()

    def remove_application(**params: Any) -> Dict[str, Any]:
        p = _parse(RemoveApplicationParams, params)
        return rnd.remove_application(p.caller, p.index).to_dict()

    def cast_vote(**params: Any) -> Dict[str, Any]:
        p = _parse(CastVoteParams, params)
        return rnd.cast_vote(p.caller, p.indices, p.shares).to_dict()

    def finalize_results(**params: Any) -> List[Dict[str, Any]]:
        p = _parse(FinalizeParams, params)
        return [w.to_dict() for w in rnd.finalize_results(p.caller)]

    return {
        "gov.getPhase": get_phase,
        "gov.getSummary": get_summary,
        "gov.listApplications": list_applications,
        "gov.getApplication": get_application,
        "gov.getAggregatedScore": get_aggregated_score,
        "gov.getSubmission": get_submission,
        "gov.hasVoted": has_voted,
        "gov.getWinnerCount": get_winner_count,
        "gov.getWinner": get_winner,
        "gov.getWinners": get_winners,
        "gov.getEvents": get_events,
        "gov.startApplicationPhase": start_application_phase,
        "gov.startVotingPhase": start_voting_phase,
        "gov.submitApplication": submit_application,
        "gov.removeApplication": remove_application,
        "gov.castVote": cast_vote,
        "gov.finalizeResults": finalize_results,
    }


# ---- REST -------------------------------------------------------------------


def http_status_for(err: GovernanceError) -> int:
    """Map a domain error onto an HTTP status code."""
    if isinstance(err, NotFound):
        return 404
    if isinstance(err, Unauthorized):
        return 403
    if isinstance(err, PayoutHandoffFailed):
        return 502
    if isinstance(err, (WrongPhase, ScheduleError, AlreadyFinalized, AlreadyRegistered,
                        AlreadyVoted, ReentrantCall, ScanBoundExceeded)):
        return 409
    if isinstance(err, InvalidInput):
        return 400
    return 400


def build_rest_router(rnd: GovernanceRound):
    """
    Return a FastAPI APIRouter exposing the round.
    Mount path suggestion: "/gov".
    """
    from fastapi import APIRouter, HTTPException, Query

    router = APIRouter()
    methods = make_methods(rnd)

    def _call(name: str, **kwargs: Any) -> Any:
        try:
            return methods[name](**kwargs)
        except GovernanceError as e:
            raise HTTPException(status_code=http_status_for(e), detail=e.to_dict()) from e

    @router.get("/phase")
    def http_get_phase():
        return _call("gov.getPhase")

    @router.get("/summary")
    def http_get_summary():
        return _call("gov.getSummary")

    @router.get("/applications")
    def http_list_applications():
        return _call("gov.listApplications")

    @router.get("/applications/{index}")
    def http_get_application(index: int):
        return _call("gov.getApplication", index=index)

    @router.get("/applications/{index}/score")
    def http_get_score(index: int):
        return _call("gov.getAggregatedScore", index=index)

    @router.get("/submissions/{voter}")
    def http_get_submission(voter: str):
        return _call("gov.getSubmission", voter=voter)

    @router.get("/winners")
    def http_get_winners():
        return _call("gov.getWinners")

    @router.get("/winners/count")
    def http_get_winner_count():
        return _call("gov.getWinnerCount")

    @router.get("/winners/{rank}")
    def http_get_winner(rank: int):
        return _call("gov.getWinner", rank=rank)

    @router.get("/events")
    def http_get_events(since: int = Query(0, ge=0)):
        return _call("gov.getEvents", since=since)

    @router.post("/phases/application")
    def http_start_application(body: CallerParams):
        return _call("gov.startApplicationPhase", **body.model_dump())

    @router.post("/phases/voting")
    def http_start_voting(body: CallerParams):
        return _call("gov.startVotingPhase", **body.model_dump())

    @router.post("/applications")
    def http_submit_application(body: SubmitApplicationParams):
        return _call("gov.submitApplication", **body.model_dump())

    @router.post("/applications/remove")
    def http_remove_application(body: RemoveApplicationParams):
        return _call("gov.removeApplication", **body.model_dump())

    @router.post("/votes")
    def http_cast_vote(body: CastVoteParams):
        return _call("gov.castVote", **body.model_dump())

    @router.post("/finalize")
    def http_finalize(body: FinalizeParams):
        return _call("gov.finalizeResults", **body.model_dump())

    return router


__all__ = [
    "CallerParams",
    "SubmitApplicationParams",
    "RemoveApplicationParams",
    "CastVoteParams",
    "FinalizeParams",
    "make_methods",
    "http_status_for",
    "build_rest_router",
]
