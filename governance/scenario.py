from __future__ import annotations

"""
Scripted rounds.

A scenario is a JSON/YAML document describing one round end to end: the round
config plus an ordered list of steps run against a `ManualClock`. Used by the
CLI `simulate` command and handy for replaying disputes.

    round_id: demo
    admins: [admin]
    schedule: {application_start_deadline: 1000, application_end: 2000, voting_end: 3000}
    selection: {max_winners: 2}
    clock: {start: 900}
    payout_total: 1000000          # optional; prints per-payee amounts
    steps:
      - {op: start_application, caller: admin}
      - {op: submit, caller: alice, index: 1, uri: "ipfs://alice"}
      - {op: set_time, at: 2001}
      - {op: start_voting, caller: admin}
      - {op: vote, caller: v1, indices: [1], shares: [10]}
      - {op: vote, caller: v1, indices: [1], shares: [10], expect_error: GOV_ALREADY_VOTED}
      - {op: set_time, at: 3001}
      - {op: finalize}

A step may name `expect_error` (a GovernanceError code); the step then
passes only if that exact error is raised. Any other failure aborts the run
with ScenarioError.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

import yaml

from .config import GovernanceConfig
from .errors import GovernanceError
from .lifecycle.phase import ManualClock
from .adapters.payout import RecordingPayout
from .round import GovernanceRound

log = logging.getLogger(__name__)


class ScenarioError(GovernanceError):
    """A scenario step failed unexpectedly or was malformed."""
    code = "GOV_SCENARIO_ERROR"


@dataclass
class StepOutcome:
    step: int
    op: str
    ok: bool
    code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"step": self.step, "op": self.op, "ok": self.ok, "code": self.code}


@dataclass
class ScenarioResult:
    round: GovernanceRound
    payout: RecordingPayout
    clock: ManualClock
    outcomes: List[StepOutcome] = field(default_factory=list)
    payout_total: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "summary": self.round.summary(),
            "steps": [o.to_dict() for o in self.outcomes],
        }
        if self.payout_total is not None and self.payout.initialized:
            d["allocation"] = self.payout.allocation(self.payout_total)
        return d


def load_scenario(path: str | Path) -> Dict[str, Any]:
    p = Path(path)
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text or "{}")
    if not isinstance(data, dict):
        raise ScenarioError("scenario must be a mapping", details={"path": str(p)})
    return data


def _req(step: Mapping[str, Any], key: str, n: int) -> Any:
    if key not in step:
        raise ScenarioError("scenario step missing field", details={"step": n, "field": key})
    return step[key]


def _dispatch(rnd: GovernanceRound, clock: ManualClock, step: Mapping[str, Any], n: int) -> None:
    op = str(_req(step, "op", n))
    handlers: Dict[str, Callable[[], Any]] = {
        "start_application": lambda: rnd.start_application_phase(_req(step, "caller", n)),
        "start_voting": lambda: rnd.start_voting_phase(_req(step, "caller", n)),
        "submit": lambda: rnd.submit_application(
            _req(step, "caller", n), _req(step, "index", n), _req(step, "uri", n)
        ),
        "remove": lambda: rnd.remove_application(_req(step, "caller", n), _req(step, "index", n)),
        "vote": lambda: rnd.cast_vote(
            _req(step, "caller", n), list(_req(step, "indices", n)), list(_req(step, "shares", n))
        ),
        "finalize": lambda: rnd.finalize_results(step.get("caller")),
        "grant_admin": lambda: rnd.grant_admin(_req(step, "caller", n), _req(step, "account", n)),
        "revoke_admin": lambda: rnd.revoke_admin(_req(step, "caller", n), _req(step, "account", n)),
        "advance": lambda: clock.advance(int(_req(step, "seconds", n))),
        "set_time": lambda: clock.set(int(_req(step, "at", n))),
    }
    fn = handlers.get(op)
    if fn is None:
        raise ScenarioError("unknown scenario op", details={"step": n, "op": op})
    fn()


def run_scenario(data: Mapping[str, Any]) -> ScenarioResult:
    cfg = GovernanceConfig.from_dict(dict(data))
    total = data.get("payout_total")
    try:
        start = int((data.get("clock") or {}).get("start", 0))
        total = int(total) if total is not None else None
    except (AttributeError, TypeError, ValueError) as e:
        raise ScenarioError("malformed scenario header", details={"error": str(e)}) from e
    clock = ManualClock(start)
    payout = RecordingPayout()
    rnd = GovernanceRound(cfg, payout=payout, clock=clock)
    result = ScenarioResult(round=rnd, payout=payout, clock=clock, payout_total=total)

    for n, step in enumerate(data.get("steps") or [], start=1):
        if not isinstance(step, Mapping):
            raise ScenarioError("scenario step must be a mapping", details={"step": n})
        op = str(step.get("op", "?"))
        expected = step.get("expect_error")
        try:
            _dispatch(rnd, clock, step, n)
        except ScenarioError:
            raise
        except GovernanceError as e:
            if expected != e.code:
                raise ScenarioError(
                    "scenario step failed",
                    details={"step": n, "op": op, "code": e.code, "expected": expected},
                ) from e
            result.outcomes.append(StepOutcome(step=n, op=op, ok=False, code=e.code))
            continue
        except (TypeError, ValueError) as e:
            raise ScenarioError("malformed scenario step", details={"step": n, "op": op, "error": str(e)}) from e
        if expected:
            raise ScenarioError(
                "scenario step succeeded but an error was expected",
                details={"step": n, "op": op, "expected": expected},
            )
        result.outcomes.append(StepOutcome(step=n, op=op, ok=True))
        log.debug("scenario step ok step=%d op=%s", n, op)
    return result


__all__ = ["ScenarioError", "StepOutcome", "ScenarioResult", "load_scenario", "run_scenario"]
