from __future__ import annotations

"""
ApplicationRegistry: candidate applications keyed by caller-chosen index.

Rules
-----
- One active application per identity (prevents vote-splitting across
  sock-puppet applications).
- One application per index. Indices are non-negative ints chosen by the
  applicant; freed again when the application is removed.
- Optional cap on the number of open applications (0 = unlimited).

Phase gating is the caller's job (GovernanceRound checks APPLICATION before
calling `submit`/`remove`); this class only enforces registry rules, and every
check runs before any mutation.

Dense-index contract
--------------------
`scan_candidates` walks indices 0, 1, 2, ... and must find every open
application within `count + safety_margin` slots. Front-ends are expected to
keep indices close to contiguous; a sparser index space makes finalize fail
with `ScanBoundExceeded` rather than scan without bound.
"""

import logging
from typing import Any, Dict, List, Optional

from ..errors import (AlreadyRegistered, ApplicationCapReached,
                      ApplicationNotFound, IndexOccupied, InvalidInput,
                      NotRegistered, ScanBoundExceeded, Unauthorized)
from ..events import ApplicationRemoved, ApplicationSubmitted, EventLog
from ..govtypes.application import Application

log = logging.getLogger(__name__)


def _check_index(index: Any) -> int:
    if isinstance(index, bool) or not isinstance(index, int):
        raise InvalidInput("application index must be an int", details={"index": repr(index)})
    if index < 0:
        raise InvalidInput("application index must be non-negative", details={"index": index})
    return index


class ApplicationRegistry:
    def __init__(self, *, events: EventLog, max_applications: int = 0) -> None:
        self._events = events
        self._max = int(max_applications)
        self._apps: Dict[int, Application] = {}
        # applicant -> index of their active application
        self._registered: Dict[str, int] = {}

    # ---- views ----

    @property
    def count(self) -> int:
        return len(self._apps)

    @property
    def max_applications(self) -> int:
        return self._max

    def exists(self, index: int) -> bool:
        return index in self._apps

    def get(self, index: int) -> Application:
        app = self._apps.get(index)
        if app is None:
            raise ApplicationNotFound(index=index)
        return app

    def list_indices(self) -> List[int]:
        return sorted(self._apps)

    def list_applications(self) -> List[Application]:
        return [self._apps[i] for i in sorted(self._apps)]

    def is_registered(self, identity: str) -> bool:
        return identity in self._registered

    def index_of(self, identity: str) -> Optional[int]:
        return self._registered.get(identity)

    # ---- mutations ----

    def submit(self, caller: str, index: int, uri: str, *, now: int = 0) -> Application:
        if not caller:
            raise InvalidInput("caller identity must be non-empty")
        if caller in self._registered:
            raise AlreadyRegistered(applicant=caller, index=self._registered[caller])
        if not isinstance(uri, str) or not uri.strip():
            raise InvalidInput("uri must be a non-empty string")
        index = _check_index(index)
        if self._max and len(self._apps) >= self._max:
            raise ApplicationCapReached(cap=self._max)
        if index in self._apps:
            raise IndexOccupied(index=index)

        app = Application(applicant=caller, index=index, uri=uri, exists=True, submitted_at=int(now))
        self._apps[index] = app
        self._registered[caller] = index
        self._events.append(ApplicationSubmitted, ts=now, applicant=caller, index=index, uri=uri)
        log.debug("application submitted applicant=%s index=%d", caller, index)
        return app

    def remove(self, caller: str, index: int, *, is_admin: bool = False, now: int = 0) -> Application:
        app = self._apps.get(index)
        if app is None:
            raise NotRegistered(index=index)
        if caller != app.applicant and not is_admin:
            raise Unauthorized("only the applicant or an admin may remove an application", caller=caller)

        del self._apps[index]
        self._registered.pop(app.applicant, None)
        self._events.append(ApplicationRemoved, ts=now, applicant=app.applicant, index=index, removed_by=caller)
        log.debug("application removed applicant=%s index=%d by=%s", app.applicant, index, caller)
        return app

    # ---- finalize support ----

    def scan_candidates(self, safety_margin: int) -> List[Application]:
        """
        Collect exactly `count` open applications in ascending index order by
        visiting slots 0, 1, 2, ... Visiting more than `count + safety_margin`
        slots raises ScanBoundExceeded.
        """
        expected = len(self._apps)
        limit = expected + int(safety_margin)
        found: List[Application] = []
        visited = 0
        slot = 0
        while len(found) < expected:
            if visited >= limit:
                raise ScanBoundExceeded(visited=visited, limit=limit, found=len(found), expected=expected)
            app = self._apps.get(slot)
            if app is not None:
                found.append(app)
            visited += 1
            slot += 1
        return found

    # ---- persistence ----

    def dump(self) -> Dict[str, Any]:
        return {"applications": [a.to_dict() for a in self.list_applications()]}

    def restore(self, data: Dict[str, Any]) -> None:
        self._apps.clear()
        self._registered.clear()
        for d in data.get("applications", []):
            app = Application.from_dict(d)
            if app.index in self._apps or app.applicant in self._registered:
                raise InvalidInput("snapshot holds duplicate applications", details={"index": app.index})
            self._apps[app.index] = app
            self._registered[app.applicant] = app.index


__all__ = ["ApplicationRegistry"]
