from __future__ import annotations
"""
governance.access
=================

Minimal role-based access control for governance rounds.

Administrator rights are a capability check (holder-of-role predicate)
evaluated at the start of each gated operation, not something a caller
inherits from a base class.

API surface
-----------
- `ADMIN_ROLE`: default admin for all roles.
- `Roles.has_role(role, account) -> bool`
- `Roles.get_role_admin(role) -> str`
- `Roles.is_admin_for_role(role, caller) -> bool`
- `Roles.require_role(role, caller) -> None` (raises Unauthorized)
- `Roles.grant_role(caller, role, account)` / `revoke_role(...)`: admin of
  `role` only; idempotent.
- `Roles.renounce_role(caller, role)`: caller drops its own membership.
- `Roles.set_role_admin(caller, role, admin_role)`

Role changes are logged; they are not part of the round's event stream.
"""

import logging
from threading import RLock
from typing import Dict, Iterable, List, Set

from .errors import InvalidInput, Unauthorized

log = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


class Roles:
    def __init__(self, admins: Iterable[str] = ()) -> None:
        self._lock = RLock()
        self._members: Dict[str, Set[str]] = {}
        self._admin_of: Dict[str, str] = {}
        for a in admins:
            if not a:
                raise InvalidInput("admin identity must be non-empty")
            self._members.setdefault(ADMIN_ROLE, set()).add(a)

    # ---- queries ----

    def has_role(self, role: str, account: str) -> bool:
        if not account:
            return False
        return account in self._members.get(role, ())

    def is_admin(self, account: str) -> bool:
        return self.has_role(ADMIN_ROLE, account)

    def get_role_admin(self, role: str) -> str:
        return self._admin_of.get(role, ADMIN_ROLE)

    def is_admin_for_role(self, role: str, caller: str) -> bool:
        return self.has_role(self.get_role_admin(role), caller)

    def require_role(self, role: str, caller: str) -> None:
        if not self.has_role(role, caller):
            raise Unauthorized("missing role", caller=caller, role=role)

    def members(self, role: str) -> List[str]:
        return sorted(self._members.get(role, ()))

    # ---- mutations ----

    def grant_role(self, caller: str, role: str, account: str) -> bool:
        """Grant `role` to `account`. Returns True on state change."""
        if not account:
            raise InvalidInput("account must be non-empty")
        with self._lock:
            if not self.is_admin_for_role(role, caller):
                raise Unauthorized("not an admin of role", caller=caller, role=role)
            if self.has_role(role, account):
                return False
            self._members.setdefault(role, set()).add(account)
        log.info("role granted role=%s account=%s sender=%s", role, account, caller)
        return True

    def revoke_role(self, caller: str, role: str, account: str) -> bool:
        """Revoke `role` from `account`. Returns True on state change."""
        if not account:
            raise InvalidInput("account must be non-empty")
        with self._lock:
            if not self.is_admin_for_role(role, caller):
                raise Unauthorized("not an admin of role", caller=caller, role=role)
            if not self.has_role(role, account):
                return False
            self._members[role].discard(account)
        log.info("role revoked role=%s account=%s sender=%s", role, account, caller)
        return True

    def renounce_role(self, caller: str, role: str) -> bool:
        with self._lock:
            if not self.has_role(role, caller):
                return False
            self._members[role].discard(caller)
        log.info("role renounced role=%s account=%s", role, caller)
        return True

    def set_role_admin(self, caller: str, role: str, admin_role: str) -> bool:
        with self._lock:
            if not self.is_admin_for_role(role, caller):
                raise Unauthorized("not an admin of role", caller=caller, role=role)
            prev = self.get_role_admin(role)
            if prev == admin_role:
                return False
            self._admin_of[role] = admin_role
        log.info("role admin changed role=%s previous=%s new=%s", role, prev, admin_role)
        return True

    # ---- persistence ----

    def dump(self) -> Dict[str, object]:
        with self._lock:
            return {
                "members": {r: sorted(m) for r, m in sorted(self._members.items())},
                "admin_of": dict(sorted(self._admin_of.items())),
            }

    @classmethod
    def load(cls, data: Dict[str, object]) -> "Roles":
        roles = cls()
        for role, members in dict(data.get("members", {}) or {}).items():  # type: ignore[union-attr]
            roles._members[str(role)] = {str(m) for m in members}
        for role, admin in dict(data.get("admin_of", {}) or {}).items():  # type: ignore[union-attr]
            roles._admin_of[str(role)] = str(admin)
        return roles


__all__ = ["ADMIN_ROLE", "Roles"]
