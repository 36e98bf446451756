from __future__ import annotations
"""
governance.config: configuration for governance rounds

Covers:
- Round schedule (unix seconds): application start deadline, application end,
  voting end. A boundary left unset (None) imposes no wall-clock constraint.
- Winner selection: max winners (K) and the finalize scan safety margin
- Registry limits: optional maximum number of open applications
- Administrators holding the admin role at round creation

Environment overrides (all optional; sensible defaults provided):

  GOV_ROUND_ID=round-1
  GOV_ADMINS=alice,bob

  # Schedule (unix seconds or ISO-8601, e.g. 2026-11-01T00:00:00Z)
  GOV_APPLICATION_START_DEADLINE=1793491200
  GOV_APPLICATION_END=1794096000
  GOV_VOTING_END=1794700800

  # Selection
  GOV_MAX_WINNERS=3
  GOV_SCAN_SAFETY_MARGIN=100

  # Registry (0 = unlimited)
  GOV_MAX_APPLICATIONS=0

You can also load from a JSON or YAML file via `GOV_CONFIG_FILE=/path/to/config.(json|yaml|yml)`.
File values override defaults; environment overrides the file.
"""


from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple
import json
import os
from pathlib import Path

import yaml

from .errors import ConfigError
from .govtypes.winner import DEFAULT_SCAN_SAFETY_MARGIN


# -------------------------- Data classes --------------------------


@dataclass
class RoundSchedule:
    """Wall-clock boundaries gating phase transitions (unix seconds)."""
    application_start_deadline: Optional[int] = None
    application_end: Optional[int] = None
    voting_end: Optional[int] = None

    def validate(self) -> None:
        for name, v in (("application_start_deadline", self.application_start_deadline),
                        ("application_end", self.application_end),
                        ("voting_end", self.voting_end)):
            if v is not None and (not isinstance(v, int) or v < 0):
                raise ConfigError(f"{name} must be a non-negative int timestamp (got {v!r}).")
        if (self.application_end is not None and self.voting_end is not None
                and self.voting_end < self.application_end):
            raise ConfigError("voting_end must not precede application_end.")
        if (self.application_start_deadline is not None and self.application_end is not None
                and self.application_end < self.application_start_deadline):
            raise ConfigError("application_end must not precede application_start_deadline.")


@dataclass
class SelectionParams:
    """Top-K winner selection parameters."""
    max_winners: int = 3
    scan_safety_margin: int = DEFAULT_SCAN_SAFETY_MARGIN

    def validate(self) -> None:
        if self.max_winners < 1:
            raise ConfigError(f"max_winners must be at least 1 (got {self.max_winners}).")
        if self.scan_safety_margin < 0:
            raise ConfigError(f"scan_safety_margin must be non-negative (got {self.scan_safety_margin}).")


@dataclass
class RegistryParams:
    """Application registry limits."""
    max_applications: int = 0  # 0 = unlimited

    def validate(self) -> None:
        if self.max_applications < 0:
            raise ConfigError(f"max_applications must be non-negative (got {self.max_applications}).")


@dataclass
class GovernanceConfig:
    """Top-level configuration container."""
    schedule: RoundSchedule = field(default_factory=RoundSchedule)
    selection: SelectionParams = field(default_factory=SelectionParams)
    registry: RegistryParams = field(default_factory=RegistryParams)
    admins: Tuple[str, ...] = ()
    round_id: str = "default"

    def validate(self) -> None:
        self.schedule.validate()
        self.selection.validate()
        self.registry.validate()
        if not self.round_id:
            raise ConfigError("round_id must be non-empty.")
        for a in self.admins:
            if not a:
                raise ConfigError("admin identities must be non-empty strings.")

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["admins"] = list(self.admins)
        return d

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "GovernanceConfig":
        schedule = _section(data, "schedule")
        selection = _section(data, "selection")
        registry = _section(data, "registry")

        cfg = GovernanceConfig(
            schedule=RoundSchedule(
                application_start_deadline=_parse_ts(schedule.get("application_start_deadline")),
                application_end=_parse_ts(schedule.get("application_end")),
                voting_end=_parse_ts(schedule.get("voting_end")),
            ),
            selection=SelectionParams(
                max_winners=_as_int("selection.max_winners", selection.get("max_winners", SelectionParams().max_winners)),
                scan_safety_margin=_as_int("selection.scan_safety_margin", selection.get("scan_safety_margin", SelectionParams().scan_safety_margin)),
            ),
            registry=RegistryParams(
                max_applications=_as_int("registry.max_applications", registry.get("max_applications", RegistryParams().max_applications)),
            ),
            admins=_parse_admins(data.get("admins")),
            round_id=str(data.get("round_id", GovernanceConfig().round_id)),
        )
        cfg.validate()
        return cfg


# -------------------------- Loaders --------------------------


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    sec = data.get(name) or {}
    if not isinstance(sec, dict):
        raise ConfigError(f"{name} must be a mapping (got {type(sec).__name__}).")
    return sec


def _as_int(name: str, v: Any) -> int:
    if isinstance(v, bool):
        raise ConfigError(f"Invalid int for {name}: {v!r}")
    try:
        return int(str(v).replace("_", "")) if isinstance(v, str) else int(v)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid int for {name}: {v!r}") from e


def _parse_admins(v: Any) -> Tuple[str, ...]:
    """A single identity, a comma-separated string, or a list of identities."""
    if v is None or v == "":
        return ()
    if isinstance(v, str):
        return tuple(a.strip() for a in v.split(",") if a.strip())
    if isinstance(v, (list, tuple)):
        return tuple(str(a) for a in v)
    raise ConfigError(f"admins must be a string or a list of identities (got {type(v).__name__}).")


def _parse_ts(v: Any) -> Optional[int]:
    """Accept None, an int-like unix timestamp, or an ISO-8601 string (Z or offset)."""
    if v is None or v == "":
        return None
    if isinstance(v, bool):
        raise ConfigError(f"Invalid timestamp: {v!r}")
    if isinstance(v, int):
        return v
    if isinstance(v, datetime):
        dt = v if v.tzinfo else v.replace(tzinfo=timezone.utc)
        return int(dt.timestamp())
    s = str(v).strip()
    try:
        return int(s.replace("_", ""))
    except ValueError:
        pass
    try:
        s = s.replace("Z", "+00:00") if s.endswith("Z") else s
        dt = datetime.fromisoformat(s)
    except ValueError as e:
        raise ConfigError(f"Invalid timestamp: {v!r}") from e
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())


def _getenv_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return int(str(v).replace("_", ""))
    except Exception as e:
        raise ConfigError(f"Invalid int for {name}: {v!r}") from e


def _getenv_ts(name: str, default: Optional[int]) -> Optional[int]:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    return _parse_ts(v)


def from_env(base: Optional[GovernanceConfig] = None, prefix: str = "GOV_") -> GovernanceConfig:
    """
    Build a GovernanceConfig from environment variables, optionally layering on top of `base`.
    """
    cfg = base or GovernanceConfig()

    admins_raw = os.getenv(f"{prefix}ADMINS")
    admins = (
        tuple(a.strip() for a in admins_raw.split(",") if a.strip())
        if admins_raw not in (None, "")
        else cfg.admins
    )

    new_cfg = GovernanceConfig(
        schedule=RoundSchedule(
            application_start_deadline=_getenv_ts(
                f"{prefix}APPLICATION_START_DEADLINE", cfg.schedule.application_start_deadline
            ),
            application_end=_getenv_ts(f"{prefix}APPLICATION_END", cfg.schedule.application_end),
            voting_end=_getenv_ts(f"{prefix}VOTING_END", cfg.schedule.voting_end),
        ),
        selection=SelectionParams(
            max_winners=_getenv_int(f"{prefix}MAX_WINNERS", cfg.selection.max_winners),
            scan_safety_margin=_getenv_int(f"{prefix}SCAN_SAFETY_MARGIN", cfg.selection.scan_safety_margin),
        ),
        registry=RegistryParams(
            max_applications=_getenv_int(f"{prefix}MAX_APPLICATIONS", cfg.registry.max_applications),
        ),
        admins=admins,
        round_id=os.getenv(f"{prefix}ROUND_ID") or cfg.round_id,
    )
    new_cfg.validate()
    return new_cfg


def from_file(path: str | os.PathLike[str]) -> GovernanceConfig:
    """
    Load configuration from a JSON or YAML file.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)

    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text or "{}")
    if not isinstance(data, dict):
        raise ConfigError(f"config file {p} must contain a mapping at the top level")
    return GovernanceConfig.from_dict(data)


def load() -> GovernanceConfig:
    """
    Load configuration using the following precedence:
      1) File at $GOV_CONFIG_FILE (JSON/YAML)
      2) Environment variables (GOV_*), applied on top of defaults or file values
    """
    file_path = os.getenv("GOV_CONFIG_FILE")
    base = from_file(file_path) if file_path else GovernanceConfig()
    return from_env(base=base)


# -------------------------- Utilities --------------------------


def pretty(cfg: Optional[GovernanceConfig] = None) -> str:
    """Return a human-readable JSON string of the current config."""
    obj = (cfg or load()).to_dict()
    return json.dumps(obj, indent=2, sort_keys=True)


__all__ = [
    "RoundSchedule",
    "SelectionParams",
    "RegistryParams",
    "GovernanceConfig",
    "from_env",
    "from_file",
    "load",
    "pretty",
]
