from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping


@dataclass(frozen=True)
class Application:
    """
    A candidate application registered during the Application phase.

    Fields:
      - applicant: identity (address) that owns the application.
      - index: caller-chosen, unique among existing applications.
      - uri: non-empty pointer to the application's content.
      - exists: always True for stored records; kept for view parity.
      - submitted_at: unix seconds when the application was accepted.
    """
    applicant: str
    index: int
    uri: str
    exists: bool = True
    submitted_at: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "Application":
        return Application(
            applicant=str(d["applicant"]),
            index=int(d["index"]),
            uri=str(d["uri"]),
            exists=bool(d.get("exists", True)),
            submitted_at=int(d.get("submitted_at", 0)),
        )


__all__ = ["Application"]
