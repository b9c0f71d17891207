"""Review report data models.

Decoupled from reviewthis_core so the store layer can be used independently
and reviewthis_core has no knowledge of how records are serialized.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class ReviewRecord:
    """The outcome of reviewing a single file.

    Appended to the report in processing order and never mutated afterwards.
    A failed review is still a record; its ``review`` holds the failure
    marker so the report accounts for every attempted file.
    """

    file: str
    review: str
    timestamp: str  # ISO-8601 UTC, e.g. "2026-10-18T09:30:00Z"
    severity: str = "low"  # "high" | "medium" | "low" | "none" | "unknown"

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> ReviewRecord:
        return cls(
            file=d.get("file", ""),
            review=d.get("review", ""),
            timestamp=d.get("timestamp", ""),
            severity=d.get("severity", "low"),
        )
