"""Abstract report store interface.

The review pipeline depends on BaseReportStore, not on a concrete backend,
so tests can swap in an in-memory store and the on-disk format stays an
implementation detail of the store package.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reviewthis_store.models import ReviewRecord


class BaseReportStore(ABC):
    """Ordered, append-only collection of review records for one run."""

    @abstractmethod
    def initialize(self) -> None:
        """Start a new, empty report, discarding any previous run's records."""

    @abstractmethod
    def append(self, record: ReviewRecord) -> None:
        """Add one record and persist the full collection before returning."""

    @abstractmethod
    def load(self) -> list[ReviewRecord]:
        """Return all records persisted so far, in append order.

        Returns an empty list if nothing has been written yet.
        """

    def close(self) -> None:
        """Release any resources held by the store.

        Default is a no-op so callers can always call close() safely.
        """
