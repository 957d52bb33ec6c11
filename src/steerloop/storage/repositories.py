"""Abstract repository interface for run-history storage.

No SQLAlchemy imports here -- pure abstract contract.
Concrete implementation is in sqlite.py.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Sequence

if TYPE_CHECKING:
    from steerloop.models.outcome import LoopOutcome
    from steerloop.storage.schema import RunRow


class RunRepository(ABC):
    """Abstract interface for recording loop outcomes."""

    @abstractmethod
    def save_outcome(
        self,
        outcome: LoopOutcome,
        task: Any,
        *,
        run_id: str | None = None,
        language: str | None = None,
    ) -> RunRow:
        """Persist an outcome and its per-attempt reports.

        *language* defaults to ``task.language`` when the task carries one,
        else "python".
        """
        ...

    @abstractmethod
    def get(self, run_id: str) -> RunRow | None:
        """Get a run by id (a unique prefix also matches). None if not found."""
        ...

    @abstractmethod
    def list_recent(self, limit: int = 20, *, status: str | None = None) -> Sequence[RunRow]:
        """Runs ordered newest first."""
        ...

    @abstractmethod
    def delete(self, run_id: str) -> bool:
        """Delete a run and its attempts. Returns True if it existed."""
        ...
