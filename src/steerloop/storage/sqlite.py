"""SQLite implementation of the run repository.

Uses SQLAlchemy 2.0-style queries (select() + session.execute()).
Takes a Session in its constructor; the caller owns commit/rollback.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from steerloop.models.outcome import Aborted, LoopOutcome, Success
from steerloop.models.report import ValidationReport
from steerloop.storage.repositories import RunRepository
from steerloop.storage.schema import AttemptRow, RunRow


def _jsonable(value: Any) -> Any:
    """Round-trip through json so arbitrary metadata values store safely."""
    return json.loads(json.dumps(value, default=str))


class SqliteRunRepository(RunRepository):
    """SQLite implementation of run repository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def save_outcome(
        self,
        outcome: LoopOutcome,
        task: Any,
        *,
        run_id: str | None = None,
        language: str | None = None,
    ) -> RunRow:
        final_content = None
        if isinstance(outcome, Success):
            final_content = str(outcome.candidate.content)
        reason = outcome.reason if isinstance(outcome, Aborted) else None

        row = RunRow(
            run_id=run_id or uuid.uuid4().hex,
            task=str(task),
            status=outcome.status,
            attempts=outcome.attempts,
            reason=reason,
            language=language or getattr(task, "language", None) or "python",
            final_content=final_content,
            created_at=datetime.now(),
        )
        for position, report in enumerate(outcome.history, start=1):
            row.attempt_rows.append(
                AttemptRow(
                    position=position,
                    valid=report.valid,
                    errors_json=list(report.errors),
                    warnings_json=list(report.warnings),
                    metadata_json=_jsonable(dict(report.metadata)) or None,
                )
            )
        self._session.add(row)
        self._session.flush()
        return row

    def get(self, run_id: str) -> RunRow | None:
        row = self._session.execute(
            select(RunRow).where(RunRow.run_id == run_id)
        ).scalar_one_or_none()
        if row is not None:
            return row
        matches = self._session.execute(
            select(RunRow).where(RunRow.run_id.startswith(run_id)).limit(2)
        ).scalars().all()
        return matches[0] if len(matches) == 1 else None

    def list_recent(self, limit: int = 20, *, status: str | None = None) -> Sequence[RunRow]:
        stmt = select(RunRow).order_by(RunRow.created_at.desc()).limit(limit)
        if status is not None:
            stmt = stmt.where(RunRow.status == status)
        return self._session.execute(stmt).scalars().all()

    def delete(self, run_id: str) -> bool:
        row = self.get(run_id)
        if row is None:
            return False
        self._session.delete(row)
        self._session.flush()
        return True


def row_reports(row: RunRow) -> list[ValidationReport]:
    """Rebuild the stored per-attempt reports of a run, in attempt order."""
    return [
        ValidationReport(
            valid=a.valid,
            errors=tuple(a.errors_json or ()),
            warnings=tuple(a.warnings_json or ()),
            metadata=a.metadata_json or {},
        )
        for a in row.attempt_rows
    ]
