"""SQLAlchemy ORM schema for run history.

Defines the tables: runs, run_attempts, _steerloop_meta.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all steerloop ORM models."""

    pass


class RunRow(Base):
    """One loop invocation and its terminal outcome."""

    __tablename__ = "runs"

    run_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    task: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    language: Mapped[str] = mapped_column(String(32), nullable=False, default="python")
    final_content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)

    attempt_rows: Mapped[list["AttemptRow"]] = relationship(
        "AttemptRow",
        back_populates="run",
        cascade="all, delete-orphan",
        order_by="AttemptRow.position",
        lazy="selectin",
    )


class AttemptRow(Base):
    """The validation report of one attempt within a run."""

    __tablename__ = "run_attempts"

    run_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("runs.run_id", ondelete="CASCADE"),
        primary_key=True,
    )
    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    valid: Mapped[bool] = mapped_column(Boolean, nullable=False)
    errors_json: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    warnings_json: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    metadata_json: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    run: Mapped["RunRow"] = relationship("RunRow", back_populates="attempt_rows")


class MetaRow(Base):
    """Key/value store for schema bookkeeping."""

    __tablename__ = "_steerloop_meta"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(String(255), nullable=False)
