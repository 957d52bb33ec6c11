"""ValidationReport -- the verdict on one candidate."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping


@dataclass(frozen=True)
class ValidationReport:
    """Result of validating one candidate.

    Produced fresh per attempt and never mutated after creation. Lists
    passed to the constructor are frozen into tuples and metadata is
    exposed through a read-only mapping.

    Attributes:
        valid: Whether the candidate passed.
        errors: Ordered blocking issues. Forwarded as feedback on retry.
        warnings: Ordered non-blocking issues.
        metadata: Validator-specific details (duration, validator count, ...).
    """

    valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "valid", bool(self.valid))
        object.__setattr__(self, "errors", tuple(str(e) for e in self.errors))
        object.__setattr__(self, "warnings", tuple(str(w) for w in self.warnings))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @classmethod
    def success(
        cls,
        *,
        warnings: Iterable[str] = (),
        metadata: Mapping[str, Any] | None = None,
    ) -> ValidationReport:
        return cls(valid=True, warnings=tuple(warnings), metadata=metadata or {})

    @classmethod
    def failure(
        cls,
        errors: Iterable[str],
        *,
        warnings: Iterable[str] = (),
        metadata: Mapping[str, Any] | None = None,
    ) -> ValidationReport:
        return cls(
            valid=False,
            errors=tuple(errors),
            warnings=tuple(warnings),
            metadata=metadata or {},
        )

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    def merge(self, other: ValidationReport) -> ValidationReport:
        """Combine two reports.

        Valid only if both are valid. Errors and warnings concatenate in
        order; metadata merges with *other* winning on key collisions.
        """
        return ValidationReport(
            valid=self.valid and other.valid,
            errors=self.errors + other.errors,
            warnings=self.warnings + other.warnings,
            metadata={**self.metadata, **other.metadata},
        )

    def with_metadata(self, **extra: Any) -> ValidationReport:
        """Return a copy with *extra* merged into the metadata."""
        return ValidationReport(
            valid=self.valid,
            errors=self.errors,
            warnings=self.warnings,
            metadata={**self.metadata, **extra},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ValidationReport:
        return cls(
            valid=bool(data["valid"]),
            errors=tuple(data.get("errors") or ()),
            warnings=tuple(data.get("warnings") or ()),
            metadata=data.get("metadata") or {},
        )

    def __repr__(self) -> str:
        status = "valid" if self.valid else "invalid"
        return (
            f"ValidationReport({status}, errors={self.error_count}, "
            f"warnings={self.warning_count})"
        )
