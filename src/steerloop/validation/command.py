"""External command validator.

Runs a linter, test runner or script against the candidate. A ``{file}``
placeholder in the command is replaced with the path of a temporary file
holding the candidate; without one, the candidate is piped to stdin.
Exit code 0 means valid.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import sys
import tempfile
from contextlib import contextmanager
from typing import Iterator, Sequence

from steerloop.exceptions import ValidatorFailure
from steerloop.models.report import ValidationReport
from steerloop.models.request import Candidate

logger = logging.getLogger(__name__)

FILE_PLACEHOLDER = "{file}"
_MAX_ERROR_LINES = 50


@contextmanager
def candidate_file(content: str, suffix: str = ".py") -> Iterator[str]:
    """Write *content* to a temporary file and yield its path; removed on exit."""
    fd, path = tempfile.mkstemp(prefix="steerloop_", suffix=suffix)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
        yield path
    finally:
        try:
            os.unlink(path)
        except OSError:
            logger.debug("Could not remove temp file %s", path)


class CommandValidator:
    """Validate a candidate by running an external command.

    Args:
        command: Shell-style string (split with shlex) or argv list.
        name: Validator name shown in reports.
        priority: Pipeline priority (default 30).
        timeout: Seconds before the command is killed and the candidate
            reported invalid.
        working_directory: cwd for the command.
        suffix: Temp-file suffix used with the ``{file}`` placeholder.
    """

    def __init__(
        self,
        command: str | Sequence[str],
        *,
        name: str = "command",
        priority: int = 30,
        timeout: float = 60.0,
        working_directory: str | None = None,
        suffix: str = ".py",
    ) -> None:
        self.argv = shlex.split(command) if isinstance(command, str) else list(command)
        if not self.argv:
            raise ValueError("command must not be empty")
        self.name = name
        self.priority = priority
        self.timeout = timeout
        self.working_directory = working_directory
        self.suffix = suffix

    @property
    def uses_file(self) -> bool:
        return any(FILE_PLACEHOLDER in arg for arg in self.argv)

    def can_handle(self, candidate: Candidate) -> bool:
        return isinstance(candidate.content, str)

    def validate(self, candidate: Candidate) -> ValidationReport:
        if not self.uses_file:
            return self._run(self.argv, stdin=candidate.content)

        with candidate_file(candidate.content, self.suffix) as path:
            argv = [arg.replace(FILE_PLACEHOLDER, path) for arg in self.argv]
            return self._run(argv, stdin=None, temp_path=path)

    def _run(
        self, argv: list[str], *, stdin: str | None, temp_path: str | None = None
    ) -> ValidationReport:
        metadata = {"validator": self.name, "command": shlex.join(self.argv)}
        logger.debug("Running validation command: %s", shlex.join(argv))
        try:
            proc = subprocess.run(
                argv,
                input=stdin,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                cwd=self.working_directory,
            )
        except subprocess.TimeoutExpired:
            return ValidationReport.failure(
                [f"Validation command timed out after {self.timeout}s"],
                metadata=metadata,
            )
        except FileNotFoundError as exc:
            raise ValidatorFailure(
                f"command not found: {argv[0]}", validator_name=self.name
            ) from exc

        output = (proc.stdout or "") + (proc.stderr or "")
        if temp_path is not None:
            output = output.replace(temp_path, "[candidate]")
        metadata = {**metadata, "return_code": proc.returncode, "output": output}
        warnings = _parse_warnings(output)

        if proc.returncode == 0:
            return ValidationReport.success(warnings=warnings, metadata=metadata)
        return ValidationReport.failure(
            _parse_errors(output), warnings=warnings, metadata=metadata
        )

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def pytest(cls, test_path: str, **kwargs) -> CommandValidator:
        """Run a pytest file or directory; the candidate is not passed in."""
        kwargs.setdefault("name", "pytest")
        return cls([sys.executable, "-m", "pytest", "-q", test_path], **kwargs)

    @classmethod
    def ruff(cls, **kwargs) -> CommandValidator:
        """Lint the candidate with ``ruff check``."""
        kwargs.setdefault("name", "ruff")
        kwargs.setdefault("priority", 20)
        return cls(["ruff", "check", "--quiet", "--no-cache", FILE_PLACEHOLDER], **kwargs)

    @classmethod
    def script(cls, script_path: str, **kwargs) -> CommandValidator:
        """Run a Python script that receives the candidate file path."""
        kwargs.setdefault("name", "script")
        return cls([sys.executable, script_path, FILE_PLACEHOLDER], **kwargs)

    def __repr__(self) -> str:
        return f"CommandValidator({shlex.join(self.argv)!r})"


def _parse_errors(output: str) -> list[str]:
    lines = [line.strip() for line in output.splitlines() if line.strip()]
    if not lines:
        return ["Validation command failed with no output"]
    return lines[:_MAX_ERROR_LINES]


def _parse_warnings(output: str) -> list[str]:
    return [
        line.strip()
        for line in output.splitlines()
        if "warning" in line.lower() or "deprecated" in line.lower()
    ]
