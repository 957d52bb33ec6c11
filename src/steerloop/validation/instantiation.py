"""Instantiation validator.

Loads the candidate as a module in a child interpreter and instantiates
one of its classes, so import-time errors and failing constructors show up
as validation errors. The child is killed after ``timeout`` seconds.
"""

from __future__ import annotations

import json
import sys
from typing import Any, Mapping, Sequence

from steerloop.models.report import ValidationReport
from steerloop.models.request import Candidate
from steerloop.validation.command import FILE_PLACEHOLDER, CommandValidator, candidate_file

# Runs in the child. Reads {"class_name", "args", "kwargs"} from stdin and
# prints either one JSON line (exit 0) or one error line (exit 1). Output
# written by the candidate itself is swallowed.
_LOADER = r'''
import contextlib, importlib.util, inspect, io, json, sys, time

def load_and_instantiate(path, payload):
    with contextlib.redirect_stdout(io.StringIO()), contextlib.redirect_stderr(io.StringIO()):
        try:
            module_spec = importlib.util.spec_from_file_location("steerloop_candidate", path)
            module = importlib.util.module_from_spec(module_spec)
            sys.modules[module_spec.name] = module
            module_spec.loader.exec_module(module)
        except BaseException as exc:
            return None, "Load error: %s: %s" % (type(exc).__name__, exc)

        defined = [
            name for name, obj in vars(module).items()
            if inspect.isclass(obj) and obj.__module__ == module.__name__
        ]
        name = payload["class_name"] or (defined[0] if defined else None)
        if name is None:
            return None, "No class definition found in code"
        cls = getattr(module, name, None)
        if not inspect.isclass(cls):
            return None, "Class %r not found (defined: %s)" % (name, ", ".join(defined) or "none")

        start = time.perf_counter()
        try:
            cls(*payload["args"], **payload["kwargs"])
        except BaseException as exc:
            return None, "%s during instantiation: %s" % (type(exc).__name__, exc)
        elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
    return {"class_name": name, "instantiation_time_ms": elapsed_ms}, None

result, error = load_and_instantiate(sys.argv[1], json.load(sys.stdin))
if error is not None:
    print(error)
    sys.exit(1)
print(json.dumps(result))
'''


class InstantiationValidator(CommandValidator):
    """Validate a candidate by importing it and constructing a class.

    Args:
        class_name: Class to instantiate. None picks the first class the
            module defines. A candidate's ``expected_class_name`` metadata
            overrides it.
        constructor_args: Positional arguments for the constructor.
        constructor_kwargs: Keyword arguments for the constructor.
        timeout: Seconds before the child interpreter is killed.

    Arguments travel to the child as JSON, so they must be
    JSON-serializable.

    Example::

        InstantiationValidator("RateLimiter", constructor_kwargs={"rate": 5})
    """

    def __init__(
        self,
        class_name: str | None = None,
        *,
        constructor_args: Sequence[Any] = (),
        constructor_kwargs: Mapping[str, Any] | None = None,
        name: str = "instantiation",
        priority: int = 40,
        timeout: float = 5.0,
        working_directory: str | None = None,
    ) -> None:
        super().__init__(
            [sys.executable, "-c", _LOADER, FILE_PLACEHOLDER],
            name=name,
            priority=priority,
            timeout=timeout,
            working_directory=working_directory,
            suffix=".py",
        )
        self.class_name = class_name
        self.constructor_args = list(constructor_args)
        self.constructor_kwargs = dict(constructor_kwargs or {})
        try:
            json.dumps([self.constructor_args, self.constructor_kwargs])
        except (TypeError, ValueError) as exc:
            raise ValueError(f"constructor arguments must be JSON-serializable: {exc}") from exc

    def validate(self, candidate: Candidate) -> ValidationReport:
        class_name = candidate.metadata.get("expected_class_name", self.class_name)
        payload = json.dumps(
            {
                "class_name": class_name,
                "args": self.constructor_args,
                "kwargs": self.constructor_kwargs,
            }
        )
        with candidate_file(candidate.content, self.suffix) as path:
            argv = [arg.replace(FILE_PLACEHOLDER, path) for arg in self.argv]
            report = self._run(argv, stdin=payload, temp_path=path)

        metadata = {
            **report.metadata,
            "command": f"instantiate {class_name or '<first class>'}",
            "constructor_args_count": len(self.constructor_args) + len(self.constructor_kwargs),
        }
        if not report.valid:
            return ValidationReport.failure(report.errors, metadata=metadata)
        return ValidationReport.success(metadata={**metadata, **_result(report)})

    def __repr__(self) -> str:
        return f"InstantiationValidator({self.class_name!r})"


def _result(report: ValidationReport) -> dict[str, Any]:
    lines = [line for line in str(report.metadata.get("output", "")).splitlines() if line.strip()]
    if not lines:
        return {}
    try:
        return json.loads(lines[-1])
    except json.JSONDecodeError:
        return {}
