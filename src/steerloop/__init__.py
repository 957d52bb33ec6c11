"""steerloop: bounded-retry generation steered by validation feedback.

An imperfect generator (usually an LLM) proposes candidates; a validation
pipeline judges them; failures are fed back to the generator until a
candidate passes or the retry budget is spent.
"""

from steerloop._version import __version__

# Core loop
from steerloop.retry import (
    AsyncValidatedGenerationLoop,
    ValidatedGenerationLoop,
    arun_validated,
    run_validated,
)

# Domain models
from steerloop.models import (
    Aborted,
    Candidate,
    Exhausted,
    GenerationRequest,
    GeneratorErrorMode,
    LoopOutcome,
    RetryPolicy,
    Success,
    ValidationReport,
    ValidatorErrorMode,
    constant_backoff,
    exponential_backoff,
    linear_backoff,
)

# Protocols, observers, cancellation
from steerloop.protocols import Generator, LoopObserver, PipelineValidator, Validator
from steerloop.observers import CompositeObserver, HistoryObserver, LoggingObserver
from steerloop.cancellation import CancellationToken
from steerloop.feedback import Feedback, format_feedback

# Configuration
from steerloop.config import BackoffStrategy, LoopSettings

# Validation pipeline
from steerloop.validation import (
    CommandValidator,
    InstantiationValidator,
    LLMReviewValidator,
    PythonSyntaxValidator,
    ValidationCoordinator,
)

# Generation
from steerloop.generation import LLMGenerator

# Exceptions
from steerloop.exceptions import (
    GenerationFailure,
    InvalidConfigurationError,
    SteerLoopError,
    ValidatorFailure,
)

__all__ = [
    "__version__",
    # Core loop
    "ValidatedGenerationLoop",
    "AsyncValidatedGenerationLoop",
    "run_validated",
    "arun_validated",
    # Models
    "GenerationRequest",
    "Candidate",
    "ValidationReport",
    "Success",
    "Exhausted",
    "Aborted",
    "LoopOutcome",
    "RetryPolicy",
    "GeneratorErrorMode",
    "ValidatorErrorMode",
    "constant_backoff",
    "linear_backoff",
    "exponential_backoff",
    # Protocols, observers, cancellation
    "Generator",
    "Validator",
    "PipelineValidator",
    "LoopObserver",
    "LoggingObserver",
    "HistoryObserver",
    "CompositeObserver",
    "CancellationToken",
    "Feedback",
    "format_feedback",
    # Configuration
    "LoopSettings",
    "BackoffStrategy",
    # Validation
    "ValidationCoordinator",
    "PythonSyntaxValidator",
    "CommandValidator",
    "InstantiationValidator",
    "LLMReviewValidator",
    # Generation
    "LLMGenerator",
    # Exceptions
    "SteerLoopError",
    "InvalidConfigurationError",
    "GenerationFailure",
    "ValidatorFailure",
]
