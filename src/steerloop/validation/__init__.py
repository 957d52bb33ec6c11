"""Validation pipeline: the coordinator and built-in validators."""

from steerloop.validation.command import CommandValidator
from steerloop.validation.coordinator import ValidationCoordinator
from steerloop.validation.instantiation import InstantiationValidator
from steerloop.validation.llm_review import LLMReviewValidator, ReviewVerdict
from steerloop.validation.syntax import PythonSyntaxValidator

__all__ = [
    "ValidationCoordinator",
    "PythonSyntaxValidator",
    "CommandValidator",
    "InstantiationValidator",
    "LLMReviewValidator",
    "ReviewVerdict",
]
