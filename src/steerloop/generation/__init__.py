"""Generator implementations."""

from steerloop.generation.llm import LLMGenerator

__all__ = ["LLMGenerator"]
