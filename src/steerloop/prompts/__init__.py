"""Prompt text and builders for the LLM-backed collaborators."""

from steerloop.prompts.generation import (
    GENERATION_SYSTEM_PROMPT,
    build_generation_prompt,
    build_retry_prompt,
)
from steerloop.prompts.review import REVIEW_SYSTEM_PROMPT, build_review_prompt

__all__ = [
    "GENERATION_SYSTEM_PROMPT",
    "REVIEW_SYSTEM_PROMPT",
    "build_generation_prompt",
    "build_retry_prompt",
    "build_review_prompt",
]
