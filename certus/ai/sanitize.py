"""Input sanitization and builder/answer mode detection for assistant queries."""

import re
from enum import Enum

MAX_INPUT_LENGTH = 2000

# Control characters except tab, newline and carriage return
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")

_BUILDER_PATTERNS = [
    re.compile(r"\b(show me|build|create|add|display|visuali[sz]e|chart|graph|dashboard|widget)\b"),
    re.compile(r"\b(plot|draw|render|put .+ on|add .+ to)\b"),
]

_ANSWER_PATTERNS = [
    re.compile(r"\b(how many|what is|what are|what's|tell me|count|total|average|sum)\b"),
    re.compile(r"\b(who has|who is|which|compare|list)\b"),
    re.compile(r"\b(percentage|ratio|rate|highest|lowest|top|bottom)\b"),
]


class AssistantMode(str, Enum):
    BUILDER = "builder"
    ANSWER = "answer"
    AMBIGUOUS = "ambiguous"


def sanitize_input(text: str) -> str:
    """Strip control characters, trim, and cap length."""
    return _CONTROL_CHARS.sub("", text).strip()[:MAX_INPUT_LENGTH]


def detect_mode(text: str) -> AssistantMode:
    """Guess whether the user wants widgets built or a direct answer.

    Both or neither pattern family matching gives AMBIGUOUS; the assistant
    then decides or asks.
    """
    lower = text.lower()
    is_builder = any(p.search(lower) for p in _BUILDER_PATTERNS)
    is_answer = any(p.search(lower) for p in _ANSWER_PATTERNS)

    if is_builder and not is_answer:
        return AssistantMode.BUILDER
    if is_answer and not is_builder:
        return AssistantMode.ANSWER
    return AssistantMode.AMBIGUOUS
