"""AI Agents package."""

from splitsmart.agents.split_agent import (
    InterpretationError,
    InterpretationFailedError,
    SplitCommandAgent,
    build_context,
    parse_interpretation,
)

__all__ = [
    "InterpretationError",
    "InterpretationFailedError",
    "SplitCommandAgent",
    "build_context",
    "parse_interpretation",
]
