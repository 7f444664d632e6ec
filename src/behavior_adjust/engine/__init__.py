"""Context detection, resolution and reminder generation.

    message text -> detect_contexts -> resolve_contexts -> generate_reminder

All three stages are pure functions over a read-only BehaviorConfig.
"""

from behavior_adjust.engine.detector import MatchedContext, detect_contexts
from behavior_adjust.engine.generator import generate_reminder, should_inject
from behavior_adjust.engine.resolver import ResolvedDecision, default_decision, resolve_contexts

__all__ = [
    "MatchedContext",
    "ResolvedDecision",
    "default_decision",
    "detect_contexts",
    "generate_reminder",
    "resolve_contexts",
    "should_inject",
]
