"""Reminder rendering and the per-message injection gate."""

from __future__ import annotations

import random
from typing import Protocol

from behavior_adjust.config import BehaviorConfig
from behavior_adjust.engine.resolver import ResolvedDecision

CONTEXT_PLACEHOLDER = "{context}"
REMINDER_SEPARATOR = "\n\n"


class RandomSource(Protocol):
    def random(self) -> float: ...


def generate_reminder(resolved: ResolvedDecision, config: BehaviorConfig) -> str | None:
    """Render the selected templates into one reminder.

    Unknown template names are skipped. Multiple bodies are joined with a
    blank line. Only the first ``{context}`` in the final text is replaced.
    Returns None when nothing could be rendered.
    """
    if not resolved.templates:
        return None

    reminders = [
        config.templates[name].render()
        for name in resolved.templates
        if name in config.templates
    ]
    if not reminders:
        return None

    return REMINDER_SEPARATOR.join(reminders).replace(CONTEXT_PLACEHOLDER, resolved.context, 1)


def should_inject(rate: float, rng: RandomSource | None = None) -> bool:
    """Draw once: True with probability ``rate``."""
    return (rng or random).random() < rate
