"""Keyword-based context detection."""

from __future__ import annotations

from dataclasses import dataclass

from behavior_adjust.config import DEFAULT_CONTEXT, BehaviorConfig, ContextDefinition


@dataclass(frozen=True)
class MatchedContext:
    """A context definition tagged with the name it was configured under."""

    name: str
    definition: ContextDefinition

    @property
    def template(self) -> str:
        return self.definition.template

    @property
    def priority(self) -> int:
        return self.definition.priority

    @property
    def injection_rate(self) -> float:
        return self.definition.injection_rate

    @property
    def temperature(self) -> float | None:
        return self.definition.temperature


def default_match(config: BehaviorConfig) -> MatchedContext:
    return MatchedContext(DEFAULT_CONTEXT, config.default_context)


def detect_contexts(message: str | None, config: BehaviorConfig) -> list[MatchedContext]:
    """Return the contexts whose keywords occur in message.

    Matching is a case-insensitive substring test. Each context is listed at
    most once, in configuration order. Falls back to [default] when the
    message is empty or nothing matches, so the result is never empty.
    """
    if not message:
        return [default_match(config)]

    folded = message.casefold()
    matched: list[MatchedContext] = []

    for name, definition in config.contexts.items():
        if name == DEFAULT_CONTEXT or definition.keywords is None:
            continue
        if any(keyword.casefold() in folded for keyword in definition.keywords):
            matched.append(MatchedContext(name, definition))

    return matched or [default_match(config)]
