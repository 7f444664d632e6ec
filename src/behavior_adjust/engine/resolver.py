"""Priority ordering and type-based deduplication of matched contexts.

Templates that share a ``type`` are mutually exclusive: only the
highest-priority context of each type keeps its template. Templates of
different types combine (e.g. a general behavior reminder plus a
domain-specific checklist).

Equal priorities keep their detection order, so the first-seen context wins
a tie. Detection order is configuration order.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from behavior_adjust.config import DEFAULT_CONTEXT, BehaviorConfig
from behavior_adjust.engine.detector import MatchedContext

LABEL_SEPARATOR = "+"


@dataclass(frozen=True)
class ResolvedDecision:
    """Outcome of resolution for one message."""

    templates: tuple[str, ...]
    injection_rate: float
    context: str
    temperature: float | None = None


def default_decision(config: BehaviorConfig) -> ResolvedDecision:
    """Decision built straight from the default context, without detection."""
    default = config.default_context
    return ResolvedDecision(
        templates=(default.template,),
        injection_rate=default.injection_rate,
        context=DEFAULT_CONTEXT,
        temperature=default.temperature,
    )


def _group_by_type(
    ordered: Sequence[MatchedContext], config: BehaviorConfig
) -> dict[str, MatchedContext]:
    """Keep the first context seen for each template type.

    ``ordered`` must already be sorted by priority, highest first. Contexts
    whose template is not configured are dropped.
    """
    by_type: dict[str, MatchedContext] = {}
    for ctx in ordered:
        template = config.templates.get(ctx.template)
        if template is None:
            continue
        by_type.setdefault(template.type, ctx)
    return by_type


def _pick_temperature(ordered: Sequence[MatchedContext], config: BehaviorConfig) -> float | None:
    for ctx in ordered:
        if ctx.temperature is not None:
            return ctx.temperature
    return config.default_context.temperature


def resolve_contexts(matched: Sequence[MatchedContext], config: BehaviorConfig) -> ResolvedDecision:
    """Collapse matched contexts into a single decision.

    - templates: one per template type, from the highest-priority context.
    - injection_rate: the largest rate among the kept contexts.
    - temperature: from the highest-priority matched context declaring one,
      else the default context's.
    - context: kept context names joined with ``+``.

    The input sequence is not modified.
    """
    if not matched:
        return default_decision(config)

    # sorted() is stable: equal priorities stay in detection order.
    ordered = sorted(matched, key=lambda ctx: ctx.priority, reverse=True)
    selections = _group_by_type(ordered, config)

    templates = tuple(ctx.template for ctx in selections.values())
    rate = max((ctx.injection_rate for ctx in selections.values()), default=0.0)
    label = LABEL_SEPARATOR.join(ctx.name for ctx in selections.values())

    return ResolvedDecision(
        templates=templates,
        injection_rate=rate,
        context=label,
        temperature=_pick_temperature(ordered, config),
    )
