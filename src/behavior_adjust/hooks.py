"""Host integration: the ``chat.message`` and ``chat.params`` hooks.

The host hands each hook a mutable output object:

- chat.message: the message parts about to be sent. A reminder is injected
  by prepending a synthetic text part.
- chat.params: model parameters for the turn. Temperature is set from the
  resolved context.

Every call starts from scratch; nothing is carried between messages.
"""

from __future__ import annotations

import logging
import random
import string
import time
from dataclasses import dataclass, field
from pathlib import Path

from behavior_adjust.config import DEFAULT_CONTEXT, BehaviorConfig, load_config
from behavior_adjust.engine import (
    default_decision,
    detect_contexts,
    generate_reminder,
    resolve_contexts,
    should_inject,
)
from behavior_adjust.engine.generator import RandomSource
from behavior_adjust.event_log import EventLog, InjectionEvent

logger = logging.getLogger(__name__)

PART_ID_PREFIX = "behavior-adj-"
_ID_ALPHABET = string.digits + string.ascii_lowercase


@dataclass
class MessageInfo:
    id: str | None = None
    session_id: str | None = None
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict | None) -> MessageInfo:
        data = data or {}
        return cls(
            id=data.get("id"),
            session_id=data.get("sessionID"),
            extra={k: v for k, v in data.items() if k not in ("id", "sessionID")},
        )

    def to_dict(self) -> dict:
        data = dict(self.extra)
        if self.id is not None:
            data["id"] = self.id
        if self.session_id is not None:
            data["sessionID"] = self.session_id
        return data


@dataclass
class MessagePart:
    """A single part of a chat message as the host represents it."""

    type: str
    text: str | None = None
    id: str | None = None
    synthetic: bool = False
    message_id: str | None = None
    session_id: str | None = None
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> MessagePart:
        known = {"type", "text", "id", "synthetic", "messageID", "sessionID"}
        return cls(
            type=data.get("type", ""),
            text=data.get("text"),
            id=data.get("id"),
            synthetic=bool(data.get("synthetic", False)),
            message_id=data.get("messageID"),
            session_id=data.get("sessionID"),
            extra={k: v for k, v in data.items() if k not in known},
        )

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data["type"] = self.type
        for key, value in (
            ("id", self.id),
            ("text", self.text),
            ("messageID", self.message_id),
            ("sessionID", self.session_id),
        ):
            if value is not None:
                data[key] = value
        if self.synthetic:
            data["synthetic"] = True
        return data


def _parse_parts(data: dict) -> list[MessagePart] | None:
    parts = data.get("parts")
    return [MessagePart.from_dict(p) for p in parts] if isinstance(parts, list) else None


@dataclass
class ChatMessageOutput:
    message: MessageInfo = field(default_factory=MessageInfo)
    parts: list[MessagePart] | None = None
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> ChatMessageOutput:
        return cls(
            message=MessageInfo.from_dict(data.get("message")),
            parts=_parse_parts(data),
            extra={k: v for k, v in data.items() if k not in ("message", "parts")},
        )

    def to_dict(self) -> dict:
        return {
            **self.extra,
            "message": self.message.to_dict(),
            "parts": [p.to_dict() for p in self.parts or []],
        }


@dataclass
class ChatParamsOutput:
    parts: list[MessagePart] | None = None
    temperature: float | None = None
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> ChatParamsOutput:
        return cls(
            parts=_parse_parts(data),
            temperature=data.get("temperature"),
            extra={k: v for k, v in data.items() if k not in ("parts", "temperature")},
        )

    def to_dict(self) -> dict:
        data = {**self.extra, "parts": [p.to_dict() for p in self.parts or []]}
        if self.temperature is not None:
            data["temperature"] = self.temperature
        return data


def extract_message_text(parts: list[MessagePart]) -> str:
    """Join the user-authored text parts with spaces."""
    return " ".join(p.text or "" for p in parts if p.type == "text" and not p.synthetic)


def is_injected(part: MessagePart) -> bool:
    return part.synthetic and (part.id or "").startswith(PART_ID_PREFIX)


def new_part_id(rng: RandomSource | None = None) -> str:
    rng = rng or random
    suffix = "".join(_ID_ALPHABET[int(rng.random() * len(_ID_ALPHABET))] for _ in range(9))
    return f"{PART_ID_PREFIX}{int(time.time() * 1000)}-{suffix}"


class BehaviorAdjuster:
    """Applies the context engine to host chat hooks."""

    def __init__(
        self,
        config: BehaviorConfig,
        *,
        rng: RandomSource | None = None,
        event_log: EventLog | None = None,
    ) -> None:
        self.config = config
        self._rng = rng or random.Random()
        self.event_log = event_log or EventLog(config.log_file, enabled=config.logging)

    async def on_chat_message(self, output: ChatMessageOutput) -> None:
        """Maybe prepend a behavioral reminder to the outgoing message."""
        if not self.config.enabled:
            return

        if output.parts is None:
            output.parts = []

        if any(is_injected(p) for p in output.parts):
            return

        message_text = ""
        if self.config.adaptive_mode:
            message_text = extract_message_text(output.parts)
            matched = detect_contexts(message_text, self.config)
            resolved = resolve_contexts(matched, self.config)
            detected = [ctx.name for ctx in matched]
        else:
            resolved = default_decision(self.config)
            detected = [DEFAULT_CONTEXT]

        injection_text = None
        if should_inject(resolved.injection_rate, self._rng):
            reminder = generate_reminder(resolved, self.config)
            if reminder:
                injection_text = reminder
                output.parts.insert(
                    0,
                    MessagePart(
                        type="text",
                        text=reminder,
                        id=new_part_id(self._rng),
                        synthetic=True,
                        message_id=output.message.id,
                        session_id=output.message.session_id,
                    ),
                )

        logger.debug(
            "Message %s: detected=%s resolved=%s rate=%.2f injected=%s",
            output.message.id,
            detected,
            resolved.context,
            resolved.injection_rate,
            injection_text is not None,
        )

        if self.config.logging:
            self.event_log.append(
                InjectionEvent(
                    session_id=output.message.session_id,
                    message_id=output.message.id,
                    user_message=message_text,
                    detected_contexts=detected,
                    resolved_context=resolved.context,
                    injection_rate=resolved.injection_rate,
                    injection_occurred=injection_text is not None,
                    injection_text=injection_text,
                )
            )

    async def on_chat_params(self, output: ChatParamsOutput) -> None:
        """Set the sampling temperature from the detected contexts."""
        if not self.config.enabled or not self.config.adaptive_mode:
            return
        if output.parts is None:
            return

        message_text = extract_message_text(output.parts)
        resolved = resolve_contexts(detect_contexts(message_text, self.config), self.config)
        if resolved.temperature is not None:
            output.temperature = resolved.temperature


class DisabledAdjuster:
    """Stand-in used when no valid configuration exists. Hooks do nothing."""

    config = None

    async def on_chat_message(self, output: ChatMessageOutput) -> None:
        return None

    async def on_chat_params(self, output: ChatParamsOutput) -> None:
        return None


def create_adjuster(config_path: Path | None = None) -> BehaviorAdjuster | DisabledAdjuster:
    """Load configuration and build the hook handler."""
    config = load_config(config_path)
    if config is None:
        return DisabledAdjuster()
    return BehaviorAdjuster(config)
