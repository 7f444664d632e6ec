"""Append-only JSONL log of injection decisions."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class InjectionEvent:
    """One processed chat message."""

    session_id: str | None
    message_id: str | None
    user_message: str
    detected_contexts: list[str] = field(default_factory=list)
    resolved_context: str = ""
    injection_rate: float = 0.0
    injection_occurred: bool = False
    injection_text: str | None = None

    def to_dict(self) -> dict:
        return {
            "sessionId": self.session_id,
            "messageId": self.message_id,
            "userMessage": self.user_message,
            "detectedContexts": self.detected_contexts,
            "resolvedContext": self.resolved_context,
            "injectionRate": self.injection_rate,
            "injectionOccurred": self.injection_occurred,
            "injectionText": self.injection_text,
        }


class EventLog:
    """Writes one JSON object per line. A disabled log writes nothing."""

    def __init__(self, path: Path, enabled: bool = True) -> None:
        self.path = path
        self.enabled = enabled

    def append(self, event: InjectionEvent) -> None:
        if not self.enabled:
            return

        entry = {"timestamp": datetime.now(timezone.utc).isoformat(), **event.to_dict()}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False) + "\n")
        except OSError as e:
            logger.warning("Failed to write log entry to %s: %s", self.path, e)

    def read_events(self) -> list[dict]:
        """Parse every entry in the log. Malformed lines are skipped."""
        if not self.path.exists():
            return []
        events = []
        for line in self.path.read_text(encoding="utf-8").splitlines():
            if not line.strip():
                continue
            try:
                events.append(json.loads(line))
            except json.JSONDecodeError:
                logger.debug("Skipping malformed log line: %s", line[:80])
        return events
