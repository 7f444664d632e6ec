"""Entry point: python -m behavior_adjust [check|explain|hook|log]

- check [PATH]           Validate configuration and print a summary
- explain MESSAGE...     Show how a message would be resolved
- hook message|params    Run a host hook on JSON read from stdin
- log [N]                Print the last N injection events (default 20)
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

from behavior_adjust.config import BehaviorConfig, load_config

USAGE = """\
Usage: python -m behavior_adjust <command>
  check [PATH]          Validate configuration and print a summary
  explain MESSAGE...    Show how a message would be resolved
  hook message|params   Run a host hook on JSON read from stdin
  log [N]               Print the last N injection events"""


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def _require_config(path: Path | None = None) -> BehaviorConfig:
    config = load_config(path)
    if config is None:
        print("No valid behavior configuration found.", file=sys.stderr)
        sys.exit(1)
    _setup_logging(config.log_level)
    return config


def _run_check(args: list[str]) -> None:
    config = _require_config(Path(args[0]) if args else None)
    print(f"Sources: {', '.join(str(p) for p in config.sources)}")
    print(f"enabled={config.enabled} adaptive_mode={config.adaptive_mode} logging={config.logging}")
    print(f"\nContexts ({len(config.contexts)}):")
    for name, ctx in sorted(config.contexts.items(), key=lambda kv: -kv[1].priority):
        marker = "" if ctx.template in config.templates else "  [unknown template]"
        keywords = ", ".join(ctx.keywords) if ctx.keywords else "-"
        print(
            f"  {name:<16} priority={ctx.priority:<4} rate={ctx.injection_rate:<5} "
            f"template={ctx.template}{marker}  keywords: {keywords}"
        )
    print(f"\nTemplates ({len(config.templates)}):")
    for name, template in config.templates.items():
        print(f"  {name:<16} type={template.type}")


def _run_explain(args: list[str]) -> None:
    from behavior_adjust.engine import detect_contexts, generate_reminder, resolve_contexts

    config = _require_config()
    message = " ".join(args)
    matched = detect_contexts(message, config)
    resolved = resolve_contexts(matched, config)

    print(f"Detected:    {', '.join(ctx.name for ctx in matched)}")
    print(f"Resolved:    {resolved.context}")
    print(f"Templates:   {', '.join(resolved.templates) or '-'}")
    print(f"Rate:        {resolved.injection_rate}")
    print(f"Temperature: {resolved.temperature if resolved.temperature is not None else '-'}")
    reminder = generate_reminder(resolved, config)
    print("\n" + (reminder if reminder is not None else "(no reminder)"))


def _run_hook(args: list[str]) -> None:
    from behavior_adjust.hooks import ChatMessageOutput, ChatParamsOutput, create_adjuster

    if not args or args[0] not in ("message", "params"):
        print(USAGE)
        sys.exit(1)

    try:
        payload = json.loads(sys.stdin.read() or "{}")
    except json.JSONDecodeError as e:
        print(f"Invalid hook payload: {e}", file=sys.stderr)
        sys.exit(1)

    adjuster = create_adjuster()
    if args[0] == "message":
        output = ChatMessageOutput.from_dict(payload)
        asyncio.run(adjuster.on_chat_message(output))
    else:
        output = ChatParamsOutput.from_dict(payload)
        asyncio.run(adjuster.on_chat_params(output))
    print(json.dumps(output.to_dict(), ensure_ascii=False))


def _run_log(args: list[str]) -> None:
    from behavior_adjust.event_log import EventLog

    config = _require_config()
    try:
        count = int(args[0]) if args else 20
    except ValueError:
        count = 0
    if count < 1:
        print(USAGE)
        sys.exit(1)

    for event in EventLog(config.log_file).read_events()[-count:]:
        status = "injected" if event.get("injectionOccurred") else "skipped"
        print(
            f"{event.get('timestamp', '?')}  {status:<8} "
            f"{event.get('resolvedContext', '')} (rate={event.get('injectionRate')})"
        )


def main() -> None:
    cmd = sys.argv[1] if len(sys.argv) > 1 else ""
    args = sys.argv[2:]

    if cmd == "check":
        _run_check(args)
    elif cmd == "explain":
        _run_explain(args)
    elif cmd == "hook":
        _run_hook(args)
    elif cmd == "log":
        _run_log(args)
    else:
        print(USAGE)
        sys.exit(1)


if __name__ == "__main__":
    main()
