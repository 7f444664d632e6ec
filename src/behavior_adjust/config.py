"""Configuration loading from behavior-config.toml/json and environment variables."""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT = "default"

_CONFIG_STEM = "behavior-config"
_CONFIG_SUFFIXES = (".toml", ".json")
_USER_CONFIG_DIR = Path.home() / ".config" / "opencode"
_PROJECT_CONFIG_DIRNAME = ".opencode"
_DEFAULT_LOG_FILE = _USER_CONFIG_DIR / "behavior-adjustment.log"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


class ConfigError(ValueError):
    """A context or template entry is malformed."""


def _field(data: dict, *keys: str, default: Any = None) -> Any:
    """Return the first key present in data (camelCase first, then snake_case)."""
    for key in keys:
        if key in data:
            return data[key]
    return default


def _parse_flag(value: Any) -> bool | None:
    """Interpret a boolean or a true/false-like string. None if unrecognised."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        value = value.strip().lower()
        if value in _TRUTHY:
            return True
        if value in _FALSY:
            return False
    return None


def _flag(data: dict, *keys: str, default: bool) -> bool:
    value = _field(data, *keys, default=default)
    flag = _parse_flag(value)
    if flag is None:
        raise ConfigError(f"'{keys[0]}' must be true or false, got {value!r}")
    return flag


@dataclass(frozen=True)
class TemplateDefinition:
    """A block of reminder text, grouped by type for deduplication."""

    type: str
    prompt: str | tuple[str, ...]

    def render(self) -> str:
        if isinstance(self.prompt, tuple):
            return "\n".join(self.prompt)
        return self.prompt

    @classmethod
    def from_dict(cls, name: str, data: dict) -> TemplateDefinition:
        if not isinstance(data, dict):
            raise ConfigError(f"template '{name}' must be a table")
        type_ = data.get("type")
        if not isinstance(type_, str) or not type_:
            raise ConfigError(f"template '{name}' is missing 'type'")
        prompt = data.get("prompt")
        if isinstance(prompt, list):
            prompt = tuple(str(line) for line in prompt)
        elif not isinstance(prompt, str):
            raise ConfigError(f"template '{name}' needs a string or list 'prompt'")
        return cls(type=type_, prompt=prompt)


@dataclass(frozen=True)
class ContextDefinition:
    """A named rule bundle: keywords, template reference, priority and rates."""

    template: str
    injection_rate: float
    priority: int
    temperature: float | None = None
    keywords: tuple[str, ...] | None = None
    description: str | None = None

    @classmethod
    def from_dict(cls, name: str, data: dict) -> ContextDefinition:
        if not isinstance(data, dict):
            raise ConfigError(f"context '{name}' must be a table")
        template = data.get("template")
        if not isinstance(template, str) or not template:
            raise ConfigError(f"context '{name}' is missing 'template'")

        try:
            rate = float(_field(data, "injectionRate", "injection_rate", default=0.0))
            priority = int(data.get("priority", 0))
            temperature = data.get("temperature")
            if temperature is not None:
                temperature = float(temperature)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"context '{name}': {e}") from e
        if not 0.0 <= rate <= 1.0:
            raise ConfigError(f"context '{name}': injectionRate {rate} outside [0, 1]")

        keywords = data.get("keywords")
        if keywords is not None:
            if not isinstance(keywords, list):
                raise ConfigError(f"context '{name}': 'keywords' must be a list")
            keywords = tuple(str(k) for k in keywords)

        return cls(
            template=template,
            injection_rate=rate,
            priority=priority,
            temperature=temperature,
            keywords=keywords,
            description=data.get("description"),
        )


@dataclass(frozen=True)
class BehaviorConfig:
    """Top-level configuration. Read-only once loaded."""

    contexts: dict[str, ContextDefinition]
    templates: dict[str, TemplateDefinition]
    enabled: bool = True
    adaptive_mode: bool = True
    logging: bool = False
    log_file: Path = _DEFAULT_LOG_FILE
    log_level: str = "INFO"
    sources: tuple[Path, ...] = field(default=(), compare=False)

    @property
    def default_context(self) -> ContextDefinition:
        return self.contexts[DEFAULT_CONTEXT]

    @classmethod
    def from_dict(cls, data: dict) -> BehaviorConfig:
        """Build a config from merged file data. Raises ConfigError on bad entries.

        A relative templateDir is taken relative to the working directory;
        load_config anchors it to the declaring file before merging.
        """
        from behavior_adjust.templates import load_template_dir

        contexts = {
            name: ContextDefinition.from_dict(name, entry)
            for name, entry in (data.get("contexts") or {}).items()
        }

        templates: dict[str, TemplateDefinition] = {}
        template_dir = _field(data, "templateDir", "template_dir")
        if template_dir:
            templates.update(load_template_dir(Path(template_dir).expanduser()))
        for name, entry in (data.get("templates") or {}).items():
            templates[name] = TemplateDefinition.from_dict(name, entry)

        log_file = _field(data, "logFile", "log_file")
        return cls(
            contexts=contexts,
            templates=templates,
            enabled=_flag(data, "enabled", default=True),
            adaptive_mode=_flag(data, "adaptiveMode", "adaptive_mode", default=True),
            logging=_flag(data, "logging", default=False),
            log_file=Path(log_file).expanduser() if log_file else _DEFAULT_LOG_FILE,
            log_level=str(_field(data, "logLevel", "log_level", default="INFO")),
        )


def _read_config_file(path: Path) -> dict | None:
    """Parse a TOML or JSON config file. Returns None if unreadable."""
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix == ".toml":
            data = tomllib.loads(text)
        else:
            data = json.loads(text)
    except (OSError, ValueError) as e:
        logger.warning("Skipping config file %s: %s", path, e)
        return None
    if not isinstance(data, dict):
        logger.warning("Skipping config file %s: top level is not an object", path)
        return None
    return data


def _find_layer(directory: Path) -> tuple[Path, dict] | None:
    """Return the first readable config file in directory."""
    for suffix in _CONFIG_SUFFIXES:
        candidate = directory / f"{_CONFIG_STEM}{suffix}"
        if candidate.exists():
            data = _read_config_file(candidate)
            if data is not None:
                return candidate, data
    return None


def merge_layers(base: dict | None, override: dict | None) -> dict:
    """Overlay override on base. Each top-level key is replaced wholesale."""
    merged = dict(base or {})
    merged.update(override or {})
    return merged


def _anchor_paths(data: dict, path: Path) -> dict:
    """Make a relative templateDir in one layer relative to that layer's file."""
    data = dict(data)
    for key in ("templateDir", "template_dir"):
        value = data.get(key)
        if isinstance(value, str) and value:
            template_dir = Path(value).expanduser()
            if not template_dir.is_absolute():
                data[key] = str(path.parent / template_dir)
    return data


def _env_flag(name: str) -> bool | None:
    value = os.getenv(name)
    if value is None:
        return None
    flag = _parse_flag(value)
    if flag is None:
        logger.warning("Ignoring %s=%r (expected true/false)", name, value)
    return flag


def _apply_env(data: dict) -> dict:
    data = dict(data)
    for env_name, key in (
        ("BEHAVIOR_ENABLED", "enabled"),
        ("BEHAVIOR_ADAPTIVE_MODE", "adaptiveMode"),
        ("BEHAVIOR_LOGGING", "logging"),
    ):
        flag = _env_flag(env_name)
        if flag is not None:
            data[key] = flag
    if os.getenv("BEHAVIOR_LOG_FILE"):
        data["logFile"] = os.environ["BEHAVIOR_LOG_FILE"]
    if os.getenv("BEHAVIOR_LOG_LEVEL"):
        data["logLevel"] = os.environ["BEHAVIOR_LOG_LEVEL"]
    return data


def load_config(config_path: Path | None = None) -> BehaviorConfig | None:
    """Load configuration from files and environment variables.

    Priority: environment variables > project config > user config > defaults.
    With an explicit path (argument or BEHAVIOR_CONFIG) only that file is read.
    Returns None when no usable configuration exists; the reason is logged.
    """
    if config_path is None and os.getenv("BEHAVIOR_CONFIG"):
        config_path = Path(os.environ["BEHAVIOR_CONFIG"]).expanduser()

    sources: list[Path] = []
    file_data: dict | None = None

    if config_path is not None:
        if config_path.exists():
            data = _read_config_file(config_path)
            if data is not None:
                file_data = _anchor_paths(data, config_path)
                sources.append(config_path)
    else:
        for directory in (_USER_CONFIG_DIR, Path.cwd() / _PROJECT_CONFIG_DIRNAME):
            layer = _find_layer(directory)
            if layer is None:
                continue
            path, data = layer
            file_data = merge_layers(file_data, _anchor_paths(data, path))
            sources.append(path)

    if file_data is None:
        logger.info("No configuration file found. Behavior adjustment disabled.")
        return None

    contexts = file_data.get("contexts")
    if not isinstance(contexts, dict) or DEFAULT_CONTEXT not in contexts:
        logger.info("Invalid configuration - missing 'contexts.default'. Behavior adjustment disabled.")
        return None

    try:
        config = BehaviorConfig.from_dict(_apply_env(file_data))
    except ConfigError as e:
        logger.warning("Invalid configuration - %s. Behavior adjustment disabled.", e)
        return None

    if not config.templates:
        logger.info("Invalid configuration - no templates defined. Behavior adjustment disabled.")
        return None

    config = replace(config, sources=tuple(sources))
    logger.info(
        "Loaded behavior config from %s (%d contexts, %d templates)",
        ", ".join(str(p) for p in sources),
        len(config.contexts),
        len(config.templates),
    )
    return config
