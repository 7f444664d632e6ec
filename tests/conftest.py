"""Shared fixtures for building configurations in memory."""

from __future__ import annotations

import pytest

from behavior_adjust.config import BehaviorConfig


def build_config(contexts: dict, templates: dict, **flags) -> BehaviorConfig:
    return BehaviorConfig.from_dict({"contexts": contexts, "templates": templates, **flags})


@pytest.fixture
def deploy_config() -> BehaviorConfig:
    return build_config(
        contexts={
            "default": {"template": "t0", "injectionRate": 0.1, "priority": 0, "temperature": 0.7},
            "deploy": {
                "template": "t1",
                "injectionRate": 1.0,
                "priority": 5,
                "keywords": ["deploy"],
            },
        },
        templates={
            "t0": {"type": "base", "prompt": "Stay safe."},
            "t1": {"type": "base", "prompt": "Confirm rollback plan for {context}."},
        },
    )


@pytest.fixture
def layered_config() -> BehaviorConfig:
    """Contexts across two template types plus one dangling template reference."""
    return build_config(
        contexts={
            "default": {"template": "general", "injectionRate": 0.3, "priority": 0, "temperature": 0.7},
            "careful": {
                "template": "careful-style",
                "injectionRate": 0.2,
                "priority": 10,
                "temperature": 0.2,
                "keywords": ["Production", "prod"],
            },
            "brief": {
                "template": "brief-style",
                "injectionRate": 0.5,
                "priority": 5,
                "temperature": 0.9,
                "keywords": ["quick", "tl;dr"],
            },
            "secrets": {
                "template": "secret-check",
                "injectionRate": 0.9,
                "priority": 3,
                "keywords": ["password", "token"],
            },
            "ghost": {
                "template": "missing",
                "injectionRate": 1.0,
                "priority": 50,
                "keywords": ["ghost"],
            },
            "manual": {"template": "general", "injectionRate": 1.0, "priority": 99},
        },
        templates={
            "general": {"type": "style", "prompt": "Be helpful."},
            "careful-style": {
                "type": "style",
                "prompt": ["Slow down in {context}.", "Double-check every command."],
            },
            "brief-style": {"type": "style", "prompt": "Keep it short."},
            "secret-check": {"type": "safety", "prompt": "Never echo credentials ({context})."},
        },
    )


@pytest.fixture
def make_config():
    return build_config
