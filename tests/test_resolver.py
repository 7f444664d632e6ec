"""Tests for priority ordering and type-based deduplication."""

from behavior_adjust.engine import detect_contexts, resolve_contexts
from behavior_adjust.engine.detector import MatchedContext


def match(config, *names):
    return [MatchedContext(name, config.contexts[name]) for name in names]


class TestTypeDeduplication:
    def test_same_type_keeps_highest_priority(self, layered_config):
        resolved = resolve_contexts(match(layered_config, "brief", "careful"), layered_config)
        assert resolved.templates == ("careful-style",)
        assert resolved.context == "careful"

    def test_different_types_combine(self, layered_config):
        resolved = resolve_contexts(match(layered_config, "secrets", "careful"), layered_config)
        assert resolved.templates == ("careful-style", "secret-check")
        assert resolved.context == "careful+secrets"

    def test_unresolvable_template_dropped(self, layered_config):
        resolved = resolve_contexts(match(layered_config, "ghost", "secrets"), layered_config)
        assert resolved.templates == ("secret-check",)
        assert resolved.context == "secrets"
        assert resolved.injection_rate == 0.9

    def test_all_unresolvable(self, layered_config):
        resolved = resolve_contexts(match(layered_config, "ghost"), layered_config)
        assert resolved.templates == ()
        assert resolved.context == ""
        assert resolved.injection_rate == 0.0

    def test_tie_first_seen_wins(self, make_config):
        config = make_config(
            contexts={
                "default": {"template": "a", "injectionRate": 0, "priority": 0},
                "first": {"template": "a", "injectionRate": 0.1, "priority": 4, "keywords": ["x"]},
                "second": {"template": "b", "injectionRate": 0.8, "priority": 4, "keywords": ["x"]},
            },
            templates={"a": {"type": "t", "prompt": "A"}, "b": {"type": "t", "prompt": "B"}},
        )
        resolved = resolve_contexts(detect_contexts("x", config), config)
        assert resolved.templates == ("a",)
        assert resolved.injection_rate == 0.1

    def test_input_not_mutated(self, layered_config):
        matched = match(layered_config, "secrets", "brief", "careful")
        resolve_contexts(matched, layered_config)
        assert [ctx.name for ctx in matched] == ["secrets", "brief", "careful"]

    def test_equal_priority_label_follows_detection_order(self, make_config):
        config = make_config(
            contexts={
                "default": {"template": "a", "injectionRate": 0, "priority": 0},
                "zeta": {"template": "z", "injectionRate": 0.4, "priority": 2, "keywords": ["go"]},
                "alpha": {"template": "a", "injectionRate": 0.6, "priority": 2, "keywords": ["go"]},
            },
            templates={"a": {"type": "style", "prompt": "A"}, "z": {"type": "safety", "prompt": "Z"}},
        )
        resolved = resolve_contexts(detect_contexts("go", config), config)
        assert resolved.context == "zeta+alpha"
        assert resolved.templates == ("z", "a")


class TestInjectionRate:
    def test_rate_is_max_not_sum(self, layered_config):
        resolved = resolve_contexts(match(layered_config, "careful", "secrets"), layered_config)
        assert resolved.injection_rate == 0.9

    def test_rate_ignores_deduplicated_contexts(self, layered_config):
        # brief (0.5) loses its type group to careful (0.2)
        resolved = resolve_contexts(match(layered_config, "careful", "brief"), layered_config)
        assert resolved.injection_rate == 0.2


class TestTemperature:
    def test_highest_priority_declaring_temperature(self, layered_config):
        resolved = resolve_contexts(match(layered_config, "brief", "careful", "secrets"), layered_config)
        assert resolved.temperature == 0.2

    def test_temperature_independent_of_rate_winner(self, layered_config):
        # secrets gives the winning rate but declares no temperature
        resolved = resolve_contexts(match(layered_config, "brief", "secrets"), layered_config)
        assert resolved.injection_rate == 0.9
        assert resolved.temperature == 0.9

    def test_falls_back_to_default(self, layered_config):
        resolved = resolve_contexts(match(layered_config, "secrets"), layered_config)
        assert resolved.temperature == 0.7

    def test_considers_contexts_with_unknown_templates(self, make_config):
        config = make_config(
            contexts={
                "default": {"template": "a", "injectionRate": 0, "priority": 0},
                "broken": {"template": "nope", "injectionRate": 1, "priority": 9, "temperature": 0.1},
            },
            templates={"a": {"type": "t", "prompt": "A"}},
        )
        resolved = resolve_contexts(match(config, "broken"), config)
        assert resolved.templates == ()
        assert resolved.temperature == 0.1

    def test_negative_priority(self, make_config):
        config = make_config(
            contexts={
                "default": {"template": "a", "injectionRate": 0, "priority": 0, "temperature": 0.5},
                "low": {"template": "a", "injectionRate": 1, "priority": -3, "temperature": 1.2},
            },
            templates={"a": {"type": "t", "prompt": "A"}},
        )
        assert resolve_contexts(match(config, "low"), config).temperature == 1.2

    def test_no_temperature_anywhere(self, make_config):
        config = make_config(
            contexts={"default": {"template": "a", "injectionRate": 0, "priority": 0}},
            templates={"a": {"type": "t", "prompt": "A"}},
        )
        assert resolve_contexts(match(config, "default"), config).temperature is None


class TestEmptyInput:
    def test_falls_back_to_default_context(self, layered_config):
        resolved = resolve_contexts([], layered_config)
        assert resolved.templates == ("general",)
        assert resolved.injection_rate == 0.3
        assert resolved.context == "default"
        assert resolved.temperature == 0.7


class TestEndToEnd:
    def test_deploy_example(self, deploy_config):
        matched = detect_contexts("let's deploy now", deploy_config)
        assert [ctx.name for ctx in matched] == ["deploy"]

        resolved = resolve_contexts(matched, deploy_config)
        assert resolved.templates == ("t1",)
        assert resolved.injection_rate == 1.0
        assert resolved.context == "deploy"
        assert resolved.temperature == deploy_config.contexts["default"].temperature
