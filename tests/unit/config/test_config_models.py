"""Tests for the declarative flow models and compiler settings."""

import pytest
from pydantic import ValidationError

from ivrflow.config import CompilerSettings, FlowsConfig
from ivrflow.config.models import BodyConfig, BranchStepConfig, PromptStepConfig
from ivrflow.core.constants import ComparisonOperator


def test_defaults():
    """Test an empty document yields default version and settings."""
    config = FlowsConfig.model_validate({})

    assert config.version == "1.0"
    assert config.flows == {}
    assert config.settings == CompilerSettings()


def test_steps_use_type_discriminator():
    config = FlowsConfig.model_validate(
        {
            "flows": {
                "main": {
                    "steps": [
                        {"type": "prompt", "text": "Hi"},
                        {
                            "type": "branch",
                            "attribute": "$.Attributes.x",
                            "cases": [{"value": 1, "goto": "end"}],
                        },
                    ]
                }
            }
        }
    )

    steps = config.flows["main"].steps
    assert isinstance(steps[0], PromptStepConfig)
    assert isinstance(steps[1], BranchStepConfig)
    assert steps[1].cases[0].value == 1
    assert steps[1].cases[0].operator is ComparisonOperator.EQUALS


def test_case_values_keep_their_type():
    """Test booleans are not coerced to strings or ints."""
    config = FlowsConfig.model_validate(
        {
            "flows": {
                "main": {
                    "steps": [
                        {
                            "type": "branch",
                            "attribute": "$.Attributes.vip",
                            "cases": [{"value": True, "goto": "a"}, {"value": "1", "goto": "b"}],
                        }
                    ]
                }
            }
        }
    )

    cases = config.flows["main"].steps[0].cases
    assert cases[0].value is True
    assert cases[1].value == "1"


@pytest.mark.parametrize(
    "body",
    [{}, {"goto": "a", "steps": []}],
)
def test_body_needs_exactly_one_target(body):
    with pytest.raises(ValidationError, match="exactly one"):
        BodyConfig.model_validate(body)


def test_unknown_step_type():
    with pytest.raises(ValidationError):
        FlowsConfig.model_validate({"flows": {"main": {"steps": [{"type": "teleport"}]}}})


def test_unknown_step_field():
    with pytest.raises(ValidationError):
        FlowsConfig.model_validate(
            {"flows": {"main": {"steps": [{"type": "prompt", "text": "Hi", "volume": 11}]}}}
        )


def test_unknown_fallback_name():
    with pytest.raises(ValidationError):
        FlowsConfig.model_validate(
            {"flows": {"main": {"steps": [{"type": "ask", "text": "Hi", "fallback": ["bored"]}]}}}
        )


def test_unsupported_version():
    with pytest.raises(ValueError, match="Unsupported DSL version"):
        FlowsConfig.model_validate({"version": "2.0"})


class TestCompilerSettings:
    def test_defaults(self):
        settings = CompilerSettings()

        assert settings.flow_version == "2019-10-30"
        assert settings.strict is False
        assert settings.indent == 2
        assert settings.max_actions == 250

    @pytest.mark.parametrize("max_actions", [0, 251])
    def test_max_actions_is_bounded(self, max_actions):
        with pytest.raises(ValidationError):
            CompilerSettings(max_actions=max_actions)

    def test_negative_indent(self):
        with pytest.raises(ValidationError):
            CompilerSettings(indent=-1)
