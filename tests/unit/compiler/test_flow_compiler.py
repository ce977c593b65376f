"""Tests for FlowCompiler, the declarative front-end."""

import json

import pytest

from ivrflow.compiler import FlowCompiler
from ivrflow.config import ConfigLoader, FlowsConfig
from ivrflow.core.constants import ActionKind, ComparisonOperator, ErrorKind
from ivrflow.core.errors import ConfigError, FlowValidationError
from ivrflow.core.types import NodeRef
from ivrflow.validation.issues import IssueCode


@pytest.fixture
def simple_config() -> FlowsConfig:
    """Two small flows built from a plain dict."""
    return FlowsConfig.model_validate(
        {
            "version": "1.0",
            "flows": {
                "main": {
                    "steps": [
                        {"type": "prompt", "text": "Welcome"},
                        {
                            "type": "branch",
                            "attribute": "$.Attributes.choice",
                            "cases": [
                                {"value": "1", "steps": [{"type": "transfer", "queue": "sales"}]}
                            ],
                            "otherwise": {"steps": []},
                        },
                        {"type": "disconnect"},
                    ]
                },
                "alpha": {"steps": [{"type": "disconnect"}]},
            },
        }
    )


def test_compile_flow_matches_fluent_shape(simple_config):
    """Test the declarative branch scenario compiles to the expected graph."""
    # Arrange
    compiler = FlowCompiler(simple_config)

    # Act
    graph = compiler.compile_flow("main")

    # Assert
    assert list(graph.nodes) == ["prompt-001", "branch-002", "transfer-003", "disconnect-004"]
    assert graph["branch-002"].transitions.next == NodeRef.to_node("disconnect-004")
    assert graph["branch-002"].transitions.conditions[0].target == NodeRef.to_node(
        "transfer-003"
    )


def test_unknown_flow(simple_config):
    with pytest.raises(KeyError, match="not found"):
        FlowCompiler(simple_config).compile_flow("missing")


def test_compile_all_is_sorted(simple_config):
    documents = FlowCompiler(simple_config).compile_all()

    assert list(documents) == ["alpha", "main"]
    assert json.loads(documents["alpha"])["StartAction"] == "disconnect-001"


def test_settings_drive_serializer():
    config = ConfigLoader.load_string(
        """
settings:
  flow_version: "2024-01-01"
  indent: null
flows:
  main:
    steps:
      - type: disconnect
"""
    )

    text = FlowCompiler(config).render("main")

    assert "\n" not in text.rstrip("\n")
    assert json.loads(text)["Version"] == "2024-01-01"


def test_strict_setting_promotes_warnings():
    config = ConfigLoader.load_string(
        """
settings:
  strict: true
flows:
  main:
    steps:
      - type: branch
        attribute: $.Attributes.x
        cases:
          - value: 1
            steps: [{type: disconnect}]
"""
    )

    with pytest.raises(FlowValidationError) as exc_info:
        FlowCompiler(config).compile_flow("main")

    assert exc_info.value.report.codes() == [IssueCode.BRANCH_WITHOUT_OTHERWISE]


def test_usage_errors_become_config_errors_with_location():
    """Test call-site errors name the flow and step that caused them."""
    # Arrange
    config = ConfigLoader.load_string(
        """
flows:
  main:
    steps:
      - {type: prompt, id: hello, text: Hi}
      - {type: prompt, id: hello, text: Hi again}
"""
    )

    # Act & Assert
    with pytest.raises(ConfigError, match=r"main, step 2 \('hello'\): Label 'hello'"):
        FlowCompiler(config).compile_flow("main")


def test_nested_errors_report_inner_location():
    config = ConfigLoader.load_string(
        """
flows:
  main:
    steps:
      - type: branch
        attribute: $.Attributes.x
        cases:
          - value: 1
            steps:
              - {type: set_queue, queue: " "}
        otherwise: {steps: []}
"""
    )

    with pytest.raises(ConfigError, match="case '1', step 1 \\('set_queue'\\)"):
        FlowCompiler(config).compile_flow("main")


def test_every_step_type_lowers():
    """Test each step type produces the matching action kind."""
    # Arrange
    config = ConfigLoader.load_string(
        """
flows:
  main:
    steps:
      - {type: set_voice, voice: Joanna}
      - {type: set_attributes, attributes: {vip: true, tries: 0}}
      - type: invoke
        function_arn: arn:fn
        inputs: {account: $.Attributes.account}
        on_error: {error: failed}
      - type: input
        text: Press 1
        digits:
          - {value: 1, goto: queue}
          - {value: 5, operator: GreaterThan, goto: queue}
      - type: ask
        text: Say something
        fallback: [timeout]
        dtmf_id: keypad
      - type: check_hours
        open: {goto: queue}
        closed: {steps: [{type: transfer_to_flow, flow: arn:flow}]}
      - {type: set_queue, id: queue, queue: arn:queue}
      - {type: transfer, on_error: {queue_at_capacity: failed}}
      - {type: prompt, id: failed, text: Sorry}
      - {type: goto, target: keypad}
"""
    )

    # Act
    graph = FlowCompiler(config).compile_flow("main")

    # Assert
    assert [node.kind for node in graph] == [
        ActionKind.SET_VOICE,
        ActionKind.SET_ATTRIBUTES,
        ActionKind.INVOKE,
        ActionKind.INPUT,
        ActionKind.SPEECH_INPUT,
        ActionKind.INPUT,
        ActionKind.CHECK_HOURS,
        ActionKind.TRANSFER_TO_FLOW,
        ActionKind.SET_QUEUE,
        ActionKind.TRANSFER,
        ActionKind.PROMPT,
    ]
    digits = graph["input-004"].transitions.conditions
    assert digits[1].operator is ComparisonOperator.GREATER_THAN
    assert digits[1].operands == ("5",)
    assert [e.error for e in graph["speech-005"].transitions.errors] == [ErrorKind.TIMEOUT]
    assert graph["prompt-011"].transitions.next == NodeRef.to_node("input-006")
