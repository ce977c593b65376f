"""Serializer that renders a ``FlowGraph`` as a flow-language document."""

import json
import logging
from typing import Any

from ivrflow.core.constants import FLOW_LANGUAGE_VERSION
from ivrflow.core.errors import SerializationError
from ivrflow.core.kinds import KIND_SPECS
from ivrflow.core.types import ActionNode, FlowGraph, NodeRef
from ivrflow.core.values import to_runtime_string

logger = logging.getLogger(__name__)


class FlowSerializer:
    """Renders flow graphs deterministically.

    Actions are written in creation order and parameters in insertion order,
    so the same program always produces byte-identical output.
    """

    def __init__(self, version: str = FLOW_LANGUAGE_VERSION, indent: int | None = 2):
        """
        Initialize FlowSerializer.

        Args:
            version: Value of the document's ``Version`` field
            indent: JSON indentation; ``None`` for a compact single line
        """
        self.version = version
        self.indent = indent

    def to_document(self, graph: FlowGraph) -> dict[str, Any]:
        """
        Convert a graph to the document structure.

        Args:
            graph: Validated flow graph

        Returns:
            Dictionary ready for ``json.dumps``

        Raises:
            SerializationError: If the graph references unknown actions or kinds
        """
        if graph.start_id not in graph.nodes:
            raise SerializationError(f"Start action '{graph.start_id}' is not in the graph")

        actions = [self._render_action(node, graph) for node in graph.nodes.values()]
        logger.debug(f"Serialized flow '{graph.name}' with {len(actions)} actions")
        return {
            "Version": self.version,
            "StartAction": graph.start_id,
            "Actions": actions,
        }

    def to_json(self, graph: FlowGraph) -> str:
        """Render a graph as JSON text ending with a newline."""
        document = self.to_document(graph)
        return json.dumps(document, indent=self.indent, ensure_ascii=False) + "\n"

    def _render_action(self, node: ActionNode, graph: FlowGraph) -> dict[str, Any]:
        spec = KIND_SPECS.get(node.kind)
        if spec is None:
            raise SerializationError(f"Action '{node.id}' has unsupported kind {node.kind!r}")

        transitions: dict[str, Any] = {}
        if node.transitions.next is not None:
            transitions["NextAction"] = self._target(node.transitions.next, node, graph)
        transitions["Conditions"] = [
            {
                "NextAction": self._target(condition.target, node, graph),
                "Condition": {
                    "Operator": condition.operator.value,
                    "Operands": list(condition.operands),
                },
            }
            for condition in node.transitions.conditions
        ]
        transitions["Errors"] = [
            {
                "NextAction": self._target(error.target, node, graph),
                "ErrorType": error.error.value,
            }
            for error in node.transitions.errors
        ]

        return {
            "Identifier": node.id,
            "Type": spec.type_name,
            "Parameters": {key: to_runtime_string(value) for key, value in node.parameters.items()},
            "Transitions": transitions,
        }

    def _target(self, ref: NodeRef, node: ActionNode, graph: FlowGraph) -> str:
        if ref.node_id is None or ref.node_id not in graph.nodes:
            raise SerializationError(
                f"Action '{node.id}' has a transition to unknown target '{ref}'"
            )
        return ref.node_id
