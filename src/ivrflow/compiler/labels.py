"""Label table: caller-assigned names bound to node ids."""

from ivrflow.core.errors import UsageError
from ivrflow.core.types import NodeRef


class LabelTable:
    """Names bound to node ids within one flow.

    Labels may be referenced before they are bound; references stay symbolic
    (``NodeRef.to_label``) until ``resolve`` runs at build time.
    """

    def __init__(self) -> None:
        self._bindings: dict[str, str] = {}

    def check_free(self, name: str) -> None:
        """Raise UsageError unless ``name`` is a valid, unbound label."""
        if not isinstance(name, str) or not name.strip():
            raise UsageError(f"Label name must be a non-empty string, got {name!r}")
        if name in self._bindings:
            raise UsageError(
                f"Label '{name}' is already bound to '{self._bindings[name]}' in this flow"
            )

    def bind(self, name: str, node_id: str) -> None:
        """Bind ``name`` to ``node_id``.

        Raises:
            UsageError: If the name is empty or already bound
        """
        self.check_free(name)
        self._bindings[name] = node_id

    def resolve(self, ref: NodeRef) -> NodeRef:
        """Return ``ref`` with its label replaced by the bound node id, if known."""
        if ref.is_resolved or ref.label is None:
            return ref
        node_id = self._bindings.get(ref.label)
        if node_id is None:
            return ref
        return NodeRef.to_node(node_id)

    def as_dict(self) -> dict[str, str]:
        return dict(self._bindings)

    def __contains__(self, name: object) -> bool:
        return name in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)
