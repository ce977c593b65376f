"""Flow document serialization."""

from ivrflow.serialization.serializer import FlowSerializer

__all__ = ["FlowSerializer"]
