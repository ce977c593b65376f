"""Observability helpers for ivrflow."""

from ivrflow.observability.logging import setup_logging

__all__ = ["setup_logging"]
