"""Compiler settings.

Settings come from the ``settings:`` section of a flow definition file and
control validation strictness and output formatting.
"""

from pydantic import BaseModel, Field

from ivrflow.core.constants import FLOW_LANGUAGE_VERSION, MAX_ACTIONS


class CompilerSettings(BaseModel):
    """Global compiler settings."""

    flow_version: str = Field(
        default=FLOW_LANGUAGE_VERSION, description="Version written to every flow document"
    )
    strict: bool = Field(default=False, description="Treat semantic warnings as errors")
    indent: int | None = Field(
        default=2, ge=0, description="JSON indentation; null renders a single line"
    )
    max_actions: int = Field(
        default=MAX_ACTIONS,
        ge=1,
        le=MAX_ACTIONS,
        description=(
            "Maximum number of actions per flow. "
            f"Can be lowered but never raised above the runtime limit of {MAX_ACTIONS}"
        ),
    )
