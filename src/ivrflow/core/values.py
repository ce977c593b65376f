"""Conversion of Python values to the runtime's string form.

The runtime compares everything as text, so case values and parameter values
go through the same rules:

    True  -> "True"
    False -> "False"
    42    -> "42"
    1.5   -> "1.5"
    "abc" -> "abc"

Numbers are formatted with ``repr``/``str``, which never consult the locale.
"""

import math
import re
from decimal import Decimal
from enum import Enum
from typing import Any

from ivrflow.core.errors import UsageError

ScalarValue = str | bool | int | float | Decimal

_ATTRIBUTE_REF = re.compile(r"^\$(\.[A-Za-z0-9_\-]+)+$")


def to_runtime_string(value: Any) -> str:
    """Convert a scalar to the string the runtime expects.

    Args:
        value: str, bool, int, float or Decimal

    Returns:
        Runtime string form of the value

    Raises:
        UsageError: If the value has any other type
    """
    if isinstance(value, Enum):
        value = value.value
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise UsageError(f"Non-finite number {value!r} has no runtime string form")
        return repr(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise UsageError(f"Non-finite number {value!r} has no runtime string form")
        return str(value)
    raise UsageError(
        f"Unsupported value type '{type(value).__name__}' ({value!r}); "
        "expected str, bool, int, float or Decimal"
    )


def check_scalar(value: Any) -> ScalarValue:
    """Validate that a value can be stringified, returning it unchanged."""
    to_runtime_string(value)
    return value  # type: ignore[no-any-return]


def check_attribute_ref(ref: Any) -> str:
    """Validate the shape of an attribute reference such as ``$.Attributes.tier``.

    Only the syntax is checked; what the path points to is the runtime's concern.

    Raises:
        UsageError: If the reference is not a ``$.``-rooted dotted path
    """
    if not isinstance(ref, str) or not _ATTRIBUTE_REF.match(ref):
        raise UsageError(
            f"Malformed attribute reference {ref!r}; expected a path like '$.Attributes.name'"
        )
    return ref
