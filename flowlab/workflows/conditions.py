"""
If/else condition evaluation against a simulated contact record.

A condition is a descriptor (fieldExists / fieldEquals,
optionally negated), never an expression to parse.  evaluate() is total:
malformed or unknown descriptors evaluate to False and it is up to the
caller to report them (see is_known_condition()).
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from flowlab.types import Condition, ConditionType

ConditionLike = Union[Condition, Mapping[str, Any], None]

_KNOWN_KINDS = frozenset(t.value for t in ConditionType)


def normalize_value(value: Any) -> str:
    """
    Canonical string form used for every equality comparison in the engine.

    Booleans render as "true"/"false", integral floats drop the ".0",
    None renders as "", and surrounding whitespace is trimmed.  Comparison
    stays case-sensitive.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def is_blank(value: Any) -> bool:
    """True for None and for strings that are empty after trimming."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def parse_condition(condition: ConditionLike) -> Optional[Condition]:
    """Coerce a raw descriptor into a Condition, or None if it is malformed."""
    if isinstance(condition, Condition):
        return condition
    if not isinstance(condition, Mapping):
        return None
    try:
        return Condition.model_validate(dict(condition))
    except ValidationError:
        return None


def is_known_condition(condition: ConditionLike) -> bool:
    """True when evaluate() understands this descriptor."""
    parsed = parse_condition(condition)
    return parsed is not None and parsed.type in _KNOWN_KINDS and bool(parsed.field)


def evaluate(condition: ConditionLike, record: Mapping[str, Any]) -> bool:
    """
    Evaluate a condition descriptor against a record.  Never raises.

    Args:
        condition: Condition model or raw mapping, e.g.
                   {"type": "fieldExists", "field": "phone"}
        record:    Contact attributes, e.g. {"phone": "+15551234"}

    Returns:
        bool result; False for unknown or malformed descriptors (negate is
        not applied to those).
    """
    if not is_known_condition(condition):
        return False
    parsed = parse_condition(condition)
    record = record or {}

    if parsed.type == ConditionType.FIELD_EXISTS.value:
        result = parsed.field in record and not is_blank(record[parsed.field])
    else:
        result = (
            parsed.field in record
            and record[parsed.field] is not None
            and normalize_value(record[parsed.field]) == normalize_value(parsed.value)
        )

    return not result if parsed.negate else result
