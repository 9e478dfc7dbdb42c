"""JSON schemas for response bodies checked by the suites."""

from typing import Any

from jsonschema import Draft202012Validator


_ASSET_ENTRY = {
    "type": "object",
    "properties": {
        "enabled": {"type": "boolean"},
        "min_amount": {"type": "number"},
        "max_amount": {"type": "number"},
        "fee_fixed": {"type": "number"},
        "fee_percent": {"type": "number"},
    },
    "required": ["enabled"],
}

SEP24_INFO_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "deposit": {"type": "object", "additionalProperties": _ASSET_ENTRY},
        "withdraw": {"type": "object", "additionalProperties": _ASSET_ENTRY},
        "fee": {
            "type": "object",
            "properties": {"enabled": {"type": "boolean"}},
            "required": ["enabled"],
        },
        "features": {
            "type": "object",
            "properties": {
                "account_creation": {"type": "boolean"},
                "claimable_balances": {"type": "boolean"},
            },
        },
    },
    "required": ["deposit", "withdraw", "fee"],
}


def schema_errors(instance: Any, schema: dict[str, Any]) -> list[str]:
    """Validate ``instance`` and return one message per violation, ordered by location."""
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: list(map(str, e.absolute_path)))
    messages = []
    for error in errors:
        location = "/" + "/".join(str(p) for p in error.absolute_path)
        messages.append(f"{location}: {error.message}")
    return messages
