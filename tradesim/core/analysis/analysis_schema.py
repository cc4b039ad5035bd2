from __future__ import annotations

ANALYSIS_REQUEST_JSON_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "array",
    "minItems": 1,
    "items": {
        "type": "object",
        "additionalProperties": False,
        "required": ["ticker", "shares", "averageCost", "industry"],
        "properties": {
            "ticker": {"type": "string", "minLength": 1},
            "shares": {"type": "integer", "minimum": 1},
            "averageCost": {"type": "number", "exclusiveMinimum": 0},
            "industry": {"type": "string", "minLength": 1},
        },
    },
}
