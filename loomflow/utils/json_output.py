from __future__ import annotations

import json
from typing import Any

from ..errors import SchemaError


def strip_code_fences(raw_text: str) -> str:
    """Remove a surrounding markdown code fence (```json ... ```), if any."""
    content = raw_text.strip()
    if content.startswith("```"):
        content = content.split("\n", 1)[1] if "\n" in content else content[3:]
    if content.endswith("```"):
        content = content.rsplit("```", 1)[0]
    return content.strip()


def parse_json_output(raw_text: str) -> Any:
    """Parse JSON produced by a model.

    Models sometimes wrap JSON in markdown fences despite being told not to,
    so those are stripped first.

    Raises:
        SchemaError: If the text is not valid JSON.
    """
    try:
        return json.loads(strip_code_fences(raw_text))
    except json.JSONDecodeError as exc:
        raise SchemaError(f"Model output is not valid JSON: {exc.msg}") from exc


def normalize_json_output(raw_text: str) -> str:
    """Return the canonical JSON text of a model's JSON answer."""
    return json.dumps(parse_json_output(raw_text), ensure_ascii=False)
