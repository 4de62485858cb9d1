"""JSON output helper tests."""

import pytest

from loomflow.errors import SchemaError
from loomflow.utils.json_output import (
    normalize_json_output,
    parse_json_output,
    strip_code_fences,
)


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'


def test_parse_and_normalize_json_output():
    assert parse_json_output('```\n[1, 2]\n```') == [1, 2]
    assert normalize_json_output('{\n  "b": "é"\n}') == '{"b": "é"}'


def test_invalid_json_output_is_schema_error():
    with pytest.raises(SchemaError):
        parse_json_output("Sure! Here is the JSON you asked for")
