"""Placeholder substitution for step prompts.

Prompts reference earlier step outputs (and workflow inputs) with ``{{key}}``
tokens. Keys are matched literally and case-sensitively. Substitution is a
single pass over the template, so text inserted for one placeholder is never
scanned for further placeholders. Tokens without a matching key are left
untouched.
"""

from __future__ import annotations

import logging
import re
from typing import Any, List, Mapping, Tuple

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{([^{}]+)\}\}")


def find_placeholders(template: str) -> List[str]:
    """Return placeholder keys in order of first appearance."""
    seen: dict[str, None] = {}
    for match in PLACEHOLDER_PATTERN.finditer(template):
        seen.setdefault(match.group(1), None)
    return list(seen)


def resolve(template: str, context: Mapping[str, Any]) -> str:
    """Replace every ``{{key}}`` in ``template`` with ``context[key]``."""

    def _substitute(match: re.Match[str]) -> str:
        key = match.group(1)
        if key in context:
            return str(context[key])
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(_substitute, template)


class CompiledTemplate:
    """A prompt template whose placeholder set is computed once."""

    __slots__ = ("source", "placeholders")

    def __init__(self, source: str) -> None:
        self.source = source
        self.placeholders: Tuple[str, ...] = tuple(find_placeholders(source))

    def missing(self, context: Mapping[str, Any]) -> List[str]:
        """Placeholders that ``context`` does not provide."""
        return [key for key in self.placeholders if key not in context]

    def resolve(self, context: Mapping[str, Any]) -> str:
        if not self.placeholders:
            return self.source
        missing = self.missing(context)
        if missing:
            logger.debug(f"Leaving unresolved placeholders as-is: {missing}")
        if len(missing) == len(self.placeholders):
            return self.source
        return resolve(self.source, context)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CompiledTemplate):
            return NotImplemented
        return self.source == other.source

    def __hash__(self) -> int:
        return hash(self.source)

    def __repr__(self) -> str:
        return f"CompiledTemplate(placeholders={list(self.placeholders)!r})"
