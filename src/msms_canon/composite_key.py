"""Composite assignment keys emitted by the multi-scale map sampler.

A key is a stringified list of one or two names, e.g. ``["Kent"]`` for a whole
region or ``["Kent", "Ward 3"]`` for one precinct inside it.

Accepted grammar (no escaping)::

    key        := [open] body [close]
    body       := "" | component (split component)*
    split      := quote separator quote          # '", "'
    component  := any text; quote characters are deleted

A component that itself contains the split pattern cannot be represented; it
is split into extra components and the key then reads as malformed.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, TypeAlias

from msms_canon.errors import CompositeKeyError

KeyKind: TypeAlias = Literal["region", "precinct", "malformed"]


@dataclass(frozen=True, slots=True)
class KeyGrammar:
    """Delimiters of the composite-key language."""

    open_bracket: str = "["
    close_bracket: str = "]"
    quote: str = '"'
    separator: str = ", "

    def __post_init__(self) -> None:
        for name in ("open_bracket", "close_bracket", "quote", "separator"):
            if not getattr(self, name):
                raise ValueError(f"{name} cannot be empty")

    @property
    def split_pattern(self) -> str:
        return f"{self.quote}{self.separator}{self.quote}"


DEFAULT_GRAMMAR = KeyGrammar()


def parse_composite_key(text: str, grammar: KeyGrammar = DEFAULT_GRAMMAR) -> list[str]:
    """Split a composite key into its name components.

    One leading open bracket and one trailing close bracket are removed when
    present. An empty body gives ``[]``. The result length is not checked
    here; see ``classify_key``.
    """
    body = text
    if body.startswith(grammar.open_bracket):
        body = body[len(grammar.open_bracket):]
    if body.endswith(grammar.close_bracket):
        body = body[: -len(grammar.close_bracket)]
    if not body:
        return []
    return [token.replace(grammar.quote, "") for token in body.split(grammar.split_pattern)]


def classify_key(components: list[str]) -> KeyKind:
    if len(components) == 1:
        return "region"
    if len(components) == 2:
        return "precinct"
    return "malformed"


def parse_composite_key_strict(
    text: str, grammar: KeyGrammar = DEFAULT_GRAMMAR,
) -> list[str]:
    """Like ``parse_composite_key`` but rejects keys outside the grammar."""
    if not (text.startswith(grammar.open_bracket) and text.endswith(grammar.close_bracket)):
        raise CompositeKeyError(f"Composite key {text!r} is not bracketed")
    components = parse_composite_key(text, grammar)
    if classify_key(components) == "malformed":
        raise CompositeKeyError(
            f"Composite key {text!r} has {len(components)} components, expected 1 or 2"
        )
    return components


def format_composite_key(
    components: list[str], grammar: KeyGrammar = DEFAULT_GRAMMAR,
) -> str:
    """Render components the way the sampler writes them."""
    for component in components:
        if grammar.quote in component:
            raise CompositeKeyError(
                f"Component {component!r} cannot be written without escaping"
            )
    quoted = grammar.separator.join(f"{grammar.quote}{c}{grammar.quote}" for c in components)
    return f"{grammar.open_bracket}{quoted}{grammar.close_bracket}"
