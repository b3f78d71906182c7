# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
"""The pattern grammar.

A pattern is a whitespace-separated list of terms, compiled into press/release tokens:

    vd              vd-press vd-release
    vd-press        vd-press
    vd(vu)          vd-press vu-press vu-release vd-release
    vd()            same as vd

Button names are the short names from the button table; matching is case-insensitive.
"""
import re
import typing

from ..commontypes import GrammarError
from ..device.buttons import BUTTONS_BY_SHORT_NAME
from ..device.hwtypes import Edge

TERM_MATCHER = re.compile(r"([a-z0-9]+)(?:-(press|release))?")


def make_token(short_name: str, edge: Edge) -> str:
    return f"{short_name}-{edge.value}"


def split_token(token: str) -> tuple[str, Edge]:
    short_name, _, edge = token.rpartition("-")
    return short_name, Edge(edge)


def _find_close(text: str, open_index: int, end: int) -> int:
    depth = 0
    for index in range(open_index, end):
        if text[index] == "(":
            depth += 1
        elif text[index] == ")":
            depth -= 1
            if depth == 0:
                return index
    raise GrammarError(f"Unmatched '(' at position {open_index} in {text!r}")


def _parse_span(text: str, start: int, end: int) -> list[str]:
    tokens = []
    pos = start
    while pos < end:
        if text[pos].isspace():
            pos += 1
            continue
        if text[pos] == ")":
            raise GrammarError(f"Unmatched ')' at position {pos} in {text!r}")
        match = TERM_MATCHER.match(text, pos, end)
        if match is None:
            raise GrammarError(f"Unexpected {text[pos]!r} at position {pos} in {text!r}")
        short_name, explicit_edge = match.groups()
        if short_name not in BUTTONS_BY_SHORT_NAME:
            raise GrammarError(f"Unknown button {short_name!r} in {text!r}")
        pos = match.end()
        if explicit_edge is not None:
            if pos < end and text[pos] == "(":
                raise GrammarError(f"{short_name}-{explicit_edge} cannot open a group in {text!r}")
            tokens.append(make_token(short_name, Edge(explicit_edge)))
            continue
        tokens.append(make_token(short_name, Edge.PRESS))
        if pos < end and text[pos] == "(":
            close = _find_close(text, pos, end)
            tokens.extend(_parse_span(text, pos + 1, close))
            pos = close + 1
        tokens.append(make_token(short_name, Edge.RELEASE))
    return tokens


def parse(pattern_text: str) -> tuple[str, ...]:
    text = pattern_text.lower()
    return tuple(_parse_span(text, 0, len(text)))


def _find_release(items: list[tuple[str, Edge]], press_index: int, end: int) -> typing.Optional[int]:
    "Index of the release closing the press at press_index, or None if the events in between don't nest."
    short_name = items[press_index][0]
    held = []
    for index in range(press_index + 1, end):
        name, edge = items[index]
        if edge is Edge.PRESS:
            held.append(name)
        elif held and held[-1] == name:
            held.pop()
        elif not held and name == short_name:
            return index
        else:
            return None
    return None


def _condense_span(items: list[tuple[str, Edge]], start: int, end: int) -> list[str]:
    terms = []
    index = start
    while index < end:
        name, edge = items[index]
        if edge is Edge.PRESS:
            close = _find_release(items, index, end)
            if close is not None:
                inner = _condense_span(items, index + 1, close)
                terms.append(f"{name}({' '.join(inner)})" if inner else name)
                index = close + 1
                continue
        terms.append(make_token(name, edge))
        index += 1
    return terms


def condense(tokens: typing.Iterable[str]) -> str:
    """Render tokens as pattern text, using clicks and groups wherever the events nest.

    parse(condense(tokens)) always gives back the same tokens.
    """
    items = [split_token(token) for token in tokens]
    return " ".join(_condense_span(items, 0, len(items)))
