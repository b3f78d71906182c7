# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
import collections.abc

from ..commontypes import MatchMode


def match_tokens(pattern: collections.abc.Sequence[str], tokens: collections.abc.Sequence[str], mode: MatchMode) -> bool:
    """Check whether pattern occurs in tokens as a contiguous run.

    ANYWHERE accepts the run at any position; END requires it to be the tail of tokens.
    An empty pattern never matches.
    """
    width = len(pattern)
    if width == 0 or width > len(tokens):
        return False
    pattern = tuple(pattern)
    tokens = tuple(tokens)
    match mode:
        case MatchMode.END:
            return tokens[-width:] == pattern
        case MatchMode.ANYWHERE:
            return any(tokens[start : start + width] == pattern for start in range(len(tokens) - width + 1))
