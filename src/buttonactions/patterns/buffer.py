# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import collections.abc
import logging

from ..device.hwtypes import ButtonEvent, Edge
from .grammar import condense, make_token

logger = logging.getLogger(__name__)

PTRN_MAX_MILLIS = 350
PTRN_ACCIDENTAL_DOUBLE_MILLIS = 10


def trim_point(events: collections.abc.Sequence[ButtonEvent], max_millis: int) -> int:
    """Find where the live part of the buffer starts.

    The latest silence gap longer than max_millis with every button up wins. A press of a
    button that is already down, or a release of a button that is up, means we lost track
    of the hardware; everything up to and including that event is abandoned.
    """
    down = set()
    point = 0
    for index, event in enumerate(events):
        if not down and event.elapsed_millis > max_millis:
            point = index
        if event.edge is Edge.PRESS:
            if event.button in down:
                logger.warning("%s: press without release; abandoning %d buffered events", event.button.display_name, index + 1)
                point = index + 1
                down.clear()
                continue
            down.add(event.button)
        else:
            if event.button not in down:
                logger.warning("%s: release without press; abandoning %d buffered events", event.button.display_name, index + 1)
                point = index + 1
                down.clear()
                continue
            down.discard(event.button)
    return point


def trim(events: list[ButtonEvent], max_millis: int) -> list[ButtonEvent]:
    point = trim_point(events, max_millis)
    if point >= len(events):
        return []
    return events[point:]


def _is_chatter(first: ButtonEvent, middle: ButtonEvent, last: ButtonEvent, max_millis: int) -> bool:
    return (
        first.button == middle.button == last.button
        and first.edge is Edge.PRESS
        and middle.edge is Edge.RELEASE
        and last.edge is Edge.PRESS
        and middle.elapsed_millis <= max_millis
        and last.elapsed_millis <= max_millis
    )


def debounce(events: list[ButtonEvent], max_millis: int) -> list[ButtonEvent]:
    "Drop the bogus release and re-press of a bouncing contact, keeping the original press."
    doomed = set()
    for index in range(len(events) - 2):
        if _is_chatter(*events[index : index + 3], max_millis):
            doomed.update((index + 1, index + 2))
    if not doomed:
        return events
    return [event for index, event in enumerate(events) if index not in doomed]


class PatternBuffer:
    events: list[ButtonEvent]

    def __init__(self, max_millis: int = PTRN_MAX_MILLIS, accidental_double_millis: int = PTRN_ACCIDENTAL_DOUBLE_MILLIS):
        self.max_millis = max_millis
        self.accidental_double_millis = accidental_double_millis
        self.events = []

    def __len__(self):
        return len(self.events)

    def __iter__(self):
        return iter(self.events)

    def append(self, event: ButtonEvent):
        self.events.append(event)
        self.events = trim(self.events, self.max_millis)
        # a new press can turn an earlier press/release into chatter, so this runs every time
        self.events = debounce(self.events, self.accidental_double_millis)

    def extend(self, events: collections.abc.Iterable[ButtonEvent]):
        for event in events:
            self.append(event)

    def clear(self):
        self.events = []

    def tokens(self) -> tuple[str, ...]:
        return tuple(event.token for event in self.events)

    def condensed(self) -> str:
        return condense(self.tokens())

    def held_releases(self) -> tuple[str, ...]:
        "Release tokens still to come for the buttons that are down at the end of the buffer."
        down = []
        for event in self.events:
            if event.edge is Edge.PRESS:
                down.append(event.button)
            elif event.button in down:
                down.remove(event.button)
        return tuple(make_token(button.short_name, Edge.RELEASE) for button in down)
