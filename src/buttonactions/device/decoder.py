# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
import typing

from .buttons import BUTTONS_BY_RAW_ID
from .hwtypes import ButtonEvent, Edge, RawTransition


class Decoder:
    last_timestamp: typing.Optional[float]

    def __init__(self):
        self.last_timestamp = None

    def _elapsed_millis(self, timestamp: float) -> int:
        if self.last_timestamp is None:
            return 0
        return max(0, round((timestamp - self.last_timestamp) * 1000))

    def decode(self, raw: RawTransition) -> tuple[ButtonEvent, ...]:
        button = BUTTONS_BY_RAW_ID.get(raw.identifier)
        if button is None:
            # plenty of unrelated codes come through the same devices
            return ()
        elapsed_millis = self._elapsed_millis(raw.timestamp)
        self.last_timestamp = raw.timestamp
        if raw.value is None:
            return (
                ButtonEvent(button=button, edge=Edge.PRESS, elapsed_millis=elapsed_millis),
                ButtonEvent(button=button, edge=Edge.RELEASE, elapsed_millis=elapsed_millis),
            )
        edge = Edge.PRESS if raw.value != 0 else Edge.RELEASE
        return (ButtonEvent(button=button, edge=edge, elapsed_millis=elapsed_millis),)
