# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import enum
import typing

import msgspec

from ..commontypes import ButtonActionsError
from .buttons import Button


class HardwareError(ButtonActionsError):
    pass


class DeviceDisconnectedError(HardwareError):
    pass


class DeviceGrabError(HardwareError):
    pass


class Edge(enum.Enum):
    PRESS = "press"
    RELEASE = "release"


class ButtonEvent(msgspec.Struct, frozen=True):
    button: Button
    edge: Edge
    elapsed_millis: int = 0

    @property
    def token(self) -> str:
        return f"{self.button.short_name}-{self.edge.value}"

    @classmethod
    def pressed(cls, button: Button, elapsed_millis: int = 0):
        return cls(button=button, edge=Edge.PRESS, elapsed_millis=elapsed_millis)

    @classmethod
    def released(cls, button: Button, elapsed_millis: int = 0):
        return cls(button=button, edge=Edge.RELEASE, elapsed_millis=elapsed_millis)


class RawTransition(msgspec.Struct, frozen=True):
    """One transition as read from an input source.

    ``value`` follows evdev: nonzero means down, zero means up. Sources with no separate
    release signal send ``None`` for an atomic press-and-release. ``timestamp`` is
    monotonic seconds.
    """

    identifier: typing.Union[int, str]
    value: typing.Optional[int]
    timestamp: float
