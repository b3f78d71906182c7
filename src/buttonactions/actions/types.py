# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import enum
import typing

import msgspec

from ..device.hwtypes import Edge
from ..patterns.grammar import condense, make_token, split_token


@enum.unique
class BuiltinAction(enum.Enum):
    TOGGLE_FLASHLIGHT = "toggle-flashlight"
    SCREENSHOT = "screenshot"
    REBOOT = "reboot"
    SHUTDOWN = "shutdown"
    OPEN_CAMERA = "open-camera"
    OPEN_CAMERA_SELFIE = "open-camera-selfie"
    NEW_ALARM = "new-alarm"
    NEW_NOTE = "new-note"
    WRITE_EMAIL = "write-email"


class ShellCommand(msgspec.Struct, frozen=True, tag=True):
    command: str


class RepeatCommand(msgspec.Struct, frozen=True, tag=True):
    interval_millis: int
    command: str


class Builtin(msgspec.Struct, frozen=True, tag=True):
    action: BuiltinAction


ActionKind = ShellCommand | RepeatCommand | Builtin


class Always(msgspec.Struct, frozen=True, tag=True):
    pass


class ScreenLocked(msgspec.Struct, frozen=True, tag=True):
    pass


class ScreenUnlocked(msgspec.Struct, frozen=True, tag=True):
    pass


class ForegroundAppMatches(msgspec.Struct, frozen=True, tag=True):
    regex: str


class Home(msgspec.Struct, frozen=True, tag=True):
    pass


class NoForegroundApp(msgspec.Struct, frozen=True, tag=True):
    pass


class AnyForegroundApp(msgspec.Struct, frozen=True, tag=True):
    pass


class IsAndroidLayer(msgspec.Struct, frozen=True, tag=True):
    pass


class WindowTitleMatches(msgspec.Struct, frozen=True, tag=True):
    regex: str


Condition = (
    Always
    | ScreenLocked
    | ScreenUnlocked
    | ForegroundAppMatches
    | Home
    | NoForegroundApp
    | AnyForegroundApp
    | IsAndroidLayer
    | WindowTitleMatches
)


class Action(msgspec.Struct, frozen=True, kw_only=True):
    action_text: str
    kind: ActionKind
    pattern: tuple[str, ...]
    condition: Condition
    condition_text: str

    @property
    def repeat_interval_millis(self) -> typing.Optional[int]:
        if isinstance(self.kind, RepeatCommand):
            return self.kind.interval_millis
        return None

    @property
    def hold_releases(self) -> tuple[str, ...]:
        "Release tokens for the buttons still held down once the whole pattern has happened."
        held = []
        for token in self.pattern:
            short_name, edge = split_token(token)
            if edge is Edge.PRESS:
                held.append(short_name)
            elif short_name in held:
                held.remove(short_name)
        return tuple(make_token(short_name, Edge.RELEASE) for short_name in held)

    def sort_key(self):
        return (-len(self.pattern), self.action_text, self.condition_text)

    def __str__(self):
        return f"action={self.action_text},{condense(self.pattern)},{self.condition_text}"
