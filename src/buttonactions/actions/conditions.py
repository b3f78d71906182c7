# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import logging
import re
import typing

from ..host import ConditionQueryFailure, HostState
from .types import (
    Always,
    AnyForegroundApp,
    Condition,
    ForegroundAppMatches,
    Home,
    IsAndroidLayer,
    NoForegroundApp,
    ScreenLocked,
    ScreenUnlocked,
    WindowTitleMatches,
)

logger = logging.getLogger(__name__)

ANDROID_COMMAND_PATTERN = r"^/system/|alien"

_UNSET = object()


class ConditionContext:
    """Evaluates conditions against one snapshot of host state.

    Each host query runs at most once per context; make a new context for every dispatch cycle.
    If the screen lock query fails the screen counts as unlocked. If a foreground or title
    query fails, any condition that needs it is false.
    """

    def __init__(self, host: HostState, android_command_pattern: str = ANDROID_COMMAND_PATTERN):
        self.host = host
        self.android_command_pattern = android_command_pattern
        self._screen_locked = _UNSET
        self._foreground = _UNSET
        self._title = _UNSET

    async def screen_locked(self) -> bool:
        if self._screen_locked is _UNSET:
            try:
                self._screen_locked = await self.host.is_screen_locked()
            except ConditionQueryFailure:
                logger.warning("Unable to query screen lock; assuming unlocked", exc_info=True)
                self._screen_locked = False
        return self._screen_locked

    async def foreground(self) -> typing.Optional[str]:
        if self._foreground is _UNSET:
            try:
                self._foreground = await self.host.foreground_window_command()
            except ConditionQueryFailure as exc:
                logger.warning("Unable to query foreground window", exc_info=True)
                self._foreground = exc
        if isinstance(self._foreground, ConditionQueryFailure):
            raise self._foreground
        return self._foreground

    async def title(self) -> typing.Optional[str]:
        if self._title is _UNSET:
            try:
                self._title = await self.host.last_window_title()
            except ConditionQueryFailure as exc:
                logger.warning("Unable to query window title", exc_info=True)
                self._title = exc
        if isinstance(self._title, ConditionQueryFailure):
            raise self._title
        return self._title

    async def _evaluate(self, condition: Condition) -> bool:
        match condition:
            case Always():
                return True
            case ScreenLocked():
                return await self.screen_locked()
            case ScreenUnlocked():
                return not await self.screen_locked()
            case ForegroundAppMatches(regex=regex):
                command = await self.foreground()
                return command is not None and re.search(regex, command) is not None
            case Home():
                return not await self.screen_locked() and await self.foreground() is None
            case NoForegroundApp():
                return await self.foreground() is None
            case AnyForegroundApp():
                return await self.foreground() is not None
            case IsAndroidLayer():
                command = await self.foreground()
                return command is not None and re.search(self.android_command_pattern, command) is not None
            case WindowTitleMatches(regex=regex):
                title = await self.title()
                return title is not None and re.search(regex, title) is not None
            case _:
                raise NotImplementedError(f"Don't know how to evaluate {condition!r}")

    async def evaluate(self, condition: Condition) -> bool:
        try:
            return await self._evaluate(condition)
        except ConditionQueryFailure:
            return False
