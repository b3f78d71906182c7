# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import logging
import subprocess
import typing

import trio

from .commontypes import ButtonActionsError

if typing.TYPE_CHECKING:
    from .settings import Settings

logger = logging.getLogger(__name__)

LOCKED_WORDS = frozenset({"1", "true", "yes", "locked", "on"})


class ConditionQueryFailure(ButtonActionsError):
    pass


class HostState(typing.Protocol):
    async def is_screen_locked(self) -> bool: ...

    async def foreground_window_command(self) -> typing.Optional[str]: ...

    async def last_window_title(self) -> typing.Optional[str]: ...


class ShellHostState:
    """Answers host state questions by running the shell commands named in the settings.

    A command that isn't configured answers "unlocked" or "nothing in the foreground".
    """

    def __init__(self, settings: Settings):
        self.screen_locked_command = settings.screen_locked_command
        self.foreground_window_command_text = settings.foreground_window_command
        self.window_title_command = settings.window_title_command
        self.timeout = settings.query_timeout.total_seconds()

    async def _query(self, command: typing.Optional[str]) -> typing.Optional[str]:
        if command is None:
            return None
        try:
            with trio.fail_after(self.timeout):
                proc = await trio.run_process(command, shell=True, capture_stdout=True, stderr=subprocess.DEVNULL)
        except (OSError, subprocess.CalledProcessError, trio.TooSlowError) as exc:
            raise ConditionQueryFailure(f"Query {command!r} failed: {exc!r}") from exc
        output = proc.stdout.decode("utf-8", errors="replace").strip()
        return output or None

    async def is_screen_locked(self) -> bool:
        output = await self._query(self.screen_locked_command)
        return output is not None and output.lower() in LOCKED_WORDS

    async def foreground_window_command(self) -> typing.Optional[str]:
        return await self._query(self.foreground_window_command_text)

    async def last_window_title(self) -> typing.Optional[str]:
        return await self._query(self.window_title_command)
