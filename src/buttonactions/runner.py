# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import collections.abc
import logging
import subprocess
import typing

import trio

from .actions.types import Action, Builtin, BuiltinAction, RepeatCommand, ShellCommand

logger = logging.getLogger(__name__)


class Runner(typing.Protocol):
    def execute(self, action: Action) -> None: ...


class CommandRunner:
    "Starts each action's shell command in the background; nobody waits for it to finish."

    def __init__(self, nursery: trio.Nursery, builtin_commands: collections.abc.Mapping[BuiltinAction, str]):
        self.nursery = nursery
        self.builtin_commands = builtin_commands

    def command_for(self, action: Action) -> typing.Optional[str]:
        match action.kind:
            case ShellCommand(command=command):
                return command
            case RepeatCommand(command=command):
                return command
            case Builtin(action=builtin):
                return self.builtin_commands.get(builtin)
            case _:
                raise NotImplementedError(f"Don't know how to run {action.kind!r}")

    def execute(self, action: Action):
        command = self.command_for(action)
        if command is None:
            logger.error("No command configured for %s", action.action_text)
            return
        self.nursery.start_soon(self._spawn, command)

    async def _spawn(self, command: str):
        logger.debug("Running %r", command)
        try:
            proc = await trio.run_process(command, shell=True, check=False, stdin=subprocess.DEVNULL)
        except OSError:
            logger.exception("Unable to run %r", command)
            return
        if proc.returncode != 0:
            logger.warning("%r exited with status %d", command, proc.returncode)
