# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import argparse
import json
import logging
import pathlib
import sys

import cattrs
import trio

from .actions.table import load_actions
from .commontypes import ButtonActionsError
from .device.hwtypes import RawTransition
from .device.listeners import DeviceListener, VirtualButtonFeed
from .dispatcher import Dispatcher
from .host import ShellHostState
from .patterns.buffer import PatternBuffer
from .runner import CommandRunner
from .settings import Settings

logger = logging.getLogger(__name__)

RAW_CHANNEL_SIZE = 64


async def start_feeds(settings: Settings, nursery: trio.Nursery) -> trio.MemoryReceiveChannel[RawTransition]:
    send_channel, receive_channel = trio.open_memory_channel[RawTransition](RAW_CHANNEL_SIZE)
    async with send_channel:
        for device_path in settings.input_devices:
            listener = DeviceListener(device_path, send_channel.clone(), grab=settings.grab_devices)
            await nursery.start(listener.run)
        if settings.virtual_button_fifo is not None:
            feed = VirtualButtonFeed(settings.resolve(settings.virtual_button_fifo), send_channel.clone())
            await nursery.start(feed.run)
    return receive_channel


async def start_buttonactions(settings: Settings):
    # compile before touching any device, so a bad config never runs half a table
    table = load_actions(settings.resolve(settings.actions_path))
    logger.info("Loaded %d actions", len(table))
    async with trio.open_nursery() as nursery:
        receive_channel = await start_feeds(settings, nursery)
        dispatcher = Dispatcher(
            table,
            PatternBuffer(settings.pattern_max_millis, settings.accidental_double_millis),
            host=ShellHostState(settings),
            runner=CommandRunner(nursery, settings.builtin_actions),
            android_command_pattern=settings.android_command_pattern,
        )
        await dispatcher.run(receive_channel)
        nursery.cancel_scope.cancel()


def load_settings(settings_path: pathlib.Path) -> Settings:
    try:
        return Settings.load(settings_path)
    except (OSError, json.JSONDecodeError, cattrs.BaseValidationError, ValueError) as exc:
        raise ButtonActionsError(f"Unable to load settings from {settings_path}: {exc}") from exc


parser = argparse.ArgumentParser(prog="buttonactions")
parser.add_argument("settings", type=pathlib.Path)
parser.add_argument("-v", "--verbose", action="store_true")


def main(argv=sys.argv):
    """
    Args:
        argv (list): List of arguments

    Returns:
        int: A return code
    """
    parsed = parser.parse_args(argv[1:])
    logging.basicConfig(level=logging.DEBUG if parsed.verbose else logging.INFO)
    try:
        settings = load_settings(parsed.settings)
        trio.run(start_buttonactions, settings)
    except ButtonActionsError as exc:
        print(f"buttonactions: {exc}", file=sys.stderr)
        return 1
    return 0
