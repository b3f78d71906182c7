import argparse
import logging
import pathlib
import sys

import trio

from .actions.table import load_actions
from .app import load_settings, start_feeds
from .commontypes import ButtonActionsError
from .device.decoder import Decoder
from .patterns.buffer import PatternBuffer

check_parser = argparse.ArgumentParser(prog="buttonactions-check")
check_parser.add_argument("settings", type=pathlib.Path)


def check_cli():
    args = check_parser.parse_args()
    logging.basicConfig(level=logging.INFO)
    try:
        settings = load_settings(args.settings)
        table = load_actions(settings.resolve(settings.actions_path))
    except ButtonActionsError as exc:
        print(f"buttonactions-check: {exc}", file=sys.stderr)
        return 1
    for action in table:
        print(action)
    return 0


events_parser = argparse.ArgumentParser(prog="buttonactions-events")
events_parser.add_argument("settings", type=pathlib.Path)


def print_button_events():
    args = events_parser.parse_args()
    logging.basicConfig(level=logging.INFO)
    try:
        settings = load_settings(args.settings)
    except ButtonActionsError as exc:
        print(f"buttonactions-events: {exc}", file=sys.stderr)
        return 1

    async def runner():
        async with trio.open_nursery() as nursery:
            receive_channel = await start_feeds(settings, nursery)
            decoder = Decoder()
            buffer = PatternBuffer(settings.pattern_max_millis, settings.accidental_double_millis)
            async with receive_channel:
                async for raw in receive_channel:
                    for event in decoder.decode(raw):
                        buffer.append(event)
                        print(f"{event.button.display_name:20} {event.edge.value:8} +{event.elapsed_millis}ms  {buffer.condensed()}")
            nursery.cancel_scope.cancel()

    trio.run(runner)
    return 0
