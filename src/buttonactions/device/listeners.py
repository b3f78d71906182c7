# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import logging
import os
import pathlib
import time
import typing

import trio

from .deviceutil import EventDevice
from .hwtypes import DeviceDisconnectedError, DeviceGrabError, RawTransition

logger = logging.getLogger(__name__)

KEY_AUTOREPEAT = 2
REOPEN_DELAY = 1
VIRTUAL_LEVELS = {"down": 1, "up": 0}


class DeviceListener:
    """Feeds EV_KEY transitions from one evdev device into the raw transition channel.

    Timestamps are taken from the monotonic clock when a batch is read; inside a batch the
    kernel's own gaps between events are kept, since chatter is much faster than our wakeups.
    """

    def __init__(self, device_path: pathlib.Path, send_channel: trio.abc.SendChannel[RawTransition], grab: bool = False):
        self.device_path = device_path
        self.send_channel = send_channel
        self.grab = grab

    @staticmethod
    def stamp_batch(batch: list[tuple[int, int, float]], now: float) -> list[RawTransition]:
        if not batch:
            return []
        last_event_time = batch[-1][2]
        return [RawTransition(identifier=code, value=value, timestamp=now - (last_event_time - event_time)) for code, value, event_time in batch]

    def read_batch(self, device: EventDevice) -> list[tuple[int, int, float]]:
        import libevdev

        batch = []
        for evt in device.events():
            if not evt.matches(libevdev.EV_KEY):
                continue
            if evt.value == KEY_AUTOREPEAT:
                continue
            batch.append((evt.code.value, evt.value, evt.sec + evt.usec / 1_000_000))
        return batch

    async def _listen(self, device: EventDevice):
        while True:
            await trio.lowlevel.wait_readable(device.fileno())
            batch = self.read_batch(device)
            for transition in self.stamp_batch(batch, time.monotonic()):
                await self.send_channel.send(transition)

    async def run(self, *, task_status=trio.TASK_STATUS_IGNORED):
        async with self.send_channel:
            task_status.started()
            while True:
                try:
                    with EventDevice(self.device_path, grab=self.grab) as device:
                        logger.debug("Listening on %s", self.device_path)
                        await self._listen(device)
                except DeviceDisconnectedError:
                    logger.warning("%s went away; will retry", self.device_path)
                except DeviceGrabError:
                    logger.warning("Unable to grab %s; will retry", self.device_path)
                await trio.sleep(REOPEN_DELAY)


def parse_virtual_line(line: str, timestamp: float) -> typing.Optional[RawTransition]:
    """Parse one record from the virtual button fifo.

    ``<id>`` is a press-and-release; ``<id> down`` and ``<id> up`` send one level.
    Blank lines and ``#`` comments give None.
    """
    line = line.strip()
    if not line or line.startswith("#"):
        return None
    parts = line.split()
    if len(parts) == 1:
        return RawTransition(identifier=parts[0], value=None, timestamp=timestamp)
    if len(parts) == 2 and parts[1].lower() in VIRTUAL_LEVELS:
        return RawTransition(identifier=parts[0], value=VIRTUAL_LEVELS[parts[1].lower()], timestamp=timestamp)
    raise ValueError(f"Malformed virtual button record {line!r}")


class VirtualButtonFeed:
    "Reads virtual button records, one per line, from a named pipe."

    def __init__(self, fifo_path: pathlib.Path, send_channel: trio.abc.SendChannel[RawTransition]):
        self.fifo_path = fifo_path
        self.send_channel = send_channel

    async def handle_line(self, line: str):
        try:
            transition = parse_virtual_line(line, time.monotonic())
        except ValueError:
            logger.warning("Ignoring bad record from %s", self.fifo_path, exc_info=True)
            return
        if transition is not None:
            await self.send_channel.send(transition)

    async def pump(self, stream: trio.abc.ReceiveStream):
        pending = b""
        async for chunk in stream:
            pending += chunk
            *lines, pending = pending.split(b"\n")
            for line in lines:
                await self.handle_line(line.decode("utf-8", errors="replace"))

    async def run(self, *, task_status=trio.TASK_STATUS_IGNORED):
        async with self.send_channel:
            # opening read-write keeps the fifo from hitting EOF when writers come and go
            fd = os.open(self.fifo_path, os.O_RDWR | os.O_NONBLOCK)
            async with trio.lowlevel.FdStream(fd) as stream:
                logger.debug("Listening on %s", self.fifo_path)
                task_status.started()
                await self.pump(stream)
