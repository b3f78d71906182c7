# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import collections.abc
import enum
import logging
import math
import typing

import trio
import trio_util

from .actions.conditions import ANDROID_COMMAND_PATTERN, ConditionContext
from .actions.types import Action
from .commontypes import MatchMode
from .device.decoder import Decoder
from .device.hwtypes import ButtonEvent, Edge, RawTransition
from .patterns.buffer import PatternBuffer
from .patterns.grammar import make_token
from .patterns.matching import match_tokens

if typing.TYPE_CHECKING:
    from .host import HostState
    from .runner import Runner

logger = logging.getLogger(__name__)


class DispatchState(enum.Enum):
    IDLE = enum.auto()
    EVALUATING = enum.auto()
    ARMED = enum.auto()
    FIRED = enum.auto()
    REPEATING = enum.auto()


class Dispatcher:
    """Single-task reactor: decode, buffer, match, fire.

    Every wait goes through _next_events with a deadline: none while waiting for input,
    the silence threshold while a match is armed, the repeat interval while repeating.
    Events that arrive during a bounded wait are handed back to the main loop as ordinary input.

    Firing clears the buffer while buttons may still be down. Their releases are owed:
    whenever one turns up it is dropped instead of reaching the buffer.
    """

    state: trio_util.AsyncValue[DispatchState]
    owed_releases: set[str]
    _pending: tuple[ButtonEvent, ...]

    def __init__(
        self,
        table: collections.abc.Sequence[Action],
        buffer: PatternBuffer,
        host: HostState,
        runner: Runner,
        android_command_pattern: str = ANDROID_COMMAND_PATTERN,
    ):
        self.table = table
        self.buffer = buffer
        self.host = host
        self.runner = runner
        self.android_command_pattern = android_command_pattern
        self.decoder = Decoder()
        self.state = trio_util.AsyncValue(DispatchState.IDLE)
        self.owed_releases = set()
        self._pending = ()
        self._source = None

    @property
    def pattern_max_seconds(self) -> float:
        return self.buffer.max_millis / 1000

    def _drop_owed_releases(self, events: tuple[ButtonEvent, ...]) -> tuple[ButtonEvent, ...]:
        kept = []
        for event in events:
            release = make_token(event.button.short_name, Edge.RELEASE)
            if release in self.owed_releases:
                # a press here means the release went missing; either way nothing is owed now
                self.owed_releases.discard(release)
                if event.edge is Edge.RELEASE:
                    continue
            kept.append(event)
        return tuple(kept)

    async def _next_events(
        self, timeout: typing.Optional[float], until_released: collections.abc.Collection[str] = ()
    ) -> typing.Optional[tuple[ButtonEvent, ...]]:
        """Wait for the next decodable transition; None means the timeout ran out first.

        Owed releases never come back from here. If until_released is given, an empty result
        means one of those releases turned up.
        """
        if self._pending:
            events, self._pending = self._pending, ()
            return events
        with trio.move_on_after(math.inf if timeout is None else timeout):
            while True:
                raw: RawTransition = await self._source.receive()
                events = self._drop_owed_releases(self.decoder.decode(raw))
                if events:
                    return events
                if until_released and not self.owed_releases.issuperset(until_released):
                    return ()
        return None

    def record(self, events: collections.abc.Iterable[ButtonEvent]):
        self.buffer.extend(events)
        logger.debug("Buffer: %s", self.buffer.condensed())

    async def find_candidate(self) -> typing.Optional[Action]:
        tokens = self.buffer.tokens()
        context = ConditionContext(self.host, self.android_command_pattern)
        for action in self.table:
            if not match_tokens(action.pattern, tokens, MatchMode.ANYWHERE):
                continue
            if await context.evaluate(action.condition):
                return action
        return None

    async def dispatch(self):
        self.state.value = DispatchState.EVALUATING
        action = await self.find_candidate()
        if action is None:
            self.state.value = DispatchState.IDLE
            return
        self.state.value = DispatchState.ARMED
        logger.debug("Armed %s", action)
        events = await self._next_events(self.pattern_max_seconds)
        if events is not None:
            # the matched pattern may just be the start of a longer gesture
            logger.debug("Abandoned %s; more input arrived", action)
            self._pending = events
            self.state.value = DispatchState.IDLE
            return
        # nothing after the match means the buttons it leaves held are still down
        still_held = match_tokens(action.pattern, self.buffer.tokens(), MatchMode.END)
        self.owed_releases.update(self.buffer.held_releases())
        self.buffer.clear()
        self.state.value = DispatchState.FIRED
        logger.info("Firing %s", action)
        self.runner.execute(action)
        if action.repeat_interval_millis is not None:
            if still_held:
                await self.repeat(action)
            else:
                logger.debug("Not repeating %s; already released", action)
        self.state.value = DispatchState.IDLE

    async def repeat(self, action: Action):
        self.state.value = DispatchState.REPEATING
        interval = action.repeat_interval_millis / 1000
        while True:
            events = await self._next_events(interval, until_released=action.hold_releases)
            if events is None:
                self.runner.execute(action)
                continue
            self._pending = events
            logger.debug("Stopped repeating %s", action)
            return

    async def run(self, source: trio.abc.ReceiveChannel[RawTransition]):
        self._source = source
        async with source:
            try:
                while True:
                    self.record(await self._next_events(None))
                    await self.dispatch()
            except trio.EndOfChannel:
                logger.info("Input closed; stopping")
