# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import collections.abc
import logging
import typing

import pytest
import trio

from buttonactions.actions.table import compile_actions
from buttonactions.actions.types import Action
from buttonactions.device.hwtypes import RawTransition
from buttonactions.dispatcher import Dispatcher, DispatchState
from buttonactions.host import ConditionQueryFailure
from buttonactions.patterns.buffer import PatternBuffer

VOLUME_DOWN = 114
VOLUME_UP = 115
DOWN = 1
UP = 0


class StaticHost:
    def __init__(self, locked=False, foreground: typing.Optional[str] = None, broken=False):
        self.locked = locked
        self.foreground = foreground
        self.broken = broken

    async def is_screen_locked(self) -> bool:
        return self.locked

    async def foreground_window_command(self) -> typing.Optional[str]:
        if self.broken:
            raise ConditionQueryFailure("no window manager")
        return self.foreground

    async def last_window_title(self) -> typing.Optional[str]:
        return None


class RecordingRunner:
    def __init__(self):
        self.executed = []

    def execute(self, action: Action):
        self.executed.append((trio.current_time(), action.action_text))


Script = collections.abc.Sequence[tuple[float, typing.Union[int, str], typing.Optional[int]]]


async def run_script(config: str, script: Script, host=None, settle: float = 5) -> tuple[RecordingRunner, Dispatcher]:
    "Feed (delay, identifier, value) transitions to a dispatcher, then let it settle and shut it down."
    runner = RecordingRunner()
    dispatcher = Dispatcher(compile_actions(config), PatternBuffer(), host or StaticHost(), runner)
    send_channel, receive_channel = trio.open_memory_channel[RawTransition](0)
    async with trio.open_nursery() as nursery:
        nursery.start_soon(dispatcher.run, receive_channel)
        async with send_channel:
            for delay, identifier, value in script:
                await trio.sleep(delay)
                await send_channel.send(RawTransition(identifier=identifier, value=value, timestamp=trio.current_time()))
            await trio.sleep(settle)
    return runner, dispatcher


def times(runner: RecordingRunner):
    return [when for when, _ in runner.executed]


def texts(runner: RecordingRunner):
    return [text for _, text in runner.executed]


CLICKS = """
action=cmd(single),vd,always
action=cmd(double),vd vd,always
"""


async def test_click_fires_after_silence(autojump_clock):
    runner, dispatcher = await run_script(CLICKS, [(0, VOLUME_DOWN, DOWN), (0.1, VOLUME_DOWN, UP)])
    assert texts(runner) == ["cmd(single)"]
    assert times(runner) == [pytest.approx(0.45)]
    assert len(dispatcher.buffer) == 0
    assert dispatcher.state.value is DispatchState.IDLE


async def test_longer_pattern_wins(autojump_clock):
    runner, _ = await run_script(
        CLICKS,
        [(0, VOLUME_DOWN, DOWN), (0.1, VOLUME_DOWN, UP), (0.1, VOLUME_DOWN, DOWN), (0.1, VOLUME_DOWN, UP)],
    )
    assert texts(runner) == ["cmd(double)"]
    assert times(runner) == [pytest.approx(0.65)]


async def test_slow_double_click_is_two_singles(autojump_clock):
    runner, _ = await run_script(
        CLICKS,
        [(0, VOLUME_DOWN, DOWN), (0.1, VOLUME_DOWN, UP), (0.5, VOLUME_DOWN, DOWN), (0.1, VOLUME_DOWN, UP)],
    )
    assert texts(runner) == ["cmd(single)", "cmd(single)"]
    assert times(runner) == [pytest.approx(0.45), pytest.approx(1.05)]


async def test_chatter_is_a_single_click(autojump_clock):
    runner, _ = await run_script(
        CLICKS,
        [(0, VOLUME_DOWN, DOWN), (0.005, VOLUME_DOWN, UP), (0.005, VOLUME_DOWN, DOWN), (0.19, VOLUME_DOWN, UP)],
    )
    assert texts(runner) == ["cmd(single)"]
    assert times(runner) == [pytest.approx(0.55)]


async def test_unknown_codes_do_not_disturb_stability(autojump_clock):
    runner, _ = await run_script(CLICKS, [(0, VOLUME_DOWN, DOWN), (0.1, VOLUME_DOWN, UP), (0.1, 30, DOWN), (0.01, 30, UP)])
    assert times(runner) == [pytest.approx(0.45)]


CONDITIONAL = """
action=cmd(echo 1 locked),vd,screenLocked
action=cmd(echo 2 camera),vd,app(camera)
action=cmd(echo 3 fallback),vd,always
"""


@pytest.mark.parametrize(
    "host,expected",
    (
        (StaticHost(locked=True), "cmd(echo 1 locked)"),
        (StaticHost(foreground="/usr/bin/jolla-camera"), "cmd(echo 2 camera)"),
        (StaticHost(foreground="/usr/bin/jolla-camera", broken=True), "cmd(echo 3 fallback)"),
        (StaticHost(), "cmd(echo 3 fallback)"),
    ),
)
async def test_conditions_pick_the_action(autojump_clock, host, expected):
    runner, _ = await run_script(CONDITIONAL, [(0, VOLUME_DOWN, DOWN), (0.1, VOLUME_DOWN, UP)], host=host)
    assert texts(runner) == [expected]


async def test_no_matching_condition_keeps_buffer(autojump_clock):
    runner, dispatcher = await run_script(
        "action=cmd(locked),vd,screenLocked",
        [(0, VOLUME_DOWN, DOWN), (0.1, VOLUME_DOWN, UP)],
        host=StaticHost(locked=False),
    )
    assert runner.executed == []
    assert dispatcher.buffer.tokens() == ("vd-press", "vd-release")


REPEAT = """
action=repeat(100,louder),vu-press,always
action=cmd(quieter),vd,always
action=cmd(click),vu,always
"""


async def test_repeat_while_held(autojump_clock, caplog):
    with caplog.at_level(logging.WARNING):
        runner, dispatcher = await run_script(REPEAT, [(0, VOLUME_UP, DOWN), (1.0, VOLUME_UP, UP)])
    assert texts(runner) == ["repeat(100,louder)"] * 7
    assert times(runner) == [pytest.approx(0.35 + 0.1 * n) for n in range(7)]
    assert len(dispatcher.buffer) == 0
    assert "without press" not in caplog.text


async def test_quick_tap_does_not_start_repeating(autojump_clock):
    runner, dispatcher = await run_script("action=repeat(100,louder),vu-press,always", [(0, VOLUME_UP, DOWN), (0.2, VOLUME_UP, UP)])
    assert texts(runner) == ["repeat(100,louder)"]
    assert times(runner) == [pytest.approx(0.55)]
    assert dispatcher.owed_releases == set()


async def test_hold_release_is_dropped(autojump_clock, caplog):
    with caplog.at_level(logging.WARNING):
        runner, dispatcher = await run_script("action=cmd(hold),vu-press,always", [(0, VOLUME_UP, DOWN), (1.0, VOLUME_UP, UP)])
    assert texts(runner) == ["cmd(hold)"]
    assert len(dispatcher.buffer) == 0
    assert dispatcher.owed_releases == set()
    assert "without press" not in caplog.text


async def test_late_hold_release_keeps_next_gesture(autojump_clock, caplog):
    with caplog.at_level(logging.WARNING):
        runner, dispatcher = await run_script(
            REPEAT,
            [(0, VOLUME_UP, DOWN), (0.6, VOLUME_DOWN, DOWN), (0.1, VOLUME_DOWN, UP), (0.05, VOLUME_UP, UP)],
        )
    assert texts(runner) == ["repeat(100,louder)"] * 3 + ["cmd(quieter)"]
    assert times(runner)[-1] == pytest.approx(1.05)
    assert dispatcher.owed_releases == set()
    assert "without press" not in caplog.text


async def test_short_press_prefers_click(autojump_clock):
    runner, _ = await run_script(REPEAT, [(0, VOLUME_UP, DOWN), (0.2, VOLUME_UP, UP)])
    assert texts(runner) == ["cmd(click)"]
    assert times(runner) == [pytest.approx(0.55)]


async def test_other_input_stops_repeat(autojump_clock):
    runner, _ = await run_script(
        REPEAT,
        [(0, VOLUME_UP, DOWN), (0.6, VOLUME_DOWN, DOWN), (0.1, VOLUME_DOWN, UP)],
    )
    assert texts(runner) == ["repeat(100,louder)"] * 3 + ["cmd(quieter)"]
    assert times(runner) == [pytest.approx(0.35), pytest.approx(0.45), pytest.approx(0.55), pytest.approx(1.05)]


async def test_virtual_button(autojump_clock):
    runner, _ = await run_script("action=cmd(next),mn,always", [(0.5, "media-next", None)])
    assert times(runner) == [pytest.approx(0.85)]


async def test_nested_gesture(autojump_clock):
    runner, _ = await run_script(
        "action=cmd(nested),vd(vu vu),always\n" + CLICKS,
        [
            (0, VOLUME_DOWN, DOWN),
            (0.1, VOLUME_UP, DOWN),
            (0.05, VOLUME_UP, UP),
            (0.05, VOLUME_UP, DOWN),
            (0.05, VOLUME_UP, UP),
            (0.05, VOLUME_DOWN, UP),
        ],
    )
    assert texts(runner) == ["cmd(nested)"]
