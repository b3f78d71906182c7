# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
import logging

import pytest

from buttonactions.device.buttons import Button
from buttonactions.device.hwtypes import ButtonEvent
from buttonactions.patterns.buffer import PatternBuffer, debounce, trim, trim_point

VD = Button.VOLUME_DOWN
VU = Button.VOLUME_UP


def press(button, elapsed=0):
    return ButtonEvent.pressed(button, elapsed)


def release(button, elapsed=0):
    return ButtonEvent.released(button, elapsed)


def test_debounce_collapses_chatter():
    events = [press(VD, 0), release(VD, 5), press(VD, 5), release(VD, 300)]
    assert debounce(events, 10) == [events[0], events[3]]


def test_debounce_is_idempotent():
    events = [
        press(VD, 0),
        release(VD, 5),
        press(VD, 5),
        release(VD, 8),
        press(VD, 3),
        release(VD, 200),
        press(VU, 40),
        release(VU, 2),
        press(VU, 12),
        release(VU, 100),
    ]
    once = debounce(events, 10)
    assert debounce(once, 10) == once
    assert once == [events[0], events[5], events[6], events[7], events[8], events[9]]


@pytest.mark.parametrize(
    "events",
    (
        # gaps too long
        [press(VD, 0), release(VD, 11), press(VD, 5)],
        [press(VD, 0), release(VD, 5), press(VD, 11)],
        # different buttons
        [press(VD, 0), release(VD, 5), press(VU, 5)],
        # wrong shape
        [release(VD, 0), press(VD, 5), release(VD, 5)],
    ),
)
def test_debounce_leaves_real_input_alone(events):
    assert debounce(events, 10) == events


def test_trim_drops_everything_before_idle_gap():
    events = [press(VD, 0), release(VD, 100), press(VU, 400), release(VU, 50)]
    assert trim_point(events, 350) == 2
    assert trim(events, 350) == events[2:]


def test_trim_ignores_gap_while_button_held():
    events = [press(VD, 0), press(VU, 400), release(VU, 50), release(VD, 500)]
    assert trim(events, 350) == events


def test_trim_latest_gap_wins():
    events = [press(VD, 0), release(VD, 100), press(VD, 400), release(VD, 10), press(VU, 1000), release(VU, 10)]
    assert trim(events, 350) == events[4:]


def test_trim_only_removes_prefix():
    events = [press(VD, 0), release(VD, 10), press(VU, 360), press(VD, 20), release(VD, 20), release(VU, 20)]
    trimmed = trim(events, 350)
    assert trimmed == events[len(events) - len(trimmed) :]


def test_press_without_release_abandons(caplog):
    events = [press(VD, 0), press(VD, 30)]
    with caplog.at_level(logging.WARNING):
        assert trim(events, 350) == []
    assert "press without release" in caplog.text


def test_release_without_press_abandons(caplog):
    events = [release(VU, 0), press(VD, 30), release(VD, 30)]
    with caplog.at_level(logging.WARNING):
        assert trim(events, 350) == events[1:]
    assert "release without press" in caplog.text


def test_buffer_append_applies_both_policies():
    buffer = PatternBuffer(350, 10)
    buffer.extend([press(VD, 0), release(VD, 5), press(VD, 5)])
    assert buffer.tokens() == ("vd-press",)
    buffer.append(release(VD, 200))
    assert buffer.tokens() == ("vd-press", "vd-release")
    assert buffer.condensed() == "vd"
    buffer.append(press(VU, 500))
    assert buffer.tokens() == ("vu-press",)
    buffer.clear()
    assert len(buffer) == 0


def test_held_releases():
    buffer = PatternBuffer(350, 10)
    buffer.extend([press(VD, 0), press(VU, 50), release(VU, 50)])
    assert buffer.held_releases() == ("vd-release",)
    buffer.append(press(VU, 50))
    assert buffer.held_releases() == ("vd-release", "vu-release")
    buffer.extend([release(VU, 50), release(VD, 50)])
    assert buffer.held_releases() == ()
