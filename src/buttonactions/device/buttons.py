# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
import dataclasses
import enum
import types
import typing


@dataclasses.dataclass(eq=False)
class ButtonMixin:
    raw_id: typing.Union[int, str]
    display_name: str
    short_name: str


class Button(ButtonMixin, enum.Enum):
    # evdev key codes
    VOLUME_UP = 115, "Volume Up", "vu"
    VOLUME_DOWN = 114, "Volume Down", "vd"
    POWER = 116, "Power", "pw"
    CAMERA_FOCUS = 0x210, "Camera Half-Press", "ch"
    CAMERA = 212, "Camera Full-Press", "cf"
    ASSISTANT = 0x247, "Assistant", "as"
    HEADSET = 164, "Headset Button", "hs"
    # virtual buttons, fed in through the fifo; these have no separate release signal
    MEDIA_PLAY_PAUSE = "media-play-pause", "Media Play/Pause", "mp"
    MEDIA_NEXT = "media-next", "Media Next", "mn"
    MEDIA_PREVIOUS = "media-previous", "Media Previous", "mb"


BUTTONS_BY_RAW_ID: typing.Mapping[typing.Union[int, str], Button] = types.MappingProxyType({b.raw_id: b for b in Button})
BUTTONS_BY_SHORT_NAME: typing.Mapping[str, Button] = types.MappingProxyType({b.short_name: b for b in Button})
