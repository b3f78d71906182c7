import dataclasses
import datetime
import json
import pathlib
import typing

import cattrs
from cattrs.gen import make_dict_structure_fn

from .actions.conditions import ANDROID_COMMAND_PATTERN
from .actions.types import BuiltinAction
from .durations import format_duration, parse_duration, to_millis

DBUS_SESSION_CALL = "dbus-send --session --type=method_call"
DBUS_SYSTEM_CALL = "dbus-send --system --type=method_call"

BUILTIN_COMMANDS = {
    "toggle-flashlight": f"{DBUS_SESSION_CALL} --dest=com.jolla.settings.system.flashlight /com/jolla/settings/system/flashlight com.jolla.settings.system.flashlight.toggleFlashlight",
    "screenshot": f'{DBUS_SESSION_CALL} --dest=org.nemomobile.lipstick /org/nemomobile/lipstick/screenshot org.nemomobile.lipstick.saveScreenshot string:"$HOME/Pictures/Screenshots/Screenshot_$(date +%Y%m%d_%H%M%S).png"',
    "reboot": f"{DBUS_SYSTEM_CALL} --dest=com.nokia.dsme /com/nokia/dsme/request com.nokia.dsme.request.req_reboot",
    "shutdown": f"{DBUS_SYSTEM_CALL} --dest=com.nokia.dsme /com/nokia/dsme/request com.nokia.dsme.request.req_shutdown",
    "open-camera": f"{DBUS_SESSION_CALL} --dest=com.jolla.camera / com.jolla.camera.ui.showViewfinder array:string:",
    "open-camera-selfie": f"{DBUS_SESSION_CALL} --dest=com.jolla.camera / com.jolla.camera.ui.showFrontViewfinder array:string:",
    "new-alarm": f"{DBUS_SESSION_CALL} --dest=com.jolla.clock / com.jolla.clock.newAlarm",
    "new-note": f"{DBUS_SESSION_CALL} --dest=com.jolla.notes / com.jolla.notes.newNote",
    "write-email": f"{DBUS_SESSION_CALL} --dest=com.jolla.email.ui /com/jolla/email/ui com.jolla.email.ui.compose",
}


settings_converter = cattrs.Converter()
settings_converter.register_unstructure_hook(datetime.timedelta, format_duration)
settings_converter.register_structure_hook(datetime.timedelta, lambda d, _: parse_duration(d))
settings_converter.register_unstructure_hook(pathlib.Path, str)
settings_converter.register_structure_hook(pathlib.Path, lambda v, _: pathlib.Path(v))


def default_builtin_actions():
    return {BuiltinAction(k): v for k, v in BUILTIN_COMMANDS.items()}


@dataclasses.dataclass(kw_only=True)
class Settings:
    _path: pathlib.Path
    actions_path: pathlib.Path
    input_devices: list[pathlib.Path] = dataclasses.field(default_factory=list)
    virtual_button_fifo: typing.Optional[pathlib.Path] = None
    grab_devices: bool = False
    pattern_max: datetime.timedelta = datetime.timedelta(milliseconds=350)
    accidental_double: datetime.timedelta = datetime.timedelta(milliseconds=10)
    query_timeout: datetime.timedelta = datetime.timedelta(seconds=1)
    screen_locked_command: typing.Optional[str] = None
    foreground_window_command: typing.Optional[str] = None
    window_title_command: typing.Optional[str] = None
    android_command_pattern: str = ANDROID_COMMAND_PATTERN
    builtin_actions: dict[BuiltinAction, str] = dataclasses.field(default_factory=default_builtin_actions)

    @property
    def pattern_max_millis(self) -> int:
        return to_millis(self.pattern_max)

    @property
    def accidental_double_millis(self) -> int:
        return to_millis(self.accidental_double)

    def resolve(self, path: pathlib.Path) -> pathlib.Path:
        "Paths in the settings file are relative to the file itself."
        return self._path.parent / path

    def save(self, dest: typing.Optional[pathlib.Path] = None):
        if dest is None:
            dest = self._path
        raw = settings_converter.unstructure(self)
        del raw["_path"]
        with dest.open("w") as outfile:
            json.dump(raw, outfile, indent=2)

    @classmethod
    def load(cls, src: pathlib.Path):
        with src.open() as infile:
            raw = json.load(infile)
        raw["_path"] = src
        return settings_converter.structure(raw, cls)

    @classmethod
    def for_test(cls, **overrides):
        raw = {
            "_path": "test.settings.json",
            "actions_path": "test.actions",
        }
        raw.update(overrides)
        return settings_converter.structure(raw, cls)


settings_converter.register_structure_hook(Settings, make_dict_structure_fn(Settings, settings_converter))
