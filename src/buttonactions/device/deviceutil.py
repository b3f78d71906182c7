# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
import collections.abc
import contextlib
import errno
import fcntl
import os
import pathlib
import typing

from ..commontypes import NotInContextError
from .hwtypes import DeviceDisconnectedError, DeviceGrabError

if typing.TYPE_CHECKING:
    import libevdev


class EventDevice(contextlib.AbstractContextManager):
    def __init__(self, device_path: typing.Union[str, pathlib.Path], grab: bool = False):
        if not isinstance(device_path, pathlib.Path):
            device_path = pathlib.Path(device_path)
        if not device_path.is_absolute():
            raise ValueError("Device path must be absolute")
        self.device_path = device_path
        self.grab = grab
        self._f = None
        self._d = None

    def fileno(self) -> int:
        if self._f is None:
            raise NotInContextError()
        return self._f.fileno()

    def open(self):
        import libevdev

        try:
            self._f = self.device_path.open("rb", buffering=0)
        except OSError as exc:
            if exc.errno in (errno.ENODEV, errno.ENOENT):
                raise DeviceDisconnectedError() from exc
            raise
        fcntl.fcntl(self._f, fcntl.F_SETFL, os.O_NONBLOCK)
        self._d = libevdev.Device(self._f)
        if not self.grab:
            return
        try:
            self._d.grab()
        except libevdev.device.DeviceGrabError as exc:
            self.close()
            raise DeviceGrabError from exc
        except OSError as exc:
            self.close()
            if exc.errno == errno.ENODEV:
                raise DeviceDisconnectedError() from exc
            raise

    def close(self):
        # closing the file also releases any grab
        self._f.close()
        self._d = None
        self._f = None

    def __enter__(self):
        self.open()
        return self

    def events(self) -> collections.abc.Iterator["libevdev.InputEvent"]:
        "Yield whatever events are ready right now, skipping any batch the kernel dropped."
        import libevdev

        if self._d is None:
            raise NotInContextError()

        resyncing = False
        events = self._d.events()
        while True:
            if resyncing:
                # Discard everything up to and including the next SYN_REPORT;
                # the state we'd resync to is no use for edge detection.
                synced = False
                while not synced:
                    try:
                        evt = next(events)
                    except StopIteration:
                        return
                    if evt.matches(libevdev.EV_SYN.SYN_REPORT):
                        synced = True
                resyncing = False
            else:
                try:
                    evt = next(events)
                except StopIteration:
                    return
                except libevdev.EventsDroppedException:
                    resyncing = True
                except OSError as exc:
                    if exc.errno == errno.ENODEV:
                        raise DeviceDisconnectedError() from exc
                    raise
                else:
                    yield evt

    def __exit__(self, _exc_type, _exc_value, _traceback):
        self.close()
        return False  # to reraise exceptions if needed
