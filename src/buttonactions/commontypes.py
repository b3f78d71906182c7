# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
import enum


class MatchMode(enum.Enum):
    ANYWHERE = enum.auto()
    END = enum.auto()


class ButtonActionsError(Exception):
    pass


class GrammarError(ButtonActionsError):
    pass


class ConfigError(ButtonActionsError):
    pass


class NotInContextError(Exception):
    def __init__(self):
        return super().__init__("Must be inside an appropriate context manager")
