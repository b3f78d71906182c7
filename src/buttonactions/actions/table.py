# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
"""Compiling the action table from config text.

Each non-blank, non-comment line looks like

    action=<action>,<pattern>,<condition>

for example ``action=repeat(150,amixer set Master 2%+),vu-press,screenUnlocked``.
The pattern never contains a comma, but shell text and regexes can, so every
possible split is tried until one compiles.
"""
from __future__ import annotations

import logging
import pathlib
import re

from ..commontypes import ConfigError, GrammarError
from ..patterns.grammar import parse
from .types import (
    Action,
    ActionKind,
    Always,
    AnyForegroundApp,
    Builtin,
    BuiltinAction,
    Condition,
    ForegroundAppMatches,
    Home,
    IsAndroidLayer,
    NoForegroundApp,
    RepeatCommand,
    ScreenLocked,
    ScreenUnlocked,
    ShellCommand,
    WindowTitleMatches,
)

logger = logging.getLogger(__name__)

ACTION_PREFIX = "action="
CMD_MATCHER = re.compile(r"cmd\((.*)\)", re.DOTALL)
REPEAT_MATCHER = re.compile(r"repeat\((\d+),(.*)\)", re.DOTALL)
REGEX_CONDITION_MATCHER = re.compile(r"(app|window)\((.*)\)", re.DOTALL | re.IGNORECASE)

SIMPLE_CONDITIONS: dict[str, Condition] = {
    "always": Always(),
    "screenlocked": ScreenLocked(),
    "screenunlocked": ScreenUnlocked(),
    "home": Home(),
    "noapp": NoForegroundApp(),
    "anyapp": AnyForegroundApp(),
    "android": IsAndroidLayer(),
}


def parse_action_kind(text: str) -> ActionKind:
    if (match := CMD_MATCHER.fullmatch(text)) is not None:
        command = match.group(1).strip()
        if not command:
            raise ConfigError(f"Empty command in {text!r}")
        return ShellCommand(command=command)
    if (match := REPEAT_MATCHER.fullmatch(text)) is not None:
        interval = int(match.group(1))
        command = match.group(2).strip()
        if interval <= 0:
            raise ConfigError(f"Repeat interval must be positive in {text!r}")
        if not command:
            raise ConfigError(f"Empty command in {text!r}")
        return RepeatCommand(interval_millis=interval, command=command)
    try:
        return Builtin(action=BuiltinAction(text))
    except ValueError:
        raise ConfigError(f"Unknown action {text!r}") from None


def parse_condition(text: str) -> Condition:
    keyword = text.strip().lower()
    if keyword in SIMPLE_CONDITIONS:
        return SIMPLE_CONDITIONS[keyword]
    match = REGEX_CONDITION_MATCHER.fullmatch(text.strip())
    if match is None:
        raise ConfigError(f"Unknown condition {text!r}")
    kind, regex = match.groups()
    try:
        re.compile(regex)
    except re.error as exc:
        raise ConfigError(f"Invalid regex {regex!r} in condition {text!r}: {exc}") from exc
    if kind.lower() == "app":
        return ForegroundAppMatches(regex=regex)
    return WindowTitleMatches(regex=regex)


def _build_action(action_text: str, pattern_text: str, condition_text: str) -> Action:
    kind = parse_action_kind(action_text)
    try:
        pattern = parse(pattern_text)
    except GrammarError as exc:
        raise ConfigError(f"Bad pattern {pattern_text!r}: {exc}") from exc
    if not pattern:
        raise ConfigError("Empty pattern")
    condition = parse_condition(condition_text)
    return Action(
        action_text=action_text,
        kind=kind,
        pattern=pattern,
        condition=condition,
        condition_text=condition_text.strip(),
    )


def parse_action_line(line: str) -> Action:
    if not line.startswith(ACTION_PREFIX):
        raise ConfigError(f"Expected a line starting with {ACTION_PREFIX!r}, got {line!r}")
    parts = line[len(ACTION_PREFIX) :].split(",")
    if len(parts) < 3:
        raise ConfigError(f"Expected action, pattern and condition separated by commas, got {line!r}")
    error = None
    for pattern_index in range(1, len(parts) - 1):
        try:
            return _build_action(
                ",".join(parts[:pattern_index]),
                parts[pattern_index],
                ",".join(parts[pattern_index + 1 :]),
            )
        except ConfigError as exc:
            error = exc
    raise error


def compile_actions(config_text: str) -> tuple[Action, ...]:
    actions = []
    for lineno, line in enumerate(config_text.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        try:
            actions.append(parse_action_line(line))
        except ConfigError as exc:
            raise ConfigError(f"line {lineno}: {exc}") from exc
    return tuple(sorted(actions, key=Action.sort_key))


def load_actions(path: pathlib.Path) -> tuple[Action, ...]:
    try:
        config_text = path.read_text()
    except OSError as exc:
        raise ConfigError(f"Unable to read actions from {path}: {exc}") from exc
    actions = compile_actions(config_text)
    logger.debug("Loaded %d actions from %s", len(actions), path)
    return actions
