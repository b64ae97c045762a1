"""Abstract input events and the adjustment intents they map to."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, Flag, auto
from typing import Dict, Mapping, Optional, Tuple, Union


class Key(Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    PAGE_UP = "pageup"
    PAGE_DOWN = "pagedown"
    SPACE = "space"
    ESCAPE = "escape"
    CHAR = "char"


class Modifiers(Flag):
    NONE = 0
    SHIFT = auto()
    CONTROL = auto()
    ALT = auto()


class Intent(Enum):
    SCALE_UP = auto()
    SCALE_DOWN = auto()
    WINDOW_WIDEN = auto()
    WINDOW_NARROW = auto()
    TOGGLE_SCATTER = auto()
    TOGGLE_PAUSE = auto()
    TOGGLE_REFERENCE = auto()
    TOGGLE_VECTORSCOPE = auto()
    TOGGLE_TRIGGER = auto()
    TOGGLE_FALLING_EDGE = auto()
    THRESHOLD_UP = auto()
    THRESHOLD_DOWN = auto()
    RESET = auto()


@dataclass(frozen=True)
class KeyEvent:
    key: Key
    char: str = ""
    modifiers: Modifiers = Modifiers.NONE

    @classmethod
    def of(cls, char: str, modifiers: Modifiers = Modifiers.NONE) -> "KeyEvent":
        """Shorthand for a printable key press."""
        if char == " ":
            return cls(Key.SPACE, modifiers=modifiers)
        return cls(Key.CHAR, char=char.lower(), modifiers=modifiers)


@dataclass(frozen=True)
class IntentEvent:
    """An already-mapped action, for front ends with their own key bindings."""

    intent: Intent
    modifiers: Modifiers = Modifiers.NONE


@dataclass(frozen=True)
class ResizeEvent:
    columns: int
    rows: int


Event = Union[KeyEvent, IntentEvent, ResizeEvent]
KeyBinding = Tuple[Key, str]

DEFAULT_KEYMAP: Dict[KeyBinding, Intent] = {
    (Key.UP, ""): Intent.SCALE_UP,
    (Key.DOWN, ""): Intent.SCALE_DOWN,
    (Key.RIGHT, ""): Intent.WINDOW_WIDEN,
    (Key.LEFT, ""): Intent.WINDOW_NARROW,
    (Key.PAGE_UP, ""): Intent.THRESHOLD_UP,
    (Key.PAGE_DOWN, ""): Intent.THRESHOLD_DOWN,
    (Key.SPACE, ""): Intent.TOGGLE_PAUSE,
    (Key.ESCAPE, ""): Intent.RESET,
    (Key.CHAR, "s"): Intent.TOGGLE_SCATTER,
    (Key.CHAR, "r"): Intent.TOGGLE_REFERENCE,
    (Key.CHAR, "v"): Intent.TOGGLE_VECTORSCOPE,
    (Key.CHAR, "t"): Intent.TOGGLE_TRIGGER,
    (Key.CHAR, "e"): Intent.TOGGLE_FALLING_EDGE,
}


def magnitude_for(modifiers: Modifiers) -> float:
    """Coarse/fine multiplier for a step: SHIFT x10, CONTROL x5, ALT x0.2."""
    if modifiers & Modifiers.SHIFT:
        return 10.0
    if modifiers & Modifiers.CONTROL:
        return 5.0
    if modifiers & Modifiers.ALT:
        return 0.2
    return 1.0


def intent_for(event: object, keymap: Mapping[KeyBinding, Intent] = DEFAULT_KEYMAP) -> Optional[Intent]:
    """Return the intent bound to ``event``, or ``None`` when it is not recognized."""
    if isinstance(event, IntentEvent):
        return event.intent
    if isinstance(event, KeyEvent):
        char = event.char.lower() if event.key is Key.CHAR else ""
        return keymap.get((event.key, char))
    return None
