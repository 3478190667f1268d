"""Sound cue sinks.  The simulation only ever notifies; it never waits."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import List

logger = logging.getLogger(__name__)


class SoundCue(str, Enum):
    POP = "pop"
    KEY_ACCEPTED = "key_accepted"
    KEY_REJECTED = "key_rejected"
    COOK_START = "cook_start"
    ORDER_UP = "order_up"
    CASH = "cash"
    ERROR = "error"
    TRASH = "trash"
    AMBIENCE_START = "ambience_start"
    AMBIENCE_STOP = "ambience_stop"


class AudioSink(ABC):
    @abstractmethod
    def play(self, cue: SoundCue) -> None:
        """Handle one cue.  Must not block."""


class NullAudio(AudioSink):
    """Swallows every cue."""

    def play(self, cue: SoundCue) -> None:
        return None


class RecordingAudio(AudioSink):
    """Keeps every cue in order of arrival."""

    def __init__(self) -> None:
        self.cues: List[SoundCue] = []

    def play(self, cue: SoundCue) -> None:
        self.cues.append(cue)

    def count(self, cue: SoundCue) -> int:
        return sum(1 for c in self.cues if c == cue)

    def clear(self) -> None:
        self.cues = []


class LoggingAudio(AudioSink):
    """Writes cues to the log; handy for headless runs."""

    def play(self, cue: SoundCue) -> None:
        logger.debug("cue %s", cue.value)
