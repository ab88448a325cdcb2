"""Channel voice messages received from a MIDI device."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class MessageType(IntEnum):
    """Kind of a channel voice message, keyed by the high nibble of its status byte."""

    UNKNOWN = 0x00
    NOTE_OFF = 0x80
    NOTE_ON = 0x90
    POLYPHONIC_KEY_PRESSURE = 0xA0
    CONTROL_CHANGE = 0xB0
    PROGRAM_CHANGE = 0xC0
    CHANNEL_AFTERTOUCH = 0xD0
    PITCH_BEND = 0xE0


@dataclass(frozen=True)
class MidiMessage:
    """A three-byte message together with the time since the previous one."""

    status: int
    key: int
    velocity: int
    timestamp: float = 0.0

    def channel(self) -> int:
        """Return the channel 1-16, or -1 if the status is not a channel message."""
        # Channel statuses run from 0x80 to 0xEF; the low nibble is the channel.
        if 0x80 <= self.status <= 0xEF:
            return (self.status & 0x0F) + 1
        return -1

    def type(self) -> MessageType:
        """Return the message kind, or UNKNOWN for anything else."""
        try:
            return MessageType(self.status & 0xF0)
        except ValueError:
            return MessageType.UNKNOWN