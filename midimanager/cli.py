"""Record from every connected device until Enter is pressed."""

from __future__ import annotations

import argparse
import logging
import sys

from .backend import MidiBackendError
from .device import MidiDevice
from .manager import MidiManager
from .message import MidiMessage


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="midimanager",
        description="Record MIDI messages from supported devices until Enter is pressed.",
    )
    parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG)

    def on_message(device: MidiDevice, message: MidiMessage) -> None:
        print(f"{device.name} : CALLED", flush=True)

    with MidiManager() as manager:
        manager.midi_callback = on_message
        try:
            manager.refresh()
        except MidiBackendError as exc:
            print(f"MIDI Error: {exc}", file=sys.stderr)
            return 1

        manager.start_recording()
        sys.stdin.readline()
        manager.stop_recording()

        for name, recorded in manager.recordings():
            print(f"{name} : {len(recorded)}")

    return 0


if __name__ == "__main__":
    sys.exit(main())