"""Discovery of MIDI devices and routing of their messages."""

from __future__ import annotations

import functools
import logging
import re
import sys
from collections.abc import Callable, Mapping

from .backend import MidiBackend, MidiBackendError, MidoBackend
from .device import Availability, DeviceIdentifier, DeviceNameRegistry, MidiDevice
from .message import MidiMessage

log = logging.getLogger(__name__)

_TRAILING_DIGIT = re.compile(r"[0-9]\Z")


def ports_match(
    in_name: str, out_name: str, strip_trailing_digit: bool | None = None
) -> bool:
    """Tell whether an input and an output port belong to the same device.

    Names are compared upper-cased, with "IN" removed from the input name and
    "OUT" from the output name. ``strip_trailing_digit`` also drops one final
    digit from each name; it defaults to on under Windows, where port names
    carry an index.
    """
    if strip_trailing_digit is None:
        strip_trailing_digit = sys.platform == "win32"
    in_name = in_name.upper().replace("IN", "")
    out_name = out_name.upper().replace("OUT", "")
    if strip_trailing_digit:
        in_name = _TRAILING_DIGIT.sub("", in_name)
        out_name = _TRAILING_DIGIT.sub("", out_name)
    return in_name == out_name


class MidiManager:
    """Finds devices on matching port pairs and forwards their messages.

    ``midi_callback`` is called with the device and each message it sends;
    ``devices_refresh_callback`` is called once no device is still verifying.
    """

    def __init__(
        self,
        backend: MidiBackend | None = None,
        *,
        registry: DeviceNameRegistry | None = None,
        known_devices: Mapping[str, DeviceIdentifier] | None = None,
    ) -> None:
        self._backend = MidoBackend() if backend is None else backend
        self._registry = registry
        self._known_devices = known_devices
        self._devices: list[MidiDevice] = []
        self.midi_callback: Callable[[MidiDevice, MidiMessage], None] | None = None
        self.devices_refresh_callback: Callable[[], None] | None = None

    def refresh(self) -> None:
        """Drop the current devices and look for devices on every port pair."""
        log.debug("MidiManager: Refreshing Midi Devices")
        self._close_devices()

        try:
            in_names = self._backend.input_names()
            out_names = self._backend.output_names()
            for i, in_name in enumerate(in_names):
                for j, out_name in enumerate(out_names):
                    if ports_match(in_name, out_name):
                        log.debug(
                            "Ports Match! (%d, %d, %s, %s)", i, j, in_name, out_name
                        )
                        self._verify_identity(i, j)
        except MidiBackendError as exc:
            log.error("Midi Error: %s", exc)
            return

        self._setup_device_callbacks()

    def devices(self) -> list[MidiDevice]:
        """All devices found by the last refresh."""
        return list(self._devices)

    def available_devices(self) -> list[MidiDevice]:
        """Devices that have not been found unsupported (verifying or available)."""
        return [
            device
            for device in self._devices
            if device.availability != Availability.UNAVAILABLE
        ]

    def start_recording(self) -> None:
        for device in self.available_devices():
            device.start_recording()

    def stop_recording(self) -> None:
        for device in self.available_devices():
            device.stop_recording()

    def recordings(self) -> list[tuple[str, list[MidiMessage]]]:
        """Pairs of device name and recorded messages, for devices that recorded any."""
        result = []
        for device in self._devices:
            recorded = device.recording
            if recorded:
                result.append((device.name, recorded))
        return result

    def close(self) -> None:
        """Close every device's ports."""
        self._close_devices()

    def __enter__(self) -> MidiManager:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _close_devices(self) -> None:
        devices, self._devices = self._devices, []
        for device in devices:
            device.close()

    def _verify_identity(self, in_port: int, out_port: int) -> None:
        try:
            device = MidiDevice(
                in_port,
                out_port,
                self._backend,
                registry=self._registry,
                known_devices=self._known_devices,
            )
        except MidiBackendError as exc:
            log.error("%s", exc)
            return
        device.verify_callback = self._on_device_verified
        self._devices.append(device)

    def _on_device_verified(self) -> None:
        if any(d.availability == Availability.VERIFYING for d in self._devices):
            return
        callback = self.devices_refresh_callback
        if callback is not None:
            callback()

    def _setup_device_callbacks(self) -> None:
        for device in self._devices:
            device.key_callback = functools.partial(self._forward, device)

    def _forward(self, device: MidiDevice, message: MidiMessage) -> None:
        callback = self.midi_callback
        if callback is not None:
            callback(device, message)