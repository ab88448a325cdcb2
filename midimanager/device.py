"""A MIDI device made of an input and an output port, identified by SysEx."""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import IntEnum
from types import MappingProxyType

from .backend import MidiBackend, MidiBackendError
from .message import MidiMessage

log = logging.getLogger(__name__)

IDENTITY_REQUEST = bytes((0xF0, 0x7E, 0x7F, 0x06, 0x01, 0xF7))

_ACTIVE_SENSING = 0xFE
_HEADER_SIZE = 5
_FOOTER_SIZE = 1
_COUNT_SUFFIX = re.compile(r" \([0-9]\)+\Z")


class Availability(IntEnum):
    """Whether a device has been recognised as a supported model."""

    UNAVAILABLE = 0x00
    VERIFYING = 0x01
    AVAILABLE = 0x02


@dataclass(frozen=True)
class DeviceIdentifier:
    """Bytes that follow the header of an identity reply for one model."""

    manufacturer_id: bytes
    device_code: bytes


KNOWN_DEVICES: Mapping[str, DeviceIdentifier] = MappingProxyType(
    {
        "Novation Launchpad Pro": DeviceIdentifier(
            bytes((0x00, 0x20, 0x29)), bytes((0x51,))
        ),
    }
)


class DeviceNameRegistry:
    """Counts devices per model so that several of one model get distinct names."""

    def __init__(self) -> None:
        self._counts: dict[str, int] = {}
        self._lock = threading.Lock()

    def add(self, name: str) -> None:
        with self._lock:
            self._counts[name] = self._counts.get(name, 0) + 1

    def remove(self, name: str) -> None:
        """Drop one count for ``name``, with any " (n)" suffix stripped first."""
        with self._lock:
            base = _COUNT_SUFFIX.sub("", name)
            count = self._counts.get(base)
            if count is None:
                return
            if count > 0:
                count -= 1
            if count == 0:
                del self._counts[base]
            else:
                self._counts[base] = count

    def name_with_count(self, name: str) -> str:
        """Return ``name``, suffixed with the current count if the model is known."""
        with self._lock:
            count = self._counts.get(name)
        return name if count is None else f"{name} ({count})"

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()


DEFAULT_REGISTRY = DeviceNameRegistry()


class MidiDevice:
    """A pair of ports that verifies its model on creation.

    Once the identity reply matches a known model the device becomes
    AVAILABLE and forwards three-byte messages to ``key_callback``.
    """

    def __init__(
        self,
        in_port: int,
        out_port: int,
        backend: MidiBackend,
        *,
        registry: DeviceNameRegistry | None = None,
        known_devices: Mapping[str, DeviceIdentifier] | None = None,
    ) -> None:
        self._backend = backend
        self._registry = DEFAULT_REGISTRY if registry is None else registry
        self._known_devices = dict(KNOWN_DEVICES if known_devices is None else known_devices)
        self._lock = threading.Lock()
        self._recording_lock = threading.Lock()
        self._identity = b""
        self._name = ""
        self._availability = Availability.UNAVAILABLE
        self._registered = False
        self._input = None
        self._output = None
        self._handler: Callable[[float, bytes], None] | None = None
        self._is_recording = False
        self._recorded: list[MidiMessage] = []
        self.in_port = -1
        self.out_port = -1
        self.key_callback: Callable[[MidiMessage], None] | None = None
        self.verify_callback: Callable[[], None] | None = None

        self.open(in_port, out_port)
        self.verify()

    def verify(self) -> None:
        """Send an identity request and wait for the reply."""
        with self._lock:
            self._availability = Availability.VERIFYING
        if self._output is None:
            log.warning("cannot send identity request: no output port is open")
            return
        self._output.send(IDENTITY_REQUEST)

    def open(self, in_port: int, out_port: int) -> None:
        """Open both ports; failures are logged and leave the ports unset."""
        try:
            self._close_ports()
            self._handler = self._handle_identity
            self._input = self._backend.open_input(in_port, self._dispatch)
            self._output = self._backend.open_output(out_port)
            self.in_port = in_port
            self.out_port = out_port
        except MidiBackendError as exc:
            log.error("%s", exc)

    def close(self) -> None:
        """Close both ports and give the device's name back to the registry."""
        self._close_ports()
        if self._registered:
            self._registry.remove(self._name)
            self._registered = False

    @property
    def availability(self) -> Availability:
        return self._availability

    @property
    def identity(self) -> bytes:
        """The raw identity reply, empty until one has arrived."""
        with self._lock:
            return self._identity

    @property
    def name(self) -> str:
        return self._name

    def start_recording(self) -> None:
        with self._recording_lock:
            self._recorded.clear()
            self._is_recording = True

    def stop_recording(self) -> None:
        self._is_recording = False

    @property
    def recording(self) -> list[MidiMessage]:
        """A copy of the messages recorded so far."""
        with self._recording_lock:
            return list(self._recorded)

    def _close_ports(self) -> None:
        try:
            if self._input is not None and self._input.is_open:
                self._handler = None
                self._input.close()
                self._input = None
            if self._output is not None and self._output.is_open:
                self._output.close()
                self._output = None
            self.in_port = -1
            self.out_port = -1
        except MidiBackendError as exc:
            log.error("%s", exc)

    def _dispatch(self, delta: float, data: bytes) -> None:
        data = bytes(data)
        if data[:1] == bytes((_ACTIVE_SENSING,)):
            return
        handler = self._handler
        if handler is not None:
            handler(delta, data)

    def _handle_identity(self, delta: float, data: bytes) -> None:
        if len(data) == 3:
            return
        if (
            len(data) < 6
            or data[0] != 0xF0
            or data[1] != 0x7E
            or data[3] != 0x06
            or data[4] != 0x02
        ):
            with self._lock:
                self._availability = Availability.UNAVAILABLE
            return
        with self._lock:
            self._identity = data
        self._match_identity(data)

    def _match_identity(self, data: bytes) -> None:
        log.debug("%s", " ".join(f"{byte:02x}" for byte in data))
        if len(data) < _HEADER_SIZE + _FOOTER_SIZE:
            log.error("Message too short.")
            return
        payload = data[_HEADER_SIZE:-_FOOTER_SIZE]

        for device_name, ident in self._known_devices.items():
            man, dev = ident.manufacturer_id, ident.device_code
            if len(payload) < len(man) + len(dev):
                log.debug("%s: payload too small", device_name)
                continue
            if payload[: len(man)] != man:
                log.warning("%s: manufacturer mismatch", device_name)
                continue
            if payload[len(man) : len(man) + len(dev)] == dev:
                with self._lock:
                    self._availability = Availability.AVAILABLE
                    self._name = self._registry.name_with_count(device_name)
                    self._registry.add(device_name)
                    self._registered = True
                    self._handler = self._handle_key
                log.debug("Device matches: %s", self._name)
                callback = self.verify_callback
                if callback is not None:
                    callback()
                break

    def _handle_key(self, delta: float, data: bytes) -> None:
        if len(data) != 3:
            return
        callback = self.key_callback
        if callback is None:
            return
        message = MidiMessage(data[0], data[1], data[2], delta)
        callback(message)
        if self._is_recording:
            with self._recording_lock:
                self._recorded.append(message)