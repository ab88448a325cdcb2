"""Access to the system's MIDI ports."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Any

import mido

MessageCallback = Callable[[float, bytes], None]
"""Called with the seconds since the previous message and the raw message bytes."""


class MidiBackendError(Exception):
    """Raised when a MIDI port cannot be listed, opened or written."""


class MidiBackend(ABC):
    """Lists MIDI ports and opens them by index.

    ``open_input`` returns a handle with ``close()`` and ``is_open``;
    ``open_output`` returns a handle that also has ``send(data)``.
    """

    @abstractmethod
    def input_names(self) -> list[str]:
        """Return the names of the input ports."""

    @abstractmethod
    def output_names(self) -> list[str]:
        """Return the names of the output ports."""

    @abstractmethod
    def open_input(self, index: int, callback: MessageCallback) -> Any:
        """Open an input port; incoming messages are passed to ``callback``."""

    @abstractmethod
    def open_output(self, index: int) -> Any:
        """Open an output port."""


def _wrap_errors(action: str, func: Callable[[], Any]) -> Any:
    try:
        return func()
    except MidiBackendError:
        raise
    except Exception as exc:
        raise MidiBackendError(f"{action}: {exc}") from exc


class _MidoInput:
    def __init__(self, callback: MessageCallback) -> None:
        self._callback = callback
        self._last: float | None = None
        self.port: Any = None

    def receive(self, message: mido.Message) -> None:
        now = time.monotonic()
        delta = 0.0 if self._last is None else now - self._last
        self._last = now
        self._callback(delta, bytes(message.bytes()))

    @property
    def is_open(self) -> bool:
        return self.port is not None and not self.port.closed

    def close(self) -> None:
        _wrap_errors("closing input port", self.port.close)


class _MidoOutput:
    def __init__(self, port: Any) -> None:
        self.port = port

    @property
    def is_open(self) -> bool:
        return not self.port.closed

    def send(self, data: Sequence[int]) -> None:
        def _send() -> None:
            self.port.send(mido.Message.from_bytes(list(data)))

        _wrap_errors("sending message", _send)

    def close(self) -> None:
        _wrap_errors("closing output port", self.port.close)


class MidoBackend(MidiBackend):
    """Backend over mido; ``mido_backend`` defaults to mido's own default backend."""

    def __init__(self, mido_backend: Any = None) -> None:
        self._mido = mido if mido_backend is None else mido_backend

    def input_names(self) -> list[str]:
        return list(_wrap_errors("listing input ports", self._mido.get_input_names))

    def output_names(self) -> list[str]:
        return list(_wrap_errors("listing output ports", self._mido.get_output_names))

    def open_input(self, index: int, callback: MessageCallback) -> _MidoInput:
        name = self._port_name(self.input_names(), index, "input")
        handle = _MidoInput(callback)
        handle.port = _wrap_errors(
            f"opening input port {name!r}",
            lambda: self._mido.open_input(name, callback=handle.receive),
        )
        return handle

    def open_output(self, index: int) -> _MidoOutput:
        name = self._port_name(self.output_names(), index, "output")
        port = _wrap_errors(
            f"opening output port {name!r}", lambda: self._mido.open_output(name)
        )
        return _MidoOutput(port)

    @staticmethod
    def _port_name(names: list[str], index: int, kind: str) -> str:
        if not 0 <= index < len(names):
            raise MidiBackendError(f"invalid {kind} port number {index}")
        return names[index]