# midimanager

`midimanager` finds MIDI controllers attached to the machine, pairs their
input and output ports, and asks each pair for its identity with a SysEx
Identity Request (`F0 7E 7F 06 01 F7`). A device whose reply matches a
known model becomes available, and the three-byte messages it sends
(notes, pads, controllers) are passed to your code and can be recorded.

The only model it knows is the Novation Launchpad Pro. When several
devices of one model are attached they get distinct names: the first is
`Novation Launchpad Pro`, the next `Novation Launchpad Pro (1)`, and so on.

## Installation

```
pip install .
```

Ports are opened through `mido`, so a working `mido` backend is needed
(usually `python-rtmidi`).

## Command line

```
midimanager
```

This turns on debug logging, scans the ports, verifies the devices it
finds and starts recording. For every message a verified device sends it
prints `<device name> : CALLED`. Press Enter to stop; for each device that
recorded anything it then prints the device name and the number of
messages captured:

```
Novation Launchpad Pro : 42
```

The command takes no options other than `--help`. Port errors during the
scan are logged rather than stopping the command.

## Library use

```python
from midimanager.manager import MidiManager

def on_message(device, message):
    print(device.name, message.type().name, message.channel(), message.key)

with MidiManager() as manager:
    manager.midi_callback = on_message
    manager.devices_refresh_callback = lambda: print("all devices verified")
    manager.refresh()

    manager.start_recording()
    input("Recording, press Enter to stop... ")
    manager.stop_recording()

    for name, messages in manager.recordings():
        print(name, len(messages))
```

### `midimanager.manager`

- `MidiManager(backend=None, *, registry=None, known_devices=None)` uses
  `MidoBackend` when no backend is given. Leaving the `with` block, or
  calling `close()`, closes every device's ports.
- `refresh()` closes and forgets the current devices, then opens a
  `MidiDevice` for every input/output pair for which `ports_match` is true.
  Backend errors during the scan are logged and end the scan.
- `devices()` lists all devices from the last refresh;
  `available_devices()` lists those not found unsupported, that is, those
  verifying or available.
- `start_recording()` / `stop_recording()` act on `available_devices()`.
- `recordings()` returns `(name, messages)` pairs for devices that have
  recorded at least one message.
- `midi_callback(device, message)` is called for each message from a
  verified device. `devices_refresh_callback()` is called when a device
  has been verified and no device is still verifying.
- `ports_match(in_name, out_name, strip_trailing_digit=None)` compares the
  names upper-cased, with `IN` removed from the input name and `OUT` from
  the output name. With `strip_trailing_digit` one final digit is also
  dropped from each name; by default this is done only on Windows.

### `midimanager.device`

A `MidiDevice(in_port, out_port, backend, *, registry=None,
known_devices=None)` opens both ports and sends the identity request at
once. Failures to open are logged and leave the ports closed.

- `availability` is an `Availability` member: `VERIFYING` until a reply
  arrives, `AVAILABLE` when the reply matches a model in `known_devices`
  (by default `KNOWN_DEVICES`), `UNAVAILABLE` when the reply is not an
  identity reply.
- `identity` holds the raw identity reply, `name` the device's name.
- `key_callback(message)` and `verify_callback()` may be set as attributes.
- `start_recording()` clears earlier messages and starts keeping them;
  `stop_recording()` stops; `recording` returns a copy of what was kept.
  Messages are kept only while a `key_callback` is set.
- `verify()` sends the identity request again; `open(in_port, out_port)`
  reopens the ports; `close()` closes them and gives the name back to the
  registry.

Names are counted per model in a `DeviceNameRegistry` (`add`, `remove`,
`name_with_count`, `reset`). Devices share `DEFAULT_REGISTRY` unless given
their own. `DeviceIdentifier(manufacturer_id, device_code)` describes a
model by the bytes that follow the five-byte header of its reply.
Active-sensing messages (`FE`) are ignored.

### `midimanager.message`

`MidiMessage(status, key, velocity, timestamp=0.0)` is a frozen dataclass.
`timestamp` is the number of seconds since the previous message on the
same input port.

- `type()` returns a `MessageType` member (`NOTE_OFF`, `NOTE_ON`,
  `POLYPHONIC_KEY_PRESSURE`, `CONTROL_CHANGE`, `PROGRAM_CHANGE`,
  `CHANNEL_AFTERTOUCH`, `PITCH_BEND`, or `UNKNOWN`).
- `channel()` returns 1 to 16 for statuses `0x80` to `0xEF`, and -1
  otherwise.

### `midimanager.backend`

Port access goes through a `MidiBackend` with `input_names()`,
`output_names()`, `open_input(index, callback)` and `open_output(index)`.
`MidoBackend(mido_backend=None)` is the default. A backend of your own, for
example one driving virtual ports in tests, can be given to `MidiManager`
or `MidiDevice`. Failures are raised as `MidiBackendError`.

## What it does not do

- There is no timeout on verification: a device that never answers the
  identity request stays `VERIFYING`.
- It sends nothing to devices apart from the identity request.
- Recordings live in memory only; nothing is saved to a file.