import pytest

from midimanager.backend import MidiBackend, MidiBackendError
from midimanager.device import (
    IDENTITY_REQUEST,
    KNOWN_DEVICES,
    Availability,
    DeviceIdentifier,
    DeviceNameRegistry,
    MidiDevice,
)
from midimanager.message import MidiMessage

LAUNCHPAD = "Novation Launchpad Pro"
RESPONSE = bytes.fromhex("f0 7e 00 06 02 00 20 29 51 00 00 00 00 63 66 79 f7")


class FakeInput:
    def __init__(self, callback):
        self.callback = callback
        self.is_open = True

    def close(self):
        self.is_open = False


class FakeOutput:
    def __init__(self):
        self.sent = []
        self.is_open = True

    def send(self, data):
        self.sent.append(bytes(data))

    def close(self):
        self.is_open = False


class FakeBackend(MidiBackend):
    def __init__(self, fail_input=False):
        self.fail_input = fail_input
        self.inputs = []
        self.outputs = []

    def input_names(self):
        return ["Pad In"]

    def output_names(self):
        return ["Pad Out"]

    def open_input(self, index, callback):
        if self.fail_input:
            raise MidiBackendError("no such port")
        port = FakeInput(callback)
        self.inputs.append(port)
        return port

    def open_output(self, index):
        port = FakeOutput()
        self.outputs.append(port)
        return port


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def registry():
    return DeviceNameRegistry()


def feed(backend, data, delta=0.0):
    backend.inputs[-1].callback(delta, data)


def make_verified(backend, registry):
    device = MidiDevice(0, 0, backend, registry=registry)
    feed(backend, RESPONSE)
    return device


def test_creation_sends_identity_request(backend, registry):
    device = MidiDevice(0, 1, backend, registry=registry)
    assert backend.outputs[-1].sent == [bytes([0xF0, 0x7E, 0x7F, 0x06, 0x01, 0xF7])]
    assert IDENTITY_REQUEST == backend.outputs[-1].sent[0]
    assert device.availability is Availability.VERIFYING
    assert (device.in_port, device.out_port) == (0, 1)


def test_identity_reply_makes_device_available(backend, registry):
    device = MidiDevice(0, 0, backend, registry=registry)
    calls = []
    device.verify_callback = lambda: calls.append(device.availability)
    feed(backend, RESPONSE)
    assert device.availability is Availability.AVAILABLE
    assert device.name == LAUNCHPAD
    assert device.identity == RESPONSE
    assert calls == [Availability.AVAILABLE]


def test_second_device_of_same_model_gets_count(backend, registry):
    first = make_verified(backend, registry)
    second = make_verified(backend, registry)
    assert first.name == LAUNCHPAD
    assert second.name == "Novation Launchpad Pro (1)"


def test_three_byte_message_ignored_while_verifying(backend, registry):
    device = MidiDevice(0, 0, backend, registry=registry)
    feed(backend, bytes([0x90, 60, 100]))
    assert device.availability is Availability.VERIFYING


def test_active_sensing_ignored(backend, registry):
    device = MidiDevice(0, 0, backend, registry=registry)
    feed(backend, bytes([0xFE]))
    assert device.availability is Availability.VERIFYING


@pytest.mark.parametrize(
    "data",
    [
        bytes([0xF8]),
        bytes([0xF0, 0x7E, 0x00, 0x06, 0x01, 0xF7]),
        bytes([0xF0, 0x7D, 0x00, 0x06, 0x02, 0xF7]),
        bytes([0xF0, 0x7E, 0x00, 0x07, 0x02, 0xF7]),
    ],
)
def test_malformed_reply_makes_device_unavailable(backend, registry, data):
    device = MidiDevice(0, 0, backend, registry=registry)
    feed(backend, data)
    assert device.availability is Availability.UNAVAILABLE
    assert device.identity == b""


def test_unknown_manufacturer_stays_verifying(backend, registry):
    device = MidiDevice(0, 0, backend, registry=registry)
    reply = bytes.fromhex("f0 7e 00 06 02 00 11 22 51 00 f7")
    feed(backend, reply)
    assert device.availability is Availability.VERIFYING
    assert device.identity == reply
    assert device.name == ""


def test_short_payload_stays_verifying(backend, registry):
    device = MidiDevice(0, 0, backend, registry=registry)
    feed(backend, bytes.fromhex("f0 7e 00 06 02 00 20 f7"))
    assert device.availability is Availability.VERIFYING


def test_custom_known_devices(backend, registry):
    models = {"Test Pad": DeviceIdentifier(bytes([0x7D]), bytes([0x01, 0x02]))}
    device = MidiDevice(0, 0, backend, registry=registry, known_devices=models)
    feed(backend, bytes([0xF0, 0x7E, 0x00, 0x06, 0x02, 0x7D, 0x01, 0x02, 0xF7]))
    assert device.name == "Test Pad"
    assert device.availability is Availability.AVAILABLE


def test_known_devices_contains_launchpad(backend, registry):
    ident = KNOWN_DEVICES[LAUNCHPAD]
    assert ident.manufacturer_id == bytes([0x00, 0x20, 0x29])
    assert ident.device_code == bytes([0x51])
    device = MidiDevice(0, 0, backend, registry=registry)
    reply = (
        bytes([0xF0, 0x7E, 0x00, 0x06, 0x02])
        + ident.manufacturer_id
        + ident.device_code
        + bytes([0xF7])
    )
    feed(backend, reply)
    assert device.name == LAUNCHPAD
    assert device.availability is Availability.AVAILABLE


def test_key_messages_reach_callback_after_verification(backend, registry):
    device = make_verified(backend, registry)
    received = []
    device.key_callback = received.append
    feed(backend, bytes([0x90, 60, 100]), delta=0.25)
    feed(backend, bytes([0xF0, 0x01, 0xF7]))
    assert received == [MidiMessage(0x90, 60, 100, 0.25)]


def test_key_messages_before_verification_not_delivered(backend, registry):
    device = MidiDevice(0, 0, backend, registry=registry)
    received = []
    device.key_callback = received.append
    feed(backend, bytes([0x90, 60, 100]))
    assert received == []


def test_recording(backend, registry):
    device = make_verified(backend, registry)
    device.key_callback = lambda msg: None
    feed(backend, bytes([0x90, 1, 1]))
    device.start_recording()
    feed(backend, bytes([0x90, 60, 100]))
    feed(backend, bytes([0x80, 60, 0]))
    device.stop_recording()
    feed(backend, bytes([0x90, 61, 100]))
    assert [(m.status, m.key, m.velocity) for m in device.recording] == [
        (0x90, 60, 100),
        (0x80, 60, 0),
    ]


def test_start_recording_clears_previous(backend, registry):
    device = make_verified(backend, registry)
    device.key_callback = lambda msg: None
    device.start_recording()
    feed(backend, bytes([0x90, 60, 100]))
    device.start_recording()
    assert device.recording == []


def test_recording_needs_key_callback(backend, registry):
    device = make_verified(backend, registry)
    device.start_recording()
    feed(backend, bytes([0x90, 60, 100]))
    assert device.recording == []


def test_close_releases_ports_and_name(backend, registry):
    device = make_verified(backend, registry)
    assert registry.name_with_count(LAUNCHPAD) != LAUNCHPAD
    device.close()
    assert not backend.inputs[-1].is_open
    assert not backend.outputs[-1].is_open
    assert (device.in_port, device.out_port) == (-1, -1)
    assert registry.name_with_count(LAUNCHPAD) == LAUNCHPAD


def test_open_failure_is_logged_not_raised(registry):
    backend = FakeBackend(fail_input=True)
    device = MidiDevice(2, 3, backend, registry=registry)
    assert (device.in_port, device.out_port) == (-1, -1)
    assert device.availability is Availability.VERIFYING
    assert backend.outputs == []


def test_registry_unknown_name_unchanged(registry):
    assert registry.name_with_count("Keys") == "Keys"
    registry.remove("Keys")
    assert registry.name_with_count("Keys") == "Keys"


def test_registry_add_remove_round_trip(registry):
    registry.add("Keys")
    assert registry.name_with_count("Keys") != "Keys"
    registry.remove("Keys")
    assert registry.name_with_count("Keys") == "Keys"


def test_registry_remove_strips_count_suffix(registry):
    registry.add("Keys")
    registry.remove("Keys (1)")
    assert registry.name_with_count("Keys") == "Keys"


def test_registry_reset(registry):
    registry.add("Keys")
    registry.add("Pads")
    registry.reset()
    assert registry.name_with_count("Keys") == "Keys"
    assert registry.name_with_count("Pads") == "Pads"