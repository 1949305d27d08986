import pytest

from farmrelay.datatypes import (
    Command,
    DataReading,
    Event,
    GatewayState,
    Peer,
    PingType,
    SystemPacket,
    TimeNetIf,
    TimeSourceKind,
    pack_readings,
)
from farmrelay.espnow import (
    ESPNOW_SIZE,
    PEER_SLOTS,
    PEER_TIMEOUT,
    EspNowError,
    EspNowGateway,
)

PREFIX = bytes([0xAA, 0xBB, 0x11, 0x22, 0x33])
STRANGER = bytes([0x02, 0x00, 0x00, 0x00, 0x00, 0x42])


class FakeTransport:
    def __init__(self, fail_send=False, fail_add=False):
        self.fail_send = fail_send
        self.fail_add = fail_add
        self.sent = []
        self.peers = set()
        self.added = []
        self.deleted = []

    def send(self, dest, data):
        if self.fail_send:
            raise EspNowError("send")
        self.sent.append((dest, bytes(data)))

    def add_peer(self, mac):
        if self.fail_add:
            raise EspNowError("add")
        self.peers.add(mac)
        self.added.append(mac)

    def del_peer(self, mac):
        self.peers.discard(mac)
        self.deleted.append(mac)

    def peer_exists(self, mac):
        return mac in self.peers


class Clock:
    def __init__(self, now=1000):
        self.now = now

    def __call__(self):
        return self.now


def make(transport=None, clock=None, set_time=None):
    state = GatewayState()
    transport = transport or FakeTransport()
    gw = EspNowGateway(state, transport, PREFIX, 0x02, 0x01, 0x04,
                       clock or Clock(), set_time, None)
    return gw, state, transport


def test_bad_prefix_rejected():
    with pytest.raises(ValueError):
        EspNowGateway(GatewayState(), FakeTransport(), b"\x01\x02", 1)


def test_short_frame_is_command():
    gw, state, _ = make()
    gw.on_receive(STRANGER, SystemPacket(Command.PING, 1).pack())
    assert state.command == SystemPacket(Command.PING, 1)
    assert state.new_data == Event.CLEAR
    assert gw.inc_mac == STRANGER


def test_readings_from_neighbor_one():
    gw, state, _ = make()
    readings = [DataReading(1.5, 7, 1), DataReading(-2.25, 8, 3)]
    gw.on_receive(PREFIX + b"\x01", pack_readings(readings))
    assert state.readings == readings
    assert state.new_data == Event.ESPNOW1


def test_readings_from_neighbor_two_and_stranger():
    gw, state, _ = make()
    data = pack_readings([DataReading(0.5, 1, 1)])
    gw.on_receive(PREFIX + b"\x04", data)
    assert state.new_data == Event.ESPNOW2
    gw.on_receive(STRANGER, data)
    assert state.new_data == Event.ESPNOWG


def test_find_peer_slot_empty_table():
    gw, _, _ = make()
    assert gw.find_peer_slot() == 0


def test_find_peer_slot_full_then_expired():
    clock = Clock(5000)
    gw, _, transport = make(clock=clock)
    gw.peers = [Peer(bytes([0, 0, 0, 0, 0, i]), 5000) for i in range(PEER_SLOTS)]
    assert gw.find_peer_slot() is None
    clock.now = 5000 + PEER_TIMEOUT + 1
    assert gw.find_peer_slot() == 0
    assert transport.deleted == [gw.peers[0].mac]


def test_get_peer():
    gw, _, _ = make()
    gw.peers[3] = Peer(STRANGER, 10)
    assert gw.get_peer(STRANGER) == 3
    assert gw.get_peer(PREFIX + b"\x09") is None


def test_add_peer_registers_and_replies():
    gw, _, transport = make()
    gw.inc_mac = STRANGER
    gw.add_peer()
    assert gw.peers[0] == Peer(STRANGER, 1000)
    assert transport.added == [STRANGER]
    assert transport.sent == [(STRANGER, SystemPacket(Command.ADD, PEER_TIMEOUT).pack())]


def test_add_peer_refreshes_and_sends_time():
    clock = Clock(1000)
    gw, _, transport = make(clock=clock)
    gw.inc_mac = STRANGER
    gw.add_peer()
    clock.now = 2000
    gw.add_peer(now=1709300000)
    assert gw.peers[0].last_seen == 2000
    assert gw.get_peer(STRANGER) == 0
    assert transport.sent[-1] == (STRANGER, SystemPacket(Command.TIME, 1709300000).pack())


def test_add_peer_full_table_raises():
    gw, _, _ = make()
    gw.peers = [Peer(bytes([0, 0, 0, 0, 1, i]), 1000) for i in range(PEER_SLOTS)]
    gw.inc_mac = STRANGER
    with pytest.raises(EspNowError):
        gw.add_peer()


def test_pingback_uses_temporary_peer():
    gw, _, transport = make()
    gw.inc_mac = STRANGER
    gw.pingback()
    assert transport.sent == [(STRANGER, SystemPacket(Command.PING, PingType.REPLY).pack())]
    assert transport.deleted == [STRANGER]
    assert transport.peers == set()


def test_send_neighbor_splits_frames():
    gw, state, transport = make()
    state.readings = [DataReading(float(i), i, 1) for i in range(ESPNOW_SIZE + 5)]
    gw.send_neighbor(1)
    frames = [data for _, data in transport.sent]
    assert [dest for dest, _ in transport.sent] == [PREFIX + b"\x01"] * 2
    assert all(len(f) <= 250 for f in frames)
    assert b"".join(frames) == pack_readings(state.readings)
    assert transport.deleted == [PREFIX + b"\x01"]


def test_send_neighbor_add_failure_sends_nothing():
    gw, state, transport = make(FakeTransport(fail_add=True))
    state.readings = [DataReading(1.0, 1, 1)]
    gw.send_neighbor(2)
    assert transport.sent == []


def test_send_neighbor_unknown_interface():
    gw, state, transport = make()
    state.readings = [DataReading(1.0, 1, 1)]
    gw.send_neighbor(3)
    assert transport.sent == []


def test_send_peers_only_active():
    clock = Clock(PEER_TIMEOUT * 2)
    gw, state, transport = make(clock=clock)
    fresh = PREFIX + b"\x10"
    stale = PREFIX + b"\x11"
    gw.peers[0] = Peer(fresh, clock.now - 5)
    gw.peers[1] = Peer(stale, clock.now - PEER_TIMEOUT - 5)
    state.readings = [DataReading(3.0, 2, 1)]
    gw.send_peers()
    assert transport.sent == [(fresh, pack_readings(state.readings))]


def test_send_to_address():
    gw, state, transport = make()
    state.readings = [DataReading(3.0, 2, 1)]
    gw.send_to(0x07)
    assert transport.sent == [(PREFIX + b"\x07", pack_readings(state.readings))]


def test_send_system_known_and_broadcast():
    gw, _, transport = make()
    transport.peers.add(STRANGER)
    packet = SystemPacket(Command.ACK, 3)
    gw.send_system(STRANGER, packet)
    gw.send_system(None, packet)
    assert transport.sent == [(STRANGER, packet.pack()), (None, packet.pack())]
    assert transport.deleted == []


def test_send_system_failure_raises_and_cleans_up():
    gw, _, transport = make(FakeTransport(fail_send=True))
    with pytest.raises(EspNowError):
        gw.send_system(STRANGER, SystemPacket(Command.TIME, 0))
    assert transport.deleted == [STRANGER]


def test_send_readings_round_trip():
    gw, _, transport = make()
    readings = [DataReading(float(i), i, 2) for i in range(2 * ESPNOW_SIZE)]
    gw.send_readings(STRANGER, readings)
    assert len(transport.sent) == 2
    decoded = [r for _, f in transport.sent for r in DataReading.unpack_many(f)]
    assert decoded == readings


def test_recv_time_adopts_source():
    calls = []
    gw, state, _ = make(set_time=lambda t: calls.append(t) or True)
    gw.inc_mac = STRANGER
    assert gw.recv_time(1709300000) is True
    src = state.time_source
    assert src.net_if == TimeNetIf.ESPNOW
    assert src.source == TimeSourceKind.NET
    assert src.address == STRANGER[5]
    assert src.last_time_set == 1000
    assert calls == [1709300000]


def test_recv_time_discarded_when_serial_source():
    calls = []
    gw, state, _ = make(set_time=lambda t: calls.append(t) or True)
    state.time_source.net_if = TimeNetIf.SERIAL
    gw.inc_mac = STRANGER
    assert gw.recv_time(1709300000) is False
    assert calls == []


def test_send_time_to_neighbors_and_peers():
    gw, _, transport = make()
    gw.send_time(1709300000)
    packet = SystemPacket(Command.TIME, 1709300000).pack()
    assert transport.sent == [(PREFIX + b"\x01", packet), (PREFIX + b"\x04", packet), (None, packet)]


def test_send_time_failure_raises():
    gw, _, _ = make(FakeTransport(fail_send=True))
    with pytest.raises(EspNowError):
        gw.send_time(1709300000)


def test_send_time_to_node():
    gw, _, transport = make()
    gw.send_time_to(STRANGER, 1709300000)
    assert transport.sent == [(STRANGER, SystemPacket(Command.TIME, 1709300000).pack())]