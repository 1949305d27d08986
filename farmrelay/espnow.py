"""ESP-NOW side of a gateway: peers, neighbours, readings and time."""

from __future__ import annotations

import time
from typing import Callable, Iterator, Protocol, Sequence

from farmrelay.datatypes import (
    MAX_READINGS,
    Command,
    DataReading,
    DebugLog,
    Event,
    GatewayState,
    Peer,
    PingType,
    SystemPacket,
    TimeNetIf,
    TimeSourceKind,
    pack_readings,
)

PEER_TIMEOUT = 300000
PEER_SLOTS = 16
MAX_FRAME = 250
ESPNOW_SIZE = MAX_FRAME // DataReading.SIZE
BROADCAST_MAC = b"\xff" * 6
_MASK32 = 0xFFFFFFFF


def _millis() -> int:
    return int(time.monotonic() * 1000) & _MASK32


def _short_address(mac: bytes) -> int:
    return mac[4] << 8 | mac[5]


class EspNowError(Exception):
    """A peer could not be added or a frame could not be sent."""


class EspNowTransport(Protocol):
    """The radio: sends frames and keeps the table of registered peers.

    ``send`` with ``dest`` of None sends to every registered peer.
    Failures are reported by raising :class:`EspNowError`.
    """

    def send(self, dest: bytes | None, data: bytes) -> None: ...

    def add_peer(self, mac: bytes) -> None: ...

    def del_peer(self, mac: bytes) -> None: ...

    def peer_exists(self, mac: bytes) -> bool: ...


class EspNowGateway:
    """Receives and forwards readings and system packets over ESP-NOW."""

    def __init__(
        self,
        state: GatewayState,
        transport: EspNowTransport,
        mac_prefix: bytes,
        unit_mac: int,
        neighbor1: int = 0x00,
        neighbor2: int = 0x00,
        clock: Callable[[], int] | None = None,
        set_time: Callable[[int], bool] | None = None,
        log: DebugLog | None = None,
    ) -> None:
        mac_prefix = bytes(mac_prefix)
        if len(mac_prefix) != 5:
            raise ValueError(f"MAC prefix must be 5 bytes, got {len(mac_prefix)}")
        self.state = state
        self.transport = transport
        self.mac_prefix = mac_prefix
        self.address = mac_prefix + bytes([unit_mac])
        self.neighbor1 = mac_prefix + bytes([neighbor1])
        self.neighbor2 = mac_prefix + bytes([neighbor2])
        self.peers = [Peer() for _ in range(PEER_SLOTS)]
        self.inc_mac = bytes(6)
        self._clock = clock if clock is not None else _millis
        self._set_time = set_time if set_time is not None else (lambda _t: False)
        self._log = log if log is not None else DebugLog(enabled=False)

    # Receiving

    def on_receive(self, mac: bytes, data: bytes) -> None:
        """Store an incoming frame as a command or as a batch of readings."""
        self.inc_mac = bytes(mac)
        if len(data) < DataReading.SIZE:
            self._log.dbg1(f"Incoming ESP-NOW System Packet from 0x{self.inc_mac[5]:x}")
            self.state.command = SystemPacket.unpack(bytes(data).ljust(SystemPacket.SIZE, b"\0"))
            return
        self.state.readings = DataReading.unpack_many(bytes(data))[:MAX_READINGS]
        self._log.dbg(f"Incoming ESP-NOW DataReading from 0x{self.inc_mac[5]:x}")
        if self.inc_mac == self.neighbor1:
            self.state.new_data = Event.ESPNOW1
        elif self.inc_mac == self.neighbor2:
            self.state.new_data = Event.ESPNOW2
        else:
            self.state.new_data = Event.ESPNOWG

    # Peer registry

    def _expired(self, peer: Peer) -> bool:
        return (self._clock() - peer.last_seen) & _MASK32 > PEER_TIMEOUT

    def find_peer_slot(self) -> int | None:
        """Index of a free or expired peer slot, or None when all are in use."""
        for index, peer in enumerate(self.peers):
            if peer.last_seen == 0:
                self._log.dbg1(f"Using peer entry {index}")
                return index
        for index, peer in enumerate(self.peers):
            if self._expired(peer):
                self._log.dbg1(f"Recycling peer entry {index}")
                self.transport.del_peer(peer.mac)
                return index
        self._log.dbg("No open peers")
        return None

    def get_peer(self, mac: bytes) -> int | None:
        """Index of the slot registered to ``mac``, or None."""
        self._log.dbg2("Getting peer #")
        mac = bytes(mac)
        for index, peer in enumerate(self.peers):
            if peer.mac == mac:
                self._log.dbg1(f"Peer is entry #{index}")
                return index
        self._log.dbg1("Couldn't find peer")
        return None

    def add_peer(self, now: int | None = None) -> None:
        """Register or refresh the sender; also send ``now`` when the time is known."""
        self._log.dbg1("Device requesting peer registration")
        mac = self.inc_mac
        reply = SystemPacket(Command.ADD, PEER_TIMEOUT).pack()
        index = self.get_peer(mac)
        if index is None:
            slot = self.find_peer_slot()
            if slot is None:
                raise EspNowError("No open peers")
            self._log.dbg(f"Registering new peer. Slot: {slot}")
            self.peers[slot] = Peer(mac, self._clock())
            try:
                self.transport.add_peer(mac)
            except EspNowError:
                self._log.dbg("Failed to add peer")
                return
        else:
            self._log.dbg1("Refreshing existing peer registration")
            self.peers[index].last_seen = self._clock()
        self._try_send(mac, reply)
        if now is not None:
            self._try_send(mac, SystemPacket(Command.TIME, now).pack())

    def pingback(self) -> None:
        """Answer a ping from the sender."""
        self._log.dbg("Sending ESP-NOW Ping Reply")
        reply = SystemPacket(Command.PING, PingType.REPLY).pack()
        mac = self.inc_mac
        if self.transport.peer_exists(mac):
            self._try_send(mac, reply)
            return
        try:
            self.transport.add_peer(mac)
        except EspNowError:
            self._log.dbg("Failed to add peer")
            return
        try:
            self._try_send(mac, reply)
        finally:
            self.transport.del_peer(mac)

    # Sending readings

    @staticmethod
    def _frames(readings: Sequence[DataReading]) -> Iterator[bytes]:
        for start in range(0, len(readings), ESPNOW_SIZE):
            yield pack_readings(readings[start:start + ESPNOW_SIZE])

    def _try_send(self, dest: bytes | None, data: bytes) -> None:
        try:
            self.transport.send(dest, data)
        except EspNowError as exc:
            self._log.dbg(f"ESP-NOW send failed: {exc}")

    def _send_via_temp_peer(self, dest: bytes) -> None:
        try:
            self.transport.add_peer(dest)
        except EspNowError:
            self._log.dbg("Failed to add peer")
            return
        try:
            for frame in self._frames(self.state.readings):
                self._try_send(dest, frame)
        finally:
            self.transport.del_peer(dest)

    def send_neighbor(self, interface: int) -> None:
        """Forward the current readings to neighbour 1 or 2."""
        if interface == 1:
            dest = self.neighbor1
        elif interface == 2:
            dest = self.neighbor2
        else:
            return
        self._log.dbg(f"Sending DR to ESP-NOW Neighbor #{interface}")
        self._send_via_temp_peer(dest)

    def send_peers(self) -> None:
        """Forward the current readings to every peer that has not timed out."""
        self._log.dbg("Sending DR to ESP-NOW peers.")
        frames = list(self._frames(self.state.readings))
        for peer in self.peers:
            if peer.last_seen != 0 and not self._expired(peer) and (
                (self._clock() - peer.last_seen) & _MASK32 < PEER_TIMEOUT
            ):
                for frame in frames:
                    self._try_send(peer.mac, frame)

    def send_to(self, address: int) -> None:
        """Forward the current readings to the gateway with this one-byte address."""
        self._log.dbg("Sending ESP-NOW DR.")
        self._send_via_temp_peer(self.mac_prefix + bytes([address]))

    def send_system(self, dest: bytes | None, packet: SystemPacket) -> None:
        """Send one system packet; None sends to all registered peers."""
        data = packet.pack()
        if dest is not None and not self.transport.peer_exists(dest):
            try:
                self.transport.add_peer(dest)
            except EspNowError:
                self._log.dbg("Failed to add peer")
                raise
            try:
                self.transport.send(dest, data)
            finally:
                self.transport.del_peer(dest)
        else:
            self.transport.send(dest, data)

    def send_readings(self, dest: bytes | None, readings: Sequence[DataReading]) -> None:
        """Send readings in frames of at most ``ESPNOW_SIZE``; failures raise."""
        temporary = dest is not None and not self.transport.peer_exists(dest)
        if temporary:
            try:
                self.transport.add_peer(dest)
            except EspNowError:
                self._log.dbg("Failed to add peer")
                raise
        try:
            for frame in self._frames(readings):
                self.transport.send(dest, frame)
        finally:
            if temporary:
                self.transport.del_peer(dest)

    # Time

    def recv_time(self, t: int) -> bool:
        """Accept a time from the sender if it is (or may become) the time source."""
        source = self.state.time_source
        sender = _short_address(self.inc_mac)
        if source.net_if > TimeNetIf.ESPNOW:
            self._log.dbg2(
                f"ESP-NOW 0x{self.inc_mac[5]:x} is not time source, discarding request"
            )
            return False
        self._log.dbg1(f"Received time via ESP-NOW from 0x{self.inc_mac[5]:x}")
        if source.net_if < TimeNetIf.ESPNOW:
            source.net_if = TimeNetIf.ESPNOW
            source.address = sender
            source.source = TimeSourceKind.NET
            self._log.dbg1(f"ESP-NOW time source is 0x{self.inc_mac[5]:x}")
        if source.address == sender and self._set_time(t):
            source.last_time_set = self._clock()
            return True
        return False

    def send_time(self, now: int) -> None:
        """Send the time to both neighbours and all peers; raise if any send failed."""
        packet = SystemPacket(Command.TIME, now)
        failed = False
        source_address = self.state.time_source.address
        for number, neighbor in ((1, self.neighbor1), (2, self.neighbor2)):
            if source_address != _short_address(neighbor) and neighbor[5] != 0x00:
                self._log.dbg1(f"Sending time to ESP-NOW Peer {number}")
                try:
                    self.send_system(neighbor, packet)
                except EspNowError:
                    failed = True
        self._log.dbg1("Sending time to ESP-NOW registered peers")
        try:
            self.send_system(None, packet)
        except EspNowError:
            failed = True
        if failed:
            raise EspNowError("sending time over ESP-NOW failed")

    def send_time_to(self, addr: bytes, now: int) -> None:
        """Send the time to one node."""
        self._log.dbg1(f"Sending time to ESP-NOW address 0x{addr[5]:x}")
        self.send_system(bytes(addr), SystemPacket(Command.TIME, now))