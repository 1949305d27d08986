"""Wire records, enumerations and shared gateway state."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, ClassVar, Iterable

_READING = struct.Struct("<fHB")
_PACKET = struct.Struct("<BI")

UINT32_MAX = 0xFFFFFFFF
MAX_READINGS = 256


class Command(IntEnum):
    """System packet commands."""

    CLEAR = 0
    PING = 1
    ADD = 2
    ACK = 3
    TIME = 4


class PingType(IntEnum):
    REQUEST = 0
    REPLY = 1


class PingState(IntEnum):
    READY = 0
    IN_PROCESS = 1
    CRC_MISMATCH = 2
    CRC_MATCH = 3
    COMPLETED = 4


class CrcResult(IntEnum):
    NULL = 0
    OK = 1
    BAD = 2


class Event(IntEnum):
    """Where the most recent batch of readings came from."""

    CLEAR = 0
    ESPNOWG = 1
    ESPNOW1 = 2
    ESPNOW2 = 3
    SERIAL = 4
    MQTT = 5
    LORAG = 6
    LORA1 = 7
    LORA2 = 8
    INTERNAL = 9


class TimeNetIf(IntEnum):
    """Interface through which the time source is reached."""

    NONE = 0
    LORA = 1
    ESPNOW = 2
    SERIAL = 3
    LOCAL = 4


class TimeSourceKind(IntEnum):
    """Kind of clock that sets the time."""

    NONE = 0
    NET = 1
    RTC = 2
    NTP = 3
    GPS = 4


class DataType(IntEnum):
    """Reading types understood across the network."""

    STATUS = 0
    TEMP = 1
    TEMP2 = 2
    HUMIDITY = 3
    PRESSURE = 4
    LIGHT = 5
    SOIL = 6
    SOIL2 = 7
    SOILR = 8
    SOILR2 = 9
    OXYGEN = 10
    CO2 = 11
    WINDSPD = 12
    WINDHDG = 13
    RAINFALL = 14
    MOTION = 15
    VOLTAGE = 16
    VOLTAGE2 = 17
    CURRENT = 18
    CURRENT2 = 19
    IT = 20
    LATITUDE = 21
    LONGITUDE = 22
    ALTITUDE = 23
    HDOP = 24
    LEVEL = 25
    UV = 26
    PM1 = 27
    PM2_5 = 28
    PM10 = 29
    POWER = 30
    POWER2 = 31
    ENERGY = 32
    ENERGY2 = 33
    WEIGHT = 34
    WEIGHT2 = 35


@dataclass
class DataReading:
    """One sensor value: data, sensor id and reading type."""

    d: float
    id: int
    t: int

    SIZE: ClassVar[int] = _READING.size

    def pack(self) -> bytes:
        try:
            return _READING.pack(self.d, self.id, self.t)
        except struct.error as exc:
            raise ValueError(f"reading out of range: {self!r}") from exc

    @classmethod
    def unpack(cls, data: bytes) -> "DataReading":
        if len(data) < cls.SIZE:
            raise ValueError(f"need {cls.SIZE} bytes for a reading, got {len(data)}")
        d, id_, t = _READING.unpack_from(data)
        return cls(d, id_, t)

    @classmethod
    def unpack_many(cls, data: bytes) -> list["DataReading"]:
        """Decode every whole reading in ``data``; trailing bytes are ignored."""
        usable = len(data) - len(data) % cls.SIZE
        return [cls(d, id_, t) for d, id_, t in _READING.iter_unpack(data[:usable])]


def pack_readings(readings: Iterable[DataReading]) -> bytes:
    """Concatenate the wire form of several readings."""
    return b"".join(reading.pack() for reading in readings)


@dataclass
class SystemPacket:
    """A command with a 32-bit parameter."""

    cmd: int
    param: int = 0

    SIZE: ClassVar[int] = _PACKET.size

    def pack(self) -> bytes:
        try:
            return _PACKET.pack(self.cmd, self.param)
        except struct.error as exc:
            raise ValueError(f"system packet out of range: {self!r}") from exc

    @classmethod
    def unpack(cls, data: bytes) -> "SystemPacket":
        if len(data) < cls.SIZE:
            raise ValueError(f"need {cls.SIZE} bytes for a system packet, got {len(data)}")
        cmd, param = _PACKET.unpack_from(data)
        try:
            cmd = Command(cmd)
        except ValueError:
            pass
        return cls(cmd, param)


@dataclass
class TimeSource:
    net_if: TimeNetIf = TimeNetIf.NONE
    address: int = 0
    source: TimeSourceKind = TimeSourceKind.NONE
    last_time_set: int = 0


@dataclass
class Peer:
    mac: bytes = bytes(6)
    last_seen: int = 0


@dataclass
class Ping:
    status: PingState = PingState.READY
    start: int = 0
    timeout: int = 0
    address: int = 0
    response: int = UINT32_MAX


@dataclass
class GatewayState:
    """Data shared between a gateway's interfaces."""

    command: SystemPacket = field(default_factory=lambda: SystemPacket(Command.CLEAR, 0))
    readings: list[DataReading] = field(default_factory=list)
    new_data: Event = Event.CLEAR
    time_source: TimeSource = field(default_factory=TimeSource)

    def clear_command(self) -> None:
        self.command = SystemPacket(Command.CLEAR, 0)


class DebugLog:
    """Levelled debug output: plain lines plus level 1 and level 2 detail."""

    def __init__(
        self,
        level: int = 0,
        enabled: bool = True,
        sink: Callable[[str], object] | None = None,
    ) -> None:
        self.level = level
        self.enabled = enabled
        self._sink = sink if sink is not None else print

    def dbg(self, message: object) -> None:
        if self.enabled:
            self._sink("    " + str(message))

    def dbg1(self, message: object) -> None:
        if self.enabled and self.level >= 1:
            self._sink("[1] " + str(message))

    def dbg2(self, message: object) -> None:
        if self.enabled and self.level >= 2:
            self._sink("[2] " + str(message))