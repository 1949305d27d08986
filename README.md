# farmrelay

`farmrelay` holds the building blocks of a gateway in a farm sensor relay
network. Sensor nodes send small readings, each made of a value, a sensor id
and a data type. Gateways collect these readings and forward them to their
neighbours and peers according to a routing table.

## Modules

- `farmrelay.datatypes`: the wire formats and shared state.
  - `DataReading` packs to and unpacks from its 7-byte layout. It has `pack`,
    `unpack` and `unpack_many`, and `pack_readings` joins several readings.
  - `SystemPacket` is a command with a 32-bit parameter, in a 5-byte layout.
  - The enumerations are `Command`, `PingType`, `PingState`, `CrcResult`,
    `Event`, `TimeNetIf`, `TimeSourceKind` and the `DataType` reading codes.
  - `TimeSource`, `Peer`, `Ping` and `GatewayState` hold the gateway's state.
    `GatewayState` holds the pending command, the current readings, the
    source event and the time source.
  - `DebugLog` gives levelled debug output: `dbg`, `dbg1` and `dbg2` write
    to a sink that you choose, which is `print` by default.
- `farmrelay.scheduler`: `Scheduler` is a table of up to 16 periodic
  callbacks driven by a millisecond clock. `schedule` returns `False` when
  the table is full, and `handle` runs every job whose interval has passed.
- `farmrelay.config`: `GatewayConfig` sets addresses, interfaces, hardware
  settings and routes. Routes map an `Event` to a tuple of `Action`s.
  `actions_for` returns the route for one event, and `defines` returns the
  settings as a name-to-value mapping. `gateway_preset` and
  `gateway_preset_names` give the bundled presets: `mqtt_gateway`,
  `uart_gateway`, `espnow_repeater` and `lora_repeater`.
- `farmrelay.sensor_presets`: `NodeConfig`, with its own `defines`, plus
  `sensor_preset` and `sensor_preset_names` for the bundled sensor nodes.
- `farmrelay.node_presets`: `node_preset` and `node_preset_names` for the
  bundled controller and stress-test nodes.
- `farmrelay.espnow`: `EspNowGateway` handles the ESP-NOW side of a gateway.
  - Receiving: `on_receive` stores an incoming frame.
  - Peers: `find_peer_slot`, `get_peer` and `add_peer` manage a registry of
    16 peers, and `pingback` answers pings.
  - Forwarding: `send_neighbor`, `send_peers`, `send_to`, `send_system` and
    `send_readings` send data. Readings go in frames of at most `ESPNOW_SIZE`.
  - Time: `recv_time`, `send_time` and `send_time_to`.

  The radio is whatever object you pass in, as long as it meets the
  `EspNowTransport` protocol. Failures raise `EspNowError`.
- `farmrelay.checkconfig`: turns a mapping of defines into a readable
  configuration overview. `config_report` returns all the lines, and
  `check_config` also writes them to a `DebugLog`. `logging_lines`,
  `protocol_lines`, `espnow_lines`, `wifi_lines` and `lora_lines` build the
  single sections. In the report, `obfuscate_password` replaces each
  password with asterisks.

## Examples

Round-trip readings through their wire form:

```python
from farmrelay.datatypes import DataReading, DataType, pack_readings

readings = [
    DataReading(d=21.5, id=1, t=DataType.TEMP),
    DataReading(d=48.0, id=1, t=DataType.HUMIDITY),
]
payload = pack_readings(readings)
assert DataReading.unpack_many(payload) == readings
```

List the routing of the bundled gateway presets:

```python
from farmrelay.config import gateway_preset, gateway_preset_names
from farmrelay.datatypes import Event

for name in gateway_preset_names():
    config = gateway_preset(name)
    print(name, config.actions_for(Event.SERIAL))
```

Receive readings over ESP-NOW and forward them to neighbour 1, using a
transport that only records what it is asked to do:

```python
from farmrelay.datatypes import DataReading, Event, GatewayState, pack_readings
from farmrelay.espnow import EspNowGateway

class RecordingTransport:
    def __init__(self):
        self.sent = []

    def send(self, dest, data):
        self.sent.append((dest, data))

    def add_peer(self, mac):
        pass

    def del_peer(self, mac):
        pass

    def peer_exists(self, mac):
        return False

prefix = b"\x02\x00\x00\x00\x00"
state = GatewayState()
transport = RecordingTransport()
espnow = EspNowGateway(state, transport, prefix, unit_mac=0x01, neighbor1=0x02)

espnow.on_receive(prefix + b"\x05", pack_readings([DataReading(3.3, 7, 16)]))
assert state.new_data == Event.ESPNOWG
espnow.send_neighbor(1)
assert transport.sent[0][0] == prefix + b"\x02"
```

Print the configuration overview of a preset:

```python
from farmrelay.checkconfig import config_report
from farmrelay.config import gateway_preset

print("\n".join(config_report(gateway_preset("mqtt_gateway").defines())))
```

Run periodic jobs on your own clock:

```python
from farmrelay.scheduler import Scheduler

now = [0]
scheduler = Scheduler(clock=lambda: now[0])
scheduler.schedule(lambda: print("tick"), 1000)
now[0] = 1001
scheduler.handle()   # prints "tick"
```

## What the package does not do

- It opens no devices. The radio, the clock and the time setter are always
  passed in as objects or callables.
- It has no serial or JSON line link and no GPS parsing.
- It has no MQTT client and no LoRa radio handling.
- It has no main loop that dispatches routes. `GatewayConfig` describes the
  routes, but the caller carries out each `Action`, for example with
  `EspNowGateway.send_neighbor`.
- It has no display or screen UI.
- It has no command-line program.

## Installing and testing

```
pip install .
pip install ".[test]"
pytest
```