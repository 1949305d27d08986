"""Gateway configuration and the stock gateway presets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from farmrelay.datatypes import Event

_NEIGHBOR_KINDS = frozenset({"espnow_neighbor", "lora_neighbor"})
_PLAIN_KINDS = frozenset({"espnow_peers", "lora_broadcast", "serial", "mqtt"})


@dataclass(frozen=True)
class Action:
    """One routing step: where a batch of readings is forwarded."""

    kind: str
    neighbor: int | None = None

    def __post_init__(self) -> None:
        if self.kind in _NEIGHBOR_KINDS:
            if self.neighbor not in (1, 2):
                raise ValueError(f"{self.kind} needs neighbor 1 or 2, got {self.neighbor!r}")
        elif self.kind in _PLAIN_KINDS:
            if self.neighbor is not None:
                raise ValueError(f"{self.kind} takes no neighbor")
        else:
            raise ValueError(f"unknown action kind: {self.kind!r}")


@dataclass
class GatewayConfig:
    """Addresses, interfaces, routing and hardware settings of a gateway."""

    unit_mac: int = 0x00
    espnow_neighbor_1: int = 0x00
    espnow_neighbor_2: int = 0x00
    lora_neighbor_1: int = 0x00
    lora_neighbor_2: int = 0x00
    use_espnow: bool = False
    use_lora: bool = False
    use_wifi: bool = False
    use_ethernet: bool = False
    routes: dict[Event, tuple[Action, ...]] = field(default_factory=dict)
    radiolib_module: str = "SX1276"
    lora_ss: int = 18
    lora_rst: int = 14
    lora_dio: int = 26
    lora_busy: int = 33
    lora_txpwr: int = 17
    lora_spi_sck: int = 5
    lora_spi_miso: int = 19
    lora_spi_mosi: int = 27
    fdrs_debug: bool = True
    i2c_sda: int = 4
    i2c_scl: int = 15
    oled_header: str = "FDRS"
    oled_page_secs: int = 30
    oled_rst: int = 16
    dst_rule: str = "USDST"
    time_server: str = "0.us.pool.ntp.org"
    std_offset: int = -6
    dst_offset: int = -5
    time_fetchntp: int = 60
    time_printtime: int = 15
    time_send_interval: int = 10

    def actions_for(self, event: Event) -> tuple[Action, ...]:
        return tuple(self.routes.get(event, ()))

    def defines(self) -> dict[str, Any]:
        """The settings as a mapping of configuration names to values."""
        result: dict[str, Any] = {
            "UNIT_MAC": self.unit_mac,
            "ESPNOW_NEIGHBOR_1": self.espnow_neighbor_1,
            "ESPNOW_NEIGHBOR_2": self.espnow_neighbor_2,
            "LORA_NEIGHBOR_1": self.lora_neighbor_1,
            "LORA_NEIGHBOR_2": self.lora_neighbor_2,
            "RADIOLIB_MODULE": self.radiolib_module,
            "LORA_SS": self.lora_ss,
            "LORA_RST": self.lora_rst,
            "LORA_DIO": self.lora_dio,
            "LORA_BUSY": self.lora_busy,
            "LORA_TXPWR": self.lora_txpwr,
            "LORA_SPI_SCK": self.lora_spi_sck,
            "LORA_SPI_MISO": self.lora_spi_miso,
            "LORA_SPI_MOSI": self.lora_spi_mosi,
            "I2C_SDA": self.i2c_sda,
            "I2C_SCL": self.i2c_scl,
            "OLED_HEADER": self.oled_header,
            "OLED_PAGE_SECS": self.oled_page_secs,
            "OLED_RST": self.oled_rst,
            "DST_RULE": self.dst_rule,
            "TIME_SERVER": self.time_server,
            "STD_OFFSET": self.std_offset,
            "DST_OFFSET": self.dst_offset,
            "TIME_FETCHNTP": self.time_fetchntp,
            "TIME_PRINTTIME": self.time_printtime,
            "TIME_SEND_INTERVAL": self.time_send_interval,
        }
        flags = {
            "USE_ESPNOW": self.use_espnow,
            "USE_LORA": self.use_lora,
            "USE_WIFI": self.use_wifi or self.use_ethernet,
            "USE_ETHERNET": self.use_ethernet,
            "FDRS_DEBUG": self.fdrs_debug,
        }
        result.update({name: True for name, on in flags.items() if on})
        return result


def _mqtt_gateway() -> GatewayConfig:
    return GatewayConfig(
        unit_mac=0x00,
        use_wifi=True,
        routes={
            Event.SERIAL: (Action("mqtt"),),
            Event.MQTT: (Action("serial"),),
            Event.INTERNAL: (Action("mqtt"),),
        },
    )


def _uart_gateway() -> GatewayConfig:
    return GatewayConfig(
        unit_mac=0x01,
        espnow_neighbor_2=0x02,
        lora_neighbor_2=0x03,
        use_espnow=True,
        routes={
            Event.ESPNOWG: (Action("serial"),),
            Event.LORAG: (Action("serial"),),
            Event.SERIAL: (
                Action("espnow_neighbor", 2),
                Action("espnow_peers"),
                Action("lora_neighbor", 2),
                Action("lora_broadcast"),
            ),
            Event.INTERNAL: (Action("serial"),),
            Event.ESPNOW2: (Action("serial"),),
            Event.LORA2: (Action("serial"),),
        },
    )


def _espnow_repeater() -> GatewayConfig:
    return GatewayConfig(
        unit_mac=0x02,
        espnow_neighbor_1=0x01,
        espnow_neighbor_2=0x04,
        use_espnow=True,
        routes={
            Event.ESPNOWG: (Action("espnow_neighbor", 1),),
            Event.INTERNAL: (Action("espnow_neighbor", 1),),
            Event.ESPNOW1: (Action("espnow_neighbor", 2), Action("espnow_peers")),
            Event.ESPNOW2: (Action("espnow_neighbor", 1),),
        },
    )


def _lora_repeater() -> GatewayConfig:
    return GatewayConfig(
        unit_mac=0x03,
        lora_neighbor_1=0x01,
        lora_neighbor_2=0x05,
        use_lora=True,
        routes={
            Event.LORAG: (Action("lora_neighbor", 1),),
            Event.INTERNAL: (Action("lora_neighbor", 1),),
            Event.LORA1: (Action("lora_neighbor", 2), Action("lora_broadcast")),
            Event.LORA2: (Action("lora_neighbor", 1),),
        },
    )


_PRESETS = {
    "mqtt_gateway": _mqtt_gateway,
    "uart_gateway": _uart_gateway,
    "espnow_repeater": _espnow_repeater,
    "lora_repeater": _lora_repeater,
}


def gateway_preset(name: str) -> GatewayConfig:
    """A fresh copy of a stock gateway configuration."""
    try:
        factory = _PRESETS[name]
    except KeyError:
        raise KeyError(f"unknown gateway preset: {name!r}") from None
    return factory()


def gateway_preset_names() -> tuple[str, ...]:
    return tuple(_PRESETS)