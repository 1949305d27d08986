"""Sensor node configuration and the stock sensor presets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable


@dataclass
class NodeConfig:
    """Identity, interfaces and hardware settings of a sensor or controller node."""

    reading_id: int
    gtwy_mac: int = 0x01
    use_espnow: bool = False
    use_lora: bool = False
    deep_sleep: bool = False
    power_ctrl: int | None = None
    fdrs_debug: bool = False
    i2c_sda: int | None = 5
    i2c_scl: int | None = 6
    oled_header: str | None = "FDRS"
    oled_page_secs: int | None = 30
    oled_rst: int | None = -1
    radiolib_module: str = "SX1276"
    lora_ss: int = 18
    lora_rst: int = 14
    lora_dio: int = 26
    lora_busy: int = 33
    lora_spi_sck: int | None = 5
    lora_spi_miso: int | None = 19
    lora_spi_mosi: int | None = 27
    lora_txpwr: int = 17
    lora_ack: bool = True
    dst_rule: str = "USDST"
    std_offset: int = -6
    dst_offset: int = -5
    time_printtime: int = 15

    def defines(self) -> dict[str, Any]:
        """The settings as a mapping of configuration names to values.

        Settings left unset are omitted; switches appear only when on.
        """
        values: dict[str, Any] = {
            "READING_ID": self.reading_id,
            "GTWY_MAC": self.gtwy_mac,
            "POWER_CTRL": self.power_ctrl,
            "I2C_SDA": self.i2c_sda,
            "I2C_SCL": self.i2c_scl,
            "OLED_HEADER": self.oled_header,
            "OLED_PAGE_SECS": self.oled_page_secs,
            "OLED_RST": self.oled_rst,
            "RADIOLIB_MODULE": self.radiolib_module,
            "LORA_SS": self.lora_ss,
            "LORA_RST": self.lora_rst,
            "LORA_DIO": self.lora_dio,
            "LORA_BUSY": self.lora_busy,
            "LORA_SPI_SCK": self.lora_spi_sck,
            "LORA_SPI_MISO": self.lora_spi_miso,
            "LORA_SPI_MOSI": self.lora_spi_mosi,
            "LORA_TXPWR": self.lora_txpwr,
            "DST_RULE": self.dst_rule,
            "STD_OFFSET": self.std_offset,
            "DST_OFFSET": self.dst_offset,
            "TIME_PRINTTIME": self.time_printtime,
        }
        result = {name: value for name, value in values.items() if value is not None}
        flags = {
            "USE_ESPNOW": self.use_espnow,
            "USE_LORA": self.use_lora,
            "DEEP_SLEEP": self.deep_sleep,
            "FDRS_DEBUG": self.fdrs_debug,
            "LORA_ACK": self.lora_ack,
        }
        result.update({name: True for name, on in flags.items() if on})
        return result


def _espnow_sensor(reading_id: int, power_ctrl: int | None = None) -> Callable[[], NodeConfig]:
    def factory() -> NodeConfig:
        return NodeConfig(
            reading_id=reading_id,
            gtwy_mac=0x01,
            use_espnow=True,
            deep_sleep=True,
            power_ctrl=power_ctrl,
            fdrs_debug=True,
        )

    return factory


_PRESETS: dict[str, Callable[[], NodeConfig]] = {
    "aht20": _espnow_sensor(1),
    "bmp280": _espnow_sensor(1),
    "dht22": _espnow_sensor(1),
    "frequency_counter": _espnow_sensor(23, power_ctrl=22),
    "kisssys_gypsum": _espnow_sensor(1),
    "mesb": _espnow_sensor(1),
    "sht20": _espnow_sensor(11),
    "tipping_bucket": _espnow_sensor(1),
}


def sensor_preset(name: str) -> NodeConfig:
    """A fresh copy of a stock sensor configuration."""
    try:
        factory = _PRESETS[name]
    except KeyError:
        raise KeyError(f"unknown sensor preset: {name!r}") from None
    return factory()


def sensor_preset_names() -> tuple[str, ...]:
    return tuple(_PRESETS)