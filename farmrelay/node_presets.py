"""Stock configurations of the example controller and test nodes."""

from __future__ import annotations

from typing import Callable

from farmrelay.sensor_presets import NodeConfig


def _minimal_hardware(**overrides: object) -> NodeConfig:
    """A node that leaves I2C, OLED and custom SPI pins unset."""
    settings: dict[str, object] = {
        "i2c_sda": None,
        "i2c_scl": None,
        "oled_header": None,
        "oled_page_secs": None,
        "oled_rst": None,
        "lora_spi_sck": None,
        "lora_spi_miso": None,
        "lora_spi_mosi": None,
    }
    settings.update(overrides)
    return NodeConfig(**settings)  # type: ignore[arg-type]


def _espnow_stress_test() -> NodeConfig:
    return NodeConfig(reading_id=3, gtwy_mac=0x01, use_espnow=True, fdrs_debug=False)


def _lora_controller() -> NodeConfig:
    return NodeConfig(reading_id=1, gtwy_mac=0x01, use_lora=True, fdrs_debug=True)


def _lora_sensor() -> NodeConfig:
    return NodeConfig(
        reading_id=2, gtwy_mac=0x01, use_lora=True, deep_sleep=True, fdrs_debug=True
    )


def _lora_stress_test() -> NodeConfig:
    return NodeConfig(reading_id=5, gtwy_mac=0x01, use_lora=True, fdrs_debug=True)


def _controller_time() -> NodeConfig:
    return _minimal_hardware(
        reading_id=1, gtwy_mac=0x01, use_espnow=True, deep_sleep=True, fdrs_debug=True
    )


def _fastled() -> NodeConfig:
    return NodeConfig(
        reading_id=103, gtwy_mac=0x01, use_espnow=True, deep_sleep=True, fdrs_debug=True
    )


def _irrigation() -> NodeConfig:
    return NodeConfig(reading_id=1, gtwy_mac=0x01, use_espnow=True, fdrs_debug=True)


def _lilygo_twatch2020() -> NodeConfig:
    return _minimal_hardware(
        reading_id=1, gtwy_mac=0x01, use_espnow=True, deep_sleep=True, fdrs_debug=True
    )


def _tft_espi() -> NodeConfig:
    return NodeConfig(reading_id=1, gtwy_mac=0x01, use_espnow=True, fdrs_debug=True)


_PRESETS: dict[str, Callable[[], NodeConfig]] = {
    "espnow_stress_test": _espnow_stress_test,
    "lora_controller": _lora_controller,
    "lora_sensor": _lora_sensor,
    "lora_stress_test": _lora_stress_test,
    "controller_time": _controller_time,
    "fastled": _fastled,
    "irrigation": _irrigation,
    "lilygo_twatch2020": _lilygo_twatch2020,
    "tft_espi": _tft_espi,
}


def node_preset(name: str) -> NodeConfig:
    """A fresh copy of a stock controller or test-node configuration."""
    try:
        factory = _PRESETS[name]
    except KeyError:
        raise KeyError(f"unknown node preset: {name!r}") from None
    return factory()


def node_preset_names() -> tuple[str, ...]:
    return tuple(_PRESETS)