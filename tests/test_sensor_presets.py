import pytest

from farmrelay.sensor_presets import NodeConfig, sensor_preset, sensor_preset_names


def test_names_cover_all_presets():
    assert set(sensor_preset_names()) == {
        "aht20",
        "bmp280",
        "dht22",
        "frequency_counter",
        "kisssys_gypsum",
        "mesb",
        "sht20",
        "tipping_bucket",
    }


def test_sht20_reading_id():
    assert sensor_preset("sht20").reading_id == 11


def test_frequency_counter_ids_and_power_control():
    defines = sensor_preset("frequency_counter").defines()
    assert defines["READING_ID"] == 23
    assert defines["POWER_CTRL"] == 22


@pytest.mark.parametrize("name", [n for n in sensor_preset_names() if n != "frequency_counter"])
def test_other_presets_have_no_power_control(name):
    assert "POWER_CTRL" not in sensor_preset(name).defines()


@pytest.mark.parametrize("name", sensor_preset_names())
def test_every_preset_is_espnow_sleeper(name):
    defines = sensor_preset(name).defines()
    assert defines["GTWY_MAC"] == 0x01
    assert defines["USE_ESPNOW"] is True
    assert defines["DEEP_SLEEP"] is True
    assert defines["LORA_ACK"] is True
    assert "USE_LORA" not in defines
    assert defines["DST_OFFSET"] == defines["STD_OFFSET"] + 1


def test_unknown_preset_raises():
    with pytest.raises(KeyError):
        sensor_preset("no_such_sensor")


def test_presets_are_fresh_copies():
    first = sensor_preset("dht22")
    first.reading_id = 99
    assert sensor_preset("dht22").reading_id == 1


def test_unset_values_are_omitted():
    config = NodeConfig(reading_id=7, i2c_sda=None, i2c_scl=None, lora_ack=False)
    defines = config.defines()
    assert "I2C_SDA" not in defines
    assert "I2C_SCL" not in defines
    assert "LORA_ACK" not in defines
    assert defines["READING_ID"] == 7