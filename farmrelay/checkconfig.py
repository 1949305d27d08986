"""Readable overview of a node's or gateway's configuration.

Every function takes ``defines``, a mapping of configuration names to
values; a switch counts as on when its name is present.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping

from farmrelay.datatypes import DebugLog

SEPARATOR_LINE = "--------------------------------------------------------------"
HEADER_AND_FOOTER = "=============================================================="
DEFAULT_MQTT_PORT = 1883

_WHERE_NODE = "Please define in fdrs_globals.h (recommended) or in fdrs_node_config.h / fdrs_gateway_config.h"
_WHERE_GATEWAY = "Please define in fdrs_globals.h (recommended) or in fdrs_gateway_config.h"
_WHERE_LORA = "Please define in fdrs_globals.h (recommended) or in fdrs_node_config.h"


def obfuscate_password(password: str) -> str:
    """A run of asterisks as long as the password."""
    return "*" * len(password)


def _fmt(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


def _hex(value: Any) -> str:
    return format(int(value), "X")


def _hidden(value: Any) -> str:
    return obfuscate_password(str(value))


def _fdrs(defines: Mapping[str, Any], name: str) -> Any:
    """The effective value: the local setting, else the global one."""
    if name in defines:
        return defines[name]
    return defines.get("GLOBAL_" + name, "")


def _choice(
    defines: Mapping[str, Any],
    name: str,
    local_text: str,
    global_text: str,
    missing_text: str | None,
    render: Callable[[Any], str] = _fmt,
    global_key: str | None = None,
) -> str | None:
    global_key = global_key if global_key is not None else "GLOBAL_" + name
    if name in defines:
        return local_text + render(_fdrs(defines, name))
    if global_key in defines:
        return global_text + render(_fdrs(defines, name))
    return missing_text


def _small_header(text: str) -> list[str]:
    return [SEPARATOR_LINE, text]


def _section_header(text: str) -> list[str]:
    return [SEPARATOR_LINE, text, SEPARATOR_LINE]


def _config_header(text: str) -> list[str]:
    return [HEADER_AND_FOOTER, text, HEADER_AND_FOOTER]


def _log_target_lines(defines: Mapping[str, Any]) -> list[str]:
    lines = []
    if "LOGBUF_DELAY" in defines:
        lines.append("log buffer delay in ms: " + _fmt(defines["LOGBUF_DELAY"]))
    else:
        lines.append("log buffer delay in ms: NOT SPECIFIED - check config!")
    if "LOG_FILENAME" in defines:
        lines.append("log filename          : " + str(defines["LOG_FILENAME"]))
    else:
        lines.append("log filename          : NOT SPECIFIED - check config!")
    return lines


def logging_lines(defines: Mapping[str, Any]) -> list[str]:
    """Which logging methods are active."""
    lines = _section_header("LOG SETTINGS OF DEVICE")
    if "USE_SD_LOG" in defines and "USE_FS_LOG" in defines:
        lines.append(
            "Logging to SD card AND file system is active! "
            "You should better use only one of them at a time"
        )
    if "USE_SD_LOG" in defines:
        lines.append("Logging to SD-Card    : enabled")
        lines.extend(_log_target_lines(defines))
    else:
        lines.append("Logging to SD-Card    : disabled")
    if "USE_FS_LOG" in defines:
        lines.append("Logging to file system: enabled")
        lines.extend(_log_target_lines(defines))
        lines.append(
            "WARNING: Permanently logging to flash memory may destroy the flash memory of your device!"
        )
    else:
        lines.append("Logging to file system: disabled")
    return lines


def protocol_lines(defines: Mapping[str, Any]) -> list[str]:
    """Which protocols are enabled and which are disabled."""
    lines = _section_header("ACTIVATED PROTOCOLS")
    lines.append("LoRa   : ENABLED" if "USE_LORA" in defines else "LoRa   : DISABLED")
    lines.append("ESPNow : ENABLED" if "USE_ESPNOW" in defines else "ESPNow : DISABLED")
    lines.append("WiFi   : ENABLED" if "USE_WIFI" in defines else "WiFi   : DISABLED")
    if "USE_WIFI" in defines and "USE_ESPNOW" in defines:
        lines.append(
            "WARNING: You must not use USE_ESPNOW and USE_WIFI together! "
            "USE_WIFI is only needed for MQTT!"
        )
    lines.append(
        "Using Static IP Address" if "USE_STATIC_IPADDRESS" in defines else "Using DHCP"
    )
    return lines


def espnow_lines(defines: Mapping[str, Any]) -> list[str]:
    """ESP-NOW neighbours of a gateway."""
    if "USE_ESPNOW" not in defines or "UNIT_MAC" not in defines:
        return []
    lines = _small_header("ESP-Now Details:")
    lines.append("Neighbor 1 address: " + _hex(defines.get("ESPNOW_NEIGHBOR_1", 0)))
    lines.append("Neighbor 2 address: " + _hex(defines.get("ESPNOW_NEIGHBOR_2", 0)))
    return lines


def _mqtt_auth_enabled(defines: Mapping[str, Any]) -> bool:
    return any(name in defines for name in ("FDRS_MQTT_AUTH", "MQTT_AUTH", "GLOBAL_MQTT_AUTH"))


def wifi_lines(defines: Mapping[str, Any]) -> list[str]:
    """WiFi, addressing and MQTT broker settings."""
    if "USE_WIFI" not in defines:
        return []
    entries: list[str | None] = list(_small_header("WiFi Details:"))
    entries.append(_choice(
        defines, "WIFI_SSID",
        "WiFi SSID used from WIFI_SSID            : ",
        "WiFi SSID used from GLOBAL_WIFI_SSID          : ",
        "NO WiFi SSID defined! " + _WHERE_NODE,
    ))
    # The global password is reported whenever a global SSID exists.
    entries.append(_choice(
        defines, "WIFI_PASS",
        "WiFi password used from WIFI_PASS        : ",
        "WiFi password used from GLOBAL_WIFI_PASS      : ",
        "NO WiFi password defined! " + _WHERE_NODE,
        render=_hidden,
        global_key="GLOBAL_WIFI_SSID",
    ))
    if "USE_STATIC_IPADDRESS" in defines:
        entries.append(_choice(
            defines, "HOST_IPADDRESS",
            "Host IP Address used from HOST_IPADDRESS            : ",
            "Host IP Address used from GLOBAL_HOST_IPADDRESS     : ",
            "NO Host IP Address defined! " + _WHERE_GATEWAY,
        ))
        entries.append(_choice(
            defines, "GW_IPADDRESS",
            "Gateway IP Address used from GW_IPADDRESS            : ",
            "Gateway IP Address used from GLOBAL_GW_IPADDRESS     : ",
            "NO Gateway IP Address defined! " + _WHERE_GATEWAY,
        ))
        entries.append(_choice(
            defines, "SUBNET_ADDRESS",
            "Subnet Address used from SUBNET_ADDRESS            : ",
            "Subnet Address used from GLOBAL_SUBNET_ADDRESS     : ",
            "NO Subnet Address defined! " + _WHERE_GATEWAY,
        ))
        entries.append(_choice(
            defines, "DNS2_IPADDRESS",
            "DNS2 IP Address used from DNS2_IPADDRESS            : ",
            "DNS2 IP Address used from GLOBAL_DNS2_IPADDRESS     : ",
            None,
        ))
    entries.append(_choice(
        defines, "DNS1_IPADDRESS",
        "DNS1 IP Address used from DNS1_IPADDRESS            : ",
        "DNS1 IP Address used from GLOBAL_DNS1_IPADDRESS     : ",
        "NO DNS1 IP Address defined! " + _WHERE_GATEWAY,
    ))

    entries.extend(_small_header("MQTT BROKER CONFIG:"))
    entries.append(_choice(
        defines, "MQTT_ADDR",
        "MQTT address used from MQTT_ADDR         : ",
        "MQTT address used from GLOBAL_MQTT_ADDR  : ",
        "NO MQTT address defined! " + _WHERE_NODE,
    ))
    port = defines.get("MQTT_PORT", defines.get("GLOBAL_MQTT_PORT", DEFAULT_MQTT_PORT))
    entries.append(_choice(
        defines, "MQTT_PORT",
        "MQTT port used from MQTT_PORT            : ",
        "MQTT port used from GLOBAL_MQTT_ADDR     : ",
        "Using default MQTT port                  : " + _fmt(port),
    ))

    if _mqtt_auth_enabled(defines):
        entries.extend(_small_header("MQTT AUTHENTIFICATION CONFIG:"))
        entries.append(_choice(
            defines, "MQTT_USER",
            "MQTT username used from MQTT_USER        : ",
            "MQTT username used from GLOBAL_MQTT_USER : ",
            "NO MQTT username defined! " + _WHERE_NODE,
        ))
        entries.append(_choice(
            defines, "MQTT_PASS",
            "MQTT password used from MQTT_PASS        : ",
            "MQTT password used from GLOBAL_MQTT_PASS : ",
            "NO MQTT password defined! " + _WHERE_NODE,
            render=_hidden,
        ))

    entries.append(_choice(
        defines, "TOPIC_DATA",
        "MQTT topic (TOPIC_DATA)                  : ",
        "MQTT topic used from GLOBAL_TOPIC_DATA : ",
        "NO MQTT topic defined! Please define TOPIC_DATA in fdrs_globals.h (recommended) "
        "or in fdrs_node_config.h / fdrs_gateway_config.h",
    ))
    entries.append(_choice(
        defines, "TOPIC_STATUS",
        "MQTT topic (TOPIC_STATUS)                : ",
        "MQTT topic used from GLOBAL_TOPIC_STATUS : ",
        "NO MQTT topic defined! Please define TOPIC_STATUS in fdrs_globals.h (recommended) "
        "or in fdrs_node_config.h / fdrs_gateway_config.h",
    ))
    entries.append(_choice(
        defines, "TOPIC_COMMAND",
        "MQTT topic (TOPIC_COMMAND)               : ",
        "MQTT topic used from GLOBAL_TOPIC_COMMAND : ",
        "NO MQTT topic defined! Please define TOPIC_COMMAND in fdrs_globals.h (recommended) "
        "or in fdrs_node_config.h / fdrs_gateway_config.h",
    ))
    entries.extend([SEPARATOR_LINE, SEPARATOR_LINE])
    return [line for line in entries if line is not None]


def lora_lines(defines: Mapping[str, Any]) -> list[str]:
    """LoRa radio, acknowledgement and neighbour settings."""
    if "USE_LORA" not in defines:
        return []
    entries: list[str | None] = list(_small_header("LoRa Details:"))
    entries.append(_choice(
        defines, "FDRS_LORA_FREQUENCY",
        "LoRa frequency used from FDRS_LORA_FREQUENCY                 : ",
        "LoRa frequency used from GLOBAL_FDRS_LORA_FREQUENCY          : ",
        "NO FDRS_LORA_FREQUENCY defined! " + _WHERE_LORA,
    ))
    entries.append(_choice(
        defines, "LORA_SF",
        "LoRa SF used from LORA_SF                     : ",
        "LoRa SF used from GLOBAL_LORA_SF              : ",
        "NO LORA_SF defined! " + _WHERE_LORA,
    ))
    entries.append(_choice(
        defines, "LORA_TXPWR",
        "LoRa TXPWR used from LORA_TXPWR               : ",
        "LoRa TXPWR used from GLOBAL_LORA_TXPWR        : ",
        "NO LORA_TXPWR defined! " + _WHERE_LORA,
    ))
    if "LORA_ACK" in defines:
        entries.append("LoRa acknowledgement used from LORA_ACK       : enabled")
    elif "GLOBAL_LORA_ACK" in defines:
        entries.append("LoRa acknowledgement used from GLOBAL_LORA_ACK: enabled")
    else:
        entries.append("LoRa acknowledgement                          : disabled")

    if "LORA_ACK" in defines or "GLOBAL_LORA_ACK" in defines:
        if "LORA_ACK_TIMEOUT" in defines:
            entries.append(
                "Timeout for Lora acknowledment (LORA_ACK)     : " + _fmt(defines["LORA_ACK_TIMEOUT"])
            )
        else:
            entries.append("NO LORA_ACK_TIMEOUT defined! " + _WHERE_LORA)
        if "LORA_RETRIES" in defines:
            retries = defines["LORA_RETRIES"]
            entries.append("Number of ack retries (LORA_RETRIES)          : " + _fmt(retries))
            if 0 <= retries <= 3:
                entries.append("Number of ack retries (LORA_RETRIES)          : within allowed range.")
            else:
                entries.append(
                    "Number of ack retries (LORA_RETRIES)          : not within allowed range "
                    "[0 - 3]! Please change to correct value."
                )
        else:
            entries.append("NO LORA_RETRIES defined! Defaulting to 0. " + _WHERE_LORA)

    if "UNIT_MAC" in defines:
        entries.append("LoRa Neighbors")
        entries.append("Neighbor 1 address: " + _hex(defines.get("LORA_NEIGHBOR_1", 0)))
        entries.append("Neighbor 2 address: " + _hex(defines.get("LORA_NEIGHBOR_2", 0)))
    return [line for line in entries if line is not None]


def config_report(defines: Mapping[str, Any]) -> list[str]:
    """The complete configuration overview, line by line."""
    lines = _config_header("NODE CONFIGURATION OVERVIEW")
    if "UNIT_MAC" in defines:
        lines.append("Device Type       : Gateway")
        lines.append("Gateway ID      : " + _hex(defines["UNIT_MAC"]))
    elif "READING_ID" in defines:
        lines.append("Device Type       : Node")
        lines.append("Reading ID      : " + _fmt(defines["READING_ID"]))
        lines.append("Node's Gateway: " + _hex(defines.get("GTWY_MAC", 0)))
    else:
        lines.extend([
            "Device Type       : UNKNOWN!",
            "Please check config!",
            "If you have just created a new node type,",
            "please add it's config check to:",
            "fdrs_checkConfig.h",
        ])
    lines.extend(protocol_lines(defines))
    lines.extend(_small_header("PROTOCOL DETAILS"))
    lines.extend(lora_lines(defines))
    lines.extend(espnow_lines(defines))
    lines.extend(wifi_lines(defines))
    lines.extend(logging_lines(defines))
    lines.extend(_config_header("NODE CONFIGURATION OVERVIEW END"))
    lines.append("")
    return lines


def check_config(defines: Mapping[str, Any], log: DebugLog) -> list[str]:
    """Write the configuration overview to ``log`` and return its lines."""
    lines = config_report(defines)
    for line in lines:
        log.dbg(line)
    return lines