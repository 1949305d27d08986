"""Wire formats, routing presets, ESP-NOW peer handling, scheduling and configuration reports for a farm sensor relay gateway."""

__version__ = "0.1.0"