[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "farmrelay"
version = "0.1.0"
description = "Building blocks for a farm sensor relay gateway: wire formats, routing presets, ESP-NOW peer handling, scheduling and configuration reports"
requires-python = ">=3.10"
dependencies = []
keywords = ["farm", "sensors", "relay", "gateway", "esp-now", "lora", "telemetry"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Home Automation",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["farmrelay"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
