[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "evsekit"
version = "0.1.0"
description = "Charging-station control logic without hardware I/O: serial port configuration, Modbus RTU framing, Nextion display protocol, script driver scheduling and status LEDs"
requires-python = ">=3.10"
dependencies = []
keywords = ["evse", "charging", "modbus", "nextion", "serial", "home-automation"]
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
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["evsekit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
