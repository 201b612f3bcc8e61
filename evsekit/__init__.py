"""Charging-station control logic without hardware I/O: serial port configuration, Modbus RTU framing, Nextion display sessions, script driver support and status LEDs."""

__version__ = "0.1.0"