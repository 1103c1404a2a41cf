"""Sysmon receiver: schema-driven decoding of system monitor telemetry."""

__version__ = "0.1.0"
