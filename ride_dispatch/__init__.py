"""Ride dispatch service: booking broadcast, driver acceptance and ride sweeping."""

__version__ = "0.1.0"
