"""GPS L1 C/A baseband signal simulator and NMEA to user motion converter."""

__version__ = "0.1.0"