"""GNSS location utilities: NMEA sentence generation, target detection, a FIFO list and text helpers."""

__version__ = "0.1.0"