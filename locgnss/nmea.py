"""NMEA 0183 sentences ($GPGSA, $GPVTG, $GPRMC, $GPGGA) built from position reports."""

from __future__ import annotations

import enum
import logging
import math
import struct
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from locgnss.clock import system_time_us

_log = logging.getLogger("LocSvc_eng_nmea")

NMEA_SENTENCE_MAX_LENGTH = 200

BLANK_GSA = "$GPGSA,A,1,,,,,,,,,,,,,,,"
BLANK_VTG = "$GPVTG,,T,,M,,N,,K,N"
BLANK_RMC = "$GPRMC,,V,,,,,,,,,,N"
BLANK_GGA = "$GPGGA,,,,,,0,,,,,,,,"

_KNOTS_PER_MPS = 3600.0 / 1852.0
_KMH_PER_MPS = 3.6

NmeaCallback = Callable[[int, str], None]


class PositionMode(enum.IntEnum):
    """How the engine computes fixes; only standalone counts as autonomous."""

    STANDALONE = 0
    MS_BASED = 1
    MS_ASSISTED = 2


def _f32(value: float) -> float:
    """Round ``value`` to single precision, as the engine stores it."""
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _trunc_div(value: int, divisor: int) -> int:
    quotient = abs(value) // divisor
    return quotient if value >= 0 else -quotient


def _degrees_byte(value: float) -> int:
    """Whole degrees of ``value`` kept in one unsigned byte."""
    if not math.isfinite(value):
        return 0
    return int(math.floor(value)) & 0xFF


@dataclass
class Location:
    """A position report. Fields left as None are not available.

    ``timestamp`` is the UTC time of the fix in milliseconds since the epoch.
    """

    timestamp: int = 0
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None
    speed: Optional[float] = None
    bearing: Optional[float] = None

    def __post_init__(self) -> None:
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be given together")

    @property
    def has_lat_long(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass
class LocationExtended:
    """Extra fix data; fields left as None are not available."""

    pdop: Optional[float] = None
    hdop: Optional[float] = None
    vdop: Optional[float] = None
    magnetic_deviation: Optional[float] = None
    altitude_mean_sea_level: Optional[float] = None

    def __post_init__(self) -> None:
        given = [dop is not None for dop in (self.pdop, self.hdop, self.vdop)]
        if any(given) and not all(given):
            raise ValueError("pdop, hdop and vdop must be given together")

    @property
    def has_dop(self) -> bool:
        return self.pdop is not None


class _Sentence:
    """Accumulates sentence fragments within the maximum sentence length."""

    def __init__(self, head: str) -> None:
        self._parts: List[str] = []
        self._remaining = NMEA_SENTENCE_MAX_LENGTH
        self.add(head)

    def add(self, fragment: str) -> None:
        if len(fragment) >= self._remaining:
            _log.error("NMEA Error in string formatting")
            raise ValueError("NMEA sentence exceeds the maximum length")
        self._parts.append(fragment)
        self._remaining -= len(fragment)

    def add_last(self, fragment: str) -> None:
        """Append the final fragment, cut to whatever room is left."""
        self._parts.append(fragment[: max(self._remaining - 1, 0)])

    def __str__(self) -> str:
        return "".join(self._parts)


def put_checksum(sentence: str) -> str:
    """Append ``*HH\\r\\n`` to ``sentence``, HH being the XOR of all characters after the first.

    The suffix is cut short if the result would not fit in a sentence of
    ``NMEA_SENTENCE_MAX_LENGTH`` characters including its terminator.
    """
    if not sentence:
        raise ValueError("sentence must start with '$'")
    checksum = 0
    for byte in sentence[1:].encode("utf-8"):
        checksum ^= byte
    suffix = f"*{checksum:02X}\r\n"
    room = NMEA_SENTENCE_MAX_LENGTH - len(sentence)
    if room >= 0:
        suffix = suffix[: max(room - 1, 0)]
    return sentence + suffix


def blank_fix_sentences() -> List[str]:
    """The four sentences sent when there is no final fix, checksums included."""
    return [put_checksum(body) for body in (BLANK_GSA, BLANK_VTG, BLANK_RMC, BLANK_GGA)]


def _coordinates(location: Location) -> str:
    if not location.has_lat_long:
        return ",,,,"
    latitude = float(location.latitude)
    longitude = float(location.longitude)
    if latitude > 0:
        lat_hemisphere = "N"
    else:
        lat_hemisphere = "S"
        latitude = -latitude
    if longitude < 0:
        lon_hemisphere = "W"
        longitude = -longitude
    else:
        lon_hemisphere = "E"
    lat_minutes = math.fmod(latitude * 60.0, 60.0)
    lon_minutes = math.fmod(longitude * 60.0, 60.0)
    return (
        f"{_degrees_byte(latitude):02d}{lat_minutes:09.6f},{lat_hemisphere},"
        f"{_degrees_byte(longitude):03d}{lon_minutes:09.6f},{lon_hemisphere},"
    )


class NmeaGenerator:
    """Turns position reports into NMEA sentences and hands them to a callback.

    ``sv_used_mask`` and the ``pdop``/``hdop``/``vdop`` cache are filled from
    satellite reports and used up by the next position report.
    """

    def __init__(
        self,
        callback: Optional[NmeaCallback] = None,
        position_mode: PositionMode = PositionMode.STANDALONE,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.callback = callback
        self.position_mode = PositionMode(position_mode)
        self._clock = clock if clock is not None else (lambda: system_time_us() // 1000)
        self.sv_used_mask = 0
        self.pdop = 0.0
        self.hdop = 0.0
        self.vdop = 0.0

    def send(self, sentence: str) -> str:
        """Pass ``sentence`` to the callback with the current time in ms; return it."""
        now = self._clock()
        _log.info("%s nmea_cb %s", "<===", sentence)
        if self.callback is not None:
            self.callback(now, sentence)
        _log.debug("NMEA <%s", sentence)
        return sentence

    def clear_dop(self) -> None:
        self.pdop = 0.0
        self.hdop = 0.0
        self.vdop = 0.0

    def _take_used_svs(self) -> List[int]:
        mask = int(self.sv_used_mask) & 0xFFFFFFFF
        self.sv_used_mask = 0
        return [bit + 1 for bit in range(32) if (mask >> bit) & 1]

    def _dop(self, extended: LocationExtended) -> Optional[Tuple[float, float, float]]:
        if extended.has_dop:
            return _f32(extended.pdop), _f32(extended.hdop), _f32(extended.vdop)
        if self.pdop > 0 and self.hdop > 0 and self.vdop > 0:
            return _f32(self.pdop), _f32(self.hdop), _f32(self.vdop)
        return None

    def _mode(self, location: Location, no_fix: str, standalone: str, differential: str) -> str:
        if not location.has_lat_long:
            return no_fix
        if self.position_mode is PositionMode.STANDALONE:
            return standalone
        return differential

    def generate_position(
        self,
        location: Location,
        extended: Optional[LocationExtended] = None,
        generate_nmea: bool = True,
    ) -> List[str]:
        """Send the sentences for a position report and return them in order.

        Without ``generate_nmea`` the blank sentences of a non-final fix are
        sent. The DOP cache is cleared afterwards either way.
        """
        extended = extended if extended is not None else LocationExtended()
        sent: List[str] = []
        if generate_nmea:
            sent.extend(self._fix_sentences(location, extended))
        else:
            sent.extend(self.send(sentence) for sentence in blank_fix_sentences())
        self.clear_dop()
        return sent

    def _fix_sentences(self, location: Location, extended: LocationExtended) -> List[str]:
        sent: List[str] = []
        utc = time.gmtime(_trunc_div(int(location.timestamp), 1000))
        clock_field = f"{utc.tm_hour:02d}{utc.tm_min:02d}{utc.tm_sec:02d}"
        date_field = f"{utc.tm_mday:02d}{utc.tm_mon:02d}{utc.tm_year % 100:02d},"
        dop = self._dop(extended)
        bearing = _f32(location.bearing) if location.bearing is not None else None
        speed = _f32(location.speed) if location.speed is not None else None

        # $GPGSA
        used = self._take_used_svs()
        count = len(used)
        fix_type = "1" if count == 0 else "2" if count <= 3 else "3"
        gsa = _Sentence(f"$GPGSA,A,{fix_type},")
        for slot in range(12):
            gsa.add(f"{used[slot]:02d}," if slot < count else ",")
        gsa.add_last(f"{dop[0]:.1f},{dop[1]:.1f},{dop[2]:.1f}" if dop else ",,")
        sent.append(self.send(put_checksum(str(gsa))))

        # $GPVTG: the magnetic track is reported equal to the true track.
        if bearing is not None:
            vtg = _Sentence(f"$GPVTG,{bearing:.1f},T,{bearing:.1f},M,")
        else:
            vtg = _Sentence("$GPVTG,,T,,M,")
        if speed is not None:
            knots = _f32(speed * _KNOTS_PER_MPS)
            kmh = _f32(speed * _KMH_PER_MPS)
            vtg.add(f"{knots:.1f},N,{kmh:.1f},K,")
        else:
            vtg.add(",N,,K,")
        vtg.add_last(self._mode(location, "N", "A", "D"))
        sent.append(self.send(put_checksum(str(vtg))))

        # $GPRMC
        rmc = _Sentence(f"$GPRMC,{clock_field},A,")
        rmc.add(_coordinates(location))
        rmc.add(f"{_f32(speed * _KNOTS_PER_MPS):.1f}," if speed is not None else ",")
        rmc.add(f"{bearing:.1f}," if bearing is not None else ",")
        rmc.add(date_field)
        if extended.magnetic_deviation is not None:
            variation = _f32(extended.magnetic_deviation)
            direction = "E"
            if variation < 0.0:
                direction = "W"
                variation = -variation
            rmc.add(f"{variation:.1f},{direction},")
        else:
            rmc.add(",,")
        rmc.add_last(self._mode(location, "N", "A", "D"))
        sent.append(self.send(put_checksum(str(rmc))))

        # $GPGGA
        gga = _Sentence(f"$GPGGA,{clock_field},")
        gga.add(_coordinates(location))
        quality = self._mode(location, "0", "1", "2")
        if dop:
            gga.add(f"{quality},{count:02d},{dop[1]:.1f},")
        else:
            gga.add(f"{quality},{count:02d},,")
        msl = extended.altitude_mean_sea_level
        if msl is not None:
            msl = _f32(msl)
            gga.add(f"{msl:.1f},M,")
        else:
            gga.add(",,")
        if location.altitude is not None and msl is not None:
            gga.add_last(f"{float(location.altitude) - msl:.1f},M,,")
        else:
            gga.add_last(",,,")
        sent.append(self.send(put_checksum(str(gga))))
        return sent