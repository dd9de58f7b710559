"""NMEA 0183 satellites-in-view sentences ($GPGSV, $GLGSV) built from satellite reports."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from locgnss.nmea import (
    NMEA_SENTENCE_MAX_LENGTH,
    LocationExtended,
    NmeaGenerator,
    blank_fix_sentences,
    put_checksum,
)

_log = logging.getLogger("LocSvc_eng_nmea")

GPS_PRN_START = 1
GPS_PRN_END = 32
GLONASS_PRN_START = 65
GLONASS_PRN_END = 96

SVS_PER_SENTENCE = 4


@dataclass
class SvInfo:
    """One satellite in view: its PRN, signal-to-noise ratio and position in the sky."""

    prn: int
    snr: float = 0.0
    elevation: float = 0.0
    azimuth: float = 0.0


@dataclass
class SvStatus:
    """A satellite report: the satellites in view and the mask of those used in the fix.

    Bit ``n`` of ``used_in_fix_mask`` stands for PRN ``n + 1``.
    """

    svs: List[SvInfo] = field(default_factory=list)
    used_in_fix_mask: int = 0


def _round_half_up(value: float) -> int:
    """Add one half and truncate toward zero, as the sentence fields require."""
    return int(0.5 + float(value))


def _in_range(sv: SvInfo, prn_start: int, prn_end: int) -> bool:
    return prn_start <= sv.prn <= prn_end


def _checked(fragment: str, used: int) -> int:
    if len(fragment) >= NMEA_SENTENCE_MAX_LENGTH - used:
        _log.error("NMEA Error in string formatting")
        raise ValueError("NMEA sentence exceeds the maximum length")
    return used + len(fragment)


def _sv_fields(sv: SvInfo) -> Iterable[str]:
    yield (
        f",{sv.prn:02d},{_round_half_up(sv.elevation):02d},"
        f"{_round_half_up(sv.azimuth):03d},"
    )
    if sv.snr > 0:
        yield f"{_round_half_up(sv.snr):02d}"


def gsv_sentences(
    talker: str,
    svs: Sequence[SvInfo],
    prn_start: int,
    prn_end: int,
) -> List[str]:
    """Build the GSV sentences, checksums included, for satellites with PRNs in range.

    ``talker`` is the two-letter talker id, such as ``"GP"`` or ``"GL"``.
    Satellites outside ``prn_start..prn_end`` are left out; the rest go four
    to a sentence in the order given. With none in range a single blank
    sentence is returned.
    """
    selected = [sv for sv in svs if _in_range(sv, prn_start, prn_end)]
    count = len(selected)
    if count == 0:
        return [put_checksum(f"${talker}GSV,1,1,0,")]

    total = -(-count // SVS_PER_SENTENCE)
    sentences: List[str] = []
    for number, start in enumerate(range(0, count, SVS_PER_SENTENCE), start=1):
        head = f"${talker}GSV,{total},{number},{count:02d}"
        used = _checked(head, 0)
        parts = [head]
        for sv in selected[start:start + SVS_PER_SENTENCE]:
            for fragment in _sv_fields(sv):
                used = _checked(fragment, used)
                parts.append(fragment)
        sentences.append(put_checksum("".join(parts)))
    return sentences


def generate_sv(
    generator: NmeaGenerator,
    sv_status: SvStatus,
    extended: Optional[LocationExtended] = None,
) -> List[str]:
    """Send the $GPGSV and $GLGSV sentences for a satellite report and return all sent.

    When no satellite is used in the fix no position report will follow, so
    the blank fix sentences are sent too. Otherwise the used-in-fix mask and
    the DOP values of ``extended`` (zero when it has none) are cached on the
    generator for the next position report.
    """
    extended = extended if extended is not None else LocationExtended()
    sent: List[str] = []
    for sentence in gsv_sentences("GP", sv_status.svs, GPS_PRN_START, GPS_PRN_END):
        sent.append(generator.send(sentence))
    for sentence in gsv_sentences("GL", sv_status.svs, GLONASS_PRN_START, GLONASS_PRN_END):
        sent.append(generator.send(sentence))

    if sv_status.used_in_fix_mask == 0:
        sent.extend(generator.send(sentence) for sentence in blank_fix_sentences())
    else:
        generator.sv_used_mask = sv_status.used_in_fix_mask
        if extended.has_dop:
            generator.pdop = extended.pdop
            generator.hdop = extended.hdop
            generator.vdop = extended.vdop
        else:
            generator.clear_dop()
    return sent