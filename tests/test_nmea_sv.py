import pytest

from locgnss.nmea import (
    Location,
    LocationExtended,
    NmeaGenerator,
    blank_fix_sentences,
    put_checksum,
)
from locgnss.nmea_sv import SvInfo, SvStatus, generate_sv, gsv_sentences


def _checksum_ok(sentence):
    assert sentence.startswith("$")
    assert sentence.endswith("\r\n")
    body, _, tail = sentence[1:].partition("*")
    value = 0
    for byte in body.encode("ascii"):
        value ^= byte
    return tail[:2] == f"{value:02X}"


def _body(sentence):
    return sentence.split("*")[0]


def _recorder():
    received = []
    generator = NmeaGenerator(callback=lambda now, s: received.append((now, s)), clock=lambda: 1000)
    return generator, received


def test_no_svs_gives_blank_gsv():
    result = gsv_sentences("GP", [], 1, 32)
    assert result == [put_checksum("$GPGSV,1,1,0,")]


def test_single_sv_fields():
    result = gsv_sentences("GP", [SvInfo(prn=5, snr=40.0, elevation=45.0, azimuth=180.0)], 1, 32)
    assert len(result) == 1
    assert _body(result[0]) == "$GPGSV,1,1,01,05,45,180,40"
    assert _checksum_ok(result[0])


def test_zero_snr_is_omitted():
    result = gsv_sentences("GP", [SvInfo(prn=5, snr=0.0, elevation=45.0, azimuth=180.0)], 1, 32)
    assert _body(result[0]).endswith(",05,45,180,")


def test_rounding_half_up():
    result = gsv_sentences(
        "GP",
        [SvInfo(prn=7, snr=30.5, elevation=10.4, azimuth=99.5)],
        1,
        32,
    )
    assert _body(result[0]) == "$GPGSV,1,1,01,07,10,100,31"


def test_five_svs_make_two_sentences():
    svs = [SvInfo(prn=p, snr=30.0, elevation=20.0, azimuth=100.0) for p in range(1, 6)]
    result = gsv_sentences("GP", svs, 1, 32)
    assert len(result) == 2
    assert result[0].startswith("$GPGSV,2,1,05,")
    assert result[1].startswith("$GPGSV,2,2,05,")
    assert _body(result[0]).count(",100,") == 4
    assert _body(result[1]).count(",100,") == 1
    assert all(_checksum_ok(s) for s in result)


def test_filters_by_prn_range_and_keeps_order():
    svs = [
        SvInfo(prn=70, snr=25.0, elevation=30.0, azimuth=45.0),
        SvInfo(prn=12, snr=25.0, elevation=30.0, azimuth=45.0),
        SvInfo(prn=3, snr=25.0, elevation=30.0, azimuth=45.0),
        SvInfo(prn=120, snr=25.0, elevation=30.0, azimuth=45.0),
    ]
    gps = gsv_sentences("GP", svs, 1, 32)
    glonass = gsv_sentences("GL", svs, 65, 96)
    assert len(gps) == 1
    body = _body(gps[0])
    assert body.index(",12,") < body.index(",03,")
    assert ",70," not in body
    assert _body(glonass[0]).startswith("$GLGSV,1,1,01,70,")


def test_generate_sv_without_fix_sends_blanks():
    generator, received = _recorder()
    status = SvStatus(svs=[SvInfo(prn=5, snr=40.0, elevation=45.0, azimuth=180.0)])
    sent = generate_sv(generator, status)
    assert len(sent) == 6
    assert sent[0].startswith("$GPGSV,1,1,01,")
    assert sent[1] == put_checksum("$GLGSV,1,1,0,")
    assert sent[2:] == blank_fix_sentences()
    assert [s for _, s in received] == sent
    assert all(now == 1000 for now, _ in received)
    assert generator.sv_used_mask == 0


def test_generate_sv_caches_mask_and_dop():
    generator, _ = _recorder()
    status = SvStatus(
        svs=[SvInfo(prn=p, snr=30.0, elevation=20.0, azimuth=90.0) for p in (1, 2)],
        used_in_fix_mask=0b11,
    )
    extended = LocationExtended(pdop=1.5, hdop=0.8, vdop=1.2)
    sent = generate_sv(generator, status, extended)
    assert len(sent) == 2
    assert generator.sv_used_mask == 0b11
    assert (generator.pdop, generator.hdop, generator.vdop) == (1.5, 0.8, 1.2)


def test_generate_sv_without_dop_clears_cache():
    generator, _ = _recorder()
    generator.pdop, generator.hdop, generator.vdop = 2.0, 2.0, 2.0
    status = SvStatus(svs=[], used_in_fix_mask=0b1)
    generate_sv(generator, status)
    assert (generator.pdop, generator.hdop, generator.vdop) == (0.0, 0.0, 0.0)
    assert generator.sv_used_mask == 1


def test_cached_mask_feeds_position_report():
    generator, _ = _recorder()
    status = SvStatus(
        svs=[SvInfo(prn=p, snr=30.0, elevation=20.0, azimuth=90.0) for p in (1, 3)],
        used_in_fix_mask=0b101,
    )
    generate_sv(generator, status)
    sentences = generator.generate_position(Location(timestamp=0, latitude=10.0, longitude=20.0))
    assert sentences[0].startswith("$GPGSA,A,2,01,03,")
    assert generator.sv_used_mask == 0


def test_gsv_sentences_checksums_valid_for_many_svs():
    svs = [SvInfo(prn=p, snr=float(p), elevation=float(p), azimuth=float(p * 10)) for p in range(1, 33)]
    result = gsv_sentences("GP", svs, 1, 32)
    assert len(result) == 8
    assert all(_checksum_ok(s) for s in result)
    assert [s.split(",")[2] for s in result] == [str(n) for n in range(1, 9)]


def test_nan_elevation_raises():
    with pytest.raises(ValueError):
        gsv_sentences("GP", [SvInfo(prn=1, elevation=float("nan"))], 1, 32)