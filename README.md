# locgnss

Building blocks for a GNSS location service, in plain Python with no
third-party dependencies.

## What is inside

- `locgnss.nmea` builds `$GPGSA`, `$GPVTG`, `$GPRMC` and `$GPGGA`
  sentences from a position fix. It provides `put_checksum`,
  `blank_fix_sentences`, the `NmeaGenerator` class and the `Location`,
  `LocationExtended` and `PositionMode` types.
- `locgnss.nmea_sv` builds `$GPGSV` and `$GLGSV` sentences from a
  satellite report. It provides `SvInfo`, `SvStatus`, `gsv_sentences`
  and `generate_sv`.
- `locgnss.target` works out the GNSS hardware configuration from system
  properties and sysfs files (`TargetDetector`, `GnssTarget`, `SscType`,
  `target_set`, `gnss_type`, `read_a_line`).
- `locgnss.linked_list` is a `LinkedList`: items go in at the head and
  `remove()` takes the oldest from the tail; `flush()` calls each item's
  release callback, and `search()` finds an item by predicate. Asking an
  empty list for an item raises `LinkedListEmpty`.
- `locgnss.textutil` has `split_string` and `trim_space`.
- `locgnss.clock` has `system_time_us` and `elapsed_millis_since_boot`,
  both read from the wall clock.

## Installing

```
pip install .
```

## Examples

Append a checksum to an NMEA sentence (the result ends in `*HH\r\n`):

```python
from locgnss.nmea import put_checksum

print(repr(put_checksum("$GPGSA,A,1,,,,,,,,,,,,,,,")))
```

Generate sentences for a fix. Each sentence is passed to the callback with
the current time in milliseconds, and the list of sentences is returned:

```python
from locgnss.nmea import Location, NmeaGenerator

received = []
gen = NmeaGenerator(callback=lambda ms, sentence: received.append(sentence))
sentences = gen.generate_position(Location(timestamp=0, latitude=48.1, longitude=11.5))
```

A satellite report feeds the satellites-in-view sentences and caches the
used-in-fix mask and DOP values for the next position report:

```python
from locgnss.nmea import LocationExtended, NmeaGenerator
from locgnss.nmea_sv import SvInfo, SvStatus, generate_sv, gsv_sentences

svs = [SvInfo(prn=5, snr=40.0, elevation=30.0, azimuth=120.0)]
print(gsv_sentences("GP", svs, 1, 32))   # one sentence starting "$GPGSV,1,1,01,05,30,120,40"

gen = NmeaGenerator()
generate_sv(gen, SvStatus(svs=svs, used_in_fix_mask=1 << 4),
            LocationExtended(pdop=1.5, hdop=0.9, vdop=1.2))
```

When the used-in-fix mask is zero, `generate_sv` also sends the four blank
fix sentences from `blank_fix_sentences()`.

Detect the target from a property mapping and a directory that stands in
for the root file system:

```python
from locgnss.target import TARGET_QCA1530, TargetDetector

detector = TargetDetector(properties={"sys.qca1530": "yes"}, root="/")
assert detector.detect() == TARGET_QCA1530
```

Text helpers:

```python
from locgnss.textutil import split_string, trim_space

split_string("hello new user", 3, " ")   # ['hello', 'new', 'user']
trim_space("  a b  ")                    # 'a b'
```

## What it does not do

The package only builds sentences and returns them or hands them to a
callback: it does not talk to a GNSS receiver, open a serial port or run a
service. It does not read configuration files, offers no blocking message
queue, timers or logging set-up, and has no command-line program.

## Running the tests

```
pip install .[test]
pytest
```