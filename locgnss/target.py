"""Detection of the GNSS hardware configuration of the device."""

from __future__ import annotations

import enum
import logging
import os
import time
from pathlib import Path
from typing import Callable, Mapping, Optional, Union

_log = logging.getLogger("LocSvc_target")


class GnssTarget(enum.IntEnum):
    """Where the GNSS engine lives."""

    NONE = 0
    MSM = 1
    GSS = 2
    MDM = 3
    QCA1530 = 4
    UNKNOWN = 5


class SscType(enum.IntEnum):
    """Whether a sensor subsystem core is present."""

    NO_SSC = 0
    HAS_SSC = 1


def target_set(gnss: int, ssc: int) -> int:
    """Combine a GNSS type and an SSC flag into a target value."""
    return (int(gnss) << 1) | int(ssc)


def gnss_type(target: int) -> int:
    """Extract the GNSS type from a target value."""
    return int(target) >> 1


TARGET_DEFAULT = target_set(GnssTarget.MSM, SscType.HAS_SSC)
TARGET_MDM = target_set(GnssTarget.MDM, SscType.HAS_SSC)
TARGET_APQ_SA = target_set(GnssTarget.GSS, SscType.NO_SSC)
TARGET_MPQ = target_set(GnssTarget.NONE, SscType.NO_SSC)
TARGET_MSM_NO_SSC = target_set(GnssTarget.MSM, SscType.NO_SSC)
TARGET_QCA1530 = target_set(GnssTarget.QCA1530, SscType.NO_SSC)
TARGET_UNKNOWN = target_set(GnssTarget.UNKNOWN, SscType.NO_SSC)
TARGET_UNDETECTED = 0xFFFFFFFF

LINE_LEN = 100
PROPERTY_VALUE_MAX = 92
QCA1530_DETECT_TIMEOUT = 15
QCA1530_DETECT_PRESENT = "yes"
QCA1530_DETECT_PROGRESS = "detect"
QCA1530_PROPERTY = "sys.qca1530"

APQ8064_ID_1 = "109"
APQ8064_ID_2 = "153"
MPQ8064_ID_1 = "130"
MSM8930_ID_1 = "142"
MSM8930_ID_2 = "116"
APQ8030_ID_1 = "157"
APQ8074_ID_1 = "184"

STR_LIQUID = "Liquid"
STR_SURF = "Surf"
STR_MTP = "MTP"
STR_APQ = "apq"

_HW_PLATFORM = "sys/devices/soc0/hw_platform"
_SOC_ID = "sys/devices/soc0/soc_id"
_HW_PLATFORM_DEP = "sys/devices/system/soc/soc0/hw_platform"
_SOC_ID_DEP = "sys/devices/system/soc/soc0/id"
_MDM = "dev/mdm"


def read_a_line(path: Union[str, os.PathLike]) -> str:
    """Return the first line of ``path``, at most ``LINE_LEN - 1`` characters.

    The line keeps its newline if it fits. Raises OSError if the file
    cannot be opened.
    """
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as handle:
            line = handle.readline(LINE_LEN - 1)
    except OSError as exc:
        _log.error("open failed: %s: %s", path, exc.strerror)
        raise
    _log.debug("cat %s: %s", path, line)
    return line


def _matches(line: str, token: str) -> bool:
    """True if ``line`` is ``token`` followed by end of string, newline or return."""
    if not line.startswith(token):
        return False
    rest = line[len(token):]
    return rest == "" or rest[0] in "\n\r"


class TargetDetector:
    """Works out the target from system properties and sysfs files.

    ``properties`` stands in for the system property store, ``root`` is the
    directory the sysfs and device paths are resolved against, and ``sleep``
    is used while waiting for an in-progress SoC detection.
    """

    def __init__(
        self,
        properties: Optional[Mapping[str, str]] = None,
        root: Union[str, os.PathLike] = "/",
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._properties: Mapping[str, str] = properties if properties is not None else {}
        self._root = Path(root)
        self._sleep = sleep
        self._target: Optional[int] = None

    def _property(self, name: str) -> str:
        value = self._properties.get(name, "") or ""
        return value[: PROPERTY_VALUE_MAX - 1]

    def _path(self, relative: str) -> Path:
        return self._root / relative

    def _read_or_empty(self, primary: str, fallback: str) -> str:
        path = self._path(primary)
        if not path.exists():
            path = self._path(fallback)
        try:
            return read_a_line(path)
        except OSError:
            return ""

    def is_qca1530(self) -> bool:
        """True if the QCA1530 SoC is configured, waiting while detection runs."""
        detected = False
        for _ in range(QCA1530_DETECT_TIMEOUT):
            value = self._property(QCA1530_PROPERTY)
            _log.debug("qca1530: property %s is set to %s", QCA1530_PROPERTY, value)
            if value == QCA1530_DETECT_PRESENT:
                detected = True
                break
            if value == QCA1530_DETECT_PROGRESS:
                _log.debug("qca1530: SoC detection is in progress")
                self._sleep(1)
                continue
            break
        _log.debug("qca1530: detected=%s", "true" if detected else "false")
        return detected

    def baseband(self) -> str:
        """The ``ro.baseband`` property, or an empty string."""
        value = self._property("ro.baseband")
        _log.debug("Baseband: %s", value)
        return value

    def platform_name(self) -> str:
        """The ``ro.board.platform`` property, or an empty string."""
        value = self._property("ro.board.platform")
        _log.debug("Target name: %s", value)
        return value

    def detect(self) -> int:
        """Return the target value, detecting it on first success and caching it.

        Returns ``TARGET_UNDETECTED`` (uncached) when the hardware platform
        names an MDM board but no MDM device is present.
        """
        if self._target is not None:
            return self._target
        target = self._detect()
        _log.debug("HAL: detect returned %d", target)
        if target != TARGET_UNDETECTED:
            self._target = target
        return target

    def _detect(self) -> int:
        if self.is_qca1530():
            return TARGET_QCA1530

        baseband = self.baseband()
        hw_platform = self._read_or_empty(_HW_PLATFORM, _HW_PLATFORM_DEP)
        soc_id = self._read_or_empty(_SOC_ID, _SOC_ID_DEP)

        if baseband.startswith(STR_APQ):
            if _matches(soc_id, MPQ8064_ID_1):
                return TARGET_MPQ
            return TARGET_APQ_SA

        if any(_matches(hw_platform, name) for name in (STR_LIQUID, STR_SURF, STR_MTP)):
            try:
                read_a_line(self._path(_MDM))
            except OSError:
                return TARGET_UNDETECTED
            return TARGET_MDM

        if _matches(soc_id, MSM8930_ID_1) or _matches(soc_id, MSM8930_ID_2):
            return TARGET_MSM_NO_SSC
        return TARGET_UNKNOWN