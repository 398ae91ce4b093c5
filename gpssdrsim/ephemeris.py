"""GPS broadcast ephemerides: RINEX navigation parsing and orbit evaluation."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from itertools import islice
from pathlib import Path
from typing import Iterable

from .gpstime import (
    SECONDS_IN_HALF_WEEK,
    SECONDS_IN_HOUR,
    SECONDS_IN_WEEK,
    DateTime,
    GpsTime,
    date_to_gps,
)

# Conventional values of the GPS ephemeris model (ICD-GPS-200).
GM_EARTH = 3.986005e14
OMEGA_EARTH = 7.2921151467e-5

MAX_SAT = 32
EPHEM_ARRAY_SIZE = 13  # enough for a daily broadcast ephemeris file

_KEPLER_TOLERANCE = 1.0e-14
_KEPLER_MAX_ITERATIONS = 100

_FLOAT_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")

Vector = tuple[float, float, float]


def _atof(text: str) -> float:
    """Parse the leading number of ``text``; 0.0 where there is none."""
    match = _FLOAT_PREFIX.match(text)
    return float(match.group(1)) if match else 0.0


def _atoi(text: str) -> int:
    """Parse the leading integer of ``text``; 0 where there is none."""
    match = _INT_PREFIX.match(text)
    return int(match.group(1)) if match else 0


def _field(line: str, start: int) -> float:
    """Read a 19-character RINEX number, accepting 'D' as exponent marker."""
    return _atof(line[start:start + 19].replace("D", "E"))


def _wrap_week(tk: float) -> float:
    if tk > SECONDS_IN_HALF_WEEK:
        return tk - SECONDS_IN_WEEK
    if tk < -SECONDS_IN_HALF_WEEK:
        return tk + SECONDS_IN_WEEK
    return tk


@dataclass(frozen=True)
class SatelliteState:
    """Satellite ECEF position, velocity and clock (bias, drift) at one epoch."""

    pos: Vector
    vel: Vector
    clk: tuple[float, float]


@dataclass(frozen=True)
class Ephemeris:
    """Broadcast ephemeris of one satellite."""

    prn: int
    t: DateTime = DateTime(1980, 1, 6, 0, 0, 0.0)
    toc: GpsTime = GpsTime(0, 0.0)
    toe: GpsTime = GpsTime(0, 0.0)
    iodc: int = 0
    iode: int = 0
    deltan: float = 0.0
    cuc: float = 0.0
    cus: float = 0.0
    cic: float = 0.0
    cis: float = 0.0
    crc: float = 0.0
    crs: float = 0.0
    ecc: float = 0.0
    sqrta: float = 0.0
    m0: float = 0.0
    omg0: float = 0.0
    inc0: float = 0.0
    aop: float = 0.0
    omgdot: float = 0.0
    idot: float = 0.0
    af0: float = 0.0
    af1: float = 0.0
    af2: float = 0.0
    tgd: float = 0.0

    @property
    def A(self) -> float:
        """Semi-major axis in metres."""
        return self.sqrta * self.sqrta

    @property
    def n(self) -> float:
        """Corrected mean motion in radians per second."""
        a = self.A
        return math.sqrt(GM_EARTH / (a * a * a)) + self.deltan

    @property
    def sq1e2(self) -> float:
        """sqrt(1 - e^2)."""
        return math.sqrt(1.0 - self.ecc * self.ecc)

    @property
    def omgkdot(self) -> float:
        """Rate of right ascension relative to the rotating Earth."""
        return self.omgdot - OMEGA_EARTH

    def position(self, g: GpsTime) -> SatelliteState:
        """Compute position, velocity and clock correction at GPS time ``g``."""
        tk = _wrap_week(g.sec - self.toe.sec)
        n = self.n
        ecc = self.ecc

        mk = self.m0 + n * tk
        ek = mk
        ekold = ek + 1.0
        one_minus_ecos_e = 1.0 - ecc * math.cos(ek)
        for _ in range(_KEPLER_MAX_ITERATIONS):
            if abs(ek - ekold) <= _KEPLER_TOLERANCE:
                break
            ekold = ek
            one_minus_ecos_e = 1.0 - ecc * math.cos(ekold)
            ek = ek + (mk - ekold + ecc * math.sin(ekold)) / one_minus_ecos_e

        sek = math.sin(ek)
        cek = math.cos(ek)
        ekdot = n / one_minus_ecos_e

        relativistic = -4.442807633e-10 * ecc * self.sqrta * sek

        sq1e2 = self.sq1e2
        pk = math.atan2(sq1e2 * sek, cek - ecc) + self.aop
        pkdot = sq1e2 * ekdot / one_minus_ecos_e

        s2pk = math.sin(2.0 * pk)
        c2pk = math.cos(2.0 * pk)

        uk = pk + self.cus * s2pk + self.cuc * c2pk
        suk = math.sin(uk)
        cuk = math.cos(uk)
        ukdot = pkdot * (1.0 + 2.0 * (self.cus * c2pk - self.cuc * s2pk))

        a = self.A
        rk = a * one_minus_ecos_e + self.crc * c2pk + self.crs * s2pk
        rkdot = a * ecc * sek * ekdot + 2.0 * pkdot * (self.crs * c2pk - self.crc * s2pk)

        ik = self.inc0 + self.idot * tk + self.cic * c2pk + self.cis * s2pk
        sik = math.sin(ik)
        cik = math.cos(ik)
        ikdot = self.idot + 2.0 * pkdot * (self.cis * c2pk - self.cic * s2pk)

        xpk = rk * cuk
        ypk = rk * suk
        xpkdot = rkdot * cuk - ypk * ukdot
        ypkdot = rkdot * suk + xpk * ukdot

        omgkdot = self.omgkdot
        ok = self.omg0 + tk * omgkdot - OMEGA_EARTH * self.toe.sec
        sok = math.sin(ok)
        cok = math.cos(ok)

        pos = (
            xpk * cok - ypk * cik * sok,
            xpk * sok + ypk * cik * cok,
            ypk * sik,
        )

        tmp = ypkdot * cik - ypk * sik * ikdot
        vel = (
            -omgkdot * pos[1] + xpkdot * cok - tmp * sok,
            omgkdot * pos[0] + xpkdot * sok + tmp * cok,
            ypk * cik * ikdot + ypkdot * sik,
        )

        tk = _wrap_week(g.sec - self.toc.sec)
        clk = (
            self.af0 + tk * (self.af1 + tk * self.af2) + relativistic - self.tgd,
            self.af1 + 2.0 * tk * self.af2,
        )
        return SatelliteState(pos, vel, clk)


def _parse_epoch(line: str) -> DateTime:
    return DateTime(
        y=_atoi(line[3:5]) + 2000,
        m=_atoi(line[6:8]),
        d=_atoi(line[9:11]),
        hh=_atoi(line[12:14]),
        mm=_atoi(line[15:17]),
        sec=_atof(line[18:20]),
    )


def parse_rinex_nav(lines: Iterable[str]) -> list[dict[int, Ephemeris]]:
    """Parse RINEX 2 GPS navigation data into sets of ephemerides.

    Each set is a dict keyed by PRN. A new set starts whenever a record's
    clock epoch is more than one hour after the first epoch of the current
    set; at most ``EPHEM_ARRAY_SIZE`` sets are read. Incomplete trailing
    records are dropped.
    """
    it = iter(lines)
    for line in it:
        if line[60:73] == "END OF HEADER":
            break

    sets: list[dict[int, Ephemeris]] = []
    g0: GpsTime | None = None

    for line in it:
        t = _parse_epoch(line)
        g = date_to_gps(t)

        if g0 is None:
            g0 = g
            sets.append({})
        elif g - g0 > SECONDS_IN_HOUR:
            g0 = g
            if len(sets) >= EPHEM_ARRAY_SIZE:
                break
            sets.append({})

        prn = _atoi(line[0:2])
        if not 1 <= prn <= MAX_SAT:
            raise ValueError(f"invalid PRN in navigation record: {prn}")

        orbits = list(islice(it, 7))
        if len(orbits) < 7:
            break
        o1, o2, o3, o4, o5, o6, _ = orbits

        sets[-1][prn] = Ephemeris(
            prn=prn,
            t=t,
            toc=g,
            toe=GpsTime(int(_field(o5, 41)), _field(o3, 3)),
            af0=_field(line, 22),
            af1=_field(line, 41),
            af2=_field(line, 60),
            iode=int(_field(o1, 3)),
            crs=_field(o1, 22),
            deltan=_field(o1, 41),
            m0=_field(o1, 60),
            cuc=_field(o2, 3),
            ecc=_field(o2, 22),
            cus=_field(o2, 41),
            sqrta=_field(o2, 60),
            cic=_field(o3, 22),
            omg0=_field(o3, 41),
            cis=_field(o3, 60),
            inc0=_field(o4, 3),
            crc=_field(o4, 22),
            aop=_field(o4, 41),
            omgdot=_field(o4, 60),
            idot=_field(o5, 3),
            tgd=_field(o6, 41),
            iodc=int(_field(o6, 60)),
        )

    return sets


def read_rinex_nav(path: str | Path) -> list[dict[int, Ephemeris]]:
    """Read a RINEX 2 GPS navigation file; see :func:`parse_rinex_nav`."""
    with open(path, "rt") as fp:
        return parse_rinex_nav(fp)