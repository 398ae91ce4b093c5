"""Pseudorange computation and per-satellite signal channels."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping, Sequence

from .ephemeris import MAX_SAT, OMEGA_EARTH, Ephemeris
from .geodesy import R2D, ecef_to_neu, ltc_matrix, neu_to_azel, xyz_to_llh
from .gpstime import GpsTime
from .navmsg import CA_SEQ_LEN, ca_code, ephemeris_to_subframes, generate_nav_msg

SPEED_OF_LIGHT = 2.99792458e8
LAMBDA_L1 = 0.190293672798365
CARR_FREQ = 1575.42e6
CODE_FREQ = 1.023e6
CARR_TO_CODE = 1.0 / 1540.0

MAX_CHAN = 16

# Carrier phase is a 32-bit accumulator; its top 9 bits index the sine table.
CARR_PHASE_SCALE = 512 * 65536.0


def _tdiv(a: int, b: int) -> int:
    """Integer division rounding towards zero."""
    q = abs(a) // b
    return -q if a < 0 else q


def _sub(a: Sequence[float], b: Sequence[float]) -> tuple[float, float, float]:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def _norm(v: Sequence[float]) -> float:
    return math.sqrt(v[0] * v[0] + v[1] * v[1] + v[2] * v[2])


def _dot(a: Sequence[float], b: Sequence[float]) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


@dataclass(frozen=True)
class Range:
    """Satellite range seen from a receiver at one epoch."""

    g: GpsTime
    range: float  # pseudorange
    rate: float
    d: float  # geometric distance
    azel: tuple[float, float]


def compute_range(eph: Ephemeris, g: GpsTime, xyz: Sequence[float]) -> Range:
    """Compute pseudorange, range rate and azimuth/elevation of a satellite."""
    state = eph.position(g)
    pos = state.pos
    vel = state.vel

    # Light time from the satellite to the receiver.
    tau = _norm(_sub(pos, xyz)) / SPEED_OF_LIGHT

    # Satellite position at transmission time.
    px = pos[0] - vel[0] * tau
    py = pos[1] - vel[1] * tau
    pz = pos[2] - vel[2] * tau

    # Earth rotation during the signal flight; velocity change is negligible.
    xrot = px + py * OMEGA_EARTH * tau
    yrot = py - px * OMEGA_EARTH * tau

    los = _sub((xrot, yrot, pz), xyz)
    distance = _norm(los)

    neu = ecef_to_neu(los, ltc_matrix(xyz_to_llh(xyz)))
    return Range(
        g=g,
        range=distance - SPEED_OF_LIGHT * state.clk[0],
        rate=_dot(vel, los) / distance,
        d=distance,
        azel=neu_to_azel(neu),
    )


def check_visibility(
    eph: Ephemeris | None,
    g: GpsTime,
    xyz: Sequence[float],
    elv_mask: float,
) -> tuple[float, float] | None:
    """Return azimuth and elevation if the satellite is above ``elv_mask`` degrees.

    Returns ``None`` for a satellite below the mask or without an ephemeris.
    """
    if eph is None:
        return None
    tmat = ltc_matrix(xyz_to_llh(xyz))
    los = _sub(eph.position(g).pos, xyz)
    azel = neu_to_azel(ecef_to_neu(los, tmat))
    return azel if azel[1] * R2D > elv_mask else None


@dataclass
class Channel:
    """Signal generation state for one satellite."""

    prn: int
    ca: list[int]
    sbf: tuple[tuple[int, ...], ...]
    dwrd: list[int]
    g0: GpsTime
    rho0: Range
    azel: tuple[float, float]
    carr_phase: int = 0
    carr_phasestep: int = 0
    f_carr: float = 0.0
    f_code: float = CODE_FREQ
    code_phase: float = 0.0
    iword: int = 0
    ibit: int = 0
    icode: int = 0
    data_bit: int = 1
    code_ca: int = 1

    def update_code_phase(self, rho1: Range, dt: float) -> None:
        """Advance to range ``rho1`` observed ``dt`` seconds after the last one.

        Sets carrier and code frequencies from the range rate and the code
        phase and data bit counters from the previous pseudorange.
        """
        rhorate = (rho1.range - self.rho0.range) / dt

        self.f_carr = -rhorate / LAMBDA_L1
        self.f_code = CODE_FREQ + self.f_carr * CARR_TO_CODE

        ms = (
            (self.rho0.g.sec - self.g0.sec) + 6.0
            - self.rho0.range / SPEED_OF_LIGHT
        ) * 1000.0

        ims = int(ms)
        self.code_phase = (ms - ims) * CA_SEQ_LEN

        self.iword = _tdiv(ims, 600)  # 1 word = 30 bits = 600 ms
        ims -= self.iword * 600
        self.ibit = _tdiv(ims, 20)  # 1 bit = 20 codes = 20 ms
        ims -= self.ibit * 20
        self.icode = ims  # 1 code = 1 ms

        self.code_ca = self.ca[int(self.code_phase)] * 2 - 1
        self.data_bit = ((self.dwrd[self.iword] >> (29 - self.ibit)) & 0x1) * 2 - 1

        self.rho0 = rho1


def _open_channel(
    prn: int,
    eph: Ephemeris,
    grx: GpsTime,
    xyz: Sequence[float],
    azel: tuple[float, float],
) -> Channel:
    sbf = ephemeris_to_subframes(eph)
    g0, dwrd = generate_nav_msg(grx, sbf)
    rho = compute_range(eph, grx, xyz)

    r_ref = compute_range(eph, grx, (0.0, 0.0, 0.0)).range
    phase_ini = (2.0 * r_ref - rho.range) / LAMBDA_L1
    phase_ini -= math.floor(phase_ini)

    return Channel(
        prn=prn,
        ca=ca_code(prn),
        sbf=sbf,
        dwrd=dwrd,
        g0=g0,
        rho0=rho,
        azel=azel,
        carr_phase=int(CARR_PHASE_SCALE * phase_ini),
    )


class ChannelAllocator:
    """Assigns visible satellites to a fixed number of channel slots."""

    def __init__(self, max_channels: int = MAX_CHAN) -> None:
        self._slots: list[Channel | None] = [None] * max_channels
        self._allocated: dict[int, int] = {}

    def allocate(
        self,
        ephemerides: Mapping[int, Ephemeris],
        grx: GpsTime,
        xyz: Sequence[float],
        elv_mask: float = 0.0,
    ) -> int:
        """Open channels for newly visible satellites and free set ones.

        Returns the number of visible satellites, whether or not each found
        a free channel.
        """
        nsat = 0
        for prn in range(1, MAX_SAT + 1):
            eph = ephemerides.get(prn)
            azel = check_visibility(eph, grx, xyz, elv_mask)
            if azel is not None:
                nsat += 1
                if prn not in self._allocated:
                    slot = next(
                        (i for i, chan in enumerate(self._slots) if chan is None),
                        None,
                    )
                    if slot is not None:
                        self._slots[slot] = _open_channel(prn, eph, grx, xyz, azel)
                        self._allocated[prn] = slot
            elif prn in self._allocated:
                self._slots[self._allocated.pop(prn)] = None
        return nsat

    def active(self) -> list[Channel]:
        """Return the occupied channels in slot order."""
        return [chan for chan in self._slots if chan is not None]