"""Receiver trajectories: user motion CSV files and NMEA GGA streams."""

from __future__ import annotations

import re
from itertools import islice
from pathlib import Path
from typing import Iterable

from .geodesy import R2D, Vector, llh_to_xyz

USER_MOTION_SIZE = 3000  # longest trajectory, sampled at 10 Hz

_FLOAT_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")

# Token positions in a GGA sentence once empty fields are dropped.
_GGA_MIN_TOKENS = 12


def _atof(text: str) -> float:
    """Parse the leading number of ``text``; 0.0 where there is none."""
    match = _FLOAT_PREFIX.match(text)
    return float(match.group(1)) if match else 0.0


def _scan_float(text: str) -> float:
    """Parse the leading number of ``text``, raising where there is none."""
    match = _FLOAT_PREFIX.match(text)
    if match is None:
        raise ValueError(f"not a number: {text!r}")
    return float(match.group(1))


def parse_gga_sentence(line: str) -> Vector | None:
    """Return latitude, longitude (radians) and ellipsoidal height of a GGA line.

    Lines that are not GGA sentences give ``None``. Empty fields are skipped,
    so every field after an empty one moves up by one position.
    """
    tokens = [token for token in line.split(",") if token]
    if not tokens or tokens[0][3:6] != "GGA":
        return None
    if len(tokens) < _GGA_MIN_TOKENS:
        raise ValueError(f"truncated GGA sentence: {line!r}")

    lat_token, north_south, lon_token, east_west = tokens[2:6]

    lat = _atof(lat_token[:2]) + _atof(lat_token[2:]) / 60.0
    if north_south.startswith("S"):
        lat = -lat

    lon = _atof(lon_token[:3]) + _atof(lon_token[3:]) / 60.0
    if east_west.startswith("W"):
        lon = -lon

    # Altitude above mean sea level plus geoid height above the ellipsoid.
    height = _atof(tokens[9]) + _atof(tokens[11])

    return (lat / R2D, lon / R2D, height)


def parse_user_motion(lines: Iterable[str]) -> list[Vector]:
    """Read ECEF positions from ``t,x,y,z`` records, stopping at a blank line.

    At most ``USER_MOTION_SIZE`` records are read.
    """
    track: list[Vector] = []
    for line in islice(lines, USER_MOTION_SIZE):
        if not line.strip():
            break
        fields = line.split(",")
        if len(fields) < 4:
            raise ValueError(f"malformed user motion record: {line!r}")
        _, x, y, z = (_scan_float(field) for field in fields[:4])
        track.append((x, y, z))
    return track


def read_user_motion(path: str | Path) -> list[Vector]:
    """Read a user motion CSV file; see :func:`parse_user_motion`."""
    with open(path, "rt") as fp:
        return parse_user_motion(fp)


def parse_nmea_gga(lines: Iterable[str]) -> list[Vector]:
    """Collect the ECEF positions of the GGA sentences in an NMEA stream.

    At most ``USER_MOTION_SIZE`` positions are returned.
    """
    track: list[Vector] = []
    for line in lines:
        llh = parse_gga_sentence(line)
        if llh is None:
            continue
        track.append(llh_to_xyz(llh))
        if len(track) >= USER_MOTION_SIZE:
            break
    return track


def read_nmea_gga(path: str | Path) -> list[Vector]:
    """Read an NMEA file; see :func:`parse_nmea_gga`."""
    with open(path, "rt") as fp:
        return parse_nmea_gga(fp)