"""WGS-84 coordinate conversions and local topocentric frames."""

from __future__ import annotations

import math
from typing import Sequence

WGS84_RADIUS = 6378137.0
WGS84_ECCENTRICITY = 0.0818191908426
PI = 3.1415926535898
R2D = 57.2957795131

Vector = tuple[float, float, float]
Matrix = tuple[Vector, Vector, Vector]


def xyz_to_llh(xyz: Sequence[float]) -> Vector:
    """Convert ECEF coordinates into latitude, longitude (radians) and height."""
    a = WGS84_RADIUS
    e2 = WGS84_ECCENTRICITY * WGS84_ECCENTRICITY
    eps = 1.0e-3

    x, y, z = xyz
    if math.sqrt(x * x + y * y + z * z) < eps:
        # Not a usable position.
        return (0.0, 0.0, -a)

    rho2 = x * x + y * y
    dz = e2 * z

    while True:
        zdz = z + dz
        nh = math.sqrt(rho2 + zdz * zdz)
        slat = zdz / nh
        n = a / math.sqrt(1.0 - e2 * slat * slat)
        dz_new = n * e2 * slat
        if abs(dz - dz_new) < eps:
            break
        dz = dz_new

    return (math.atan2(zdz, math.sqrt(rho2)), math.atan2(y, x), nh - n)


def llh_to_xyz(llh: Sequence[float]) -> Vector:
    """Convert latitude, longitude (radians) and height into ECEF coordinates."""
    a = WGS84_RADIUS
    e = WGS84_ECCENTRICITY
    e2 = e * e

    lat, lon, h = llh
    clat, slat = math.cos(lat), math.sin(lat)
    clon, slon = math.cos(lon), math.sin(lon)
    d = e * slat

    n = a / math.sqrt(1.0 - d * d)
    tmp = (n + h) * clat
    return (tmp * clon, tmp * slon, ((1.0 - e2) * n + h) * slat)


def ltc_matrix(llh: Sequence[float]) -> Matrix:
    """Return the rotation from ECEF into the local North-East-Up frame."""
    slat, clat = math.sin(llh[0]), math.cos(llh[0])
    slon, clon = math.sin(llh[1]), math.cos(llh[1])
    return (
        (-slat * clon, -slat * slon, clat),
        (-slon, clon, 0.0),
        (clat * clon, clat * slon, slat),
    )


def ecef_to_neu(xyz: Sequence[float], t: Matrix) -> Vector:
    """Rotate an ECEF vector into North-East-Up using a matrix from ltc_matrix."""
    n, e, u = (sum(r * v for r, v in zip(row, xyz)) for row in t)
    return (n, e, u)


def neu_to_azel(neu: Sequence[float]) -> tuple[float, float]:
    """Return azimuth in [0, 2*pi) and elevation, in radians, of an NEU vector."""
    north, east, up = neu
    az = math.atan2(east, north)
    if az < 0.0:
        az += 2.0 * PI
    el = math.atan2(up, math.hypot(north, east))
    return (az, el)