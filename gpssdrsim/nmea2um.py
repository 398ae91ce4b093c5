"""Convert an NMEA GGA stream into an ECEF user motion file."""

from __future__ import annotations

import sys
from typing import Iterable, Iterator, Sequence

from .geodesy import llh_to_xyz
from .motion import parse_gga_sentence

_STEP = 0.1  # records are 10 Hz


def convert(lines: Iterable[str]) -> Iterator[str]:
    """Yield one ``t,x,y,z`` user motion record per GGA sentence."""
    t = 0.0
    for line in lines:
        llh = parse_gga_sentence(line)
        if llh is None:
            continue
        x, y, z = llh_to_xyz(llh)
        yield f"{t:5.1f},{x:12.3f},{y:12.3f},{z:12.3f}\n"
        t += _STEP


def main(argv: Sequence[str] | None = None) -> int:
    """Command entry point: ``nmea2um <nmea_gga> <user_motion>``."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 2:
        print("Usage: nmea2um <nmea_gga> <user_motion>")
        return 1

    try:
        inp = open(args[0], "rt")
    except OSError:
        print("Failed to open NMEA file.")
        return 1

    with inp:
        try:
            outp = open(args[1], "wt")
        except OSError:
            print("Failed to open user motion file.")
            return 1
        with outp:
            outp.writelines(convert(inp))

    return 0


if __name__ == "__main__":
    sys.exit(main())