"""Command line GPS L1 C/A baseband signal simulator."""

from __future__ import annotations

import getopt
import math
import re
import sys
import time
from dataclasses import dataclass
from typing import BinaryIO, Sequence

from .channel import CARR_PHASE_SCALE, ChannelAllocator, compute_range
from .ephemeris import Ephemeris, read_rinex_nav
from .geodesy import R2D, Vector, llh_to_xyz
from .gpstime import SECONDS_IN_HOUR, DateTime, GpsTime, date_to_gps
from .motion import USER_MOTION_SIZE, read_nmea_gga, read_user_motion
from .signal import DataFormat, channel_gain, generate_samples, pack_samples

MAX_DURATION = USER_MOTION_SIZE / 10.0
DEFAULT_OUTPUT = "gpssim.bin"
DEFAULT_SAMP_FREQ = 2.6e6
MIN_SAMP_FREQ = 1.0e6

_OPTIONS = "e:u:g:l:o:s:b:t:d:v"
_STEP = 0.1  # receiver update interval in seconds
_ELEVATION_MASK = 0.0  # degrees
_FRAME_TICKS = 300  # navigation frame length in update intervals

_NUMBER = r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?"
_FLOAT_PREFIX = re.compile(rf"\s*({_NUMBER})")
_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_DATE_TIME = re.compile(
    r"\s*([+-]?\d+)/\s*([+-]?\d+)/\s*([+-]?\d+),"
    rf"\s*([+-]?\d+):\s*([+-]?\d+):\s*({_NUMBER})"
)


class _UsageError(ValueError):
    """The command line cannot be parsed at all."""


def _atof(text: str) -> float:
    match = _FLOAT_PREFIX.match(text)
    return float(match.group(1)) if match else 0.0


def _atoi(text: str) -> int:
    match = _INT_PREFIX.match(text)
    return int(match.group(1)) if match else 0


def _usage() -> str:
    return (
        "Usage: gpssdrsim [options]\n"
        "Options:\n"
        "  -e <gps_nav>     RINEX navigation file for GPS ephemerides (required)\n"
        "  -u <user_motion> User motion file (dynamic mode)\n"
        "  -g <nmea_gga>    NMEA GGA stream (dynamic mode)\n"
        "  -l <location>    Lat,Lon,Hgt (static mode) e.g. 30.286502,120.032669,100\n"
        "  -t <date,time>   Scenario start time YYYY/MM/DD,hh:mm:ss\n"
        f"  -d <duration>    Duration [sec] (max: {MAX_DURATION:.0f})\n"
        f"  -o <output>      I/Q sampling data file (default: {DEFAULT_OUTPUT})\n"
        f"  -s <frequency>   Sampling frequency [Hz] (default: {DEFAULT_SAMP_FREQ:.0f})\n"
        "  -b <iq_bits>     I/Q data format [1/8/16] (default: 16)\n"
        "  -v               Show details about simulated channels"
    )


@dataclass
class SimulationConfig:
    """Options of one simulation run."""

    nav_file: str
    motion_file: str | None = None
    nmea: bool = False
    location: Vector | None = None  # latitude, longitude (radians), height
    output: str = DEFAULT_OUTPUT
    samp_freq: float = DEFAULT_SAMP_FREQ
    data_format: DataFormat = DataFormat.SC16
    start: DateTime | None = None
    duration_steps: int = USER_MOTION_SIZE
    verbose: bool = False


def _parse_location(value: str) -> Vector:
    fields = value.split(",")
    if len(fields) < 3:
        raise ValueError("Invalid location.")
    numbers = []
    for text in fields[:3]:
        match = _FLOAT_PREFIX.match(text)
        if match is None:
            raise ValueError("Invalid location.")
        numbers.append(float(match.group(1)))
    lat, lon, hgt = numbers
    return (lat / R2D, lon / R2D, hgt)


def _parse_start(value: str) -> DateTime:
    match = _DATE_TIME.match(value)
    if match is None:
        raise ValueError("Invalid date and time.")
    y, m, d, hh, mm = (int(group) for group in match.groups()[:5])
    sec = float(match.group(6))
    if (
        y <= 1980 or not 1 <= m <= 12 or not 1 <= d <= 31
        or not 0 <= hh <= 23 or not 0 <= mm <= 59 or not 0.0 <= sec < 60.0
    ):
        raise ValueError("Invalid date and time.")
    return DateTime(y, m, d, hh, mm, float(math.floor(sec)))


def parse_args(argv: Sequence[str] | None = None) -> SimulationConfig:
    """Build a configuration from command line arguments.

    Raises ValueError for a missing or invalid option.
    """
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) < 2:
        raise _UsageError("")

    try:
        opts, _ = getopt.getopt(args, _OPTIONS)
    except getopt.GetoptError as exc:
        raise _UsageError(str(exc)) from exc

    nav_file = ""
    config = SimulationConfig(nav_file="")
    for option, value in opts:
        if option == "-e":
            nav_file = value
        elif option == "-u":
            config.motion_file = value
            config.nmea = False
        elif option == "-g":
            config.motion_file = value
            config.nmea = True
        elif option == "-l":
            config.location = _parse_location(value)
        elif option == "-o":
            config.output = value
        elif option == "-s":
            config.samp_freq = _atof(value)
            if config.samp_freq < MIN_SAMP_FREQ:
                raise ValueError("Invalid sampling frequency.")
        elif option == "-b":
            try:
                config.data_format = DataFormat(_atoi(value))
            except ValueError as exc:
                raise ValueError("Invalid I/Q data format.") from exc
        elif option == "-t":
            config.start = _parse_start(value)
        elif option == "-d":
            duration = _atof(value)
            if not 0.0 <= duration <= MAX_DURATION:
                raise ValueError("Invalid duration.")
            config.duration_steps = int(duration * 10.0 + 0.5)
        elif option == "-v":
            config.verbose = True

    if not nav_file:
        raise ValueError("GPS ephemeris file is not specified.")
    config.nav_file = nav_file

    if not config.motion_file and config.location is None:
        raise ValueError(
            "User motion file / NMEA GGA stream is not specified.\n"
            "You may use -l to specify the static location directly."
        )
    return config


@dataclass
class _Scenario:
    ephemerides: dict[int, Ephemeris]
    track: list[Vector]
    steps: int
    g0: GpsTime
    iq_buff_size: int
    delt: float
    data_format: DataFormat
    verbose: bool


def _stamp(t: DateTime, g: GpsTime) -> str:
    return f"{t} ({g.week}:{g.sec:.0f})"


def _first(ephemerides: dict[int, Ephemeris]) -> Ephemeris:
    return ephemerides[min(ephemerides)]


def _prepare(config: SimulationConfig) -> _Scenario:
    """Read inputs and choose the start time and ephemeris set."""
    samp_freq = math.floor(config.samp_freq / 10.0)
    iq_buff_size = int(samp_freq)  # samples per update interval
    delt = 1.0 / (samp_freq * 10.0)

    if config.location is not None:
        print("Using static location mode.")
        steps = config.duration_steps
        track = [llh_to_xyz(config.location)] * max(steps, 1)
    else:
        if not config.motion_file:
            raise ValueError("User motion file / NMEA GGA stream is not specified.")
        reader = read_nmea_gga if config.nmea else read_user_motion
        try:
            track = reader(config.motion_file)
        except OSError as exc:
            raise ValueError("Failed to open user motion / NMEA GGA file.") from exc
        if not track:
            raise ValueError("Failed to read user motion / NMEA GGA data.")
        steps = min(len(track), config.duration_steps)

    try:
        sets = read_rinex_nav(config.nav_file)
    except OSError as exc:
        raise ValueError("Failed to open GPS ephemeris file.") from exc
    if not sets or not sets[0] or not sets[-1]:
        raise ValueError("No ephemeris available.")

    first = _first(sets[0])
    last = _first(sets[-1])

    if config.start is not None:
        g0 = date_to_gps(config.start)
        t0 = config.start
        if g0 - first.toc < 0.0 or last.toc - g0 < 0.0:
            raise ValueError(
                "Invalid start time.\n"
                f"tmin = {_stamp(first.t, first.toc)}\n"
                f"tmax = {_stamp(last.t, last.toc)}"
            )
    else:
        g0 = first.toc
        t0 = first.t

    print(f"Start time = {_stamp(t0, g0)}")
    print(f"Duration = {steps / 10.0:.1f} [sec]")

    current = next(
        (
            ephs for ephs in sets
            if any(-SECONDS_IN_HOUR <= g0 - eph.toc < SECONDS_IN_HOUR
                   for eph in ephs.values())
        ),
        None,
    )
    if current is None:
        raise ValueError("No current set of ephemerides has been found.")

    return _Scenario(
        ephemerides=current,
        track=track,
        steps=steps,
        g0=g0,
        iq_buff_size=iq_buff_size,
        delt=delt,
        data_format=config.data_format,
        verbose=config.verbose,
    )


def _show_channels(allocator: ChannelAllocator) -> None:
    for chan in allocator.active():
        print(
            f"{chan.prn:02d} {chan.azel[0] * R2D:6.1f} "
            f"{chan.azel[1] * R2D:5.1f} {chan.rho0.d:11.1f}"
        )


def _simulate(scenario: _Scenario, out: BinaryIO) -> int:
    """Generate the baseband signal into ``out``; return the bytes written."""
    ephs = scenario.ephemerides
    delt = scenario.delt
    grx = scenario.g0

    allocator = ChannelAllocator()
    allocator.allocate(ephs, grx, scenario.track[0], _ELEVATION_MASK)
    _show_channels(allocator)

    tstart = time.process_time()
    grx = grx.shifted(_STEP)
    written = 0

    for xyz in scenario.track[1:scenario.steps]:
        channels = allocator.active()
        gains = []
        for chan in channels:
            rho = compute_range(ephs[chan.prn], grx, xyz)
            chan.azel = rho.azel
            chan.update_code_phase(rho, _STEP)
            chan.carr_phasestep = int(CARR_PHASE_SCALE * chan.f_carr * delt)
            gains.append(channel_gain(rho))

        samples = generate_samples(channels, gains, scenario.iq_buff_size, delt)
        data = pack_samples(samples, scenario.data_format)
        out.write(data)
        written += len(data)

        # Refresh navigation messages and channel allocation every frame.
        if int(grx.sec * 10.0 + 0.5) % _FRAME_TICKS == 0:
            for chan in allocator.active():
                chan.g0, chan.dwrd = generate_nav_msg_for(chan, grx)
            allocator.allocate(ephs, grx, xyz, _ELEVATION_MASK)
            if scenario.verbose:
                print()
                _show_channels(allocator)

        grx = grx.shifted(_STEP)
        print(f"\rTime into run = {grx - scenario.g0:4.1f}", end="", flush=True)

    print("\nDone!")
    print(f"Process time = {time.process_time() - tstart:.1f} [sec]")
    return written


def generate_nav_msg_for(chan, grx: GpsTime):
    """Regenerate a channel's navigation frame at receiver time ``grx``."""
    from .navmsg import generate_nav_msg

    return generate_nav_msg(grx, chan.sbf, chan.dwrd)


def run(config: SimulationConfig, out: BinaryIO) -> int:
    """Simulate the configured scenario into ``out``; return the bytes written.

    Raises ValueError when the inputs do not allow a simulation.
    """
    return _simulate(_prepare(config), out)


def main(argv: Sequence[str] | None = None) -> int:
    """Command entry point."""
    try:
        config = parse_args(argv)
    except _UsageError as exc:
        if str(exc):
            print(exc)
        print(_usage())
        return 1
    except ValueError as exc:
        print(f"ERROR: {exc}")
        return 1

    try:
        scenario = _prepare(config)
    except ValueError as exc:
        print(f"ERROR: {exc}")
        return 1

    try:
        out = open(config.output, "wb")
    except OSError:
        print("ERROR: Failed to open output file.")
        return 1

    with out:
        _simulate(scenario, out)
    return 0


if __name__ == "__main__":
    sys.exit(main())