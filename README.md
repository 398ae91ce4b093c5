# gpssdrsim

A GPS L1 C/A signal simulator. From a RINEX 2 GPS navigation file and a
receiver position (static, a user motion file, or an NMEA GGA stream) it
works out which satellites are visible, builds their navigation messages and
C/A codes, and writes the combined baseband I/Q samples to a binary file.

## Installation

```
pip install .
```

The package has no runtime dependencies beyond the Python standard library.
To run the tests:

```
pip install ".[test]"
pytest
```

## Generating a signal file

```
gpssdrsim -e brdc3540.14n -l 30.286502,120.032669,100
```

Options:

| Option             | Meaning                                                      |
|--------------------|--------------------------------------------------------------|
| `-e <gps_nav>`     | RINEX navigation file for GPS ephemerides (required)         |
| `-u <user_motion>` | User motion file, `t,x,y,z` ECEF records at 10 Hz (dynamic mode) |
| `-g <nmea_gga>`    | NMEA GGA stream (dynamic mode)                               |
| `-l <location>`    | Lat,Lon,Hgt in degrees and metres for a static receiver      |
| `-t <date,time>`   | Scenario start time `YYYY/MM/DD,hh:mm:ss`                    |
| `-d <duration>`    | Duration in seconds (0 to 300)                               |
| `-o <output>`      | I/Q sample file (default: `gpssim.bin`)                      |
| `-s <frequency>`   | Sampling frequency in Hz (default: 2600000, at least 1000000) |
| `-b <iq_bits>`     | I/Q data format: 1, 8 or 16 bits (default: 16)               |
| `-v`               | Show the simulated channels at every 30 s update             |

At least two arguments are needed, `-e` is required, and one of `-u`, `-g`
or `-l` must be given. Without `-t` the simulation starts at the first epoch
of the navigation file; a given start time must lie between the first epochs
of the first and the last ephemeris sets in the file. Problems are reported
as `ERROR: ...` lines and the command exits with status 1.

The receiver position is updated every 0.1 s; navigation messages and the
channel allocation are refreshed every 30 s of simulated time. Up to 16
satellites above the horizon are simulated at once.

Output formats:

* **16** – interleaved little-endian signed 16-bit I and Q values.
* **8** – interleaved 8-bit I and Q values (the 16-bit values shifted right
  by four).
* **1** – one sign bit per I or Q value, eight per byte, most significant bit
  first.

## Converting NMEA to user motion

```
nmea2um track.nmea track.csv
```

Each GGA sentence in the input becomes one line `time,x,y,z` of ECEF
coordinates in metres, with time advancing 0.1 s per sentence. The result can
be given to `gpssdrsim -u`.

## Using the library

* `gpssdrsim.gpstime` – `GpsTime` (subtraction gives seconds, `shifted`),
  `DateTime` and `date_to_gps`.
* `gpssdrsim.geodesy` – `llh_to_xyz`, `xyz_to_llh`, `ltc_matrix`,
  `ecef_to_neu` and `neu_to_azel` on the WGS-84 ellipsoid (angles in radians).
* `gpssdrsim.ephemeris` – `read_rinex_nav` / `parse_rinex_nav`, which return
  a list of ephemeris sets keyed by PRN, and `Ephemeris.position`, which gives
  a `SatelliteState` with position, velocity and clock correction.
* `gpssdrsim.navmsg` – `ca_code`, `compute_checksum`,
  `ephemeris_to_subframes` and `generate_nav_msg`.
* `gpssdrsim.motion` – `read_user_motion`, `read_nmea_gga`,
  `parse_user_motion`, `parse_nmea_gga` and `parse_gga_sentence`.
* `gpssdrsim.nmea2um` – `convert`, yielding user motion lines from NMEA lines.
* `gpssdrsim.channel` – `compute_range`, `check_visibility`, `Range`,
  `Channel` and `ChannelAllocator`.
* `gpssdrsim.signal` – `generate_samples`, `pack_samples`, `antenna_gain`,
  `channel_gain` and `DataFormat`.
* `gpssdrsim.cli` – `parse_args`, `SimulationConfig` and `run`, which writes
  the samples to a binary stream and returns the number of bytes written.

```python
from math import radians

from gpssdrsim.gpstime import DateTime, date_to_gps
from gpssdrsim.geodesy import llh_to_xyz, xyz_to_llh
from gpssdrsim.navmsg import ca_code

start = date_to_gps(DateTime(2014, 12, 20, 0, 0, 0.0))
xyz = llh_to_xyz((radians(35.681298), radians(139.766247), 10.0))
lat, lon, height = xyz_to_llh(xyz)
prn1 = ca_code(1)  # 1023 chips of 0 and 1
```

## What it does not do

The package only writes sample files. It does not drive a radio or transmit
the signal; playing the file out is left to other tools. Samples are computed
one by one in pure Python, so a run at the default sampling rate takes much
longer than the simulated duration.