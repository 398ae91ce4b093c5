[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gpssdrsim"
version = "0.1.0"
description = "GPS L1 C/A baseband signal simulator producing I/Q sample files from broadcast ephemerides"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "gps",
    "gnss",
    "sdr",
    "simulator",
    "rinex",
    "nmea",
    "baseband",
    "iq",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering",
    "Topic :: Communications :: Ham Radio",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
gpssdrsim = "gpssdrsim.cli:main"
nmea2um = "gpssdrsim.nmea2um:main"

[tool.hatch.build.targets.wheel]
packages = ["gpssdrsim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
