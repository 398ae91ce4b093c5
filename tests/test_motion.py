import pytest

from gpssdrsim.geodesy import R2D, llh_to_xyz, xyz_to_llh
from gpssdrsim.motion import (
    USER_MOTION_SIZE,
    parse_gga_sentence,
    parse_nmea_gga,
    parse_user_motion,
    read_nmea_gga,
    read_user_motion,
)

GGA = "$GPGGA,123519,4807.038,N,01131.000,E,1,08,0.9,545.4,M,46.9,M,,*47\n"
GGA_SW = "$GPGGA,123519,4807.038,S,01131.000,W,1,08,0.9,545.4,M,46.9,M,,*47\n"


def test_gga_sentence_fields():
    lat, lon, h = parse_gga_sentence(GGA)
    assert lat * R2D == pytest.approx(48 + 7.038 / 60.0)
    assert lon * R2D == pytest.approx(11 + 31.000 / 60.0)
    assert h == pytest.approx(545.4 + 46.9)


def test_gga_sentence_south_west_is_negative():
    north = parse_gga_sentence(GGA)
    south = parse_gga_sentence(GGA_SW)
    assert south[0] == pytest.approx(-north[0])
    assert south[1] == pytest.approx(-north[1])
    assert south[2] == pytest.approx(north[2])


def test_other_talker_is_accepted():
    assert parse_gga_sentence(GGA.replace("$GPGGA", "$GNGGA")) == parse_gga_sentence(GGA)


@pytest.mark.parametrize("line", ["$GPRMC,123519,A,4807.038,N\n", "\n", ""])
def test_non_gga_lines_are_ignored(line):
    assert parse_gga_sentence(line) is None


def test_truncated_gga_raises():
    with pytest.raises(ValueError):
        parse_gga_sentence("$GPGGA,123519,4807.038,N\n")


def test_parse_nmea_gga_round_trip():
    track = parse_nmea_gga(["$GPRMC,x,y\n", GGA, GGA_SW])
    assert len(track) == 2
    for xyz, line in zip(track, [GGA, GGA_SW]):
        llh = parse_gga_sentence(line)
        back = xyz_to_llh(xyz)
        assert back[0] == pytest.approx(llh[0], abs=1e-9)
        assert back[1] == pytest.approx(llh[1], abs=1e-9)
        assert back[2] == pytest.approx(llh[2], abs=1e-2)


def test_parse_nmea_gga_is_capped():
    track = parse_nmea_gga([GGA] * (USER_MOTION_SIZE + 5))
    assert len(track) == USER_MOTION_SIZE


def test_parse_user_motion_records():
    track = parse_user_motion(["0.0,1.5,-2.0,3e6\n", "0.1, 4, 5, 6\n"])
    assert track == [(1.5, -2.0, 3e6), (4.0, 5.0, 6.0)]


def test_parse_user_motion_stops_at_blank_line():
    track = parse_user_motion(["0.0,1,2,3\n", "\n", "0.2,7,8,9\n"])
    assert track == [(1.0, 2.0, 3.0)]


def test_parse_user_motion_is_capped():
    track = parse_user_motion(["0.0,1,2,3\n"] * (USER_MOTION_SIZE + 1))
    assert len(track) == USER_MOTION_SIZE


@pytest.mark.parametrize("line", ["0.0,1,2\n", "0.0,a,2,3\n"])
def test_parse_user_motion_malformed(line):
    with pytest.raises(ValueError):
        parse_user_motion([line])


def test_read_user_motion_file(tmp_path):
    path = tmp_path / "circle.csv"
    path.write_text("0.0,-3813477.954,3554276.552,3662785.237\n")
    assert read_user_motion(path) == [(-3813477.954, 3554276.552, 3662785.237)]


def test_read_nmea_gga_file(tmp_path):
    path = tmp_path / "track.txt"
    path.write_text(GGA)
    assert read_nmea_gga(path) == [llh_to_xyz(parse_gga_sentence(GGA))]


def test_read_missing_file(tmp_path):
    with pytest.raises(OSError):
        read_user_motion(tmp_path / "missing.csv")