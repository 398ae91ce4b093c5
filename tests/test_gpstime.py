import pytest

from gpssdrsim.gpstime import (
    SECONDS_IN_DAY,
    SECONDS_IN_WEEK,
    DateTime,
    GpsTime,
    date_to_gps,
)


def test_gps_epoch_is_week_zero():
    g = date_to_gps(DateTime(1980, 1, 6, 0, 0, 0.0))
    assert g == GpsTime(0, 0.0)


def test_seven_days_later_is_next_week_same_second():
    a = date_to_gps(DateTime(2014, 12, 10, 5, 30, 12.0))
    b = date_to_gps(DateTime(2014, 12, 17, 5, 30, 12.0))
    assert b.week == a.week + 1
    assert b.sec == a.sec


def test_time_of_day_adds_seconds():
    a = date_to_gps(DateTime(2015, 3, 4, 0, 0, 0.0))
    b = date_to_gps(DateTime(2015, 3, 4, 2, 3, 4.5))
    assert b - a == pytest.approx(2 * 3600 + 3 * 60 + 4.5)


def test_leap_day_is_counted():
    feb28 = date_to_gps(DateTime(2016, 2, 28, 12, 0, 0.0))
    mar1 = date_to_gps(DateTime(2016, 3, 1, 12, 0, 0.0))
    assert mar1 - feb28 == pytest.approx(2 * SECONDS_IN_DAY)


def test_non_leap_year_february():
    feb28 = date_to_gps(DateTime(2015, 2, 28, 12, 0, 0.0))
    mar1 = date_to_gps(DateTime(2015, 3, 1, 12, 0, 0.0))
    assert mar1 - feb28 == pytest.approx(SECONDS_IN_DAY)


def test_seconds_of_week_stay_in_range():
    for day in range(1, 29):
        g = date_to_gps(DateTime(2020, 2, day, 23, 59, 59.0))
        assert 0.0 <= g.sec < SECONDS_IN_WEEK


def test_invalid_month_raises():
    with pytest.raises(ValueError):
        date_to_gps(DateTime(2014, 13, 1, 0, 0, 0.0))


def test_subtraction_across_weeks():
    a = GpsTime(1800, 604000.0)
    b = GpsTime(1801, 200.0)
    assert b - a == pytest.approx(1000.0)
    assert a - b == pytest.approx(-1000.0)


def test_shifted_keeps_week():
    g = GpsTime(1823, 100.0)
    s = g.shifted(0.5)
    assert s.week == 1823
    assert s.sec == pytest.approx(100.5)
    assert s - g == pytest.approx(0.5)
    assert g.sec == 100.0


def test_datetime_format():
    assert str(DateTime(2014, 12, 20, 3, 4, 5.0)) == "2014/12/20,03:04:05"