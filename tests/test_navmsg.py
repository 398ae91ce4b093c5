import pytest

from gpssdrsim.ephemeris import Ephemeris
from gpssdrsim.gpstime import GpsTime
from gpssdrsim.navmsg import (
    CA_SEQ_LEN,
    N_DWRD,
    N_DWRD_SBF,
    POW2_M31,
    ca_code,
    compute_checksum,
    ephemeris_to_subframes,
    generate_nav_msg,
)

DATA_MASK = 0x3FFFFFC0


def _ephemeris():
    return Ephemeris(
        prn=5,
        toc=GpsTime(1823, 345600.0),
        toe=GpsTime(1823, 345600.0),
        iodc=57,
        iode=57,
        deltan=4.5e-9,
        cuc=-1.2e-6,
        cus=8.4e-6,
        cic=1.1e-7,
        cis=-2.0e-8,
        crc=220.5,
        crs=-22.3,
        ecc=0.0056,
        sqrta=5153.6,
        m0=-1.2,
        omg0=2.1,
        inc0=0.96,
        aop=-1.7,
        omgdot=-8.0e-9,
        idot=3.0e-10,
        af0=-POW2_M31,
        af1=0.0,
        af2=0.0,
        tgd=0.0,
    )


def _data_bits(words, index):
    """Data bits 29..6 of a transmitted word, undoing the D30* inversion."""
    word = words[index]
    if index > 0 and words[index - 1] & 0x1:
        word ^= DATA_MASK
    return word & DATA_MASK


@pytest.mark.parametrize(
    "prn, first_chips",
    [(1, [1, 1, 0, 0, 1, 0, 0, 0, 0, 0]), (2, [1, 1, 1, 0, 0, 1, 0, 0, 0, 0])],
)
def test_ca_code_first_chips(prn, first_chips):
    assert ca_code(prn)[:10] == first_chips


def test_ca_code_shape_and_distinct():
    codes = [ca_code(prn) for prn in range(1, 33)]
    assert all(len(c) == CA_SEQ_LEN for c in codes)
    assert all(set(c) <= {0, 1} for c in codes)
    assert len({tuple(c) for c in codes}) == 32


@pytest.mark.parametrize("prn", [0, 33, -1])
def test_ca_code_invalid_prn(prn):
    with pytest.raises(ValueError):
        ca_code(prn)


def test_checksum_of_zero_word():
    assert compute_checksum(0, False) == 0


@pytest.mark.parametrize("data", [0x12345640, 0x3FFFFFC0, 0x22C00000, 0x0ABCDE00])
def test_checksum_keeps_data_without_d30(data):
    assert compute_checksum(data, False) & DATA_MASK == data
    assert compute_checksum(data, False) < (1 << 30)


@pytest.mark.parametrize("data", [0x12345640, 0x3FFFFFC0, 0x22C00000])
def test_checksum_inverts_data_with_d30(data):
    result = compute_checksum(data | (1 << 30), False)
    assert result & DATA_MASK == (~data) & DATA_MASK


@pytest.mark.parametrize(
    "source", [0x12345640, 0xC0000000 | 0x0ABCDE00, 0x80000000 | 0x3FFFFFC0, 0x40000100]
)
def test_checksum_nib_zeroes_last_parity_bits(source):
    assert compute_checksum(source, True) & 0x3 == 0


def test_subframe_headers():
    sbf = ephemeris_to_subframes(_ephemeris())
    assert len(sbf) == 5
    for k, subframe in enumerate(sbf, start=1):
        assert len(subframe) == N_DWRD_SBF
        assert subframe[0] == 0x8B0000 << 6
        assert subframe[1] == k << 8


def test_subframe_fields():
    eph = _ephemeris()
    sbf = ephemeris_to_subframes(eph)
    assert (sbf[0][2] >> 20) & 0x3FF == eph.toe.week % 1024
    assert (sbf[1][9] >> 14) & 0xFFFF == int(eph.toe.sec / 16.0)
    assert (sbf[1][2] >> 22) & 0xFF == eph.iode
    assert (sbf[2][9] >> 22) & 0xFF == eph.iode
    assert (sbf[0][7] >> 22) & 0xFF == eph.iodc & 0xFF
    # af0 of -1 LSB is stored as 22-bit two's complement.
    assert sbf[0][9] == 0x3FFFFF << 8


def test_generate_nav_msg_aligns_frame():
    sbf = ephemeris_to_subframes(_ephemeris())
    g0, words = generate_nav_msg(GpsTime(1823, 345645.3), sbf)
    assert g0 == GpsTime(1823, 345630.0)
    assert len(words) == N_DWRD
    assert all(0 <= w < (1 << 30) for w in words)


def test_generate_nav_msg_tow_counts():
    sbf = ephemeris_to_subframes(_ephemeris())
    g0, words = generate_nav_msg(GpsTime(1823, 345600.0), sbf)
    base = int(g0.sec) // 6
    for isbf in range(6):
        how = _data_bits(words, isbf * N_DWRD_SBF + 1)
        assert (how >> 13) & 0x1FFFF == base + isbf
        # Word 2 and word 10 end with zero parity bits.
        assert words[isbf * N_DWRD_SBF + 1] & 0x3 == 0
        assert words[isbf * N_DWRD_SBF + 9] & 0x3 == 0


def test_generate_nav_msg_carries_subframe_data():
    sbf = ephemeris_to_subframes(_ephemeris())
    _, words = generate_nav_msg(GpsTime(1823, 345600.0), sbf)
    for isbf, subframe in enumerate(sbf):
        for iwrd in (0, 2, 3, 4, 5, 6, 7, 8):
            index = (isbf + 1) * N_DWRD_SBF + iwrd
            assert _data_bits(words, index) == subframe[iwrd] & DATA_MASK


def test_generate_nav_msg_reuses_previous_subframe5():
    sbf = ephemeris_to_subframes(_ephemeris())
    _, first = generate_nav_msg(GpsTime(1823, 345600.0), sbf)
    g0, second = generate_nav_msg(GpsTime(1823, 345630.0), sbf, first)
    assert second[:N_DWRD_SBF] == first[-N_DWRD_SBF:]
    how = _data_bits(second, N_DWRD_SBF + 1)
    assert (how >> 13) & 0x1FFFF == int(g0.sec) // 6 + 1


def test_generate_nav_msg_rejects_bad_input():
    sbf = ephemeris_to_subframes(_ephemeris())
    with pytest.raises(ValueError):
        generate_nav_msg(GpsTime(1823, 0.0), sbf[:4])
    with pytest.raises(ValueError):
        generate_nav_msg(GpsTime(1823, 0.0), sbf, [0] * 10)