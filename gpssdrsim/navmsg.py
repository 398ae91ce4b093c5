"""C/A code generation and GPS L1 navigation message encoding."""

from __future__ import annotations

from typing import Sequence

from .ephemeris import Ephemeris
from .geodesy import PI
from .gpstime import GpsTime

CA_SEQ_LEN = 1023
N_SBF = 5  # subframes per frame
N_DWRD_SBF = 10  # words per subframe
N_DWRD = (N_SBF + 1) * N_DWRD_SBF  # word buffer: previous subframe 5 + one frame

POW2_M5 = 0.03125
POW2_M19 = 1.907348632812500e-6
POW2_M29 = 1.862645149230957e-9
POW2_M31 = 4.656612873077393e-10
POW2_M33 = 1.164153218269348e-10
POW2_M43 = 1.136868377216160e-13
POW2_M55 = 2.775557561562891e-17

# G2 code delays in chips for PRN 1..32.
_G2_DELAY = (
    5, 6, 7, 8, 17, 18, 139, 140, 141, 251,
    252, 254, 255, 256, 257, 258, 469, 470, 471, 472,
    473, 474, 509, 512, 513, 514, 515, 516, 859, 860,
    861, 862,
)

_PREAMBLE_WORD = 0x8B0000 << 6
_DATA_MASK = 0x3FFFFFC0
_WORD_MASK = 0x3FFFFFFF

# Parity masks for D25..D30 (ICD-GPS-200).
_PARITY_MASKS = (
    0x3B1F3480, 0x1D8F9A40, 0x2EC7CD00,
    0x1763E680, 0x2BB1F340, 0x0B7A89C0,
)

_URA = 2
_DATA_ID = 1
_SBF4_PAGE25_SVID = 63
_SBF5_PAGE25_SVID = 51


def _parity(mask: int, d: int) -> int:
    return bin(mask & d).count("1")


def ca_code(prn: int) -> list[int]:
    """Return the 1023-chip C/A code (chips 0 or 1) of satellite ``prn``."""
    if not 1 <= prn <= len(_G2_DELAY):
        raise ValueError(f"PRN out of range 1..{len(_G2_DELAY)}: {prn}")

    # Registers hold +1/-1 so that multiplication acts as exclusive or.
    r1 = [-1] * 10
    r2 = [-1] * 10
    g1: list[int] = []
    g2: list[int] = []
    for _ in range(CA_SEQ_LEN):
        g1.append(r1[9])
        g2.append(r2[9])
        c1 = r1[2] * r1[9]
        c2 = r2[1] * r2[2] * r2[5] * r2[7] * r2[8] * r2[9]
        r1 = [c1] + r1[:9]
        r2 = [c2] + r2[:9]

    offset = CA_SEQ_LEN - _G2_DELAY[prn - 1]
    return [
        (1 - a * g2[(offset + i) % CA_SEQ_LEN]) // 2
        for i, a in enumerate(g1)
    ]


def compute_checksum(source: int, nib: bool) -> int:
    """Encode one 30-bit navigation word with its parity bits.

    ``source`` carries D29* and D30* of the previous word in bits 31 and 30
    and the 24 data bits in bits 29..6. When ``nib`` is true (words 2 and 10)
    data bits 23 and 24 are chosen so that parity bits 29 and 30 are zero.
    """
    d = source & _DATA_MASK
    d29 = (source >> 31) & 0x1
    d30 = (source >> 30) & 0x1

    if nib:
        if (d30 + _parity(_PARITY_MASKS[4], d)) % 2:
            d ^= 0x1 << 6
        if (d29 + _parity(_PARITY_MASKS[5], d)) % 2:
            d ^= 0x1 << 7

    word = d ^ _DATA_MASK if d30 else d

    word |= ((d29 + _parity(_PARITY_MASKS[0], d)) % 2) << 5
    word |= ((d30 + _parity(_PARITY_MASKS[1], d)) % 2) << 4
    word |= ((d29 + _parity(_PARITY_MASKS[2], d)) % 2) << 3
    word |= ((d30 + _parity(_PARITY_MASKS[3], d)) % 2) << 2
    word |= ((d30 + _parity(_PARITY_MASKS[4], d)) % 2) << 1
    word |= (d29 + _parity(_PARITY_MASKS[5], d)) % 2

    return word & _WORD_MASK


def ephemeris_to_subframes(eph: Ephemeris) -> tuple[tuple[int, ...], ...]:
    """Pack an ephemeris into five subframes of ten unparitied words each.

    Subframes 4 and 5 carry page 25 only. TOW and parity are filled in by
    :func:`generate_nav_msg`.
    """
    wn = eph.toe.week % 1024
    toe = int(eph.toe.sec / 16.0)
    toc = int(eph.toc.sec / 16.0)
    iode = eph.iode
    iodc = eph.iodc
    deltan = int(eph.deltan / POW2_M43 / PI)
    cuc = int(eph.cuc / POW2_M29)
    cus = int(eph.cus / POW2_M29)
    cic = int(eph.cic / POW2_M29)
    cis = int(eph.cis / POW2_M29)
    crc = int(eph.crc / POW2_M5)
    crs = int(eph.crs / POW2_M5)
    ecc = int(eph.ecc / POW2_M33)
    sqrta = int(eph.sqrta / POW2_M19)
    m0 = int(eph.m0 / POW2_M31 / PI)
    omg0 = int(eph.omg0 / POW2_M31 / PI)
    inc0 = int(eph.inc0 / POW2_M31 / PI)
    aop = int(eph.aop / POW2_M31 / PI)
    omgdot = int(eph.omgdot / POW2_M43 / PI)
    idot = int(eph.idot / POW2_M43 / PI)
    af0 = int(eph.af0 / POW2_M31)
    af1 = int(eph.af1 / POW2_M43)
    af2 = int(eph.af2 / POW2_M55)
    tgd = int(eph.tgd / POW2_M31)

    wna = eph.toe.week % 256
    toa = int(eph.toe.sec / 4096.0)

    sbf1 = (
        _PREAMBLE_WORD,
        0x1 << 8,
        ((wn & 0x3FF) << 20) | (_URA << 14) | (((iodc >> 8) & 0x3) << 6),
        0,
        0,
        0,
        (tgd & 0xFF) << 6,
        ((iodc & 0xFF) << 22) | ((toc & 0xFFFF) << 6),
        ((af2 & 0xFF) << 22) | ((af1 & 0xFFFF) << 6),
        (af0 & 0x3FFFFF) << 8,
    )
    sbf2 = (
        _PREAMBLE_WORD,
        0x2 << 8,
        ((iode & 0xFF) << 22) | ((crs & 0xFFFF) << 6),
        ((deltan & 0xFFFF) << 14) | (((m0 >> 24) & 0xFF) << 6),
        (m0 & 0xFFFFFF) << 6,
        ((cuc & 0xFFFF) << 14) | (((ecc >> 24) & 0xFF) << 6),
        (ecc & 0xFFFFFF) << 6,
        ((cus & 0xFFFF) << 14) | (((sqrta >> 24) & 0xFF) << 6),
        (sqrta & 0xFFFFFF) << 6,
        (toe & 0xFFFF) << 14,
    )
    sbf3 = (
        _PREAMBLE_WORD,
        0x3 << 8,
        ((cic & 0xFFFF) << 14) | (((omg0 >> 24) & 0xFF) << 6),
        (omg0 & 0xFFFFFF) << 6,
        ((cis & 0xFFFF) << 14) | (((inc0 >> 24) & 0xFF) << 6),
        (inc0 & 0xFFFFFF) << 6,
        ((crc & 0xFFFF) << 14) | (((aop >> 24) & 0xFF) << 6),
        (aop & 0xFFFFFF) << 6,
        (omgdot & 0xFFFFFF) << 6,
        ((iode & 0xFF) << 22) | ((idot & 0x3FFF) << 8),
    )
    sbf4 = (
        _PREAMBLE_WORD,
        0x4 << 8,
        (_DATA_ID << 28) | (_SBF4_PAGE25_SVID << 22),
    ) + (0,) * 7
    sbf5 = (
        _PREAMBLE_WORD,
        0x5 << 8,
        (_DATA_ID << 28)
        | (_SBF5_PAGE25_SVID << 22)
        | ((toa & 0xFF) << 14)
        | ((wna & 0xFF) << 6),
    ) + (0,) * 7

    return (sbf1, sbf2, sbf3, sbf4, sbf5)


def _encode_subframe(
    subframe: Sequence[int], tow: int, prevwrd: int
) -> list[int]:
    words = []
    for iwrd, sbfwrd in enumerate(subframe):
        if iwrd == 1:
            sbfwrd |= (tow & 0x1FFFF) << 13
        sbfwrd |= (prevwrd << 30) & 0xC0000000
        prevwrd = compute_checksum(sbfwrd, iwrd in (1, 9))
        words.append(prevwrd)
    return words


def generate_nav_msg(
    g: GpsTime,
    subframes: Sequence[Sequence[int]],
    previous_words: Sequence[int] | None = None,
) -> tuple[GpsTime, list[int]]:
    """Build the parity-encoded words of one navigation frame.

    Returns the frame reference time (``g`` aligned down to a 30 s frame
    boundary) and ``N_DWRD`` words: the previous subframe 5 followed by the
    five subframes of the frame. Without ``previous_words`` the leading
    subframe 5 is encoded afresh; otherwise it is taken from the last
    subframe of ``previous_words``.
    """
    if len(subframes) != N_SBF or any(len(s) != N_DWRD_SBF for s in subframes):
        raise ValueError(f"expected {N_SBF} subframes of {N_DWRD_SBF} words")

    g0 = GpsTime(g.week, float(int(g.sec + 0.5) // 30 * 30))
    tow = int(g0.sec) // 6

    if previous_words is None:
        words = _encode_subframe(subframes[N_SBF - 1], tow, 0)
    else:
        if len(previous_words) != N_DWRD:
            raise ValueError(f"expected {N_DWRD} previous words")
        words = list(previous_words[N_DWRD_SBF * N_SBF:])

    for subframe in subframes:
        tow += 1
        words.extend(_encode_subframe(subframe, tow, words[-1]))

    return g0, words