"""Baseband I/Q sample synthesis and output sample encoding."""

from __future__ import annotations

import math
import struct
from enum import IntEnum
from typing import Sequence

from .channel import Channel, Range
from .geodesy import R2D
from .navmsg import CA_SEQ_LEN


class DataFormat(IntEnum):
    """Bits per I or Q value in the output file."""

    SC01 = 1
    SC08 = 8
    SC16 = 16


_TABLE_SIZE = 512
_TABLE_AMPLITUDE = 250

# Carrier lookup tables sampled at the centre of each of 512 phase steps.
SIN_TABLE = tuple(
    round(_TABLE_AMPLITUDE * math.sin(2.0 * math.pi * (k + 0.5) / _TABLE_SIZE))
    for k in range(_TABLE_SIZE)
)
COS_TABLE = tuple(
    round(_TABLE_AMPLITUDE * math.cos(2.0 * math.pi * (k + 0.5) / _TABLE_SIZE))
    for k in range(_TABLE_SIZE)
)

# Receiver antenna attenuation in dB for boresight angles 0, 5, ..., 180 degrees.
ANT_PAT_DB = (
    0.00, 0.00, 0.22, 0.44, 0.67, 1.11, 1.56, 2.00, 2.44, 2.89, 3.56, 4.22,
    4.89, 5.56, 6.22, 6.89, 7.56, 8.22, 8.89, 9.78, 10.67, 11.56, 12.44, 13.33,
    14.44, 15.56, 16.67, 17.78, 18.89, 20.00, 21.33, 22.67, 24.00, 25.56, 27.33,
    29.33, 31.56,
)
_ANT_PAT = tuple(10.0 ** (-db / 20.0) for db in ANT_PAT_DB)

_PATH_LOSS_REFERENCE = 20200000.0  # metres; unit path loss at this distance
_GAIN_SCALE = 100

_CARR_PHASE_MASK = 0xFFFFFFFF
_CODES_PER_BIT = 20
_BITS_PER_WORD = 30


def antenna_gain(elevation: float) -> float:
    """Return the linear receiver antenna gain for an elevation in radians."""
    ibs = int((90.0 - elevation * R2D) / 5.0)
    if not 0 <= ibs < len(_ANT_PAT):
        raise ValueError(f"elevation out of range: {elevation}")
    return _ANT_PAT[ibs]


def channel_gain(rho: Range) -> int:
    """Return the signal gain of a channel, scaled by 100."""
    path_loss = _PATH_LOSS_REFERENCE / rho.d
    return int(path_loss * antenna_gain(rho.azel[1]) * _GAIN_SCALE)


def _scale_down(value: int) -> int:
    """Divide by the gain scale with rounding offset, truncating towards zero."""
    shifted = value + _GAIN_SCALE // 2
    q = abs(shifted) // _GAIN_SCALE
    return -q if shifted < 0 else q


def _to_int16(value: int) -> int:
    return ((value + 0x8000) & 0xFFFF) - 0x8000


def _advance(chan: Channel, delt: float) -> None:
    """Move a channel's code, data bit and carrier forward by one sample."""
    chan.code_phase += chan.f_code * delt

    if chan.code_phase >= CA_SEQ_LEN:
        chan.code_phase -= CA_SEQ_LEN
        chan.icode += 1

        if chan.icode >= _CODES_PER_BIT:
            chan.icode = 0
            chan.ibit += 1

            if chan.ibit >= _BITS_PER_WORD:
                chan.ibit = 0
                chan.iword += 1

            word = chan.dwrd[chan.iword]
            chan.data_bit = ((word >> (29 - chan.ibit)) & 0x1) * 2 - 1

    chan.code_ca = chan.ca[int(chan.code_phase)] * 2 - 1
    chan.carr_phase = (chan.carr_phase + chan.carr_phasestep) & _CARR_PHASE_MASK


def generate_samples(
    channels: Sequence[Channel],
    gains: Sequence[int],
    count: int,
    delt: float,
) -> list[int]:
    """Synthesise ``count`` I/Q samples as interleaved 16-bit values.

    ``gains`` holds one gain per channel. The channels' code, data bit and
    carrier state is advanced by ``delt`` seconds per sample.
    """
    if len(channels) != len(gains):
        raise ValueError("one gain is needed for each channel")

    active = list(zip(channels, gains))
    samples: list[int] = []
    for _ in range(count):
        i_acc = 0
        q_acc = 0
        for chan, gain in active:
            itable = (chan.carr_phase >> 16) & (_TABLE_SIZE - 1)
            amp = chan.data_bit * chan.code_ca * gain
            i_acc += _scale_down(amp * COS_TABLE[itable])
            q_acc += _scale_down(amp * SIN_TABLE[itable])
            _advance(chan, delt)
        samples.append(_to_int16(i_acc))
        samples.append(_to_int16(q_acc))
    return samples


def pack_samples(samples: Sequence[int], data_format: DataFormat | int) -> bytes:
    """Encode interleaved I/Q values in the chosen output format.

    SC01 packs sign bits eight to a byte, most significant first, dropping
    an incomplete last byte; SC08 keeps the top 8 of 12 significant bits;
    SC16 writes little-endian 16-bit values.
    """
    fmt = DataFormat(data_format)
    if fmt is DataFormat.SC01:
        groups = zip(*[iter(samples)] * 8)
        return bytes(
            sum((1 << (7 - k)) for k, value in enumerate(group) if value > 0)
            for group in groups
        )
    if fmt is DataFormat.SC08:
        return bytes((value >> 4) & 0xFF for value in samples)
    return struct.pack(f"<{len(samples)}h", *samples)