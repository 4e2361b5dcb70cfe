"""
packet_codec/framing.py
Packet sizing and fixed-window chunking.

A packet carries `frames_per_packet` engine frames. Its byte size follows from
the bitrate and frame rate; its duration in samples follows from the sample
rate and frame rate.
"""

from __future__ import annotations
from typing import Iterator, Tuple

import numpy as np

from .errors import InvalidConfigError

BITS_PER_BYTE = 8


def _require_positive(name: str, value: int) -> None:
    if value <= 0:
        raise InvalidConfigError(f"{name} must be positive, got {value}")


def packet_size_bytes(bitrate: int, frame_rate: int, frames_per_packet: int) -> int:
    """Bytes needed for one packet, rounded up: ceil(bitrate * K / (frame_rate * 8))."""
    _require_positive("frame_rate", frame_rate)
    _require_positive("frames_per_packet", frames_per_packet)
    bits = bitrate * frames_per_packet
    per_byte = frame_rate * BITS_PER_BYTE
    return -(-bits // per_byte)


def samples_per_frame(sample_rate_hz: int, frame_rate: int) -> int:
    """Samples covered by one engine frame (hop size)."""
    _require_positive("frame_rate", frame_rate)
    _require_positive("sample_rate_hz", sample_rate_hz)
    return sample_rate_hz // frame_rate


def samples_per_packet(sample_rate_hz: int, frame_rate: int, frames_per_packet: int) -> int:
    _require_positive("frames_per_packet", frames_per_packet)
    return frames_per_packet * samples_per_frame(sample_rate_hz, frame_rate)


def num_packets(num_samples: int, window: int) -> int:
    """Number of complete windows in a buffer; the trailing remainder does not count."""
    _require_positive("window", window)
    return max(0, num_samples) // window


def nominal_bitrate(packet_bytes: int, frame_rate: int, frames_per_packet: int) -> float:
    """Bits per second actually emitted once packets are rounded up to whole bytes."""
    _require_positive("frame_rate", frame_rate)
    _require_positive("frames_per_packet", frames_per_packet)
    packets_per_second = frame_rate / frames_per_packet
    return packet_bytes * BITS_PER_BYTE * packets_per_second


def iter_windows(buffer: np.ndarray, window: int) -> Iterator[Tuple[int, np.ndarray]]:
    """
    Yield (start, view) for every complete window of `window` values.
    Views share memory with `buffer`; a trailing partial window is skipped.
    """
    _require_positive("window", window)
    for start in range(0, num_packets(len(buffer), window) * window, window):
        yield start, buffer[start:start + window]
