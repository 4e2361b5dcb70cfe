"""
packet_codec/config.py
Codec configuration shared by the encoder and decoder pipelines.
"""

from __future__ import annotations
from dataclasses import dataclass, asdict

from .errors import InvalidConfigError
from .framing import packet_size_bytes, samples_per_frame, samples_per_packet, nominal_bitrate

# ===============================
# DEFAULTS
# ===============================
BITRATE = 3000
FRAME_RATE = 50
FRAMES_PER_PACKET = 2
NUM_FEATURES = 160
NUM_CHANNELS = 1
SAMPLE_RATE_HZ = 16000
SUPPORTED_SAMPLE_RATES = (8000, 16000, 32000, 48000)

FEATURES_KEY = "features"


# ===============================
# CONFIGURATION
# ===============================
@dataclass(frozen=True)
class CodecConfig:
    sample_rate_hz: int = SAMPLE_RATE_HZ
    num_channels: int = NUM_CHANNELS
    bitrate: int = BITRATE
    frame_rate: int = FRAME_RATE
    frames_per_packet: int = FRAMES_PER_PACKET
    num_features: int = NUM_FEATURES

    def __post_init__(self):
        for name, value in asdict(self).items():
            if value <= 0:
                raise InvalidConfigError(f"{name} must be positive, got {value}")
        if self.samples_per_packet <= 0:
            raise InvalidConfigError(
                f"frame_rate {self.frame_rate} leaves no samples per packet at {self.sample_rate_hz} Hz"
            )

    @property
    def packet_size_bytes(self) -> int:
        return packet_size_bytes(self.bitrate, self.frame_rate, self.frames_per_packet)

    @property
    def samples_per_frame(self) -> int:
        return samples_per_frame(self.sample_rate_hz, self.frame_rate)

    @property
    def samples_per_packet(self) -> int:
        return samples_per_packet(self.sample_rate_hz, self.frame_rate, self.frames_per_packet)

    @property
    def nominal_bitrate(self) -> float:
        return nominal_bitrate(self.packet_size_bytes, self.frame_rate, self.frames_per_packet)
