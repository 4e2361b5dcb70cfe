"""Shared fixtures: a small codec configuration and a scriptable fake engine."""

from typing import List, Optional

import numpy as np
import pytest
import torch
import torch.nn as nn

from packet_codec.config import CodecConfig
from packet_codec.engine import CodecEngine
from packet_codec.errors import EngineCreationError

# 8 kHz, 50 frames/s, 2 frames per packet -> 320 samples per packet.
SMALL_CONFIG = CodecConfig(sample_rate_hz=8000, num_channels=1, bitrate=3000,
                           frame_rate=50, frames_per_packet=2, num_features=4)


class FakeEngine(CodecEngine):
    """
    Encodes a window as `num_features` copies of its mean and decodes a
    packet as `count` copies of its mean, so values survive a round trip
    for piecewise-constant signals. Failures are scripted by call index.
    """

    def __init__(
        self,
        config: CodecConfig = SMALL_CONFIG,
        fail_encode_at: Optional[int] = None,
        fail_set_at: Optional[int] = None,
        fail_decode_at: Optional[int] = None,
        supports_packet_loss: bool = False,
    ):
        super().__init__(config)
        self.fail_encode_at = fail_encode_at
        self.fail_set_at = fail_set_at
        self.fail_decode_at = fail_decode_at
        self.supports_packet_loss = supports_packet_loss
        self.windows: List[np.ndarray] = []
        self.packets: List[np.ndarray] = []
        self.decode_calls = 0
        self.packet_loss = None

    def encode_window(self, window):
        index = len(self.windows)
        self.windows.append(np.array(window))
        if index == self.fail_encode_at:
            return None
        return np.full(self.num_features, float(np.mean(window)), dtype=np.float32)

    def set_encoded_packet(self, packet):
        index = len(self.packets)
        self.packets.append(np.array(packet))
        return index != self.fail_set_at

    def decode_samples(self, count):
        index = self.decode_calls
        self.decode_calls += 1
        if index == self.fail_decode_at:
            return None
        value = int(round(float(np.mean(self.packets[-1]))))
        return np.full(count, value, dtype=np.int16)

    def configure_packet_loss(self, packet_loss_rate, average_burst_length):
        self.packet_loss = (packet_loss_rate, average_burst_length)
        return self.supports_packet_loss


def stepped_signal(num_windows: int, window: int, remainder: int = 0) -> np.ndarray:
    """Window k holds the constant value k; `remainder` extra samples of -1 at the end."""
    steps = np.repeat(np.arange(num_windows, dtype=np.int16), window)
    return np.concatenate([steps, np.full(remainder, -1, dtype=np.int16)])


@pytest.fixture
def config() -> CodecConfig:
    return SMALL_CONFIG


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def engine_factory():
    """Factory with the `TorchScriptEngine.create` signature; records every call."""
    calls = []

    def factory(sample_rate_hz, num_channels, bitrate, enable_dtx, model_path, **engine_kwargs):
        calls.append(dict(sample_rate_hz=sample_rate_hz, num_channels=num_channels,
                          bitrate=bitrate, enable_dtx=enable_dtx, model_path=model_path))
        if model_path == "missing":
            raise EngineCreationError("Model files not found: missing")
        cfg = CodecConfig(sample_rate_hz=sample_rate_hz, num_channels=num_channels, bitrate=bitrate,
                          frame_rate=SMALL_CONFIG.frame_rate,
                          frames_per_packet=SMALL_CONFIG.frames_per_packet,
                          num_features=SMALL_CONFIG.num_features)
        engine = FakeEngine(cfg, **factory.engine_kwargs)
        factory.engines.append(engine)
        return engine

    factory.calls = calls
    factory.engines = []
    factory.engine_kwargs = {}
    return factory


class TinyEncoder(nn.Module):
    def __init__(self, samples: int, features: int):
        super().__init__()
        self.proj = nn.Linear(samples, features)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.proj(x)


class TinyDecoder(nn.Module):
    """Ignores its input: every decoded sample is 0.25 (8192 as int16)."""

    def __init__(self, features: int, samples: int):
        super().__init__()
        self.proj = nn.Linear(features, samples)
        nn.init.zeros_(self.proj.weight)
        nn.init.constant_(self.proj.bias, 0.25)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.proj(x)
