"""
packet_codec/preprocessing.py
Whole-signal preprocessing applied before the encoder chunks the buffer.
"""

from __future__ import annotations
from abc import ABC, abstractmethod

import numpy as np
import torch
import torchaudio

from .pcm_utils import pcm_to_float, float_to_pcm


class Preprocessor(ABC):
    @abstractmethod
    def process(self, samples: np.ndarray, sample_rate_hz: int) -> np.ndarray:
        """Return a processed int16 buffer (length may differ from the input)."""


class NoOpPreprocessor(Preprocessor):
    """Identity; returns a copy so the caller's buffer is never aliased."""

    def process(self, samples: np.ndarray, sample_rate_hz: int) -> np.ndarray:
        return np.array(samples, dtype=np.int16, copy=True)


class HighPassPreprocessor(Preprocessor):
    """
    Removes DC offset and low-frequency rumble with a second-order high-pass
    biquad (torchaudio). Output has the same length as the input.
    """

    def __init__(self, cutoff_hz: float = 60.0, q: float = 0.707):
        if cutoff_hz <= 0:
            raise ValueError(f"cutoff_hz must be positive, got {cutoff_hz}")
        self.cutoff_hz = cutoff_hz
        self.q = q

    def process(self, samples: np.ndarray, sample_rate_hz: int) -> np.ndarray:
        if len(samples) == 0:
            return np.zeros(0, dtype=np.int16)
        if self.cutoff_hz >= sample_rate_hz / 2:
            raise ValueError(f"cutoff {self.cutoff_hz} Hz is above Nyquist for {sample_rate_hz} Hz")
        wav = torch.from_numpy(pcm_to_float(samples))
        filtered = torchaudio.functional.highpass_biquad(wav, sample_rate_hz, self.cutoff_hz, self.q)
        return float_to_pcm(filtered)
